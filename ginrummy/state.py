"""Game state management for Gin Rummy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from random import Random
from typing import TYPE_CHECKING, List, Optional

from .cards import Card
from .deck import Deck, DiscardPile, Hand
from .melds import MeldSet
from .rules_schema import RuleSet

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .scoring import HandResult


class IllegalAction(RuntimeError):
    """Raised when an action is attempted out of phase or out of turn."""


class FirstTurnUndecided(RuntimeError):
    """Raised when the first-turn tie-break exceeds its configured cap."""


class PlayerId(IntEnum):
    PLAYER_ONE = 0
    PLAYER_TWO = 1

    @property
    def other(self) -> "PlayerId":
        return PlayerId(1 - self.value)

    def __str__(self) -> str:
        return self.name.lower()


class Decision(Enum):
    KNOCK = auto()
    GIN = auto()
    NEITHER = auto()


class HandPhase(Enum):
    DETERMINING_FIRST_TURN = auto()
    DEALING = auto()
    IN_PROGRESS = auto()
    MELDING = auto()
    LAYING_OFF = auto()
    SCORED = auto()
    ABORTED = auto()


class TurnStep(Enum):
    DRAW = auto()
    DECIDE = auto()
    DISCARD = auto()


@dataclass
class Player:
    player_id: PlayerId
    name: str
    hand: Hand = field(default_factory=Hand)
    melds: MeldSet = field(default_factory=MeldSet)


@dataclass
class GameState:
    """Everything belonging to one hand of Gin Rummy."""

    players: List[Player]
    rules: RuleSet = field(default_factory=RuleSet)
    rng: Random = field(default_factory=Random)
    deck: Deck = field(default_factory=Deck.create)
    discard_pile: DiscardPile = field(default_factory=DiscardPile)
    phase: HandPhase = HandPhase.DETERMINING_FIRST_TURN
    step: Optional[TurnStep] = None
    current_turn: Optional[PlayerId] = None
    first_player: Optional[PlayerId] = None
    knocked: bool = False
    gin_called: bool = False
    declarer: Optional[PlayerId] = None
    turn_count: int = 0
    finished: List[PlayerId] = field(default_factory=list)
    result: Optional["HandResult"] = None

    def __post_init__(self) -> None:
        if len(self.players) != 2:
            raise ValueError("Gin Rummy is played by exactly two players.")
        if [p.player_id for p in self.players] != [PlayerId.PLAYER_ONE, PlayerId.PLAYER_TWO]:
            raise ValueError("Players must be ordered PLAYER_ONE, PLAYER_TWO.")

    def player(self, player_id: PlayerId) -> Player:
        return self.players[player_id]

    def opponent(self, player_id: PlayerId) -> Player:
        return self.players[player_id.other]

    @property
    def current_player(self) -> Player:
        if self.current_turn is None:
            raise IllegalAction("No player is on turn.")
        return self.players[self.current_turn]

    @property
    def status(self) -> str:
        if self.gin_called:
            return "gin"
        if self.knocked:
            return "knocked"
        return "in_progress"

    def all_cards(self) -> List[Card]:
        """Every card held by every container of the hand."""
        cards = list(self.deck) + list(self.discard_pile)
        for player in self.players:
            cards.extend(player.hand)
            cards.extend(player.melds.all_cards())
        return cards

    def ensure_phase(self, *expected: HandPhase) -> None:
        if self.phase not in expected:
            names = ", ".join(phase.name for phase in expected)
            raise IllegalAction(f"Action not allowed in phase {self.phase.name}. Expected {names}.")

    def ensure_step(self, expected: TurnStep) -> None:
        self.ensure_phase(HandPhase.IN_PROGRESS)
        if self.step is not expected:
            step = self.step.name if self.step else None
            raise IllegalAction(f"Action not allowed at step {step}. Expected {expected.name}.")

    def ensure_turn(self, player_id: PlayerId) -> None:
        if player_id != self.current_turn:
            raise IllegalAction(f"Not {player_id}'s turn.")

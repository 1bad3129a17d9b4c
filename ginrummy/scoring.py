"""Hand scoring helpers for Gin Rummy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple

from .cards import Card, total_points
from .deck import Hand
from .melds import MeldSet
from .rules_schema import RuleSet
from .state import Decision, GameState, HandPhase, PlayerId


class ScoringError(ValueError):
    """Base class for scoring issues."""


class InvalidDeclaration(ScoringError):
    """Raised when a knock or gin is not backed by the player's deadwood."""


class HandOutcome(Enum):
    GIN = auto()
    KNOCK = auto()
    UNDERCUT = auto()


@dataclass(frozen=True)
class HandResult:
    winner: PlayerId
    points: int
    outcome: HandOutcome
    deadwood: Tuple[int, int]


def deadwood_cards(hand: Hand, melds: MeldSet) -> List[Card]:
    """Cards counting against a player: the hand plus their own invalid melds.

    Cards the player laid off onto the opponent are no longer theirs and the
    opponent's layoffs onto this meld set are never counted here.
    """
    cards = list(hand)
    for meld in melds.invalid_melds():
        cards.extend(meld.cards)
    return cards


def deadwood(hand: Hand, melds: MeldSet) -> int:
    return total_points(deadwood_cards(hand, melds))


def check_declaration(decision: Decision, declarer_deadwood: int, rules: RuleSet) -> None:
    """Raise InvalidDeclaration unless ``declarer_deadwood`` supports ``decision``."""
    if decision is Decision.GIN and declarer_deadwood != 0:
        raise InvalidDeclaration(f"Gin requires zero deadwood, found {declarer_deadwood}.")
    if decision is Decision.KNOCK and declarer_deadwood > rules.knock_threshold:
        raise InvalidDeclaration(
            f"Knocking requires deadwood of at most {rules.knock_threshold}, found {declarer_deadwood}."
        )
    if decision is Decision.NEITHER:
        raise ScoringError("Only a knock or gin ends the hand.")


def score_hand(
    *,
    declarer: PlayerId,
    decision: Decision,
    deadwood: Sequence[int],
    rules: Optional[RuleSet] = None,
) -> HandResult:
    rules = rules or RuleSet()
    if len(deadwood) != 2:
        raise ScoringError("Exactly two players are supported.")
    if any(value < 0 for value in deadwood):
        raise ScoringError("Deadwood cannot be negative.")

    defender = declarer.other
    own = deadwood[declarer]
    theirs = deadwood[defender]
    check_declaration(decision, own, rules)
    totals = (deadwood[0], deadwood[1])

    if decision is Decision.GIN:
        return HandResult(declarer, theirs + rules.gin_bonus, HandOutcome.GIN, totals)

    if theirs <= own:
        return HandResult(defender, own - theirs + rules.undercut_bonus, HandOutcome.UNDERCUT, totals)
    return HandResult(declarer, theirs - own, HandOutcome.KNOCK, totals)


def compute_score(state: GameState) -> HandResult:
    """Score a hand whose meld and layoff phases are complete."""
    if state.phase is not HandPhase.SCORED or state.declarer is None:
        raise ScoringError(f"Hand cannot be scored in phase {state.phase.name}.")
    decision = Decision.GIN if state.gin_called else Decision.KNOCK
    values = [deadwood(player.hand, player.melds) for player in state.players]
    return score_hand(declarer=state.declarer, decision=decision, deadwood=values, rules=state.rules)

"""Convenience service layer for console and UI front ends."""

from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import Optional

from . import game
from .cards import Card, card_label, serialize_card
from .melds import MeldSet, minimum_deadwood
from .rules_schema import RuleSet
from .scoring import HandResult, deadwood
from .state import Decision, GameState, HandPhase, PlayerId


@dataclass
class MeldView:
    cards: list[dict]
    labels: list[str]
    valid: bool
    layoff_count: int


@dataclass
class ResultView:
    winner: int
    winner_name: str
    points: int
    outcome: str
    deadwood: list[int]


@dataclass
class HandView:
    phase: str
    step: Optional[str]
    status: str
    current_player: Optional[int]
    first_player: Optional[int]
    player_names: list[str]
    hand: list[dict]
    hand_labels: list[str]
    opponent_hand_size: int
    deck_size: int
    discard_size: int
    discard_top: Optional[dict]
    discard_top_label: Optional[str]
    melds: list[list[MeldView]]
    deadwood: int
    best_deadwood: int
    result: Optional[ResultView]


class HandService:
    """Facade around a single GameState for I/O consumers.

    Every action returns a fresh view for the acting player so the caller can
    render it directly. Errors from the engine propagate unchanged.
    """

    def __init__(self, state: Optional[GameState] = None) -> None:
        self.state = state

    # Lifecycle ---------------------------------------------------------

    def start(
        self,
        player1_name: str,
        player2_name: str,
        *,
        rules: Optional[RuleSet] = None,
        seed: Optional[int] = None,
    ) -> HandView:
        """Start a hand, settle the first player and deal."""
        state = game.start_game(player1_name, player2_name, rules=rules, rng=Random(seed))
        game.determine_first_turn(state)
        game.deal_starting_hands(state)
        self.state = state
        return self.get_view(state.first_player)

    # Actions -----------------------------------------------------------

    def draw(self, source: str) -> HandView:
        state = self._require_state()
        if source == "deck":
            game.draw_from_deck(state)
        elif source == "discard":
            game.draw_from_discard(state)
        else:
            raise ValueError(f"Unknown draw source {source!r}; expected 'deck' or 'discard'.")
        return self.get_view(state.current_turn)

    def declare(self, decision: Decision, discard_index: Optional[int] = None) -> HandView:
        state = self._require_state()
        actor = state.current_turn
        game.declare(state, decision, discard_index)
        return self.get_view(actor)

    def discard(self, hand_index: int) -> HandView:
        state = self._require_state()
        actor = state.current_turn
        game.discard(state, hand_index)
        return self.get_view(actor)

    def create_meld(self, player: PlayerId) -> HandView:
        game.create_meld(self._require_state(), player)
        return self.get_view(player)

    def add_to_meld(self, player: PlayerId, hand_index: int, meld_index: int) -> HandView:
        game.add_to_meld(self._require_state(), player, hand_index, meld_index)
        return self.get_view(player)

    def remove_meld(self, player: PlayerId, meld_index: int) -> HandView:
        game.remove_meld(self._require_state(), player, meld_index)
        return self.get_view(player)

    def auto_meld(self, player: PlayerId) -> HandView:
        game.auto_meld(self._require_state(), player)
        return self.get_view(player)

    def finish_melds(self, player: PlayerId) -> HandView:
        game.finish_melds(self._require_state(), player)
        return self.get_view(player)

    def lay_off(self, player: PlayerId, hand_index: int, meld_index: int) -> HandView:
        game.lay_off(self._require_state(), player, hand_index, meld_index)
        return self.get_view(player)

    def auto_lay_off(self, player: PlayerId) -> HandView:
        game.auto_lay_off(self._require_state(), player)
        return self.get_view(player)

    def finish_layoffs(self, player: PlayerId) -> HandView:
        game.finish_layoffs(self._require_state(), player)
        return self.get_view(player)

    def result(self) -> HandResult:
        state = self._require_state()
        if state.result is None:
            raise RuntimeError("Hand has not been scored yet.")
        return state.result

    # Views -------------------------------------------------------------

    def get_view(self, perspective: Optional[PlayerId] = PlayerId.PLAYER_ONE) -> HandView:
        state = self._require_state()
        if perspective is None:
            perspective = PlayerId.PLAYER_ONE
        me = state.player(perspective)
        them = state.opponent(perspective)
        top = state.discard_pile.visible_top
        cards = list(me.hand)
        current_deadwood = deadwood(me.hand, me.melds)
        best_deadwood = minimum_deadwood(cards) if state.phase is HandPhase.IN_PROGRESS else current_deadwood

        result_view = None
        if state.result is not None:
            result_view = ResultView(
                winner=int(state.result.winner),
                winner_name=state.player(state.result.winner).name,
                points=state.result.points,
                outcome=state.result.outcome.name.lower(),
                deadwood=list(state.result.deadwood),
            )

        return HandView(
            phase=state.phase.name.lower(),
            step=state.step.name.lower() if state.step else None,
            status=state.status,
            current_player=_optional_int(state.current_turn),
            first_player=_optional_int(state.first_player),
            player_names=[player.name for player in state.players],
            hand=[serialize_card(card) for card in cards],
            hand_labels=[card_label(card) for card in cards],
            opponent_hand_size=len(them.hand),
            deck_size=len(state.deck),
            discard_size=len(state.discard_pile),
            discard_top=serialize_card(top) if top else None,
            discard_top_label=card_label(top) if top else None,
            melds=[_meld_views(player.melds) for player in state.players],
            deadwood=current_deadwood,
            best_deadwood=best_deadwood,
            result=result_view,
        )

    # Helpers -----------------------------------------------------------

    def _require_state(self) -> GameState:
        if self.state is None:
            raise RuntimeError("No active hand.")
        return self.state


def _meld_views(melds: MeldSet) -> list[MeldView]:
    views = []
    for meld in melds:
        cards: list[Card] = meld.all_cards
        views.append(
            MeldView(
                cards=[serialize_card(card) for card in cards],
                labels=[card_label(card) for card in cards],
                valid=meld.is_valid(),
                layoff_count=len(meld.layoffs),
            )
        )
    return views


def _optional_int(player: Optional[PlayerId]) -> Optional[int]:
    return int(player) if player is not None else None

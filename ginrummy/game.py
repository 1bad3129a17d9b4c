"""Turn-by-turn orchestration of a Gin Rummy hand."""

from __future__ import annotations

import logging
from collections import Counter
from random import Random
from typing import List, Optional, Sequence

from .cards import Card
from .deck import Deck, DeckExhausted, build_deck
from .melds import best_layoffs, best_meld_arrangement, minimum_deadwood
from .rules_schema import RuleSet
from .scoring import check_declaration, compute_score, deadwood
from .state import (
    Decision,
    FirstTurnUndecided,
    GameState,
    HandPhase,
    IllegalAction,
    Player,
    PlayerId,
    TurnStep,
)

logger = logging.getLogger(__name__)

__all__ = [
    "start_game",
    "determine_first_turn",
    "deal_starting_hands",
    "draw_from_deck",
    "draw_from_discard",
    "declare",
    "discard",
    "create_meld",
    "add_to_meld",
    "remove_meld",
    "auto_meld",
    "finish_melds",
    "lay_off",
    "auto_lay_off",
    "finish_layoffs",
    "compute_score",
]


def start_game(
    player1_name: str,
    player2_name: str,
    *,
    rules: Optional[RuleSet] = None,
    rng: Optional[Random] = None,
    deck: Optional[Sequence[Card]] = None,
) -> GameState:
    """Create a fresh hand awaiting the first-turn draw.

    ``deck`` lets callers stack the 52 cards (top of the deck last); it must
    hold every card exactly once.
    """
    if deck is not None:
        cards = list(deck)
        if Counter(cards) != Counter(build_deck()):
            raise ValueError("Deck must contain each of the 52 cards exactly once.")
        stock = Deck(cards)
    else:
        stock = Deck.create()
    state = GameState(
        players=[
            Player(PlayerId.PLAYER_ONE, player1_name),
            Player(PlayerId.PLAYER_TWO, player2_name),
        ],
        rules=rules or RuleSet(),
        rng=rng or Random(),
        deck=stock,
    )
    logger.info("Started hand between %s and %s", player1_name, player2_name)
    return state


def determine_first_turn(state: GameState) -> PlayerId:
    """Shuffle and compare the top two cards until one outranks the other.

    Player one takes the topmost card and player two the next. Ties reshuffle;
    without ``max_first_turn_attempts`` the loop has no bound, although a tie
    repeats with probability 3/51 only.
    """
    state.ensure_phase(HandPhase.DETERMINING_FIRST_TURN)
    cap = state.rules.max_first_turn_attempts
    attempts = 0
    while True:
        attempts += 1
        state.deck.shuffle(state.rng)
        card_one, card_two = state.deck.peek_top_n(2)
        if card_one.point_value() != card_two.point_value():
            break
        logger.debug("First-turn tie on %s and %s, reshuffling", card_one, card_two)
        if cap is not None and attempts >= cap:
            raise FirstTurnUndecided(f"No first player after {attempts} attempts.")

    first = PlayerId.PLAYER_ONE if card_one.point_value() > card_two.point_value() else PlayerId.PLAYER_TWO
    state.first_player = first
    state.current_turn = first
    state.phase = HandPhase.DEALING
    logger.info("%s goes first (%s vs %s)", state.player(first).name, card_one, card_two)
    return first


def deal_starting_hands(state: GameState) -> None:
    """Deal alternately starting with the first player, then turn the upcard."""
    state.ensure_phase(HandPhase.DEALING)
    assert state.first_player is not None
    state.deck.shuffle(state.rng)
    order = (state.first_player, state.first_player.other)
    for _ in range(state.rules.hand_size):
        for player_id in order:
            state.player(player_id).hand.add(state.deck.draw())
    state.discard_pile.push(state.deck.draw())

    state.phase = HandPhase.IN_PROGRESS
    state.step = TurnStep.DRAW
    state.current_turn = state.first_player
    state.turn_count = 1
    logger.info(
        "Dealt %d cards each; upcard %s; %d left in deck",
        state.rules.hand_size,
        state.discard_pile.visible_top,
        len(state.deck),
    )


def draw_from_deck(state: GameState) -> Card:
    """Draw the top card of the stock; an empty stock aborts the hand."""
    state.ensure_step(TurnStep.DRAW)
    player = state.current_player
    try:
        card = state.deck.draw()
    except DeckExhausted:
        state.phase = HandPhase.ABORTED
        state.step = None
        logger.error("Deck exhausted on turn %d; hand aborted", state.turn_count)
        raise
    player.hand.add(card)
    state.step = TurnStep.DECIDE
    logger.debug("%s drew from the deck", player.name)
    return card


def draw_from_discard(state: GameState) -> Card:
    """Pick up the discard pile's top card; PileEmpty leaves the state untouched."""
    state.ensure_step(TurnStep.DRAW)
    player = state.current_player
    card = state.discard_pile.draw_top()
    player.hand.add(card)
    state.step = TurnStep.DECIDE
    logger.debug("%s picked up %s", player.name, card)
    return card


def declare(state: GameState, decision: Decision, discard_index: Optional[int] = None) -> None:
    """Knock, call gin, or carry on to the discard step.

    A knock or gin ends play: the card at ``discard_index`` is discarded
    face-down and the remaining ten cards must support the declaration. When
    ``discard_index`` is omitted the card leaving the least deadwood is used.
    """
    state.ensure_step(TurnStep.DECIDE)
    if decision is Decision.NEITHER:
        state.step = TurnStep.DISCARD
        return

    player = state.current_player
    if discard_index is None:
        discard_index = _best_closing_discard(player)
    remaining = player.hand.without(discard_index)
    check_declaration(decision, minimum_deadwood(remaining), state.rules)

    card = player.hand.remove_at(discard_index)
    state.discard_pile.push(card, face_down=True)
    state.knocked = decision is Decision.KNOCK
    state.gin_called = decision is Decision.GIN
    state.declarer = player.player_id
    state.phase = HandPhase.MELDING
    state.step = None
    state.finished = []
    logger.info("%s declared %s, discarding %s face-down", player.name, decision.name.lower(), card)


def discard(state: GameState, hand_index: int) -> Card:
    """Discard by hand index and pass the turn; a bad index changes nothing."""
    state.ensure_step(TurnStep.DISCARD)
    player = state.current_player
    card = player.hand.remove_at(hand_index)
    state.discard_pile.push(card)
    state.current_turn = player.player_id.other
    state.step = TurnStep.DRAW
    state.turn_count += 1
    logger.debug("%s discarded %s", player.name, card)
    return card


# Meld phase ------------------------------------------------------------


def create_meld(state: GameState, player: PlayerId) -> int:
    _ensure_melding(state, player)
    return state.player(player).melds.create_meld()


def add_to_meld(state: GameState, player: PlayerId, hand_index: int, meld_index: int) -> Card:
    _ensure_melding(state, player)
    owner = state.player(player)
    return owner.melds.add_card(owner.hand, hand_index, meld_index)


def remove_meld(state: GameState, player: PlayerId, meld_index: int) -> List[Card]:
    """Disband a meld; melds after ``meld_index`` move down one slot."""
    _ensure_melding(state, player)
    owner = state.player(player)
    return owner.melds.remove_meld(owner.hand, meld_index)


def auto_meld(state: GameState, player: PlayerId) -> List[int]:
    """Group the player's hand into the arrangement with the least deadwood."""
    _ensure_melding(state, player)
    owner = state.player(player)
    arrangement, _ = best_meld_arrangement(owner.hand)
    indices = []
    for group in arrangement:
        meld_index = owner.melds.create_meld()
        for card in group:
            owner.melds.add_card(owner.hand, owner.hand.cards.index(card), meld_index)
        indices.append(meld_index)
    return indices


def finish_melds(state: GameState, player: PlayerId) -> None:
    """End a player's melding; the declarer must have backed the declaration."""
    _ensure_melding(state, player)
    owner = state.player(player)
    if player == state.declarer:
        decision = Decision.GIN if state.gin_called else Decision.KNOCK
        check_declaration(decision, deadwood(owner.hand, owner.melds), state.rules)
    state.finished.append(player)
    logger.debug("%s finished melding", owner.name)

    if player.other not in state.finished:
        state.current_turn = player.other
        return
    _start_layoffs(state)


def lay_off(state: GameState, player: PlayerId, hand_index: int, meld_index: int) -> Card:
    """Move a hand card onto one of the opponent's melds."""
    state.ensure_phase(HandPhase.LAYING_OFF)
    state.ensure_turn(player)
    return state.opponent(player).melds.lay_off(state.player(player).hand, hand_index, meld_index)


def auto_lay_off(state: GameState, player: PlayerId) -> List[Card]:
    """Lay off every hand card the opponent's melds can take."""
    state.ensure_phase(HandPhase.LAYING_OFF)
    state.ensure_turn(player)
    hand = state.player(player).hand
    target = state.opponent(player).melds
    return [
        target.lay_off(hand, hand.cards.index(card), meld_index)
        for card, meld_index in best_layoffs(hand, target.melds)
    ]


def finish_layoffs(state: GameState, player: PlayerId) -> None:
    state.ensure_phase(HandPhase.LAYING_OFF)
    state.ensure_turn(player)
    state.finished.append(player)
    remaining = [p for p in _layoff_order(state) if p not in state.finished]
    if remaining:
        state.current_turn = remaining[0]
    else:
        _finish_hand(state)


# Helpers ----------------------------------------------------------------


def _ensure_melding(state: GameState, player: PlayerId) -> None:
    state.ensure_phase(HandPhase.MELDING)
    state.ensure_turn(player)


def _best_closing_discard(player: Player) -> int:
    hand = player.hand
    if hand.is_empty():
        raise IllegalAction("Cannot declare with an empty hand.")
    return min(
        range(len(hand)),
        key=lambda i: (minimum_deadwood(hand.without(i)), -hand[i].point_value()),
    )


def _may_lay_off(state: GameState, player: PlayerId) -> bool:
    if state.gin_called and not state.rules.layoff_after_gin:
        return False
    if state.rules.layoffs == "defender_only":
        return player != state.declarer
    return True


def _layoff_order(state: GameState) -> List[PlayerId]:
    assert state.declarer is not None
    order = (state.declarer, state.declarer.other)
    return [player for player in order if _may_lay_off(state, player)]


def _start_layoffs(state: GameState) -> None:
    state.phase = HandPhase.LAYING_OFF
    state.finished = []
    order = _layoff_order(state)
    if not order:
        _finish_hand(state)
        return
    state.current_turn = order[0]


def _finish_hand(state: GameState) -> None:
    state.phase = HandPhase.SCORED
    state.current_turn = None
    state.result = compute_score(state)
    logger.info(
        "Hand over: %s wins %d points (%s)",
        state.player(state.result.winner).name,
        state.result.points,
        state.result.outcome.name.lower(),
    )

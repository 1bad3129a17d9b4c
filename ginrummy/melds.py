"""Meld grouping, validity rules and optimal meld search."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations
from typing import Iterable, List, Sequence, Tuple

from .cards import RANK_VALUES, Card, total_points
from .deck import Hand, InvalidIndex

logger = logging.getLogger(__name__)

MIN_MELD_SIZE = 3


class InvalidLayoff(ValueError):
    """Raised when a card cannot extend the targeted meld."""


def is_valid_run(cards: Sequence[Card]) -> bool:
    """Return True for three or more consecutive cards of one suit (Ace low)."""
    if len(cards) < MIN_MELD_SIZE:
        return False
    if len({card.suit for card in cards}) != 1:
        return False
    values = sorted(RANK_VALUES[card.rank] for card in cards)
    return all(value == values[0] + offset for offset, value in enumerate(values))


def is_valid_set(cards: Sequence[Card]) -> bool:
    """Return True for three or four cards of one rank in distinct suits."""
    if len(cards) < MIN_MELD_SIZE:
        return False
    if len({card.rank for card in cards}) != 1:
        return False
    return len({card.suit for card in cards}) == len(cards)


def is_valid_meld(cards: Sequence[Card]) -> bool:
    return is_valid_run(cards) or is_valid_set(cards)


def candidate_melds(cards: Iterable[Card]) -> List[Tuple[Card, ...]]:
    """Return every valid run and set that can be formed from ``cards``."""
    cards = list(cards)
    candidates: List[Tuple[Card, ...]] = []

    by_rank: dict = defaultdict(list)
    for card in cards:
        by_rank[card.rank].append(card)
    for group in by_rank.values():
        if len(group) >= MIN_MELD_SIZE:
            for size in range(MIN_MELD_SIZE, len(group) + 1):
                candidates.extend(combinations(group, size))

    by_suit: dict = defaultdict(list)
    for card in cards:
        by_suit[card.suit].append(card)
    for suit_cards in by_suit.values():
        ordered = sorted(suit_cards, key=lambda c: RANK_VALUES[c.rank])
        # Split into maximal stretches of consecutive ranks.
        stretches: List[List[Card]] = []
        for card in ordered:
            if stretches and RANK_VALUES[card.rank] == RANK_VALUES[stretches[-1][-1].rank] + 1:
                stretches[-1].append(card)
            else:
                stretches.append([card])
        for stretch in stretches:
            for start in range(len(stretch)):
                for end in range(start + MIN_MELD_SIZE, len(stretch) + 1):
                    candidates.append(tuple(stretch[start:end]))

    return candidates


def best_meld_arrangement(cards: Iterable[Card]) -> Tuple[List[List[Card]], List[Card]]:
    """Return the disjoint melds leaving the least deadwood, and that deadwood.

    The search is exhaustive over the candidate melds, which stays small for
    hands of ten or eleven cards.
    """
    cards = list(cards)
    candidates = candidate_melds(cards)
    best: List[Tuple[Card, ...]] = []
    best_value = 0

    def search(start: int, used: frozenset, chosen: List[Tuple[Card, ...]], value: int) -> None:
        nonlocal best, best_value
        if value > best_value:
            best, best_value = list(chosen), value
        for index in range(start, len(candidates)):
            meld = candidates[index]
            if used.isdisjoint(meld):
                chosen.append(meld)
                search(index + 1, used.union(meld), chosen, value + total_points(meld))
                chosen.pop()

    search(0, frozenset(), [], 0)
    melded = {card for meld in best for card in meld}
    deadwood = [card for card in cards if card not in melded]
    return [list(meld) for meld in best], deadwood


def minimum_deadwood(cards: Iterable[Card]) -> int:
    _, deadwood = best_meld_arrangement(cards)
    return total_points(deadwood)


def best_layoffs(cards: Iterable[Card], melds: Sequence["Meld"]) -> List[Tuple[Card, int]]:
    """Return (card, meld index) moves laying off every card that can go, in play order.

    Layoffs are applied until none fits. A card that fits both a run and a set
    goes on the run: extending a run can open room for the next card, while a
    set only ever takes the missing suit of its own rank.
    """
    targets = [meld.all_cards for meld in melds]
    open_melds = [meld.is_valid() for meld in melds]
    remaining = list(cards)
    plan: List[Tuple[Card, int]] = []
    progress = True
    while progress:
        progress = False
        for card in list(remaining):
            fits = [
                index
                for index, target in enumerate(targets)
                if open_melds[index] and is_valid_meld(target + [card])
            ]
            if not fits:
                continue
            index = max(fits, key=lambda i: is_valid_run(targets[i] + [card]))
            targets[index].append(card)
            remaining.remove(card)
            plan.append((card, index))
            progress = True
    return plan


@dataclass
class Meld:
    """Cards grouped by their owner, plus cards laid off by the opponent."""

    cards: List[Card] = field(default_factory=list)
    layoffs: List[Card] = field(default_factory=list)

    @property
    def all_cards(self) -> List[Card]:
        return self.cards + self.layoffs

    def is_valid(self) -> bool:
        """Validity of the owner's own grouping."""
        return is_valid_meld(self.cards)

    def accepts(self, card: Card) -> bool:
        return self.is_valid() and is_valid_meld(self.all_cards + [card])


@dataclass
class MeldSet:
    """Ordered melds belonging to one player."""

    melds: List[Meld] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.melds)

    def __getitem__(self, index: int) -> Meld:
        return self.melds[index]

    def __iter__(self):
        return iter(self.melds)

    def create_meld(self) -> int:
        self.melds.append(Meld())
        return len(self.melds) - 1

    def add_card(self, hand: Hand, card_index: int, meld_index: int) -> Card:
        """Move the hand card at ``card_index`` into the meld at ``meld_index``."""
        meld = self._meld_at(meld_index)
        card = hand.remove_at(card_index)
        meld.cards.append(card)
        logger.debug("Moved %s into meld %d", card, meld_index)
        return card

    def remove_meld(self, hand: Hand, meld_index: int) -> List[Card]:
        """Disband a meld, returning its cards to ``hand``; later melds shift down."""
        meld = self._meld_at(meld_index)
        if meld.layoffs:
            raise InvalidLayoff("Cannot disband a meld that holds laid-off cards.")
        del self.melds[meld_index]
        for card in meld.cards:
            hand.add(card)
        logger.debug("Disbanded meld %d returning %d cards", meld_index, len(meld.cards))
        return list(meld.cards)

    def lay_off(self, hand: Hand, card_index: int, meld_index: int) -> Card:
        """Move a card from an opponent's ``hand`` onto one of these melds."""
        meld = self._meld_at(meld_index)
        hand.check_index(card_index)
        card = hand[card_index]
        if not meld.accepts(card):
            raise InvalidLayoff(f"{card} does not extend meld {meld_index}.")
        hand.remove_at(card_index)
        meld.layoffs.append(card)
        logger.debug("Laid off %s onto meld %d", card, meld_index)
        return card

    def invalid_melds(self) -> List[Meld]:
        return [meld for meld in self.melds if not meld.is_valid()]

    def all_cards(self) -> List[Card]:
        return [card for meld in self.melds for card in meld.all_cards]

    def _meld_at(self, meld_index: int) -> Meld:
        if not isinstance(meld_index, int) or isinstance(meld_index, bool):
            raise InvalidIndex(f"Meld index must be an integer, got {meld_index!r}.")
        if meld_index < 0 or meld_index >= len(self.melds):
            raise InvalidIndex(f"Meld index {meld_index} is out of range for {len(self.melds)} melds.")
        return self.melds[meld_index]

"""Ordered card containers: the stock, the discard pile and player hands."""

from __future__ import annotations

from random import Random
from typing import Iterator, List, Optional, Sequence

from .cards import Card, RANK_ORDER, Suit


class DeckExhausted(RuntimeError):
    """Raised when a card is drawn from an empty stock."""


class PileEmpty(RuntimeError):
    """Raised when the discard pile has no card to pick up."""


class InvalidIndex(IndexError):
    """Raised when a hand or meld index is out of range."""


def build_deck() -> List[Card]:
    """Return the ordered 52-card deck (suit by suit, Ace to King)."""
    return [Card(rank, suit) for suit in Suit for rank in RANK_ORDER]


class Pile:
    """Ordered collection of cards whose top is the end of the sequence."""

    empty_error: type[Exception] = RuntimeError
    empty_message = "Pile is empty."

    def __init__(self, cards: Optional[Sequence[Card]] = None) -> None:
        self._cards: List[Card] = list(cards) if cards is not None else []

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __contains__(self, card: object) -> bool:
        return card in self._cards

    def __getitem__(self, index: int) -> Card:
        return self._cards[index]

    @property
    def cards(self) -> tuple[Card, ...]:
        return tuple(self._cards)

    def is_empty(self) -> bool:
        return not self._cards

    def push(self, card: Card) -> None:
        self._cards.append(card)

    def draw(self) -> Card:
        if not self._cards:
            raise self.empty_error(self.empty_message)
        return self._cards.pop()

    def peek_top_n(self, n: int) -> List[Card]:
        """Return the top ``n`` cards, topmost first, without removing them."""
        if n < 0:
            raise ValueError("Cannot peek a negative number of cards.")
        if n > len(self._cards):
            raise self.empty_error(f"Cannot peek {n} cards from a pile of {len(self._cards)}.")
        return list(reversed(self._cards[len(self._cards) - n :]))

    def remove_at(self, index: int) -> Card:
        """Remove and return the card at ``index``; negative indices are rejected."""
        self.check_index(index)
        return self._cards.pop(index)

    def check_index(self, index: int) -> None:
        if not isinstance(index, int) or isinstance(index, bool):
            raise InvalidIndex(f"Index must be an integer, got {index!r}.")
        if index < 0 or index >= len(self._cards):
            raise InvalidIndex(f"Index {index} is out of range for {len(self._cards)} cards.")

    def shuffle(self, rng: Random) -> None:
        rng.shuffle(self._cards)


class Deck(Pile):
    """The face-down stock."""

    empty_error = DeckExhausted
    empty_message = "No cards left in the deck."

    @classmethod
    def create(cls) -> "Deck":
        return cls(build_deck())


class DiscardPile(Pile):
    """Face-up discards; the closing discard of a knock or gin lies face-down."""

    empty_error = PileEmpty
    empty_message = "Discard pile is empty."

    def __init__(self, cards: Optional[Sequence[Card]] = None) -> None:
        super().__init__(cards)
        self.top_face_down = False

    def push(self, card: Card, *, face_down: bool = False) -> None:
        super().push(card)
        self.top_face_down = face_down

    def draw_top(self) -> Card:
        if self.top_face_down:
            raise PileEmpty("Top of the discard pile is face-down.")
        card = self.draw()
        self.top_face_down = False
        return card

    @property
    def visible_top(self) -> Optional[Card]:
        if not self._cards or self.top_face_down:
            return None
        return self._cards[-1]


class Hand(Pile):
    """Cards held by one player, indexed from 0 for selection."""

    empty_error = InvalidIndex
    empty_message = "Hand is empty."

    def add(self, card: Card) -> None:
        self.push(card)

    def without(self, index: int) -> List[Card]:
        """Return the hand's cards minus the one at ``index``."""
        self.check_index(index)
        return self._cards[:index] + self._cards[index + 1 :]

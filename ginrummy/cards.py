"""Card-related data structures and helpers for Gin Rummy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Mapping


class Suit(Enum):
    CLUBS = auto()
    SPADES = auto()
    DIAMONDS = auto()
    HEARTS = auto()

    def __str__(self) -> str:
        return self.name.lower()


class Rank(Enum):
    ACE = auto()
    TWO = auto()
    THREE = auto()
    FOUR = auto()
    FIVE = auto()
    SIX = auto()
    SEVEN = auto()
    EIGHT = auto()
    NINE = auto()
    TEN = auto()
    JACK = auto()
    QUEEN = auto()
    KING = auto()

    def __str__(self) -> str:
        return self.name.lower()


# Rank order from Ace (low) to King, used for runs and dealing order.
RANK_ORDER: list[Rank] = list(Rank)

# Deadwood point values: Ace counts 1, King counts 13.
RANK_VALUES: dict[Rank, int] = {rank: index + 1 for index, rank in enumerate(RANK_ORDER)}


@dataclass(frozen=True)
class Card:
    """Immutable representation of a playing card."""

    rank: Rank
    suit: Suit

    def point_value(self) -> int:
        return RANK_VALUES[self.rank]

    def __str__(self) -> str:
        return card_label(self)


def total_points(cards: Iterable[Card]) -> int:
    return sum(card.point_value() for card in cards)


def serialize_card(card: Card) -> dict[str, str]:
    return {"rank": card.rank.name.lower(), "suit": card.suit.name.lower()}


def deserialize_card(payload: Mapping[str, str]) -> Card:
    rank_name = payload["rank"].upper()
    suit_name = payload["suit"].upper()
    return Card(Rank[rank_name], Suit[suit_name])


def card_label(card: Card) -> str:
    return f"{card.rank.name.title()} of {card.suit.name.title()}"


RANK_CODES: dict[str, Rank] = {
    "A": Rank.ACE,
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "T": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
}
SUIT_CODES: dict[str, Suit] = {suit.name[0]: suit for suit in Suit}


def parse_card(code: str) -> Card:
    """Parse a two-character code such as ``"7H"`` or ``"TC"``."""
    code = code.strip().upper()
    if len(code) != 2 or code[0] not in RANK_CODES or code[1] not in SUIT_CODES:
        raise ValueError(f"Invalid card code {code!r}.")
    return Card(RANK_CODES[code[0]], SUIT_CODES[code[1]])


def parse_cards(codes: str) -> list[Card]:
    return [parse_card(code) for code in codes.split()]

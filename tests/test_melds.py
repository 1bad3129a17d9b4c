import time
from collections import Counter

import pytest

from ginrummy.cards import parse_card, parse_cards, total_points
from ginrummy.deck import Hand, InvalidIndex
from ginrummy.melds import (
    InvalidLayoff,
    Meld,
    MeldSet,
    best_layoffs,
    best_meld_arrangement,
    candidate_melds,
    is_valid_meld,
    is_valid_run,
    is_valid_set,
    minimum_deadwood,
)


def test_run_validity():
    assert is_valid_run(parse_cards("AC 2C 3C"))
    assert is_valid_run(parse_cards("9H JH TH QH"))
    assert not is_valid_run(parse_cards("QS KS AS"))
    assert not is_valid_run(parse_cards("4D 5D 7D"))
    assert not is_valid_run(parse_cards("4D 5D 6C"))
    assert not is_valid_run(parse_cards("4D 5D"))


def test_set_validity():
    assert is_valid_set(parse_cards("7S 7D 7H"))
    assert is_valid_set(parse_cards("7S 7D 7H 7C"))
    assert not is_valid_set(parse_cards("7S 7D 8H"))
    assert not is_valid_meld(parse_cards("7S 7D"))


def test_candidate_melds_include_sub_runs_and_sub_sets():
    candidates = {frozenset(meld) for meld in candidate_melds(parse_cards("3H 4H 5H 6H 5S 5C"))}
    assert frozenset(parse_cards("3H 4H 5H")) in candidates
    assert frozenset(parse_cards("4H 5H 6H")) in candidates
    assert frozenset(parse_cards("3H 4H 5H 6H")) in candidates
    assert frozenset(parse_cards("5H 5S 5C")) in candidates


def test_best_arrangement_prefers_least_deadwood():
    cards = parse_cards("7H 8H 9H 9S 9D QS JH 2D 3D 4D")
    melds, deadwood = best_meld_arrangement(cards)
    melded = {card for meld in melds for card in meld}
    assert frozenset(parse_cards("9S 9H 9D")) in {frozenset(meld) for meld in melds}
    assert set(deadwood) == set(parse_cards("7H 8H QS JH"))
    assert melded.isdisjoint(deadwood)
    assert minimum_deadwood(cards) == total_points(deadwood) == 38


def test_gin_hand_has_zero_deadwood():
    assert minimum_deadwood(parse_cards("AC 2C 3C 4H 5H 6H 7S 7D 7C 7H")) == 0


def test_add_card_moves_from_hand_to_meld():
    hand = Hand(parse_cards("AC 2C 3C KD"))
    melds = MeldSet()
    index = melds.create_meld()
    assert index == 0
    melds.add_card(hand, 0, index)
    assert melds[0].cards == [parse_card("AC")]
    assert len(hand) == 3


def test_add_card_rejects_bad_indices_without_mutation():
    hand = Hand(parse_cards("AC 2C"))
    melds = MeldSet()
    melds.create_meld()
    with pytest.raises(InvalidIndex):
        melds.add_card(hand, 5, 0)
    with pytest.raises(InvalidIndex):
        melds.add_card(hand, 0, 3)
    assert len(hand) == 2
    assert melds[0].cards == []


def test_remove_meld_returns_cards_and_renumbers():
    hand = Hand(parse_cards("AC 2C 3C 9S 9D 9H"))
    melds = MeldSet()
    first = melds.create_meld()
    second = melds.create_meld()
    for _ in range(3):
        melds.add_card(hand, 0, first)
    for _ in range(3):
        melds.add_card(hand, 0, second)
    assert len(hand) == 0

    returned = melds.remove_meld(hand, first)
    assert returned == parse_cards("AC 2C 3C")
    assert list(hand) == parse_cards("AC 2C 3C")
    assert len(melds) == 1
    assert melds[0].cards == parse_cards("9S 9D 9H")
    with pytest.raises(InvalidIndex):
        melds.remove_meld(hand, 1)


def test_lay_off_extends_valid_meld_only():
    owner_hand = Hand(parse_cards("4H 5H 6H"))
    melds = MeldSet()
    index = melds.create_meld()
    for _ in range(3):
        melds.add_card(owner_hand, 0, index)

    other_hand = Hand(parse_cards("8H 7H"))
    with pytest.raises(InvalidLayoff):
        melds.lay_off(other_hand, 0, index)
    assert len(other_hand) == 2

    melds.lay_off(other_hand, 1, index)
    melds.lay_off(other_hand, 0, index)
    assert melds[0].layoffs == parse_cards("7H 8H")
    assert melds[0].is_valid()
    assert len(other_hand) == 0


def test_lay_off_onto_invalid_meld_rejected():
    owner_hand = Hand(parse_cards("4H 9S"))
    melds = MeldSet()
    index = melds.create_meld()
    melds.add_card(owner_hand, 0, index)
    melds.add_card(owner_hand, 0, index)
    with pytest.raises(InvalidLayoff):
        melds.lay_off(Hand(parse_cards("5H")), 0, index)


def _runs(*groups):
    return [Meld(parse_cards(group)) for group in groups]


def test_best_layoffs_prefers_run_over_set():
    melds = [Meld(parse_cards("7S 7D 7C")), Meld(parse_cards("4H 5H 6H"))]
    plan = best_layoffs(parse_cards("8H 7H"), melds)
    assert dict(plan) == {parse_card("7H"): 1, parse_card("8H"): 1}
    assert [card for card, _ in plan][0] == parse_card("7H")


def test_best_layoffs_skips_invalid_melds():
    melds = [Meld(parse_cards("4H 9S")), Meld(parse_cards("4S 5S 6S"))]
    assert best_layoffs(parse_cards("5H 3S"), melds) == [(parse_card("3S"), 1)]


@pytest.mark.parametrize(
    "groups, hand",
    [
        (("3H 4H 5H", "3S 4S 5S", "3D 4D 5D"), "2H 6H 2S 6S 2D 6D AH 7H AS 7S"),
        (("5H 6H 7H", "5S 6S 7S", "5D 6D 7D"), "4H 3H 8H 9H 4S 3S 8S 9S 4D 8D"),
    ],
)
def test_best_layoffs_chains_full_hand_quickly(groups, hand):
    cards = parse_cards(hand)
    start = time.perf_counter()
    plan = best_layoffs(cards, _runs(*groups))
    elapsed = time.perf_counter() - start

    assert Counter(card for card, _ in plan) == Counter(cards)
    assert elapsed < 1.0

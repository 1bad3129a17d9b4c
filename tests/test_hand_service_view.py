import pytest

from ginrummy.cards import parse_card
from ginrummy.deck import InvalidIndex
from ginrummy.service import HandService
from ginrummy.state import Decision, PlayerId

from test_turn_flow import GIN_HAND, LAYOFF_HAND, dealt_state

P1 = PlayerId.PLAYER_ONE
P2 = PlayerId.PLAYER_TWO


def test_service_start_deals_a_hand():
    service = HandService()
    view = service.start("Ann", "Bob", seed=5)

    assert view.phase == "in_progress"
    assert view.step == "draw"
    assert view.current_player == view.first_player
    assert len(view.hand) == 10
    assert view.opponent_hand_size == 10
    assert view.deck_size == 31
    assert view.discard_size == 1
    assert view.discard_top is not None
    assert view.player_names == ["Ann", "Bob"]
    assert view.result is None


def test_service_requires_active_hand():
    with pytest.raises(RuntimeError):
        HandService().get_view()


def test_view_hides_face_down_discard_and_reports_result():
    service = HandService(dealt_state(GIN_HAND, LAYOFF_HAND, "8C", next_draws="3S"))
    view = service.get_view(P1)
    assert view.discard_top_label == "Eight of Clubs"

    view = service.draw("deck")
    assert len(view.hand) == 11
    assert view.best_deadwood == 13 + 3

    view = service.declare(Decision.KNOCK)
    assert view.status == "knocked"
    assert view.discard_top is None
    assert view.discard_size == 2

    service.auto_meld(P1)
    view = service.finish_melds(P1)
    assert view.deadwood == 3
    assert all(meld.valid for meld in view.melds[0])

    service.auto_meld(P2)
    service.finish_melds(P2)
    service.lay_off(P2, 0, _run_index(service))
    view = service.finish_layoffs(P2)

    assert view.phase == "scored"
    assert view.result.winner == 0
    assert view.result.outcome == "knock"
    assert service.result().points == view.result.points
    assert any(meld.layoff_count == 1 for meld in view.melds[0])


def test_service_auto_lay_off_scores_the_knock():
    service = HandService(dealt_state(GIN_HAND, LAYOFF_HAND, "8C", next_draws="3S"))
    service.draw("deck")
    service.declare(Decision.KNOCK)
    for player in (P1, P2):
        service.auto_meld(player)
        service.finish_melds(player)

    view = service.auto_lay_off(P2)
    assert sorted(view.hand_labels) == ["Jack of Hearts", "Queen of Spades"]
    assert sum(meld.layoff_count for meld in view.melds[0]) == 2

    view = service.finish_layoffs(P2)
    assert view.result.deadwood == [3, 23]
    assert view.result.points == 20


def test_service_discard_rejects_bad_index():
    service = HandService(dealt_state(GIN_HAND, LAYOFF_HAND, "8C", next_draws="3S"))
    service.draw("deck")
    service.declare(Decision.NEITHER)
    with pytest.raises(InvalidIndex):
        service.discard(42)
    view = service.discard(10)
    assert view.current_player == int(P2)
    assert view.discard_top_label == "Three of Spades"

    with pytest.raises(ValueError):
        service.draw("table")


def _run_index(service):
    """Index of the declarer's heart run, where the defender's 7H belongs."""
    melds = service.state.player(P1).melds
    hand = service.state.player(P2).hand
    assert hand[0] == parse_card("7H")
    return next(i for i, meld in enumerate(melds) if parse_card("5H") in meld.cards)

from decimal import Decimal

import pytest

from engine.errors import InvalidInput, SessionConflict
from limbo.game import LimboController
from wagers.models import Wager


@pytest.fixture
def controller(broadcaster, store):
    return LimboController(broadcaster=broadcaster, store=store)


def test_winning_round_waits_for_cashout(controller, make_user, store, balance_of, force_roll):
    user = make_user(balance="10.00")
    force_roll("0.5")  # result 1.98
    controller.place_stake(user.id, "10.00", {"target": "1.50"})

    played = controller.advance(user.id, {})
    assert played["win"] is True
    assert played["result"] == "1.98"
    assert balance_of(user) == Decimal("0.00")
    assert store.get(user.id, Wager.GAME_LIMBO) is not None

    result = controller.settle(user.id, {})
    assert result["outcome"] == Wager.WIN
    assert balance_of(user) == Decimal("15.00")
    assert store.get(user.id, Wager.GAME_LIMBO) is None


def test_losing_round_settles_immediately(controller, make_user, store, balance_of, force_roll):
    user = make_user(balance="10.00")
    force_roll("0")  # result 1.00
    controller.place_stake(user.id, "10.00", {"target": "2.00"})

    result = controller.advance(user.id, {})

    assert result["outcome"] == Wager.LOSS
    assert result["result"] == "1.00"
    assert store.get(user.id, Wager.GAME_LIMBO) is None
    assert balance_of(user) == Decimal("0.00")


def test_second_play_rejected(controller, make_user, force_roll):
    user = make_user(balance="10.00")
    force_roll("0.9")
    controller.place_stake(user.id, "1.00", {"target": "2.00"})
    controller.advance(user.id, {})
    with pytest.raises(InvalidInput):
        controller.advance(user.id, {})


def test_cashout_before_play_rejected(controller, make_user):
    user = make_user(balance="10.00")
    controller.place_stake(user.id, "1.00", {"target": "2.00"})
    with pytest.raises(InvalidInput):
        controller.settle(user.id, {})


def test_one_round_at_a_time(controller, make_user):
    user = make_user(balance="10.00")
    controller.place_stake(user.id, "1.00", {"target": "2.00"})
    with pytest.raises(SessionConflict):
        controller.place_stake(user.id, "1.00", {"target": "3.00"})


@pytest.mark.parametrize("target", ["1.00", "0.5", "1000000.01", "nope", "1e40", "-Infinity"])
def test_bad_target(controller, make_user, target):
    user = make_user(balance="10.00")
    with pytest.raises(InvalidInput):
        controller.place_stake(user.id, "1.00", {"target": target})


def test_single_shot_play(controller, make_user, balance_of, force_roll):
    user = make_user(balance="10.00")
    force_roll("0.9")  # result 9.90

    result = controller.play(user.id, "2.00", {"target": "5.00"})

    assert result["outcome"] == Wager.WIN
    assert balance_of(user) == Decimal("18.00")

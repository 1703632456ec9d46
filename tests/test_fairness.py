from decimal import Decimal

import pytest

from engine import fairness

SEED = "a" * 64


def test_same_seeds_give_same_draw():
    assert fairness.rng_u(SEED, "client", 3) == fairness.rng_u(SEED, "client", 3)
    assert fairness.rng_u(SEED, "client", 3) != fairness.rng_u(SEED, "client", 4)


def test_draw_is_in_unit_interval():
    for nonce in range(200):
        u = fairness.rng_u(SEED, "client", nonce)
        assert Decimal(0) <= u < Decimal(1)


def test_new_seeds_commit_to_server_seed():
    seeds = fairness.new_seeds(client_seed="mine")
    assert seeds["client_seed"] == "mine"
    assert seeds["server_seed_hash"] == fairness.sha256_hex(seeds["server_seed"])
    assert len(seeds["server_seed"]) == 64


@pytest.mark.parametrize("mines", [1, 3, 12, 24])
def test_mine_positions_are_distinct_cells(mines):
    positions = fairness.mine_positions(SEED, "client", 0, mines)
    assert len(positions) == mines
    assert all(0 <= p < 25 for p in positions)


def test_mines_multiplier_grows_with_reveals():
    values = [fairness.mines_multiplier(n, 3, house_edge=Decimal("0")) for n in range(1, 23)]
    assert values == sorted(values)
    assert values[0] == Decimal("1.13")  # 25/22


def test_mines_multiplier_full_clear_is_maximum():
    full = fairness.mines_multiplier(22, 3, house_edge=Decimal("0.01"))
    assert fairness.mines_multiplier(30, 3, house_edge=Decimal("0.01")) == full
    assert fairness.mines_multiplier(0, 3, house_edge=Decimal("0")) == Decimal("1.00")
    assert fairness.mines_multiplier(1, 24, house_edge=Decimal("0")) == Decimal("25.00")


def test_limbo_result_floor_and_cap():
    assert fairness.limbo_result(Decimal("0"), Decimal("0.01"), Decimal("1000")) == Decimal("1.00")
    assert fairness.limbo_result(Decimal("0.5"), Decimal("0"), Decimal("1000")) == Decimal("2.00")
    assert fairness.limbo_result(Decimal("0.9999999"), Decimal("0"), Decimal("1000")) == Decimal("1000")


def test_limbo_win_rate_matches_target_without_edge():
    config = {"target": "2.00", "house_edge": "0", "cap": "1000000"}
    wins = sum(
        fairness.resolve("limbo", config, f"seed-{i}", "client", i)["win"] for i in range(4000)
    )
    assert 0.47 < wins / 4000 < 0.53


def test_limbo_outcomes_for_known_seeds():
    config = {"target": "1.50", "house_edge": "0.01", "cap": "1000000"}

    won = fairness.resolve("limbo", config, SEED, "client", 7)
    assert won["result"] == Decimal("1.97")
    assert won["win"] is True
    assert won["multiplier"] == Decimal("1.50")
    assert won["result_hash"] == "7ffdb0e4dcd199d8bb0e4f9301243694f86cb82653476b434118e69bb84bd943"

    lost = fairness.resolve("limbo", config, SEED, "client", 1)
    assert lost["result"] == Decimal("1.39")
    assert lost["win"] is False
    assert lost["multiplier"] == Decimal("0")


def test_coinflip_outcomes_for_known_seeds():
    config = {"choice": "heads", "win_chance": "47.5"}

    won = fairness.resolve("coinflip", config, SEED, "client", 1)
    assert won["roll"] == Decimal("29.11")
    assert won["side"] == "heads"
    assert won["multiplier"] == Decimal("2.00")
    assert won["result_hash"] == "4a8a4b1e7b7ddc983b6ca439b8a3a2fcd02cd2d03c0b23bef0a3e22136b7a446"

    lost = fairness.resolve("coinflip", config, SEED, "client", 0)
    assert lost["roll"] == Decimal("49.12")
    assert lost["side"] == "tails"
    assert lost["win"] is False


def test_mine_layout_for_known_seeds():
    assert fairness.mine_positions(SEED, "client", 1, 3) == frozenset({7, 12, 17})
    outcome = fairness.resolve("mines", {"mines": 3}, SEED, "client", 1)
    assert outcome["mine_positions"] == [7, 12, 17]


def test_coinflip_side():
    assert fairness.coinflip_side(Decimal("10.00"), "heads", Decimal("47.5")) == "heads"
    assert fairness.coinflip_side(Decimal("47.50"), "heads", Decimal("47.5")) == "tails"
    assert fairness.coinflip_side(Decimal("99.99"), "tails", Decimal("47.5")) == "heads"


def test_roulette_rules():
    assert fairness.roulette_color(0) == "green"
    assert fairness.roulette_color(1) == "red"
    assert fairness.roulette_color(2) == "black"
    assert fairness.roulette_wins("even_odd", "even", 0) is False
    assert fairness.roulette_wins("even_odd", "even", 4) is True
    assert fairness.roulette_wins("number", "17", 17) is True
    assert fairness.roulette_wins("color", "red", 0) is False


def test_roulette_numbers_cover_wheel():
    assert fairness.roulette_number(Decimal("0")) == 0
    assert fairness.roulette_number(Decimal("0.99999")) == 36


def test_upgrader_chance():
    assert fairness.upgrader_chance(Decimal("2"), Decimal("0.08")) == Decimal("46.00")
    assert fairness.upgrader_chance(Decimal("10"), Decimal("0")) == Decimal("10.00")


def test_jackpot_ticket_within_pot():
    outcome = fairness.resolve("jackpot", {"total_pot": "100.00"}, SEED, "round", 0)
    assert Decimal("0") <= outcome["ticket"] < Decimal("100")


def test_verify_accepts_matching_and_rejects_tampered():
    config = {"choice": "heads"}
    outcome = fairness.resolve("coinflip", config, SEED, "client", 1)
    expected = {"side": outcome["side"], "roll": str(outcome["roll"]), "result_hash": outcome["result_hash"]}
    assert fairness.verify("coinflip", config, SEED, "client", 1, expected)
    assert not fairness.verify("coinflip", config, SEED, "client", 1, {**expected, "result_hash": "0" * 64})
    assert not fairness.verify("coinflip", config, SEED, "client", 1, {"roll": "not-a-number"})


def test_unknown_game_type():
    with pytest.raises(ValueError):
        fairness.resolve("crash", {}, SEED, "client", 0)

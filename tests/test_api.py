from decimal import Decimal

import pytest

from accounts.models import User
from wagers.models import Wager


@pytest.fixture
def player(make_user, api_client):
    user = make_user(username="alice", balance="100.00")
    api_client.force_authenticate(user=user)
    return user


def test_requires_login(api_client, db):
    assert api_client.get("/api/wallet/balance/").status_code == 403


def test_balance(api_client, player):
    response = api_client.get("/api/wallet/balance/")
    assert response.status_code == 200
    assert response.data["balance"] == "100.00"


def test_coinflip_endpoint(api_client, player, force_roll):
    force_roll("0.99")
    response = api_client.post("/api/coinflip/flip/", {"bet_amount": "10.00", "choice": "heads"}, format="json")
    assert response.status_code == 200
    assert response.data["outcome"] == "loss"
    assert response.data["new_balance"] == "90.00"


def test_game_errors_are_rendered(api_client, player):
    response = api_client.post("/api/coinflip/flip/", {"bet_amount": "500.00", "choice": "heads"}, format="json")
    assert response.status_code == 400
    assert response.data == {"error": "Insufficient balance", "code": "insufficient_balance", "retryable": False}


@pytest.mark.parametrize("url, payload", [
    ("/api/coinflip/flip/", {"bet_amount": "1e30", "choice": "heads"}),
    ("/api/coinflip/flip/", {"bet_amount": "100000000000000000000000000000", "choice": "heads"}),
    ("/api/limbo/play/", {"bet_amount": "1.00", "target": "1e40"}),
])
def test_huge_numbers_are_bad_requests(api_client, player, url, payload):
    response = api_client.post(url, payload, format="json")
    assert response.status_code == 400
    assert response.data["code"] == "invalid_input"


def test_verify_rejects_malformed_wager_id(api_client, db):
    response = api_client.post("/api/wagers/verify/", {"wager_id": "abc"}, format="json")
    assert response.status_code == 400
    assert response.data["code"] == "invalid_input"


def test_mines_status_and_conflict(api_client, player):
    assert api_client.get("/api/mines/status/").data == {"active": False, "session": None}

    response = api_client.post("/api/mines/start/", {"bet_amount": "5.00", "mines": 3}, format="json")
    assert response.status_code == 200

    status = api_client.get("/api/mines/status/").data
    assert status["active"] is True
    assert status["session"]["bet_amount"] == "5.00"

    response = api_client.post("/api/mines/start/", {"bet_amount": "5.00", "mines": 3}, format="json")
    assert response.status_code == 409
    assert response.data["code"] == "session_conflict"


def test_limbo_play_endpoint(api_client, player, force_roll):
    force_roll("0.9")
    response = api_client.post("/api/limbo/play/", {"bet_amount": "10.00", "target": "2.00"}, format="json")
    assert response.status_code == 200
    assert response.data["outcome"] == "win"
    assert response.data["new_balance"] == "110.00"


def test_wager_history_and_stats(api_client, player, force_roll):
    force_roll("0.99")
    for _ in range(3):
        api_client.post("/api/coinflip/flip/", {"bet_amount": "5.00", "choice": "heads"}, format="json")
    api_client.post("/api/roulette/spin/", {"bet_amount": "5.00", "bet_type": "number", "bet_value": 1}, format="json")

    history = api_client.get("/api/wagers/history/", {"gameType": "coinflip"}).data
    assert history["count"] == 3
    assert all(row["game_type"] == "coinflip" for row in history["results"])
    assert history["results"][0]["server_seed"]

    stats = api_client.get("/api/wagers/stats/").data
    assert stats["total_games"] == 4
    assert stats["total_losses"] == 4
    assert stats["total_profit"] == "-20.00"
    assert {row["game_type"] for row in stats["game_breakdown"]} == {"coinflip", "roulette"}


def test_leaderboard_and_recent(api_client, player, make_user, force_roll):
    force_roll("0.10")
    api_client.post("/api/coinflip/flip/", {"bet_amount": "10.00", "choice": "heads"}, format="json")

    board = api_client.get("/api/wagers/leaderboard/", {"timeframe": "today"}).data
    assert board["wagering"][0]["username"] == "alice"
    assert board["profit"][0]["total_profit"] == "10.00"

    recent = api_client.get("/api/wagers/recent/").data
    assert recent[0]["username"] == "alice"

    assert api_client.get("/api/wagers/leaderboard/", {"timeframe": "decade"}).status_code == 400


def test_verify_settled_wager(api_client, player):
    api_client.post("/api/upgrader/upgrade/", {"bet_amount": "1.00", "multiplier": "3.00"}, format="json")
    wager = Wager.objects.get(user=player)

    response = api_client.post("/api/wagers/verify/", {"wager_id": wager.id}, format="json")
    assert response.status_code == 200
    assert response.data["matches"] is True
    assert response.data["server_seed_hash"] == wager.server_seed_hash


def test_verify_pending_wager_refused(api_client, player):
    api_client.post("/api/mines/start/", {"bet_amount": "1.00", "mines": 3}, format="json")
    wager = Wager.objects.get(user=player)
    response = api_client.post("/api/wagers/verify/", {"wager_id": wager.id}, format="json")
    assert response.status_code == 400


def test_pending_wager_hides_server_seed(api_client, player):
    api_client.post("/api/mines/start/", {"bet_amount": "1.00", "mines": 3}, format="json")
    row = api_client.get("/api/wagers/history/").data["results"][0]
    assert row["outcome"] == "pending"
    assert row["server_seed"] == ""


def test_apply_referral_code(api_client, player, make_user):
    referrer = make_user(username="bob")

    response = api_client.post("/api/accounts/referral/apply/", {"code": referrer.referral_code}, format="json")
    assert response.status_code == 200
    assert User.objects.get(pk=referrer.pk).referral_count == 1

    again = api_client.post("/api/accounts/referral/apply/", {"code": referrer.referral_code}, format="json")
    assert again.status_code == 400


def test_self_referral_rejected(api_client, player):
    response = api_client.post("/api/accounts/referral/apply/", {"code": player.referral_code}, format="json")
    assert response.status_code == 400
    assert response.data["code"] == "invalid_input"


def test_register_with_referral_code(api_client, make_user):
    referrer = make_user(username="carol")
    response = api_client.post("/api/accounts/register/", {
        "username": "dave",
        "email": "dave@example.com",
        "password": "longpassword",
        "referral_code": referrer.referral_code,
    }, format="json")
    assert response.status_code == 201
    assert response.data["balance"] == "0.00"
    assert User.objects.get(username="dave").referred_by == referrer


def test_withdrawal_requires_wagering(api_client, player):
    from wallets.services import credit_deposit
    credit_deposit(player.id, Decimal("50.00"), reference="DEP-API")

    status = api_client.get("/api/wallet/wagering/").data
    assert status["can_withdraw"] is False
    assert status["remaining"] == "50.00"

    response = api_client.post(
        "/api/wallet/withdraw/", {"amount": "10.00", "method": "BTC", "address": "bc1q"}, format="json"
    )
    assert response.status_code == 400


def test_account_stats(api_client, player, force_roll):
    force_roll("0.10")
    api_client.post("/api/coinflip/flip/", {"bet_amount": "10.00", "choice": "heads"}, format="json")
    stats = api_client.get("/api/accounts/stats/").data
    assert stats["games_played"] == 1
    assert stats["games_won"] == 1
    assert stats["win_rate"] == 100.0


def test_referral_dashboard_and_leaderboard(api_client, player, make_user, force_roll):
    referred = make_user(username="erin", balance="100.00", referred_by=player)
    force_roll("0.99")

    from coinflip.game import CoinflipController
    CoinflipController().place_stake(referred.id, "50.00", {"choice": "heads"})

    dashboard = api_client.get("/api/accounts/referral/").data
    assert dashboard["referral_earnings"] == "0.50"
    assert dashboard["referrals"] == [{"username": "erin", "earned": "0.50", "wagers": 1}]

    User.objects.filter(pk=player.pk).update(referral_count=1)
    top = api_client.get("/api/accounts/referral/leaderboard/").data
    assert top[0]["username"] == "alice"


def test_jackpot_round_state(api_client, player):
    response = api_client.get("/api/jackpot/round/")
    assert response.status_code == 200
    assert response.data["phase"] == "accepting"
    assert len(response.data["server_seed_hash"]) == 64


def test_transaction_list(api_client, player, force_roll):
    force_roll("0.10")
    api_client.post("/api/coinflip/flip/", {"bet_amount": "10.00", "choice": "heads"}, format="json")
    rows = api_client.get("/api/wallet/transactions/").data
    assert {row["meta"]["reason"] for row in rows} == {"stake", "payout"}

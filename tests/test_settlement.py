from decimal import Decimal

import pytest
from django.db import DatabaseError

from accounts.models import ReferralReward, User
from engine import settlement
from engine.errors import AlreadySettled, InsufficientBalance, InvalidInput, PersistenceFailure
from wagers import ledger
from wagers.models import Wager
from wallets.models import Wallet, WalletTransaction


def test_stake_debits_and_records_pending(make_user, balance_of):
    user = make_user(balance="50.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_COINFLIP, "20.00")
    assert receipt.new_balance == Decimal("30.00")
    assert balance_of(user) == Decimal("30.00")
    assert Wager.objects.get(pk=receipt.wager_id).is_pending


def test_zero_balance_stake_leaves_no_trace(make_user):
    user = make_user(balance="0.00")
    with pytest.raises(InsufficientBalance):
        settlement.open_stake(user.id, Wager.GAME_COINFLIP, "1.00")
    assert not Wager.objects.filter(user=user).exists()
    assert not WalletTransaction.objects.filter(user=user).exists()


@pytest.mark.parametrize("amount", [
    "0", "-5", "abc", "1.001", "10000.01", None, "1e30", "100000000000000000000000000000", "Infinity", "NaN",
])
def test_invalid_stake_amounts(make_user, amount):
    user = make_user(balance="50000.00")
    with pytest.raises(InvalidInput):
        settlement.open_stake(user.id, Wager.GAME_COINFLIP, amount)
    assert not Wager.objects.exists()


def test_win_pays_stake_times_multiplier(make_user, balance_of):
    user = make_user(balance="100.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "10.00")
    result = settlement.settle_wager(receipt.wager_id, won=True, multiplier=Decimal("2.50"))

    assert result.payout == Decimal("25.00")
    assert result.profit == Decimal("15.00")
    assert balance_of(user) == Decimal("115.00")
    wager = Wager.objects.get(pk=receipt.wager_id)
    assert wager.outcome == Wager.WIN
    assert wager.multiplier == Decimal("2.50")


def test_loss_profit_is_negative_stake(make_user, balance_of):
    user = make_user(balance="100.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "10.00")
    result = settlement.settle_wager(receipt.wager_id, won=False, multiplier=Decimal("3"))
    assert result.profit == Decimal("-10.00")
    assert result.multiplier == Decimal("0.00")
    assert balance_of(user) == Decimal("90.00")


def test_second_settle_has_no_side_effects(make_user, balance_of):
    user = make_user(balance="100.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "10.00")
    settlement.settle_wager(receipt.wager_id, won=True, multiplier=Decimal("2"))
    tx_count = WalletTransaction.objects.count()

    with pytest.raises(AlreadySettled):
        settlement.settle_wager(receipt.wager_id, won=True, multiplier=Decimal("2"))
    with pytest.raises(AlreadySettled):
        settlement.void_wager(receipt.wager_id)

    assert balance_of(user) == Decimal("110.00")
    assert WalletTransaction.objects.count() == tx_count
    assert User.objects.get(pk=user.pk).games_played == 1


def test_void_refunds_stake(make_user, balance_of):
    user = make_user(balance="40.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_MINES, "15.00")
    assert settlement.void_wager(receipt.wager_id, "test") == Decimal("40.00")
    assert balance_of(user) == Decimal("40.00")
    assert Wager.objects.get(pk=receipt.wager_id).outcome == Wager.VOID


def test_persistence_failure_rolls_back_payout(make_user, balance_of, monkeypatch):
    user = make_user(balance="100.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "10.00")

    def broken_settle(*args, **kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(ledger, "settle", broken_settle)
    with pytest.raises(PersistenceFailure) as exc_info:
        settlement.settle_wager(receipt.wager_id, won=True, multiplier=Decimal("2"))

    assert exc_info.value.retryable is True
    assert balance_of(user) == Decimal("90.00")
    assert Wager.objects.get(pk=receipt.wager_id).is_pending
    assert not WalletTransaction.objects.filter(reference__endswith="-PAYOUT").exists()


def test_referrer_rewarded_once_per_wager(make_user, balance_of):
    referrer = make_user(balance="0.00")
    user = make_user(balance="100.00", referred_by=referrer)

    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "20.00")
    result = settlement.settle_wager(receipt.wager_id, won=False, multiplier=0)

    assert result.referral_reward == Decimal("0.20")
    assert balance_of(referrer) == Decimal("0.20")
    assert User.objects.get(pk=referrer.pk).referral_earnings == Decimal("0.20")
    assert ReferralReward.objects.filter(wager_id=receipt.wager_id).count() == 1


def test_referral_reward_rounds_down(make_user, balance_of):
    referrer = make_user()
    user = make_user(balance="100.00", referred_by=referrer)
    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "0.99")
    result = settlement.settle_wager(receipt.wager_id, won=False, multiplier=0)
    assert result.referral_reward is None
    assert balance_of(referrer) == Decimal("0.00")


def test_settlement_updates_stats_and_level(make_user):
    user = make_user(balance="1000.00")
    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "150.00")
    settlement.settle_wager(receipt.wager_id, won=True, multiplier=Decimal("2"))

    user.refresh_from_db()
    assert user.total_wagered == Decimal("150.00")
    assert user.games_played == 1
    assert user.games_won == 1
    assert user.highest_win == Decimal("150.00")
    assert user.total_profit == Decimal("150.00")
    assert user.level == 2
    assert user.last_wager_at is not None


def test_settlement_counts_towards_wagering(make_user):
    user = make_user(balance="0.00")
    from wallets.services import credit_deposit
    credit_deposit(user.id, Decimal("100.00"), reference="DEP-W")

    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "60.00")
    settlement.settle_wager(receipt.wager_id, won=False, multiplier=0)
    assert Wallet.objects.get(user=user).unwagered_amount == Decimal("40.00")

    receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "40.00")
    result = settlement.settle_wager(receipt.wager_id, won=False, multiplier=0)
    wallet = Wallet.objects.get(user=user)
    assert result.wagering_met is True
    assert wallet.unwagered_amount == Decimal("0.00")
    assert wallet.total_deposited == Decimal("0.00")


def test_balance_is_conserved_over_settled_wagers(make_user, balance_of):
    user = make_user(balance="500.00")
    outcomes = [(True, "2.00"), (False, "0"), (True, "1.50"), (False, "0"), (True, "3.33")]
    for won, multiplier in outcomes:
        receipt = settlement.open_stake(user.id, Wager.GAME_LIMBO, "12.34")
        settlement.settle_wager(receipt.wager_id, won=won, multiplier=Decimal(multiplier))

    profit = sum(Wager.objects.filter(user=user).values_list("profit", flat=True))
    assert balance_of(user) == Decimal("500.00") + profit

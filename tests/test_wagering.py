from decimal import Decimal
from types import SimpleNamespace

from wallets import wagering


def make_wallet(deposited="0.00", wagered="0.00", unwagered="0.00"):
    return SimpleNamespace(
        total_deposited=Decimal(deposited),
        total_wagered_since_deposit=Decimal(wagered),
        unwagered_amount=Decimal(unwagered),
    )


def test_deposit_sets_requirement():
    wallet = make_wallet()
    wagering.record_deposit(wallet, Decimal("100.00"))
    assert wallet.total_deposited == Decimal("100.00")
    assert wallet.unwagered_amount == Decimal("100.00")
    assert wagering.status(wallet).can_withdraw is False


def test_partial_wagering_reduces_remaining():
    wallet = make_wallet(deposited="100.00", unwagered="100.00")
    met = wagering.record_wager(wallet, Decimal("40.00"))
    assert met is False
    assert wallet.unwagered_amount == Decimal("60.00")
    status = wagering.status(wallet)
    assert status.remaining == Decimal("60.00")
    assert status.percentage == Decimal("40.00")


def test_meeting_requirement_resets_counters():
    wallet = make_wallet(deposited="100.00", wagered="60.00", unwagered="40.00")
    met = wagering.record_wager(wallet, Decimal("40.00"))
    assert met is True
    assert wallet.total_deposited == Decimal("0.00")
    assert wallet.total_wagered_since_deposit == Decimal("0.00")
    assert wallet.unwagered_amount == Decimal("0.00")
    assert wagering.status(wallet).can_withdraw is True


def test_surplus_is_not_carried_over():
    wallet = make_wallet(deposited="100.00", unwagered="100.00")
    wagering.record_wager(wallet, Decimal("150.00"))
    wagering.record_deposit(wallet, Decimal("50.00"))
    assert wallet.unwagered_amount == Decimal("50.00")


def test_second_deposit_rebaselines():
    wallet = make_wallet()
    wagering.record_deposit(wallet, Decimal("100.00"))
    wagering.record_wager(wallet, Decimal("30.00"))
    wagering.record_deposit(wallet, Decimal("50.00"))
    assert wallet.total_deposited == Decimal("150.00")
    assert wallet.unwagered_amount == Decimal("120.00")


def test_no_deposit_means_withdrawable():
    status = wagering.status(make_wallet())
    assert status.can_withdraw is True
    assert status.percentage == Decimal("100.00")
    assert status.as_dict()["remaining"] == "0.00"

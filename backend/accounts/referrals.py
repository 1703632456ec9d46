# accounts/referrals.py
import logging
from decimal import Decimal, ROUND_DOWN

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum, Count

from engine.errors import InvalidInput
from wallets import services as wallet_services
from .models import User, Referral, ReferralReward

logger = logging.getLogger(__name__)


def referral_reward_amount(stake: Decimal) -> Decimal:
    return (stake * settings.REFERRAL_PERCENT / Decimal("100")).quantize(
        Decimal("0.01"), rounding=ROUND_DOWN
    )


def get_referrer(user_id):
    return User.objects.filter(pk=user_id).values_list("referred_by_id", flat=True).first()


@transaction.atomic
def apply_referral_code(user_id, code: str) -> User:
    code = (code or "").strip().upper()
    if not code:
        raise InvalidInput("Referral code is required")

    user = User.objects.select_for_update().get(pk=user_id)
    if user.referred_by_id:
        raise InvalidInput("You have already used a referral code")

    referrer = User.objects.filter(referral_code=code).first()
    if not referrer:
        raise InvalidInput("Invalid referral code")
    if referrer.pk == user.pk:
        raise InvalidInput("You cannot refer yourself")

    user.referred_by = referrer
    user.save(update_fields=["referred_by"])
    Referral.objects.create(referrer=referrer, referred_user=user)
    User.objects.filter(pk=referrer.pk).update(referral_count=F("referral_count") + 1)

    logger.info(f"User {user.pk} referred by {referrer.pk}")
    return referrer


def reward_referrer(wager):
    """
    Instant commission on a settled stake. Must run inside the settlement
    transaction; the one-to-one on ``wager`` keeps it exactly-once.
    """
    referrer_id = get_referrer(wager.user_id)
    if not referrer_id:
        return None

    amount = referral_reward_amount(wager.amount)
    if amount <= 0:
        return None

    reward, created = ReferralReward.objects.get_or_create(
        wager=wager,
        defaults={
            "referrer_id": referrer_id,
            "referred_user_id": wager.user_id,
            "amount": amount,
            "wager_amount": wager.amount,
            "game_type": wager.game_type,
        },
    )
    if not created:
        return None

    wallet_services.credit(
        referrer_id,
        amount,
        reference=f"WAGER-{wager.reference.hex}-REFERRAL",
        meta={"reason": "referral", "wager_id": wager.id, "referred_user": wager.user_id},
    )
    User.objects.filter(pk=referrer_id).update(referral_earnings=F("referral_earnings") + amount)
    return reward


def referral_stats(user) -> dict:
    rewards = ReferralReward.objects.filter(referrer=user)
    per_user = (
        rewards.values("referred_user__username")
        .annotate(earned=Sum("amount"), wagers=Count("id"))
        .order_by("-earned")
    )
    return {
        "referral_code": user.referral_code,
        "referral_count": user.referral_count,
        "referral_earnings": str(user.referral_earnings),
        "referred_by": user.referred_by.username if user.referred_by_id else None,
        "referrals": [
            {
                "username": row["referred_user__username"],
                "earned": str(row["earned"]),
                "wagers": row["wagers"],
            }
            for row in per_user
        ],
    }


def referral_leaderboard(limit=10) -> list:
    top = (
        User.objects.filter(referral_count__gt=0)
        .order_by("-referral_earnings", "-referral_count")[:limit]
    )
    return [
        {
            "rank": idx,
            "username": u.username,
            "referral_count": u.referral_count,
            "referral_earnings": str(u.referral_earnings),
        }
        for idx, u in enumerate(top, start=1)
    ]

# accounts/models.py
import string
import random
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


def generate_uid(length=8):
    chars = string.ascii_uppercase + string.digits
    return ''.join(random.choices(chars, k=length))


def level_for_wagered(total_wagered):
    """Highest level whose threshold is covered by total_wagered (levels start at 1)."""
    level = 1
    for idx, threshold in enumerate(settings.LEVEL_THRESHOLDS, start=1):
        if total_wagered >= threshold:
            level = idx
    return level


class User(AbstractUser):
    user_uid = models.CharField(
        max_length=8,
        unique=True,
        editable=False,
        db_index=True
    )

    referral_code = models.CharField(
        max_length=12,
        unique=True,
        blank=True,
        null=True,
        db_index=True
    )

    referred_by = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="referrals"
    )
    referral_count = models.PositiveIntegerField(default=0)
    referral_earnings = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Wagering stats, updated on every settled wager
    total_wagered = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    games_played = models.PositiveIntegerField(default=0)
    games_won = models.PositiveIntegerField(default=0)
    games_lost = models.PositiveIntegerField(default=0)
    total_profit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    highest_win = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    last_wager_at = models.DateTimeField(null=True, blank=True)

    # Never decreases
    level = models.PositiveIntegerField(default=1)

    def save(self, *args, **kwargs):
        if not self.user_uid:
            while True:
                uid = generate_uid()
                if not User.objects.filter(user_uid=uid).exists():
                    self.user_uid = uid
                    break

        if not self.referral_code:
            while True:
                code = generate_uid()
                if not User.objects.filter(referral_code=code).exists():
                    self.referral_code = code
                    break

        super().save(*args, **kwargs)

    def __str__(self):
        return self.username


class Referral(models.Model):
    referrer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="referral_records"
    )
    referred_user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="referred_record"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.referrer} -> {self.referred_user}"


class ReferralReward(models.Model):
    """One instant commission per settled wager of a referred user."""

    referrer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="referral_rewards"
    )
    referred_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="generated_rewards"
    )
    wager = models.OneToOneField(
        "wagers.Wager",
        on_delete=models.CASCADE,
        related_name="referral_reward"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    wager_amount = models.DecimalField(max_digits=18, decimal_places=2)
    game_type = models.CharField(max_length=16)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["referrer", "created_at"]),
        ]

    def __str__(self):
        return f"{self.amount} to {self.referrer_id} from wager {self.wager_id}"

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class Wager(models.Model):
    GAME_COINFLIP = "coinflip"
    GAME_JACKPOT = "jackpot"
    GAME_MINES = "mines"
    GAME_LIMBO = "limbo"
    GAME_ROULETTE = "roulette"
    GAME_UPGRADER = "upgrader"

    GAME_CHOICES = [
        (GAME_COINFLIP, "Coinflip"),
        (GAME_JACKPOT, "Jackpot"),
        (GAME_MINES, "Mines"),
        (GAME_LIMBO, "Limbo"),
        (GAME_ROULETTE, "Roulette"),
        (GAME_UPGRADER, "Upgrader"),
    ]

    PENDING = "pending"
    WIN = "win"
    LOSS = "loss"
    VOID = "void"

    OUTCOME_CHOICES = [
        (PENDING, "Pending"),
        (WIN, "Win"),
        (LOSS, "Loss"),
        (VOID, "Void"),
    ]

    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wagers")
    game_type = models.CharField(max_length=16, choices=GAME_CHOICES)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    outcome = models.CharField(max_length=8, choices=OUTCOME_CHOICES, default=PENDING)
    profit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    multiplier = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("1.00"))

    # Provable fairness: the hash is shown up front, the seed once settled
    server_seed = models.CharField(max_length=128, blank=True)
    server_seed_hash = models.CharField(max_length=64, blank=True)
    client_seed = models.CharField(max_length=128, blank=True)
    nonce = models.PositiveBigIntegerField(default=0)
    result_hash = models.CharField(max_length=64, blank=True)

    game_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["user", "created_at"]),
            models.Index(fields=["game_type"]),
            models.Index(fields=["outcome"]),
            models.Index(fields=["created_at"]),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gte=0), name="wager_amount_non_negative"),
        ]

    @property
    def is_pending(self):
        return self.outcome == self.PENDING

    def __str__(self):
        return f"Wager {self.id} {self.game_type} {self.amount} ({self.outcome})"

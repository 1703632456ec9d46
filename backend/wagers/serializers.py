from rest_framework import serializers

from .models import Wager


class WagerSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    # the seed stays hidden while the wager can still be played
    server_seed = serializers.SerializerMethodField()

    class Meta:
        model = Wager
        fields = [
            "id",
            "username",
            "game_type",
            "amount",
            "outcome",
            "profit",
            "multiplier",
            "server_seed",
            "server_seed_hash",
            "client_seed",
            "nonce",
            "result_hash",
            "game_data",
            "created_at",
            "completed_at",
        ]

    def get_server_seed(self, obj):
        return "" if obj.is_pending else obj.server_seed


class RecentWagerSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Wager
        fields = ["id", "username", "game_type", "amount", "outcome", "profit", "multiplier", "created_at"]


class VerifySerializer(serializers.Serializer):
    game_type = serializers.ChoiceField(choices=[c[0] for c in Wager.GAME_CHOICES])
    server_seed = serializers.CharField(max_length=128)
    client_seed = serializers.CharField(max_length=128, allow_blank=True)
    nonce = serializers.IntegerField(min_value=0, default=0)
    config = serializers.DictField(default=dict)

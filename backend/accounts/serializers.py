from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=6)
    # applied after the account exists; an unknown code does not block signup
    referral_code = serializers.CharField(write_only=True, required=False, allow_blank=True, max_length=12)

    class Meta:
        model = User
        fields = ("username", "email", "password", "referral_code")
        extra_kwargs = {"email": {"required": True}}

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value.lower()

    def create(self, validated_data):
        validated_data.pop("referral_code", None)
        return User.objects.create_user(**validated_data)


class AccountSerializer(serializers.ModelSerializer):
    balance = serializers.DecimalField(source="wallet.balance", max_digits=18, decimal_places=2, read_only=True)
    referred_by = serializers.SlugRelatedField(slug_field="username", read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "user_uid",
            "username",
            "email",
            "balance",
            "level",
            "total_wagered",
            "games_played",
            "referral_code",
            "referred_by",
        )
        read_only_fields = fields


class ReferralCodeSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=12)

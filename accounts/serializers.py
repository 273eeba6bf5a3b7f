from django.contrib.auth import password_validation
from djoser.serializers import UserCreateSerializer as DjoserUserCreateSerializer
from rest_framework import serializers

from .models import CustomUser


# -----------------
# Users
# -----------------
class UserSerializer(serializers.ModelSerializer):
    farmLocation = serializers.CharField(source="farm_location", required=False, allow_blank=True, max_length=100)
    phoneNumber = serializers.CharField(
        source="phone_number", required=False, allow_blank=True, max_length=20
    )
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    lastLogin = serializers.DateTimeField(source="last_login", read_only=True)
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = CustomUser
        fields = (
            "id", "email", "name", "farmLocation", "phoneNumber",
            "isActive", "lastLogin", "createdAt", "updatedAt",
        )
        read_only_fields = ("id", "email")

    def validate_phoneNumber(self, value):
        # model field validators don't run for source-mapped fields declared by hand
        for validator in CustomUser._meta.get_field("phone_number").validators:
            validator(value)
        return value.strip()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required and must be between 1-50 characters")
        return value


class RegisterSerializer(DjoserUserCreateSerializer):
    """Sign-up payload; djoser runs Django's password validators against the new user."""
    farmLocation = serializers.CharField(source="farm_location", required=False, allow_blank=True, max_length=100)
    phoneNumber = serializers.CharField(
        source="phone_number", required=False, allow_blank=True, max_length=20
    )

    class Meta:
        model = CustomUser
        fields = ("id", "email", "password", "name", "farmLocation", "phoneNumber")
        extra_kwargs = {
            "password": {"write_only": True},
            # duplicates are reported by the view with their own message
            "email": {"validators": []},
        }

    def validate_email(self, value):
        return CustomUser.objects.normalize_email(value).strip().lower()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required and must be between 1-50 characters")
        return value

    def create(self, validated_data):
        # djoser turns IntegrityError into "Unable to create account."; let the view report the duplicate
        return self.perform_create(validated_data)

    def validate_phoneNumber(self, value):
        for validator in CustomUser._meta.get_field("phone_number").validators:
            validator(value)
        return value.strip()


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True, trim_whitespace=False)
    newPassword = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_newPassword(self, value):
        password_validation.validate_password(value, self.context["request"].user)
        return value

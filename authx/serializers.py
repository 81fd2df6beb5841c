from rest_framework import serializers
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password

from core.exceptions import EmailAlreadyRegistered
from core.serializers import StrictFieldsMixin
from core.utils import normalize_email

User = get_user_model()


class VerificationRequestSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        email = normalize_email(value)
        if User.objects.filter(email__iexact=email).exists():
            raise EmailAlreadyRegistered()
        return email


class SignupSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.CharField(max_length=12)
    name = serializers.CharField(max_length=255)
    password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
    organization = serializers.CharField(max_length=255, required=False, allow_blank=True)
    college = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_email(self, value):
        return normalize_email(value)

    def validate(self, attrs):
        candidate = User(email=attrs["email"], name=attrs["name"])
        validate_password(attrs["password"], user=candidate)
        return attrs


class LoginSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        email = normalize_email(attrs.get("email"))
        password = attrs.get("password")

        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            raise serializers.ValidationError("Invalid credentials")

        user = authenticate(
            username=user.username,  # Django still authenticates by username
            password=password
        )

        if not user:
            raise serializers.ValidationError("Invalid credentials")

        attrs["user"] = user
        return attrs


class PasswordResetRequestSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        return normalize_email(value)


class PasswordResetCodeSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.CharField(max_length=12)

    def validate_email(self, value):
        return normalize_email(value)


class PasswordResetSerializer(PasswordResetCodeSerializer):
    new_password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        candidate = User(email=attrs["email"])
        validate_password(attrs["new_password"], user=candidate)
        return attrs

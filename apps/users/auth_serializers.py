"""Serializers for authentication flows (register, login)."""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.contrib.auth.password_validation import validate_password  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore


User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    password = serializers.CharField(min_length=8, write_only=True)

    def validate_email(self, value: str) -> str:
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        email = attrs.get("email", "").strip()
        password = attrs.get("password", "")

        user = User.objects.filter(email__iexact=email).first()
        if user is None or not user.is_active or not user.check_password(password):
            raise serializers.ValidationError({"non_field_errors": ["Invalid email or password."]})

        attrs["user"] = user
        return attrs

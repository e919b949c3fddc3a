"""Account DRF serializers (output only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import User
from modules.core.serializers import CamelCaseModelSerializer


class UserSerializer(CamelCaseModelSerializer):
    name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone", "role", "date_joined"]
        read_only_fields = fields


class DeliveryPersonSerializer(CamelCaseModelSerializer):
    name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone"]
        read_only_fields = fields

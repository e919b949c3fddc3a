"""Address DRF serializers (output)."""

from __future__ import annotations

from modules.core.serializers import CamelCaseModelSerializer
from modules.customers.models import Address


class AddressSerializer(CamelCaseModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "name",
            "phone",
            "street",
            "city",
            "region",
            "zip_code",
            "country",
            "latitude",
            "longitude",
            "is_default",
            "created_at",
        ]
        read_only_fields = fields

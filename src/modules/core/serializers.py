"""Serializer helpers shared by every module.

The storefront clients speak camelCase JSON (``orderNumber``,
``shippedAt``); models stay snake_case.  ``CamelCaseModelSerializer``
renames output keys so individual serializers can keep declaring the
model field names.
"""

from __future__ import annotations

import re

from rest_framework import serializers

_SNAKE_SEGMENT = re.compile(r"_([a-z0-9])")


def to_camel_case(name: str) -> str:
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), name)


class CamelCaseModelSerializer(serializers.ModelSerializer):
    """Read serializer whose representation uses camelCase keys."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        return {to_camel_case(key): value for key, value in data.items()}

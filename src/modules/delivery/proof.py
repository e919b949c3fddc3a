"""Delivery proof helpers.

Raw signatures and GPS fixes are never stored: the delivery person's
client sends them once and only SHA-256 digests are persisted on the
order.  Coordinates are rounded before hashing (4 decimals is roughly
11 m) so the digest identifies a drop-off spot, not an exact fix.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

DELIVERY_TOKEN_LENGTH = 16
DEFAULT_GPS_PRECISION = 4

OFFLINE_ACTION_TYPES = frozenset(
    {"START_DELIVERY", "COMPLETE_DELIVERY", "ADD_SIGNATURE", "ADD_NOTE"}
)


def _sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def hash_signature(signature_data: str) -> str:
    """SHA-256 hex digest of the captured signature (e.g. a base64 image)."""
    return _sha256_hex(signature_data)


def verify_signature(signature_data: str, digest: str) -> bool:
    return hmac.compare_digest(hash_signature(signature_data), digest or "")


def hash_gps_location(
    lat: float, lng: float, precision: int = DEFAULT_GPS_PRECISION
) -> str:
    """Hash a coordinate pair rounded to ``precision`` decimals."""
    return _sha256_hex(f"{lat:.{precision}f},{lng:.{precision}f}")


def generate_delivery_token(
    order_number: str,
    delivery_person_id: Any,
    timestamp: Optional[datetime] = None,
) -> str:
    """Short confirmation token tying an order, a courier and a moment together."""
    moment = timestamp or timezone.now()
    epoch_ms = int(moment.timestamp() * 1000)
    return _sha256_hex(f"{order_number}-{delivery_person_id}-{epoch_ms}")[
        :DELIVERY_TOKEN_LENGTH
    ]


def create_offline_delivery_log(
    order_number: str,
    action_type: str,
    action_data: Any,
    device_timestamp: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build a log entry for an action recorded while the device was offline.

    Raises:
        ValueError: ``action_type`` is not a known offline action.
    """
    if action_type not in OFFLINE_ACTION_TYPES:
        raise ValueError(f"Unknown offline action type: {action_type}")
    return {
        "id": str(uuid.uuid4()),
        "orderNumber": order_number,
        "actionType": action_type,
        "actionData": json.dumps(action_data, cls=DjangoJSONEncoder),
        "deviceTimestamp": device_timestamp or timezone.now(),
    }

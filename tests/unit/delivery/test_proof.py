"""Unit tests for the delivery proof helpers."""

from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from modules.delivery.proof import (
    create_offline_delivery_log,
    generate_delivery_token,
    hash_gps_location,
    hash_signature,
    verify_signature,
)

pytestmark = pytest.mark.unit

SIGNATURE = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB"


class TestSignatureHashing:
    def test_hash_is_sha256_hex(self):
        digest = hash_signature(SIGNATURE)
        assert digest == hashlib.sha256(SIGNATURE.encode("utf-8")).hexdigest()
        assert re.fullmatch(r"[0-9a-f]{64}", digest)

    def test_hash_is_deterministic(self):
        assert hash_signature(SIGNATURE) == hash_signature(SIGNATURE)

    def test_verify_accepts_matching_signature(self):
        assert verify_signature(SIGNATURE, hash_signature(SIGNATURE)) is True

    def test_verify_rejects_altered_signature(self):
        assert verify_signature(SIGNATURE + "x", hash_signature(SIGNATURE)) is False

    def test_verify_rejects_empty_digest(self):
        assert verify_signature(SIGNATURE, "") is False


class TestGpsHashing:
    def test_formats_coordinates_with_four_decimals(self):
        expected = hashlib.sha256(b"-6.7924,39.2083").hexdigest()
        assert hash_gps_location(-6.7924, 39.2083) == expected

    def test_stable_beyond_fourth_decimal(self):
        assert hash_gps_location(-6.79241, 39.20831) == hash_gps_location(
            -6.79244, 39.20834
        )

    def test_differs_at_fourth_decimal(self):
        assert hash_gps_location(-6.7924, 39.2083) != hash_gps_location(
            -6.7925, 39.2083
        )

    def test_custom_precision(self):
        expected = hashlib.sha256(b"-6.79,39.21").hexdigest()
        assert hash_gps_location(-6.7924, 39.2083, precision=2) == expected


class TestDeliveryToken:
    def test_token_is_first_16_hex_chars(self):
        moment = datetime(2023, 11, 14, 22, 13, 20, tzinfo=dt_timezone.utc)
        token = generate_delivery_token("RN1700000000123", "rider-1", moment)
        full = hashlib.sha256(b"RN1700000000123-rider-1-1700000000000").hexdigest()
        assert token == full[:16]

    def test_token_changes_with_time(self):
        first = datetime(2024, 1, 1, 9, 0, tzinfo=dt_timezone.utc)
        second = datetime(2024, 1, 1, 9, 1, tzinfo=dt_timezone.utc)
        assert generate_delivery_token("RN1", "p", first) != generate_delivery_token(
            "RN1", "p", second
        )

    def test_default_timestamp_is_now(self):
        assert re.fullmatch(r"[0-9a-f]{16}", generate_delivery_token("RN1", "p"))


class TestOfflineDeliveryLog:
    def test_builds_entry(self):
        moment = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)
        entry = create_offline_delivery_log(
            "RN1700000000123",
            "COMPLETE_DELIVERY",
            {"notes": "Left at reception", "amount": Decimal("12500")},
            device_timestamp=moment,
        )
        assert entry["orderNumber"] == "RN1700000000123"
        assert entry["actionType"] == "COMPLETE_DELIVERY"
        assert entry["deviceTimestamp"] == moment
        assert json.loads(entry["actionData"]) == {
            "notes": "Left at reception",
            "amount": "12500",
        }
        assert len(entry["id"]) == 36

    def test_each_entry_gets_a_new_id(self):
        first = create_offline_delivery_log("RN1", "ADD_NOTE", "a")
        second = create_offline_delivery_log("RN1", "ADD_NOTE", "a")
        assert first["id"] != second["id"]

    def test_unknown_action_type_rejected(self):
        with pytest.raises(ValueError, match="Unknown offline action type"):
            create_offline_delivery_log("RN1", "TELEPORT", {})

"""Order tracking codec.

Everything the customer sees on a receipt or scans from a parcel:

- order numbers: ``RN`` + epoch milliseconds + a zero-padded 3-digit
  random suffix, e.g. ``RN1700000000123045``;
- the tracking QR code: a PNG data URL pointing at
  ``<QR_CODE_BASE_URL>/track/<order_number>``;
- the tracking hash printed on receipts, a salted SHA-256 over the order
  number and the customer's e-mail.
"""

from __future__ import annotations

import base64
import hashlib
import io
import secrets
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

import qrcode
import structlog
from django.conf import settings
from django.utils import timezone
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError

from modules.orders.exceptions import QRCodeGenerationError

logger = structlog.get_logger(__name__)

ORDER_NUMBER_PREFIX = "RN"
PNG_DATA_URL_PREFIX = "data:image/png;base64,"

Number = Union[Decimal, int, float, str]


def generate_order_number(now: Optional[datetime] = None) -> str:
    moment = now or timezone.now()
    epoch_ms = int(moment.timestamp() * 1000)
    return f"{ORDER_NUMBER_PREFIX}{epoch_ms}{secrets.randbelow(1000):03d}"


def tracking_url(order_number: str) -> str:
    return f"{settings.QR_CODE_BASE_URL.rstrip('/')}/track/{order_number}"


def generate_qr_code(order_number: str) -> str:
    """Render the tracking URL as a PNG data URL.

    Raises:
        QRCodeGenerationError: the QR code could not be rendered.
    """
    url = tracking_url(order_number)
    try:
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=1)
        qr.add_data(url)
        qr.make(fit=True)
        image = qr.make_image(fill_color="#000000", back_color="#FFFFFF")
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
    except (DataOverflowError, ValueError, OSError) as exc:
        logger.error("order.qr_code_failed", order_number=order_number, error=str(exc))
        raise QRCodeGenerationError("Failed to generate QR code") from exc

    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"{PNG_DATA_URL_PREFIX}{encoded}"


def generate_tracking_hash(order_number: str, email: str) -> str:
    """Receipt verification hash; the salt comes from ``TRACKING_SALT``."""
    data = f"{order_number}-{email}-{settings.TRACKING_SALT}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def calculate_order_total(
    subtotal: Number, shipping_cost: Optional[Number] = None
) -> Decimal:
    return Decimal(str(subtotal)) + Decimal(str(shipping_cost or 0))


def format_price(amount: Number) -> str:
    """``12500`` -> ``"TZS 12,500"``; fractional amounts keep their cents."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    text = f"{value:,.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    elif text.endswith("0"):
        text = text[:-1]
    return f"{settings.CURRENCY} {text}"

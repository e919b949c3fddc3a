"""Account domain exceptions.

Raised by the Service Layer; the views translate them into
``{"error": ...}`` responses with a 400 status.
"""

from __future__ import annotations


class InvalidResetToken(Exception):
    """The reset token does not exist."""


class ExpiredResetToken(Exception):
    """The reset token is past its expiry (the record has been deleted)."""


class ResetTokenAlreadyUsed(Exception):
    """The reset token was already redeemed."""


class EmailAlreadyRegistered(Exception):
    """An account with the same e-mail already exists."""


class InvalidCredentials(Exception):
    """Login failed: unknown e-mail, wrong password or inactive account."""

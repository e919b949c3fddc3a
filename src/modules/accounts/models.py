"""User and PasswordReset models.

- ``User`` replaces Django's default user (``AUTH_USER_MODEL``) to carry
  the storefront ``role`` that gates every endpoint.
- ``PasswordReset`` stores one-time reset tokens.  A token is valid for
  ``PASSWORD_RESET_TIMEOUT_HOURS`` and is consumed (``used=True``) on a
  successful reset; expired tokens are deleted when redeemed.
"""

from __future__ import annotations

from datetime import datetime

import uuid6
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from modules.accounts.constants import Role
from modules.core.models import BaseModel


class User(AbstractUser):
    """Storefront user: customer, delivery person or administrator."""

    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    email = models.EmailField(max_length=254, unique=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER)
    phone = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "users"
        ordering = ["username"]
        indexes = [
            models.Index(fields=["role"], name="users_role_idx"),
        ]

    @property
    def name(self) -> str:
        return self.get_full_name() or self.username

    @property
    def is_admin_role(self) -> bool:
        return self.role == Role.ADMIN

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class PasswordReset(BaseModel):
    """One-time password reset token."""

    user = models.ForeignKey(
        "accounts.User",
        on_delete=models.CASCADE,
        related_name="password_resets",
    )
    token = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    used = models.BooleanField(default=False)

    class Meta:
        db_table = "password_resets"
        ordering = ["-created_at"]

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or timezone.now()) > self.expires_at

    def __str__(self) -> str:
        return f"PasswordReset({self.user_id}, used={self.used})"

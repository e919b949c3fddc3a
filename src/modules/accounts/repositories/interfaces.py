"""Account repository interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from modules.accounts.models import PasswordReset, User


class IUserRepository(ABC):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive e-mail lookup."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[User]:
        """Retrieve a user by primary key (``None`` for invalid IDs)."""

    @abstractmethod
    def create_user(
        self, *, email: str, password: str, name: str, phone: str = ""
    ) -> User:
        """Create a CUSTOMER account with a hashed password."""

    @abstractmethod
    def list_by_role(self, role: str) -> list[User]:
        """List users holding *role*."""

    @abstractmethod
    def count_by_role(self, role: str) -> int:
        """Number of users holding *role*."""


class IPasswordResetRepository(ABC):
    @abstractmethod
    def create(self, user: User, token: str, expires_at: datetime) -> PasswordReset:
        """Persist a new unused reset token."""

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[PasswordReset]:
        """Retrieve a reset record (with its user) by token."""

    @abstractmethod
    def get_for_update(self, id) -> Optional[PasswordReset]:
        """Retrieve a reset record with a row-level lock."""

    @abstractmethod
    def mark_used(self, reset: PasswordReset) -> PasswordReset:
        """Flag a reset record as consumed."""

    @abstractmethod
    def delete(self, reset: PasswordReset) -> None:
        """Remove a reset record."""

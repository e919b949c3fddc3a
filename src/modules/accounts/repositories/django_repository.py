"""Django ORM implementation of the account repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog
from django.core.exceptions import ValidationError

from modules.accounts.constants import Role
from modules.accounts.models import PasswordReset, User
from modules.accounts.repositories.interfaces import (
    IPasswordResetRepository,
    IUserRepository,
)

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    def get_by_email(self, email: str) -> Optional[User]:
        return User.objects.filter(email__iexact=email).first()

    def get_by_id(self, id: str) -> Optional[User]:
        try:
            return User.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def create_user(
        self, *, email: str, password: str, name: str, phone: str = ""
    ) -> User:
        first_name, _, last_name = name.partition(" ")
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=Role.CUSTOMER,
        )
        logger.info("user.created", user_id=str(user.id), role=user.role)
        return user

    def list_by_role(self, role: str) -> list[User]:
        return list(
            User.objects.filter(role=role).order_by("first_name", "last_name", "username")
        )

    def count_by_role(self, role: str) -> int:
        return User.objects.filter(role=role).count()


class PasswordResetDjangoRepository(IPasswordResetRepository):
    def create(self, user: User, token: str, expires_at: datetime) -> PasswordReset:
        return PasswordReset.objects.create(user=user, token=token, expires_at=expires_at)

    def get_by_token(self, token: str) -> Optional[PasswordReset]:
        return PasswordReset.objects.select_related("user").filter(token=token).first()

    def get_for_update(self, id) -> Optional[PasswordReset]:
        return (
            PasswordReset.objects.select_for_update()
            .select_related("user")
            .filter(id=id)
            .first()
        )

    def mark_used(self, reset: PasswordReset) -> PasswordReset:
        reset.used = True
        reset.save(update_fields=["used"])
        return reset

    def delete(self, reset: PasswordReset) -> None:
        PasswordReset.objects.filter(id=reset.id).delete()

"""Account service layer (Use Cases).

``PasswordResetService`` owns the one-time reset token store:

- A request for an unknown e-mail creates nothing and answers with the
  same generic message, so the endpoint cannot be used to enumerate accounts.
- Tokens are 32 random bytes (hex), valid for
  ``PASSWORD_RESET_TIMEOUT_HOURS`` and consumed on success.
- Expired tokens are deleted when someone tries to redeem them.
- The password change and the ``used`` flag commit together, with the
  token row locked so two concurrent redemptions cannot both succeed.

``AccountService`` covers registration and credential checks; password
hashing and sessions stay with ``django.contrib.auth``.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
from django.conf import settings
from django.contrib.auth import authenticate
from django.db import transaction
from django.utils import timezone

from modules.accounts.constants import GENERIC_RESET_MESSAGE, Role
from modules.accounts.exceptions import (
    EmailAlreadyRegistered,
    ExpiredResetToken,
    InvalidCredentials,
    InvalidResetToken,
    ResetTokenAlreadyUsed,
)

if TYPE_CHECKING:
    from modules.accounts.dtos import (
        ForgotPasswordDTO,
        LoginDTO,
        RegisterUserDTO,
        ResetPasswordDTO,
    )
    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import (
        IPasswordResetRepository,
        IUserRepository,
    )

logger = structlog.get_logger(__name__)


class PasswordResetService:
    """Application service for the password reset flow."""

    def __init__(
        self,
        reset_repository: IPasswordResetRepository,
        user_repository: IUserRepository,
    ) -> None:
        self._reset_repo = reset_repository
        self._user_repo = user_repository

    @transaction.atomic
    def request_reset(self, dto: ForgotPasswordDTO) -> str:
        """Issue a reset token for ``dto.email`` if the account exists.

        The reset e-mail is queued only once the token is committed.
        Always returns the generic confirmation message.
        """
        from modules.accounts.tasks import send_password_reset_email

        user = self._user_repo.get_by_email(dto.email)
        if not user:
            logger.info("password_reset.unknown_email", email=dto.email)
            return GENERIC_RESET_MESSAGE

        token = secrets.token_hex(32)
        expires_at = timezone.now() + timedelta(hours=settings.PASSWORD_RESET_TIMEOUT_HOURS)
        reset = self._reset_repo.create(user, token, expires_at)

        log = logger.bind(user_id=str(user.id), reset_id=str(reset.id))
        log.info("password_reset.requested", expires_at=expires_at.isoformat())
        if settings.DEBUG:
            log.debug("password_reset.dev_link", token_prefix=token[:8])

        reset_id = str(reset.id)
        transaction.on_commit(lambda: send_password_reset_email.delay(reset_id))
        return GENERIC_RESET_MESSAGE

    def reset_password(self, dto: ResetPasswordDTO) -> User:
        """Redeem a reset token and set a new password.

        Raises:
            InvalidResetToken: no record holds this token.
            ExpiredResetToken: the token expired; the record is deleted.
            ResetTokenAlreadyUsed: the token was redeemed before.
        """
        reset = self._reset_repo.get_by_token(dto.token)
        if not reset:
            logger.warning("password_reset.invalid_token")
            raise InvalidResetToken("Invalid or expired reset token")

        log = logger.bind(reset_id=str(reset.id), user_id=str(reset.user_id))

        if reset.is_expired():
            self._reset_repo.delete(reset)
            log.warning("password_reset.expired_token_deleted")
            raise ExpiredResetToken("Reset token has expired")

        if reset.used:
            log.warning("password_reset.token_reused")
            raise ResetTokenAlreadyUsed("Reset token has already been used")

        with transaction.atomic():
            locked = self._reset_repo.get_for_update(reset.id)
            if not locked:
                raise InvalidResetToken("Invalid or expired reset token")
            if locked.used:
                log.warning("password_reset.token_reused")
                raise ResetTokenAlreadyUsed("Reset token has already been used")

            user = locked.user
            user.set_password(dto.password)
            user.save(update_fields=["password"])
            self._reset_repo.mark_used(locked)

        log.info("password_reset.completed")
        return user


class AccountService:
    """Application service for registration and login."""

    def __init__(self, user_repository: IUserRepository) -> None:
        self._user_repo = user_repository

    @transaction.atomic
    def register(self, dto: RegisterUserDTO) -> User:
        """Create a CUSTOMER account.

        Raises:
            EmailAlreadyRegistered: the e-mail is taken.
        """
        if self._user_repo.get_by_email(dto.email):
            logger.warning("account.duplicate_email", email=dto.email)
            raise EmailAlreadyRegistered("User with this email already exists")

        user = self._user_repo.create_user(
            email=dto.email, password=dto.password, name=dto.name, phone=dto.phone
        )
        logger.info("account.registered", user_id=str(user.id))
        return user

    def authenticate(self, dto: LoginDTO, request=None) -> User:
        """Check e-mail and password.

        Raises:
            InvalidCredentials: unknown e-mail, wrong password or inactive user.
        """
        candidate = self._user_repo.get_by_email(dto.email)
        if not candidate:
            logger.warning("account.login_failed", reason="unknown_email")
            raise InvalidCredentials("Invalid email or password")

        user = authenticate(request, username=candidate.username, password=dto.password)
        if user is None:
            logger.warning("account.login_failed", user_id=str(candidate.id))
            raise InvalidCredentials("Invalid email or password")

        logger.info("account.login_succeeded", user_id=str(user.id), role=user.role)
        return user

    def list_delivery_personnel(self) -> list[User]:
        return self._user_repo.list_by_role(Role.DELIVERY)

"""Celery tasks for the accounts module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = structlog.get_logger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_password_reset_email(self, reset_id: str) -> bool:
    """Send the reset link for a still-valid, unused token."""
    from modules.accounts.models import PasswordReset

    reset = PasswordReset.objects.select_related("user").filter(id=reset_id).first()
    if reset is None or reset.used or reset.is_expired():
        logger.info("password_reset.email_skipped", reset_id=reset_id)
        return False

    link = f"{settings.SITE_URL.rstrip('/')}/auth/reset-password?token={reset.token}"
    hours = settings.PASSWORD_RESET_TIMEOUT_HOURS
    try:
        send_mail(
            subject="Reset your password",
            message=(
                f"Hello {reset.user.name},\n\n"
                "We received a request to reset your password. "
                f"Use the link below within {hours} hour(s):\n\n{link}\n\n"
                "If you did not ask for this, you can ignore this e-mail."
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[reset.user.email],
        )
    except OSError as exc:
        logger.warning("password_reset.email_failed", reset_id=reset_id, error=str(exc))
        raise self.retry(exc=exc)

    logger.info("password_reset.email_sent", reset_id=reset_id)
    return True

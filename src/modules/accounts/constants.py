"""Account domain constants."""

from django.db import models


class Role(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    CUSTOMER = "CUSTOMER", "Customer"
    DELIVERY = "DELIVERY", "Delivery"


PASSWORD_MIN_LENGTH = 6

GENERIC_RESET_MESSAGE = (
    "If an account with that email exists, we have sent a password reset link."
)

"""Customer shipping addresses.

Business rules implemented:
- Each address belongs to exactly one user.
- A user has at most one default address (partial unique constraint;
  the service clears the previous default first).
- ``country`` defaults to Tanzania, the only delivery country.
- ``latitude``/``longitude`` are optional; only geolocated addresses take
  part in route optimization.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel

DEFAULT_COUNTRY = "Tanzania"


class Address(BaseModel):
    user = models.ForeignKey(
        "accounts.User",
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=120, blank=True, default="")
    region = models.CharField(max_length=120, blank=True, default="")
    zip_code = models.CharField(max_length=20, blank=True, null=True)
    country = models.CharField(max_length=80, default=DEFAULT_COUNTRY)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = "addresses"
        ordering = ["-is_default", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=models.Q(is_default=True),
                name="addresses_one_default_per_user",
            ),
        ]

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __str__(self) -> str:
        return f"{self.name}, {self.street}, {self.city}"

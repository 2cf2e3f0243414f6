"""Reservation lifecycle constants."""

from django.db import models


class ReservationStatus(models.TextChoices):
    HELD = "HELD", "Held"
    RELEASED = "RELEASED", "Released"

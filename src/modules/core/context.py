"""Explicit caller context handed to every service operation.

Services never reach for ``request.user`` or session state themselves;
views build a ``RequestContext`` from the authenticated principal and
pass it down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.db import models


class Role(models.TextChoices):
    USER = "user", "User"
    ADMIN = "admin", "Admin"


ADMIN_PERMISSION = "admin"


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller identity: who is acting and with which role."""

    user_id: str
    role: str = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def system(cls) -> RequestContext:
        """Context for background jobs (payment expiry, retries)."""
        return cls(user_id="system", role=Role.ADMIN)

    @classmethod
    def from_user(cls, user: Any) -> RequestContext:
        """Map a DRF principal (Django user or ``Auth0User``) to a context.

        Auth0 principals are identified by ``sub`` and promoted to admin
        through the ``admin`` permission; Django users by primary key and
        ``is_staff``.
        """
        sub = getattr(user, "sub", None)
        if sub:
            permissions = getattr(user, "permissions", []) or []
            role = Role.ADMIN if ADMIN_PERMISSION in permissions else Role.USER
            return cls(user_id=str(sub), role=role)

        role = Role.ADMIN if getattr(user, "is_staff", False) else Role.USER
        return cls(user_id=str(user.pk), role=role)

    @classmethod
    def from_request(cls, request: Any) -> RequestContext:
        return cls.from_user(request.user)

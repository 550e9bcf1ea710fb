"""Viewer roles and their trust ranking."""

from django.db import models


class Role(models.TextChoices):
    """Site-wide role attached to every user account."""

    REGULAR = "regular", "Regular"
    ADMIN = "admin", "Admin"
    MAINTAINER = "maintainer", "Maintainer"


_RANKS = {
    Role.REGULAR: 1,
    Role.ADMIN: 2,
    Role.MAINTAINER: 3,
}


def rank(role: str) -> int:
    """Return the trust rank of ``role`` (maintainer > admin > regular).

    Raises ``ValueError`` for strings that are not a known role.
    """
    return _RANKS[Role(role)]


def is_staff_role(role: str | None) -> bool:
    """True for roles at or above admin."""
    if role is None:
        return False
    return rank(role) >= rank(Role.ADMIN)


__all__ = ["Role", "rank", "is_staff_role"]

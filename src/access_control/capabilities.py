"""Capability sets derived from a viewer's role and a diary's lock state.

Policies never branch on raw role strings; they ask for the capability set
of a viewer on a given diary and test membership instead.
"""

import enum

from .roles import Role


class Capability(enum.Flag):
    """Role-derived privileges that apply to diaries the viewer does not own."""

    NONE = 0
    VIEW_LOCKED = enum.auto()
    EDIT_ANY = enum.auto()
    REVIEW_ANY = enum.auto()
    # Acts on a diary regardless of its lock: edit, request, lock or unlock.
    OVERRIDE_LOCK = enum.auto()


STAFF_CAPABILITIES = Capability.EDIT_ANY | Capability.REVIEW_ANY
MAINTAINER_CAPABILITIES = Capability.VIEW_LOCKED | Capability.OVERRIDE_LOCK | STAFF_CAPABILITIES


def capabilities_for(role: str | None, is_locked: bool) -> Capability:
    """Evaluate ``role`` against a diary's lock state.

    Maintainers keep every capability on every diary. Admins hold edit and
    review capabilities only while the diary is unlocked. Regular users and
    anonymous viewers (``role is None``) hold none.
    """
    if role is None:
        return Capability.NONE

    role = Role(role)
    if role == Role.MAINTAINER:
        return MAINTAINER_CAPABILITIES
    if role == Role.ADMIN and not is_locked:
        return STAFF_CAPABILITIES
    return Capability.NONE


__all__ = ["Capability", "capabilities_for", "STAFF_CAPABILITIES", "MAINTAINER_CAPABILITIES"]

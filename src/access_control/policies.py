"""Diary access policies: visibility, editing, and collaboration review.

All functions here are pure. ``diary`` is anything exposing ``owner_id`` and
``is_locked``; ``viewer`` is a user exposing ``id`` and ``role``, or ``None``
for anonymous access. Callers normalise Django's ``AnonymousUser`` with
:func:`as_viewer` before asking.
"""

from typing import Any, Optional

from .capabilities import Capability, capabilities_for
from .states import CollaborationStatus


def as_viewer(user: Any) -> Optional[Any]:
    """Return ``user`` if it is an authenticated account, else ``None``."""
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user


def capabilities_of(diary, viewer) -> Capability:
    """Capability set of ``viewer`` on ``diary``."""
    role = getattr(viewer, "role", None) if viewer is not None else None
    return capabilities_for(role, bool(diary.is_locked))


def is_owner(diary, viewer) -> bool:
    return viewer is not None and diary.owner_id == viewer.id


def can_view_diary(diary, viewer) -> bool:
    """Unlocked diaries are public; locked ones only show to owner and maintainers."""
    if not diary.is_locked:
        return True
    if viewer is None:
        return False
    return Capability.VIEW_LOCKED in capabilities_of(diary, viewer) or is_owner(diary, viewer)


def can_edit_diary(diary, viewer, collaboration_status: Optional[str] = None) -> bool:
    """Decide whether ``viewer`` may change the diary's content.

    Rules are evaluated in order and the first match wins:

    1. maintainers always edit, lock or not;
    2. the owner always edits, even a diary they locked themselves;
    3. a locked diary admits nobody else;
    4. admins edit any unlocked diary;
    5. approved collaborators edit;
    6. everyone else is refused.
    """
    if viewer is None:
        return False

    caps = capabilities_of(diary, viewer)
    if Capability.OVERRIDE_LOCK in caps:
        return True
    if is_owner(diary, viewer):
        return True
    if diary.is_locked:
        return False
    if Capability.EDIT_ANY in caps:
        return True
    return collaboration_status == CollaborationStatus.APPROVED


def can_review_collaboration(diary, viewer) -> bool:
    """Owner, admins on unlocked diaries, and maintainers may approve/reject/revoke."""
    if viewer is None:
        return False
    return is_owner(diary, viewer) or Capability.REVIEW_ANY in capabilities_of(diary, viewer)


def can_request_collaboration(diary, viewer) -> bool:
    """Non-owners may ask to co-edit unless the diary is locked to them."""
    if viewer is None or is_owner(diary, viewer):
        return False
    if not diary.is_locked:
        return True
    return Capability.OVERRIDE_LOCK in capabilities_of(diary, viewer)


def can_delete_diary(diary, viewer) -> bool:
    # Deleting needs the same standing as reviewing collaborators.
    return can_review_collaboration(diary, viewer)


def can_change_lock(diary, viewer) -> bool:
    """Only the owner and maintainers may lock or unlock a diary."""
    if viewer is None:
        return False
    return is_owner(diary, viewer) or Capability.OVERRIDE_LOCK in capabilities_of(diary, viewer)


def collaboration_label(diary, viewer, collaboration_status: Optional[str] = None) -> str:
    """Single status label shown to ``viewer``.

    Priority follows :func:`can_edit_diary`: ``owner``, then ``staff`` for
    viewers whose role lets them edit this diary, then the viewer's own
    request status, then ``none``.
    """
    if viewer is None:
        return "none"
    if is_owner(diary, viewer):
        return "owner"
    if Capability.EDIT_ANY in capabilities_of(diary, viewer):
        return "staff"
    if collaboration_status:
        return str(collaboration_status)
    return "none"


__all__ = [
    "as_viewer",
    "capabilities_of",
    "is_owner",
    "can_view_diary",
    "can_edit_diary",
    "can_review_collaboration",
    "can_request_collaboration",
    "can_delete_diary",
    "can_change_lock",
    "collaboration_label",
]

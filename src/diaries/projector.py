"""Per-viewer permission summaries attached to diary payloads."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from access_control.policies import (
    can_edit_diary,
    can_review_collaboration,
    collaboration_label,
    is_owner,
)
from access_control.roles import Role
from access_control.states import CollaborationStatus


@dataclass(frozen=True)
class RosterEntry:
    """Snapshot of one collaboration request row."""

    user_id: Any
    username: str
    display_name: str
    status: str
    approved_by: Any
    approved_at: Any
    requested_at: Any

    @classmethod
    def from_request(cls, record) -> "RosterEntry":
        return cls(
            user_id=record.user_id,
            username=record.user.username,
            display_name=record.user.display_name,
            status=record.status,
            approved_by=record.approved_by_id,
            approved_at=record.approved_at,
            requested_at=record.requested_at,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "display_name": self.display_name,
            "status": self.status,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at,
            "requested_at": self.requested_at,
        }


@dataclass(frozen=True)
class PermissionSummary:
    can_edit: bool
    is_owner: bool
    is_maintainer: bool
    is_admin: bool
    collaboration_status: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "canEdit": self.can_edit,
            "isOwner": self.is_owner,
            "isMaintainer": self.is_maintainer,
            "isAdmin": self.is_admin,
            "collaborationStatus": self.collaboration_status,
        }


def own_entry(roster: Iterable[RosterEntry], viewer) -> Optional[RosterEntry]:
    if viewer is None:
        return None
    return next((entry for entry in roster if entry.user_id == viewer.id), None)


def summarize(diary, viewer, roster: Iterable[RosterEntry]) -> PermissionSummary:
    """Evaluate every policy for ``viewer`` once against a roster snapshot."""
    entry = own_entry(roster, viewer)
    status = entry.status if entry else None
    role = getattr(viewer, "role", None)
    return PermissionSummary(
        can_edit=can_edit_diary(diary, viewer, status),
        is_owner=is_owner(diary, viewer),
        is_maintainer=role == Role.MAINTAINER,
        is_admin=role == Role.ADMIN,
        collaboration_status=collaboration_label(diary, viewer, status),
    )


def project_diary(diary, viewer, roster: Iterable[RosterEntry], payload: dict[str, Any]) -> dict[str, Any]:
    """Return ``payload`` extended with ``permissions``, ``editors`` and,
    for reviewers only, ``pending_editors``.

    Pending requesters see their own state through ``collaborationStatus``;
    the pending list itself is withheld from everyone without review standing.
    """
    roster = list(roster)
    result = dict(payload)
    result["permissions"] = summarize(diary, viewer, roster).as_dict()
    result["editors"] = [e.as_dict() for e in roster if e.status == CollaborationStatus.APPROVED]
    if can_review_collaboration(diary, viewer):
        result["pending_editors"] = [e.as_dict() for e in roster if e.status == CollaborationStatus.PENDING]
    return result


__all__ = ["RosterEntry", "PermissionSummary", "summarize", "project_diary", "own_entry"]

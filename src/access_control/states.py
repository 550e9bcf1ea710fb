"""States and transitions of a collaboration request.

A (diary, user) pair starts with no row at all. Once a row exists it is
only ever mutated in place between the four statuses below.
"""

from django.db import models


class CollaborationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    REVOKED = "revoked", "Revoked"


class ReviewAction(models.TextChoices):
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"
    REVOKE = "revoke", "Revoke"


# Every review action stamps the reviewer, whichever outcome it produces.
REVIEW_OUTCOMES = {
    ReviewAction.APPROVE: CollaborationStatus.APPROVED,
    ReviewAction.REJECT: CollaborationStatus.REJECTED,
    ReviewAction.REVOKE: CollaborationStatus.REVOKED,
}

# Re-requesting from these statuses is a no-op.
SETTLED_ON_REQUEST = frozenset({CollaborationStatus.PENDING, CollaborationStatus.APPROVED})

# Re-requesting from these statuses reopens the row as pending.
REOPENABLE = frozenset({CollaborationStatus.REJECTED, CollaborationStatus.REVOKED})


def outcome_of(action: str) -> CollaborationStatus:
    """Map a review action to the status it produces.

    Raises ``ValueError`` for anything outside :class:`ReviewAction`.
    """
    return REVIEW_OUTCOMES[ReviewAction(action)]


__all__ = [
    "CollaborationStatus",
    "ReviewAction",
    "REVIEW_OUTCOMES",
    "SETTLED_ON_REQUEST",
    "REOPENABLE",
    "outcome_of",
]

"""Diary and per-(diary, user) collaboration request models."""

from django.conf import settings
from django.db import models
from django.utils import timezone

from access_control.states import REOPENABLE, CollaborationStatus


class Diary(models.Model):
    """Diary entry owned by exactly one user."""

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="diaries")
    title = models.CharField(max_length=255)
    content = models.TextField()
    cover_image = models.CharField(max_length=500, blank=True)
    is_pinned = models.BooleanField(default=False)
    is_locked = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "diaries"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title


class CollaborationRequest(models.Model):
    """A non-owner's bid to co-edit a diary.

    At most one row exists per (diary, user); it is mutated in place and
    never deleted except by cascade. ``approved_by``/``approved_at`` record
    the last review whatever its outcome.
    """

    diary = models.ForeignKey(Diary, on_delete=models.CASCADE, related_name="collaboration_requests")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="collaboration_requests"
    )
    status = models.CharField(
        max_length=16, choices=CollaborationStatus.choices, default=CollaborationStatus.PENDING
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_collaborations",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    requested_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["requested_at"]
        constraints = [
            models.UniqueConstraint(fields=["diary", "user"], name="uniq_collaboration_diary_user"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.user_id} -> {self.diary_id} ({self.status})"

    def reopen(self) -> list[str]:
        """Reset a rejected/revoked row to pending; returns the changed fields."""
        if self.status not in REOPENABLE:
            raise ValueError(f"Cannot reopen a {self.status} collaboration request")
        self.status = CollaborationStatus.PENDING
        self.approved_by = None
        self.approved_at = None
        self.requested_at = timezone.now()
        return ["status", "approved_by", "approved_at", "requested_at"]

    def record_review(self, outcome: str, reviewer) -> list[str]:
        """Stamp a review outcome; returns the changed fields."""
        self.status = outcome
        self.approved_by = reviewer
        self.approved_at = timezone.now()
        return ["status", "approved_by", "approved_at"]


__all__ = ["Diary", "CollaborationRequest"]

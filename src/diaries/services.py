"""Diary read projections and the collaboration request state machine."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework.exceptions import NotAuthenticated, NotFound, PermissionDenied, ValidationError

from access_control.policies import (
    can_request_collaboration,
    can_review_collaboration,
    can_view_diary,
    is_owner,
)
from access_control.states import (
    SETTLED_ON_REQUEST,
    CollaborationStatus,
    ReviewAction,
    outcome_of,
)
from .models import CollaborationRequest, Diary
from .projector import RosterEntry, project_diary
from .serializers import DiarySerializer
from .signals import collaboration_requested, collaboration_reviewed

logger = logging.getLogger(__name__)

User = get_user_model()


def _get_diary(diary_id) -> Diary:
    diary = Diary.objects.select_related("owner").filter(pk=diary_id).first()
    if diary is None:
        raise NotFound("Diary not found.")
    return diary


def _lock_diary(diary_id) -> Diary:
    """Re-read the diary row under a row lock for the current transaction."""
    diary = Diary.objects.select_for_update().filter(pk=diary_id).first()
    if diary is None:
        raise NotFound("Diary not found.")
    return diary


def load_rosters(diary_ids: Iterable[int]) -> dict[int, list[RosterEntry]]:
    """Fetch every collaboration row for ``diary_ids`` in one query."""
    rosters: dict[int, list[RosterEntry]] = defaultdict(list)
    ids = list(diary_ids)
    if not ids:
        return rosters
    rows = CollaborationRequest.objects.select_related("user").filter(diary_id__in=ids)
    for row in rows:
        rosters[row.diary_id].append(RosterEntry.from_request(row))
    return rosters


class DiaryService:
    """Read side: visibility-filtered diaries with per-viewer permissions."""

    @staticmethod
    def collaboration_status_for(diary, user) -> Optional[str]:
        if user is None:
            return None
        return (
            CollaborationRequest.objects.filter(diary=diary, user=user)
            .values_list("status", flat=True)
            .first()
        )

    @staticmethod
    def get_visible_diary(diary_id, viewer) -> Diary:
        """Point lookup that hides invisible diaries behind NotFound."""
        diary = _get_diary(diary_id)
        if not can_view_diary(diary, viewer):
            raise NotFound("Diary not found.")
        return diary

    @classmethod
    def get_diary_with_permissions(cls, diary_id, viewer) -> dict:
        diary = cls.get_visible_diary(diary_id, viewer)
        return cls.project_many([diary], viewer)[0]

    @classmethod
    def project_many(cls, diaries: Iterable[Diary], viewer) -> list[dict]:
        diaries = [d for d in diaries if can_view_diary(d, viewer)]
        rosters = load_rosters(d.pk for d in diaries)
        return [
            project_diary(diary, viewer, rosters.get(diary.pk, []), DiarySerializer(diary).data)
            for diary in diaries
        ]

    @classmethod
    def list_diaries(cls, viewer, *, username: str | None = None, user_id=None) -> list[dict]:
        """List visible diaries one author owns or co-edits.

        Without an author filter this is the home feed: the diaries owned by
        the configured maintainer account.
        """
        queryset = Diary.objects.select_related("owner")

        if username or user_id:
            lookup = {"pk": user_id} if user_id else {"username": username}
            try:
                author = User.objects.get(**lookup)
            except (User.DoesNotExist, DjangoValidationError, ValueError):
                raise NotFound("Author not found.")
            queryset = queryset.filter(
                Q(owner=author)
                | Q(
                    collaboration_requests__user=author,
                    collaboration_requests__status=CollaborationStatus.APPROVED,
                )
            ).distinct()
        else:
            queryset = queryset.filter(owner__username=settings.MAINTAINER_USERNAME)

        return cls.project_many(queryset.order_by("-created_at"), viewer)

    @classmethod
    def list_collaborations(cls, viewer) -> list[dict]:
        """Diaries on which ``viewer`` is an approved collaborator."""
        if viewer is None:
            raise NotAuthenticated()
        queryset = (
            Diary.objects.select_related("owner")
            .filter(
                collaboration_requests__user=viewer,
                collaboration_requests__status=CollaborationStatus.APPROVED,
            )
            .order_by("-updated_at")
        )
        return cls.project_many(queryset, viewer)


@dataclass(frozen=True)
class CollaborationResult:
    status: str
    message: str
    # True when the call inserted or reopened a row, False for the no-op.
    changed: bool

    def as_dict(self) -> dict:
        return {"status": self.status, "message": self.message}


class CollaborationService:
    """Write side: request and review transitions of collaboration rows."""

    REQUEST_MESSAGES = {
        "created": "Request submitted; waiting for the author or a maintainer to review it.",
        "reopened": "Request resubmitted.",
        CollaborationStatus.PENDING: "Request already submitted; waiting for review.",
        CollaborationStatus.APPROVED: "You are already a collaborator.",
    }
    REVIEW_MESSAGES = {
        ReviewAction.APPROVE: "Request approved.",
        ReviewAction.REJECT: "Request rejected.",
        ReviewAction.REVOKE: "Collaborator removed.",
    }

    @classmethod
    def request_collaboration(cls, diary_id, requester) -> CollaborationResult:
        """Create, reopen, or leave untouched the requester's row.

        Idempotent: repeating the call while pending or approved returns the
        current status without writing. A concurrent insert that loses the
        race on the (diary, user) constraint is treated the same way.
        """
        if requester is None:
            raise NotAuthenticated()

        with transaction.atomic():
            diary = _lock_diary(diary_id)
            if is_owner(diary, requester):
                raise PermissionDenied("You are the author of this diary; no request is needed.")
            if not can_request_collaboration(diary, requester):
                raise PermissionDenied("This diary is locked and not accepting collaboration requests.")

            record = (
                CollaborationRequest.objects.select_for_update()
                .filter(diary=diary, user=requester)
                .first()
            )
            if record is None:
                return cls._create_request(diary, requester)

            if record.status in SETTLED_ON_REQUEST:
                logger.debug("Collaboration request %s unchanged (%s)", record.pk, record.status)
                return CollaborationResult(record.status, cls.REQUEST_MESSAGES[record.status], False)

            previous = record.status
            record.save(update_fields=record.reopen())
            logger.info(
                "Collaboration request %s reopened (diary=%s user=%s, was %s)",
                record.pk, diary.pk, requester.pk, previous,
            )
            cls._announce_request(diary, record)
            return CollaborationResult(record.status, cls.REQUEST_MESSAGES["reopened"], True)

    @classmethod
    def _create_request(cls, diary, requester) -> CollaborationResult:
        try:
            with transaction.atomic():
                record = CollaborationRequest.objects.create(
                    diary=diary, user=requester, status=CollaborationStatus.PENDING
                )
        except IntegrityError:
            # Another request for the same pair committed first.
            record = CollaborationRequest.objects.get(diary=diary, user=requester)
            logger.info(
                "Concurrent collaboration request for diary=%s user=%s resolved to row %s",
                diary.pk, requester.pk, record.pk,
            )
            message = cls.REQUEST_MESSAGES.get(record.status, cls.REQUEST_MESSAGES[CollaborationStatus.PENDING])
            return CollaborationResult(record.status, message, False)

        logger.info("Collaboration request %s created (diary=%s user=%s)", record.pk, diary.pk, requester.pk)
        cls._announce_request(diary, record)
        return CollaborationResult(record.status, cls.REQUEST_MESSAGES["created"], True)

    @classmethod
    def review_collaboration(cls, diary_id, target_user_id, action, reviewer) -> dict:
        """Approve, reject or revoke ``target_user_id``'s request."""
        if reviewer is None:
            raise NotAuthenticated()
        try:
            action = ReviewAction(action)
        except ValueError:
            raise ValidationError({"action": [f"Invalid action. Choose from {', '.join(ReviewAction.values)}."]})

        with transaction.atomic():
            diary = _lock_diary(diary_id)
            if not can_review_collaboration(diary, reviewer):
                if diary.is_locked:
                    raise PermissionDenied("This diary is locked; only its author or a maintainer may review requests.")
                raise PermissionDenied("Only the author, an admin or a maintainer may review collaboration requests.")

            record = (
                CollaborationRequest.objects.select_for_update()
                .filter(diary=diary, user_id=target_user_id)
                .first()
            )
            if record is None:
                raise NotFound("Collaboration request not found.")

            previous = record.status
            record.save(update_fields=record.record_review(outcome_of(action), reviewer))
            logger.info(
                "Collaboration request %s %s -> %s by %s",
                record.pk, previous, record.status, reviewer.pk,
            )
            transaction.on_commit(
                lambda: collaboration_reviewed.send(
                    sender=CollaborationRequest, diary=diary, request=record, action=action, reviewer=reviewer
                )
            )

        return {"message": cls.REVIEW_MESSAGES[action], "status": record.status}

    @staticmethod
    def _announce_request(diary, record) -> None:
        transaction.on_commit(
            lambda: collaboration_requested.send(sender=CollaborationRequest, diary=diary, request=record)
        )


__all__ = ["DiaryService", "CollaborationService", "CollaborationResult", "load_rosters"]

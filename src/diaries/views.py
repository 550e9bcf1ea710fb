"""Diary endpoints: reads with per-viewer permissions, writes, collaboration workflow."""

import logging

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from access_control.permissions import DiaryAccessPermission
from access_control.policies import as_viewer, can_change_lock
from core.response import BaseViewSet, api_response
from .models import Diary
from .serializers import CollaborationReviewSerializer, DiarySerializer
from .services import CollaborationService, DiaryService

logger = logging.getLogger(__name__)

UUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


class DiaryViewSet(BaseViewSet):
    """Diaries plus the collaboration request/review sub-resources.

    Hidden diaries always answer 404, never 403, so a locked diary's
    existence is not confirmed to viewers who may not see it.
    """

    serializer_class = DiarySerializer
    permission_classes = [DiaryAccessPermission]
    queryset = Diary.objects.select_related("owner")
    lookup_value_regex = r"\d+"

    @property
    def viewer(self):
        return as_viewer(self.request.user)

    def get_object(self):
        diary = DiaryService.get_visible_diary(self.kwargs[self.lookup_field], self.viewer)
        self.check_object_permissions(self.request, diary)
        return diary

    # Consulted by DiaryAccessPermission for the edit policy.
    def get_collaboration_status(self, diary, user):
        return DiaryService.collaboration_status_for(diary, user)

    def list(self, request):
        """List an author's visible diaries (?user= / ?user_id=), or the maintainer home feed."""
        params = request.query_params
        data = DiaryService.list_diaries(
            self.viewer,
            username=params.get("user") or params.get("username"),
            user_id=params.get("user_id"),
        )
        return api_response(data)

    def retrieve(self, request, pk=None):
        """Return one diary with permissions, editors and (for reviewers) pending editors."""
        return api_response(DiaryService.get_diary_with_permissions(pk, self.viewer))

    def create(self, request):
        """Create a diary; staff may file it under another user's name."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        owner = serializer.validated_data.pop("owner_username", None)
        if owner is not None and owner.pk != request.user.pk and not request.user.is_staff_member:
            raise PermissionDenied("Only admins and maintainers may create diaries for other users.")

        diary = serializer.save(owner=owner or request.user)
        logger.info("Diary %s created by %s for %s", diary.pk, request.user.pk, diary.owner_id)
        return api_response(DiarySerializer(diary).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        """Update content; locking or unlocking needs the owner or a maintainer."""
        diary = self.get_object()
        serializer = self.get_serializer(diary, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        requested_lock = serializer.validated_data.get("is_locked", diary.is_locked)
        if requested_lock != diary.is_locked and not can_change_lock(diary, self.viewer):
            raise PermissionDenied("Only the author or a maintainer may lock or unlock this diary.")

        serializer.save()
        return api_response(DiaryService.get_diary_with_permissions(diary.pk, self.viewer))

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        diary = self.get_object()
        diary_id = diary.pk
        diary.delete()
        logger.info("Diary %s deleted by %s", diary_id, request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="collaborations/mine")
    def my_collaborations(self, request):
        """Diaries the caller co-edits as an approved collaborator."""
        return api_response(DiaryService.list_collaborations(self.viewer))

    @action(detail=True, methods=["post"], url_path="collaborators")
    def request_collaboration(self, request, pk=None):
        """Ask to co-edit; 201 when a request was filed or refiled, 200 when nothing changed."""
        result = CollaborationService.request_collaboration(pk, self.viewer)
        code = status.HTTP_201_CREATED if result.changed else status.HTTP_200_OK
        return api_response(result.as_dict(), status=code)

    @action(detail=True, methods=["patch"], url_path=rf"collaborators/(?P<user_id>{UUID_PATTERN})")
    def review_collaboration(self, request, pk=None, user_id=None):
        """Approve, reject or revoke a collaborator."""
        serializer = CollaborationReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = CollaborationService.review_collaboration(
            pk, user_id, serializer.validated_data["action"], self.viewer
        )
        return api_response(result)


__all__ = ["DiaryViewSet"]

"""DRF permission class mapping HTTP methods onto the diary policies."""

from rest_framework import permissions

from .policies import as_viewer, can_delete_diary, can_edit_diary, can_view_diary


class DiaryAccessPermission(permissions.BasePermission):
    """Check diary access for the requesting user.

    Reads are open to anonymous viewers; visibility of individual diaries is
    enforced by the view's queryset so hidden diaries surface as 404. Writes
    require an authenticated user and then the edit or delete policy.

    Views using this class must provide ``get_collaboration_status(diary,
    user)`` so the edit policy can see the caller's collaboration request.
    """

    message = "You do not have permission to modify this diary."

    def has_permission(self, request, view) -> bool:
        if request.method in permissions.SAFE_METHODS:
            return True
        return as_viewer(getattr(request, "user", None)) is not None

    def has_object_permission(self, request, view, obj) -> bool:
        viewer = as_viewer(getattr(request, "user", None))

        if request.method in permissions.SAFE_METHODS:
            return can_view_diary(obj, viewer)
        if viewer is None:
            return False
        if request.method in ("PUT", "PATCH"):
            return can_edit_diary(obj, viewer, self._collaboration_status(view, obj, viewer))
        if request.method == "DELETE":
            return can_delete_diary(obj, viewer)
        return False

    @staticmethod
    def _collaboration_status(view, obj, viewer):
        lookup = getattr(view, "get_collaboration_status", None)
        if lookup is None:
            return None
        return lookup(obj, viewer)


__all__ = ["DiaryAccessPermission"]

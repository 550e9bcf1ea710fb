"""HTTP tests for diary endpoints and the collaboration workflow."""

from __future__ import annotations

from django.test import override_settings
from rest_framework.test import APIClient

from access_control.roles import Role
from access_control.states import CollaborationStatus
from diaries.models import CollaborationRequest, Diary
from tests.utils import FakeRedisTestCase, auth_client, create_user


class DiaryApiTests(FakeRedisTestCase):
    """Visibility, edit, lock and delete rules through the REST surface."""

    @classmethod
    def setUpTestData(cls):
        cls.owner = create_user("owner")
        cls.other = create_user("other")
        cls.admin = create_user("admin", role=Role.ADMIN)
        cls.maintainer = create_user("maint", role=Role.MAINTAINER)
        cls.public = Diary.objects.create(owner=cls.owner, title="Public", content="open")
        cls.private = Diary.objects.create(owner=cls.owner, title="Private", content="shh", is_locked=True)

    def setUp(self):
        self.anonymous = APIClient()

    def test_anonymous_reads_public_diary_with_permissions(self):
        response = self.anonymous.get(f"/diaries/{self.public.pk}/")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["errors"], [])
        self.assertEqual(body["data"]["title"], "Public")
        self.assertEqual(body["data"]["owner"]["username"], "owner")
        self.assertEqual(
            body["data"]["permissions"],
            {
                "canEdit": False,
                "isOwner": False,
                "isMaintainer": False,
                "isAdmin": False,
                "collaborationStatus": "none",
            },
        )
        self.assertEqual(body["data"]["editors"], [])
        self.assertNotIn("pending_editors", body["data"])

    def test_locked_diary_is_not_found_for_outsiders(self):
        for client in (self.anonymous, auth_client(self.other), auth_client(self.admin)):
            response = client.get(f"/diaries/{self.private.pk}/")
            self.assertEqual(response.status_code, 404)
            self.assertIsNone(response.json()["data"])

    def test_locked_diary_same_answer_as_missing_diary(self):
        hidden = self.anonymous.get(f"/diaries/{self.private.pk}/")
        missing = self.anonymous.get("/diaries/999999/")

        self.assertEqual(hidden.status_code, missing.status_code)
        self.assertEqual(hidden.json(), missing.json())

    def test_locked_diary_visible_to_owner_and_maintainer(self):
        owner_view = auth_client(self.owner).get(f"/diaries/{self.private.pk}/").json()["data"]
        maint_view = auth_client(self.maintainer).get(f"/diaries/{self.private.pk}/").json()["data"]

        self.assertEqual(owner_view["permissions"]["collaborationStatus"], "owner")
        self.assertTrue(owner_view["permissions"]["canEdit"])
        self.assertEqual(maint_view["permissions"]["collaborationStatus"], "staff")
        self.assertTrue(maint_view["permissions"]["isMaintainer"])

    def test_list_hides_locked_diaries(self):
        by_owner = {"user": "owner"}
        anon_titles = [d["title"] for d in self.anonymous.get("/diaries/", by_owner).json()["data"]]
        owner_titles = [d["title"] for d in auth_client(self.owner).get("/diaries/", by_owner).json()["data"]]
        admin_titles = [d["title"] for d in auth_client(self.admin).get("/diaries/", by_owner).json()["data"]]

        self.assertEqual(anon_titles, ["Public"])
        self.assertEqual(admin_titles, ["Public"])
        self.assertCountEqual(owner_titles, ["Public", "Private"])

    @override_settings(MAINTAINER_USERNAME="maint")
    def test_home_feed_lists_maintainer_diaries(self):
        feed = Diary.objects.create(owner=self.maintainer, title="Announcements", content="...")
        Diary.objects.create(owner=self.maintainer, title="Notes", content="...", is_locked=True)

        anon_titles = [d["title"] for d in self.anonymous.get("/diaries/").json()["data"]]
        maint_titles = [d["title"] for d in auth_client(self.maintainer).get("/diaries/").json()["data"]]

        self.assertEqual(anon_titles, [feed.title])
        self.assertCountEqual(maint_titles, ["Announcements", "Notes"])

    @override_settings(MAINTAINER_USERNAME="nobody")
    def test_home_feed_empty_without_maintainer_account(self):
        response = self.anonymous.get("/diaries/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"], [])

    def test_list_by_author_includes_co_edited_diaries(self):
        CollaborationRequest.objects.create(
            diary=self.public, user=self.other, status=CollaborationStatus.APPROVED
        )
        own = Diary.objects.create(owner=self.other, title="Mine", content="...")

        by_name = self.anonymous.get("/diaries/", {"user": "other"}).json()["data"]
        by_id = self.anonymous.get("/diaries/", {"user_id": str(self.other.id)}).json()["data"]

        self.assertCountEqual([d["id"] for d in by_name], [self.public.pk, own.pk])
        self.assertEqual([d["id"] for d in by_name], [d["id"] for d in by_id])

    def test_list_unknown_author_404(self):
        self.assertEqual(self.anonymous.get("/diaries/", {"user": "ghost"}).status_code, 404)
        self.assertEqual(self.anonymous.get("/diaries/", {"user_id": "not-a-uuid"}).status_code, 404)

    def test_create_diary(self):
        response = auth_client(self.other).post(
            "/diaries/", {"title": "New", "content": "first entry"}, format="json"
        )
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["data"]["owner"]["id"], str(self.other.id))
        self.assertTrue(Diary.objects.filter(title="New", owner=self.other).exists())

    def test_create_requires_authentication(self):
        response = self.anonymous.post("/diaries/", {"title": "New", "content": "x"}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertFalse(Diary.objects.filter(title="New").exists())

    def test_create_on_behalf_needs_staff(self):
        payload = {"title": "Ghostwritten", "content": "x", "owner_username": "owner"}

        denied = auth_client(self.other).post("/diaries/", payload, format="json")
        allowed = auth_client(self.admin).post("/diaries/", payload, format="json")

        self.assertEqual(denied.status_code, 403)
        self.assertEqual(allowed.status_code, 201)
        self.assertEqual(Diary.objects.get(title="Ghostwritten").owner, self.owner)

    def test_edit_matrix_on_unlocked_diary(self):
        for user, expected in ((self.owner, 200), (self.admin, 200), (self.maintainer, 200), (self.other, 403)):
            response = auth_client(user).patch(
                f"/diaries/{self.public.pk}/", {"content": f"by {user.username}"}, format="json"
            )
            self.assertEqual(response.status_code, expected, user.username)

        self.public.refresh_from_db()
        self.assertEqual(self.public.content, "by maint")

    def test_edit_response_carries_permissions(self):
        response = auth_client(self.owner).patch(
            f"/diaries/{self.public.pk}/", {"title": "Renamed"}, format="json"
        )
        data = response.json()["data"]

        self.assertEqual(data["title"], "Renamed")
        self.assertTrue(data["permissions"]["isOwner"])

    def test_anonymous_edit_is_unauthenticated(self):
        response = self.anonymous.patch(f"/diaries/{self.public.pk}/", {"title": "x"}, format="json")

        self.assertEqual(response.status_code, 401)

    def test_hidden_diary_edit_is_not_found(self):
        response = auth_client(self.admin).patch(f"/diaries/{self.private.pk}/", {"title": "x"}, format="json")

        self.assertEqual(response.status_code, 404)

    def test_lock_toggle_owner_and_maintainer_only(self):
        admin_response = auth_client(self.admin).patch(
            f"/diaries/{self.public.pk}/", {"is_locked": True}, format="json"
        )
        self.assertEqual(admin_response.status_code, 403)
        self.public.refresh_from_db()
        self.assertFalse(self.public.is_locked)

        maint_response = auth_client(self.maintainer).patch(
            f"/diaries/{self.public.pk}/", {"is_locked": True}, format="json"
        )
        self.assertEqual(maint_response.status_code, 200)

        owner_response = auth_client(self.owner).patch(
            f"/diaries/{self.public.pk}/", {"is_locked": False}, format="json"
        )
        self.assertEqual(owner_response.status_code, 200)
        self.public.refresh_from_db()
        self.assertFalse(self.public.is_locked)

    def test_delete_rules(self):
        self.assertEqual(auth_client(self.other).delete(f"/diaries/{self.public.pk}/").status_code, 403)
        self.assertEqual(auth_client(self.admin).delete(f"/diaries/{self.private.pk}/").status_code, 404)

        response = auth_client(self.admin).delete(f"/diaries/{self.public.pk}/")

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Diary.objects.filter(pk=self.public.pk).exists())

    def test_schema_is_served(self):
        response = self.anonymous.get("/schema/")

        self.assertEqual(response.status_code, 200)


class CollaborationApiTests(FakeRedisTestCase):
    """Request and review endpoints, plus the lock scenario end to end."""

    @classmethod
    def setUpTestData(cls):
        cls.u1 = create_user("u1")
        cls.u2 = create_user("u2")
        cls.outsider = create_user("outsider")
        cls.admin = create_user("admin", role=Role.ADMIN)
        cls.maintainer = create_user("maint", role=Role.MAINTAINER)
        cls.diary = Diary.objects.create(owner=cls.u1, title="Shared", content="...")

    def _request(self, user, diary=None):
        return auth_client(user).post(f"/diaries/{(diary or self.diary).pk}/collaborators/")

    def _review(self, reviewer, target, action):
        return auth_client(reviewer).patch(
            f"/diaries/{self.diary.pk}/collaborators/{target.id}/", {"action": action}, format="json"
        )

    def _permissions(self, user):
        return auth_client(user).get(f"/diaries/{self.diary.pk}/").json()["data"]["permissions"]

    def test_request_is_created_then_idempotent(self):
        first = self._request(self.u2)
        second = self._request(self.u2)

        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.json()["data"]["status"], CollaborationStatus.PENDING)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.json()["data"]["status"], CollaborationStatus.PENDING)
        self.assertEqual(CollaborationRequest.objects.filter(diary=self.diary, user=self.u2).count(), 1)

    def test_owner_request_is_forbidden(self):
        response = self._request(self.u1)

        self.assertEqual(response.status_code, 403)
        self.assertTrue(response.json()["errors"])

    def test_anonymous_request_is_unauthenticated(self):
        response = APIClient().post(f"/diaries/{self.diary.pk}/collaborators/")

        self.assertEqual(response.status_code, 401)

    def test_lock_scenario_end_to_end(self):
        self._request(self.u2)
        self.assertEqual(self._permissions(self.u2)["collaborationStatus"], "pending")

        approve = self._review(self.u1, self.u2, "approve")
        self.assertEqual(approve.status_code, 200)
        self.assertEqual(approve.json()["data"]["status"], CollaborationStatus.APPROVED)
        self.assertTrue(self._permissions(self.u2)["canEdit"])

        lock = auth_client(self.maintainer).patch(
            f"/diaries/{self.diary.pk}/", {"is_locked": True}, format="json"
        )
        self.assertEqual(lock.status_code, 200)

        # The collaborator can no longer even see the diary; edits are refused.
        self.assertEqual(auth_client(self.u2).get(f"/diaries/{self.diary.pk}/").status_code, 404)
        self.assertEqual(
            auth_client(self.u2).patch(f"/diaries/{self.diary.pk}/", {"title": "x"}, format="json").status_code,
            404,
        )
        self.assertTrue(self._permissions(self.u1)["canEdit"])
        self.assertTrue(self._permissions(self.maintainer)["canEdit"])
        self.assertEqual(auth_client(self.admin).get(f"/diaries/{self.diary.pk}/").status_code, 404)

    def test_pending_editors_only_for_reviewers(self):
        self._request(self.u2)

        for reviewer in (self.u1, self.admin, self.maintainer):
            data = auth_client(reviewer).get(f"/diaries/{self.diary.pk}/").json()["data"]
            self.assertEqual([e["username"] for e in data["pending_editors"]], ["u2"])

        for viewer in (self.u2, self.outsider):
            data = auth_client(viewer).get(f"/diaries/{self.diary.pk}/").json()["data"]
            self.assertNotIn("pending_editors", data)
        self.assertNotIn("pending_editors", APIClient().get(f"/diaries/{self.diary.pk}/").json()["data"])

    def test_approved_editors_are_listed(self):
        self._request(self.u2)
        self._review(self.admin, self.u2, "approve")

        data = APIClient().get(f"/diaries/{self.diary.pk}/").json()["data"]

        self.assertEqual([e["username"] for e in data["editors"]], ["u2"])

    def test_reject_and_rerequest(self):
        self._request(self.u2)
        reject = self._review(self.u1, self.u2, "reject")
        self.assertEqual(reject.json()["data"]["message"], "Request rejected.")

        again = self._request(self.u2)

        self.assertEqual(again.status_code, 201)
        row = CollaborationRequest.objects.get(diary=self.diary, user=self.u2)
        self.assertEqual(row.status, CollaborationStatus.PENDING)
        self.assertIsNone(row.approved_by_id)

    def test_revoke_removes_edit(self):
        self._request(self.u2)
        self._review(self.u1, self.u2, "approve")

        revoke = self._review(self.maintainer, self.u2, "revoke")

        self.assertEqual(revoke.status_code, 200)
        self.assertEqual(self._permissions(self.u2), {
            "canEdit": False,
            "isOwner": False,
            "isMaintainer": False,
            "isAdmin": False,
            "collaborationStatus": "revoked",
        })

    def test_review_without_standing_is_forbidden(self):
        self._request(self.u2)

        response = self._review(self.outsider, self.u2, "approve")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            CollaborationRequest.objects.get(diary=self.diary, user=self.u2).status,
            CollaborationStatus.PENDING,
        )

    def test_review_missing_request_is_not_found(self):
        response = self._review(self.u1, self.outsider, "approve")

        self.assertEqual(response.status_code, 404)

    def test_review_invalid_action(self):
        self._request(self.u2)

        response = self._review(self.u1, self.u2, "promote")

        self.assertEqual(response.status_code, 400)

    def test_my_collaborations(self):
        other_diary = Diary.objects.create(owner=self.outsider, title="Other", content="...")
        self._request(self.u2)
        self._request(self.u2, other_diary)
        self._review(self.u1, self.u2, "approve")

        response = auth_client(self.u2).get("/diaries/collaborations/mine/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([d["id"] for d in response.json()["data"]], [self.diary.pk])
        self.assertEqual(APIClient().get("/diaries/collaborations/mine/").status_code, 401)

"""Seed the maintainer account, demo users, and demo diaries."""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from access_control.roles import Role
from access_control.states import CollaborationStatus
from authentication.managers import UserManager
from diaries.models import CollaborationRequest, Diary

DEMO_USERS = {
    "admin": ("demo_admin", "admin@example.com", "adminpass", Role.ADMIN),
    "writer": ("demo_writer", "writer@example.com", "writerpass", Role.REGULAR),
    "reader": ("demo_reader", "reader@example.com", "readerpass", Role.REGULAR),
}


def ensure_maintainer():
    """Create the configured maintainer unless some maintainer already exists.

    Returns the created user, or ``None`` when a maintainer was already present.
    """
    User = get_user_model()
    if User.objects.filter(role=Role.MAINTAINER).exists():
        return None
    return User.objects.create_superuser(
        settings.MAINTAINER_USERNAME,
        settings.MAINTAINER_EMAIL,
        settings.MAINTAINER_PASSWORD,
    )


def create_demo_users() -> dict:
    """Create demo admin/regular users and return a key->User map."""
    User = get_user_model()
    users = {}
    for key, (username, email, password, role) in DEMO_USERS.items():
        user, _ = User.objects.get_or_create(
            username=username,
            defaults={
                "email": email,
                "display_name": username.replace("_", " ").title(),
                "role": role,
                "password_hash": UserManager.hash_password(password),
            },
        )
        users[key] = user
    return users


def create_demo_diaries(users: dict) -> list:
    """Create one public and one locked diary plus an approved collaborator."""
    writer, reader, admin = users["writer"], users["reader"], users["admin"]

    public, _ = Diary.objects.get_or_create(
        title="Field notes",
        owner=writer,
        defaults={"content": "An open diary anyone may read."},
    )
    locked, _ = Diary.objects.get_or_create(
        title="Private drafts",
        owner=writer,
        defaults={"content": "Only the author and maintainers see this.", "is_locked": True},
    )
    CollaborationRequest.objects.get_or_create(
        diary=public,
        user=reader,
        defaults={
            "status": CollaborationStatus.APPROVED,
            "approved_by": admin,
            "approved_at": timezone.now(),
        },
    )
    return [public, locked]


class Command(BaseCommand):
    """Management command to seed accounts and sample diaries."""

    help = (
        "Ensure a maintainer account exists and create demo users and diaries. "
        "Use --reset to clear previously seeded demo data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the demo users (and their diaries) before seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self._reset_seeded_data()

        self.stdout.write("Seeding platform data...")
        maintainer = ensure_maintainer()
        if maintainer is not None:
            self.stdout.write(f"Created maintainer {maintainer.username}.")
        users = create_demo_users()
        create_demo_diaries(users)
        self.stdout.write(self.style.SUCCESS("Platform seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove demo users; their diaries and requests cascade with them.

        The maintainer account is never touched.
        """
        User = get_user_model()
        usernames = [username for username, *_ in DEMO_USERS.values()]
        User.objects.filter(username__in=usernames).delete()
        self.stdout.write(self.style.WARNING("Seeded demo data cleared."))

"""Custom user manager handling bcrypt hashing and verification."""

import uuid

import bcrypt
from django.contrib.auth.base_user import BaseUserManager

from access_control.roles import Role


class UserManager(BaseUserManager):
    """Manager to create users with bcrypt password hashes."""

    use_in_migrations = True

    def _create_user(self, username: str, email: str, password: str, **extra_fields):
        if not username:
            raise ValueError("The Username must be set")
        if not email:
            raise ValueError("The Email must be set")
        email = self.normalize_email(email)
        extra_fields.setdefault("display_name", username)
        user = self.model(id=uuid.uuid4(), username=username, email=email, **extra_fields)
        user.password_hash = self.hash_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, username: str, email: str, password: str | None = None, **extra_fields):
        """Create a regular user with bcrypt-hashed password."""
        extra_fields.setdefault("role", Role.REGULAR)
        if password is None:
            raise ValueError("Password must be provided")
        return self._create_user(username, email, password, **extra_fields)

    def create_superuser(self, username: str, email: str, password: str, **extra_fields):
        """Create a maintainer, the top trust tier of the site."""
        extra_fields["role"] = Role.MAINTAINER
        return self._create_user(username, email, password, **extra_fields)

    def get_by_login(self, login: str):
        """Fetch a user by username or email (raises ``DoesNotExist``)."""
        if "@" in login:
            return self.get(email__iexact=login)
        return self.get(username=login)

    @staticmethod
    def hash_password(raw_password: str) -> str:
        """Hash a raw password using bcrypt and return the utf-8 string."""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(raw_password.encode(), salt)
        return hashed.decode()

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        """Verify raw password against stored bcrypt hash."""

        if not user.password_hash:
            return False
        return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode("utf-8"))


__all__ = ["UserManager"]

"""
User Service

Account lookup, upsert on first authentication, local registration and
profile edits.
"""
import logging
from typing import Optional

from tortoise.expressions import Q

from studyshare.core.errors import Conflict, ValidationFailure
from studyshare.core.security import hash_password, verify_password
from studyshare.models import User

logger = logging.getLogger(__name__)

# Fields an identity-provider login is allowed to overwrite
PROFILE_FIELDS = ("email", "username", "first_name", "last_name", "profile_image_url")


class UserService:
    async def get_user(self, user_id) -> Optional[User]:
        return await User.get_or_none(id=user_id)

    async def upsert_user(
        self,
        user_id,
        email: str,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> User:
        """
        Insert the user, or overwrite their mutable profile fields if the id exists.

        Called when a token for an unknown subject is first presented. Only
        non-None values overwrite stored fields.

        Raises:
            ValidationFailure: No email supplied
            Conflict: Email or username already belongs to a different user
        """
        if not email:
            raise ValidationFailure("Email is required")
        values = {
            "email": email,
            "username": username,
            "first_name": first_name,
            "last_name": last_name,
            "profile_image_url": profile_image_url,
        }
        defaults = {k: v for k, v in values.items() if v is not None}

        taken = Q(email=email)
        if username:
            taken |= Q(username=username)
        if await User.filter(taken).exclude(id=user_id).exists():
            raise Conflict("Email or username already belongs to another account")

        user, created = await User.update_or_create(defaults=defaults, id=user_id)
        if created:
            logger.info("[Users] Created user %s (%s) on first login", user.id, user.email)
        return user

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        major: Optional[str] = None,
    ) -> User:
        """
        Create a local account with a hashed password.

        Raises:
            ValidationFailure: Missing fields, or username/email already registered
        """
        username = (username or "").strip()
        email = (email or "").strip()
        if not username or not email or not password:
            raise ValidationFailure("username, email and password are required")
        if await User.exists(username=username):
            raise ValidationFailure("Username already exists")
        if await User.exists(email=email):
            raise ValidationFailure("Email already registered")

        user = await User.create(
            username=username,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            major=major,
        )
        logger.info("[Users] Registered %s (%s)", user.id, user.username)
        return user

    async def authenticate(self, login: str, password: str) -> Optional[User]:
        """Look up by username or email and check the password; None on any mismatch."""
        user = await User.get_or_none(Q(username=login) | Q(email=login))
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def update_profile(
        self,
        user: User,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        major: Optional[str] = None,
    ) -> User:
        for field, value in (("first_name", first_name), ("last_name", last_name), ("major", major)):
            if value is not None:
                setattr(user, field, value.strip() or None)
        await user.save()
        return user

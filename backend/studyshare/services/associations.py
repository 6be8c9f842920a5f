"""
Favorite and Tag association services.

Both are idempotent set-membership operations over a join table: adding an
existing pair is a no-op, removing a missing pair reports False instead of
raising.
"""
import logging
from typing import List, Optional, Tuple

from tortoise.backends.base.client import BaseDBAsyncClient

from studyshare.core.errors import NotFound, ValidationFailure
from studyshare.models import Favorite, Resource, ResourceTag, Tag, User

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 64


class FavoriteService:
    """User bookmarks on resources."""

    async def add_favorite(self, user: User, resource_id) -> Tuple[Favorite, bool]:
        """
        Bookmark a resource for a user (insert-if-absent).

        Returns:
            (favorite, created) where created is False if it already existed

        Raises:
            NotFound: Unknown resource id
        """
        if not await Resource.exists(id=resource_id):
            raise NotFound("Resource not found")
        return await Favorite.get_or_create(user_id=user.id, resource_id=resource_id)

    async def remove_favorite(self, user: User, resource_id) -> bool:
        """Delete the bookmark if present; True when a row was removed."""
        deleted = await Favorite.filter(user_id=user.id, resource_id=resource_id).delete()
        return deleted > 0

    async def is_favorite(self, user: User, resource_id) -> bool:
        return await Favorite.exists(user_id=user.id, resource_id=resource_id)

    async def list_favorites(self, user: User) -> List[Resource]:
        """The user's bookmarked resources, most recently bookmarked first, active only."""
        favorites = await (
            Favorite.filter(user_id=user.id, resource__is_active=True)
            .order_by("-created_at", "-id")
            .prefetch_related("resource__uploaded_by")
        )
        return [f.resource for f in favorites]


class TagService:
    """Tag vocabulary plus the resource <-> tag join."""

    @staticmethod
    def normalize_name(name: Optional[str]) -> str:
        """
        Strip surrounding whitespace and validate a tag name.

        Raises:
            ValidationFailure: Blank or longer than MAX_TAG_LENGTH
        """
        name = (name or "").strip()
        if not name:
            raise ValidationFailure("Tag name is required")
        if len(name) > MAX_TAG_LENGTH:
            raise ValidationFailure(f"Tag name must be at most {MAX_TAG_LENGTH} characters")
        return name

    async def get_or_create_tag(self, name: str, using_db: Optional[BaseDBAsyncClient] = None) -> Tag:
        tag, created = await Tag.get_or_create(name=self.normalize_name(name), using_db=using_db)
        if created:
            logger.info("[Tags] Created tag %r", tag.name)
        return tag

    async def list_tags(self) -> List[Tag]:
        return await Tag.all().order_by("name")

    async def tags_for_resource(self, resource_id) -> List[Tag]:
        links = await ResourceTag.filter(resource_id=resource_id).order_by("created_at", "id").prefetch_related("tag")
        return [link.tag for link in links]

    async def add_tag_to_resource(self, resource: Resource, name: str) -> Tag:
        """
        Get-or-create the tag and attach it to the resource.

        The caller is responsible for the ownership check
        (ResourceService.get_owned_resource). Attaching twice is a no-op.
        """
        tag = await self.get_or_create_tag(name)
        await ResourceTag.get_or_create(resource_id=resource.id, tag_id=tag.id)
        return tag

    async def remove_tag_from_resource(self, resource: Resource, tag_id) -> bool:
        """Detach a tag; True when a join row was removed."""
        deleted = await ResourceTag.filter(resource_id=resource.id, tag_id=tag_id).delete()
        return deleted > 0

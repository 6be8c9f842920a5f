"""
Resource Query Service

Listings, detail lookups, download accounting and owner-only mutations for
study resources.
"""
import datetime as dt
import logging
from typing import List, Optional, Sequence

from tortoise.expressions import F, Q
from tortoise.transactions import in_transaction

from studyshare.core.errors import Forbidden, NotFound, ValidationFailure
from studyshare.models import Resource, ResourceTag, User
from studyshare.services.associations import TagService

logger = logging.getLogger(__name__)

# sortBy -> ORDER BY columns. Every mode ends on a secondary key so rows with
# equal sort keys come back in a fixed order and pages never overlap. Value
# sorts fall back to insertion order, and id breaks any remaining tie.
SORT_ORDERINGS = {
    "newest": ("-created_at", "id"),
    "oldest": ("created_at", "id"),
    "rating": ("-average_rating", "created_at", "id"),
    "downloads": ("-download_count", "created_at", "id"),
}
SORT_ALIASES = {"relevance": "newest"}

EDITABLE_FIELDS = ("title", "description", "subject", "semester")


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ResourceService:
    """
    Query and mutation entry points for the resources table.

    Listing only ever returns active resources; detail lookups by id do not
    filter on is_active, so a soft-deleted resource stays reachable by a
    direct link.
    """

    def __init__(self, tags: TagService):
        self._tags = tags

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def list_resources(
        self,
        subject: Optional[str] = None,
        semester: Optional[str] = None,
        min_rating: Optional[float] = None,
        search: Optional[str] = None,
        uploaded_by_id: Optional[str] = None,
        sort_by: str = "newest",
        limit: int = 50,
        offset: int = 0,
    ) -> List[Resource]:
        """
        Filtered, sorted, paginated listing of active resources.

        Args:
            subject: Exact subject match
            semester: Exact semester match
            min_rating: Inclusive lower bound on the stored average rating
            search: Case-insensitive substring of title OR description
            uploaded_by_id: Only resources uploaded by this user
            sort_by: newest | oldest | rating | downloads ("relevance" = newest)
            limit: Page size
            offset: Rows to skip

        Returns:
            List of Resource rows with uploaded_by prefetched (possibly empty)
        """
        sort_by = SORT_ALIASES.get(sort_by, sort_by)
        if sort_by not in SORT_ORDERINGS:
            raise ValidationFailure(f"Unsupported sort order: {sort_by}")
        if limit < 0 or offset < 0:
            raise ValidationFailure("limit and offset must be non-negative")

        qs = Resource.filter(is_active=True)
        if subject:
            qs = qs.filter(subject=subject)
        if semester:
            qs = qs.filter(semester=semester)
        if min_rating is not None:
            qs = qs.filter(average_rating__gte=min_rating)
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
        if uploaded_by_id:
            qs = qs.filter(uploaded_by_id=uploaded_by_id)

        return await (
            qs.order_by(*SORT_ORDERINGS[sort_by])
            .offset(offset)
            .limit(limit)
            .prefetch_related("uploaded_by")
        )

    async def get_resource(self, resource_id) -> Resource:
        """Plain lookup by id, active or not. Raises NotFound."""
        resource = await Resource.get_or_none(id=resource_id)
        if resource is None:
            raise NotFound("Resource not found")
        return resource

    async def get_resource_detail(self, resource_id) -> Resource:
        """
        Resource joined with its uploader, ratings (with raters) and tags.

        Raises:
            NotFound: No resource has this id
        """
        resource = await Resource.get_or_none(id=resource_id).prefetch_related(
            "uploaded_by", "ratings__user", "resource_tags__tag"
        )
        if resource is None:
            raise NotFound("Resource not found")
        return resource

    async def get_owned_resource(self, resource_id, acting_user: User) -> Resource:
        """Lookup plus ownership check used by every owner-only mutation."""
        resource = await self.get_resource(resource_id)
        if str(resource.uploaded_by_id) != str(acting_user.id):
            raise Forbidden("Not authorized to modify this resource")
        return resource

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def create_resource(
        self,
        uploader: User,
        *,
        title: Optional[str],
        subject: Optional[str],
        file_type: str,
        file_name: str,
        file_size: int,
        file_path: str,
        description: Optional[str] = None,
        semester: Optional[str] = None,
        tags: Sequence[str] = (),
    ) -> Resource:
        """
        Persist a new resource and, optionally, associate tags with it.

        Counters start at zero and the resource starts active. Tag names are
        get-or-created and joined in the same transaction as the insert.

        Raises:
            ValidationFailure: Missing title/subject or bad file metadata
        """
        title = _clean(title)
        subject = _clean(subject)
        errors = []
        if not title:
            errors.append({"field": "title", "message": "Title is required"})
        if not subject:
            errors.append({"field": "subject", "message": "Subject is required"})
        if not file_name or not file_type or not file_path:
            errors.append({"field": "file", "message": "File metadata is incomplete"})
        if file_size is None or file_size < 0:
            errors.append({"field": "fileSize", "message": "File size must be non-negative"})
        if errors:
            raise ValidationFailure("Invalid resource data", errors=errors)

        async with in_transaction() as conn:
            resource = await Resource.create(
                title=title,
                description=_clean(description),
                subject=subject,
                semester=_clean(semester),
                file_type=file_type,
                file_name=file_name,
                file_size=file_size,
                file_path=file_path,
                uploaded_by=uploader,
                using_db=conn,
            )
            for name in dict.fromkeys(n.strip() for n in tags if n and n.strip()):
                tag = await self._tags.get_or_create_tag(name, using_db=conn)
                await ResourceTag.get_or_create(resource=resource, tag=tag, using_db=conn)

        logger.info("[Resources] Created %s (%s) by user %s", resource.id, resource.title, uploader.id)
        return resource

    async def update_resource(
        self,
        resource_id,
        acting_user: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        subject: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> Resource:
        """
        Partial metadata update; only the uploader may edit.

        Only fields passed as non-None change. File content and uploader are
        immutable after creation.

        Raises:
            NotFound: Unknown id
            Forbidden: acting_user is not the uploader
            ValidationFailure: title or subject set to blank
        """
        resource = await self.get_owned_resource(resource_id, acting_user)
        updates = {
            "title": title,
            "description": description,
            "subject": subject,
            "semester": semester,
        }
        for field in ("title", "subject"):
            if updates[field] is not None and not updates[field].strip():
                raise ValidationFailure(f"{field.capitalize()} cannot be blank")

        for field in EDITABLE_FIELDS:
            value = updates[field]
            if value is None:
                continue
            setattr(resource, field, value.strip() if field in ("title", "subject") else _clean(value))
        await resource.save()  # auto_now bumps updated_at
        return resource

    async def soft_delete_resource(self, resource_id, acting_user: User) -> Resource:
        """
        Mark a resource inactive. Deleting twice is not an error.

        Raises:
            NotFound: Unknown id
            Forbidden: acting_user is not the uploader
        """
        resource = await self.get_owned_resource(resource_id, acting_user)
        if resource.is_active:
            resource.is_active = False
            await resource.save()
            logger.info("[Resources] Soft-deleted %s by user %s", resource.id, acting_user.id)
        return resource

    async def increment_download_count(self, resource_id) -> None:
        """
        Add one to the download counter in a single UPDATE statement.

        The increment is computed by the database (download_count + 1), so
        concurrent downloads never lose updates.

        Raises:
            NotFound: Unknown id
        """
        updated = await Resource.filter(id=resource_id).update(
            download_count=F("download_count") + 1,
            updated_at=utc_now(),
        )
        if not updated:
            raise NotFound("Resource not found")

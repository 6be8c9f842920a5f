"""
Rating Aggregation Service

Keeps Resource.average_rating / rating_count equal to the mean and count of
the resource's Rating rows. Every write that touches ratings recomputes the
aggregate inside the same transaction, so readers never see an average that
reflects a partial rating set.
"""
import datetime as dt
import logging
from typing import List, Optional

from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.transactions import in_transaction

from studyshare.core.errors import NotFound, ValidationFailure
from studyshare.models import Rating, Resource, User

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5
MAX_REVIEW_LENGTH = 5000


async def refresh_rating_aggregate(resource_id, using_db: Optional[BaseDBAsyncClient] = None) -> Resource:
    """
    Recompute a resource's average_rating and rating_count from its ratings.

    Pass the caller's transaction as using_db so the recomputation commits
    or rolls back together with the rating write that triggered it.
    """
    scores = await Rating.filter(resource_id=resource_id).using_db(using_db).values_list("rating", flat=True)
    count = len(scores)
    average = sum(scores) / count if count else 0.0
    await Resource.filter(id=resource_id).using_db(using_db).update(
        average_rating=average,
        rating_count=count,
        updated_at=dt.datetime.now(dt.timezone.utc),
    )
    return await Resource.get(id=resource_id).using_db(using_db)


async def _lock_resource(resource_id, conn: BaseDBAsyncClient) -> Optional[Resource]:
    """SELECT ... FOR UPDATE on the resource row (a no-op on SQLite)."""
    return await Resource.select_for_update().using_db(conn).get_or_none(id=resource_id)


class RatingService:
    """Upsert/delete ratings and keep the owning resource's aggregate in sync."""

    @staticmethod
    def _validate(rating, review: Optional[str]) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationFailure("Rating must be an integer between 1 and 5")
        if not MIN_SCORE <= rating <= MAX_SCORE:
            raise ValidationFailure("Rating must be an integer between 1 and 5")
        if review is not None and len(review) > MAX_REVIEW_LENGTH:
            raise ValidationFailure(f"Review exceeds {MAX_REVIEW_LENGTH} characters")

    async def upsert_rating(self, resource_id, user: User, rating: int, review: Optional[str] = None) -> Rating:
        """
        Insert the user's rating for a resource, or overwrite it if one exists.

        Args:
            resource_id: Resource being rated
            user: Rater; at most one rating per (resource, user)
            rating: Integer score 1..5
            review: Optional review text (replaces any previous review)

        Returns:
            The stored Rating row

        Raises:
            ValidationFailure: Score out of range or review too long
            NotFound: Unknown resource id
        """
        self._validate(rating, review)
        async with in_transaction() as conn:
            # Row lock on the parent serializes raters of the same resource,
            # so each recomputation sees every rating committed before it.
            if await _lock_resource(resource_id, conn) is None:
                raise NotFound("Resource not found")
            row, created = await Rating.update_or_create(
                defaults={"rating": rating, "review": review},
                resource_id=resource_id,
                user_id=user.id,
                using_db=conn,
            )
            await refresh_rating_aggregate(resource_id, using_db=conn)
        logger.info(
            "[Ratings] %s rating %s on resource %s by user %s",
            "Created" if created else "Updated", rating, resource_id, user.id,
        )
        return row

    async def delete_rating(self, resource_id, user: User) -> bool:
        """
        Remove the user's rating for a resource.

        Returns:
            True if a row was removed (and the aggregate recomputed), False if
            the user had not rated this resource
        """
        async with in_transaction() as conn:
            if await _lock_resource(resource_id, conn) is None:
                return False
            deleted = await Rating.filter(resource_id=resource_id, user_id=user.id).using_db(conn).delete()
            if deleted:
                await refresh_rating_aggregate(resource_id, using_db=conn)
        if deleted:
            logger.info("[Ratings] Deleted rating on resource %s by user %s", resource_id, user.id)
        return deleted > 0

    async def get_rating(self, resource_id, user: User) -> Optional[Rating]:
        return await Rating.get_or_none(resource_id=resource_id, user_id=user.id)

    async def list_ratings(self, resource_id) -> List[Rating]:
        """All ratings for a resource, oldest first, raters prefetched."""
        return await Rating.filter(resource_id=resource_id).order_by("created_at", "id").prefetch_related("user")

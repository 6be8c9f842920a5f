"""
Aggregate Statistics Service

Dashboard totals, per-user totals, top contributors and trending
resources/subjects. All figures are computed over active resources only and
every empty fold yields 0 (never NaN, never an exception).

Trending numbers are ranking heuristics, not analytics:
- raw score = downloads * 0.4 + average_rating * rating_count * 0.6
- trendingScore = min(100, floor(raw score))
- growthRate compares the current window with the window of equal length
  right before it (ratings received for resources, uploads for subjects)
"""
import datetime as dt
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from studyshare.core.errors import ValidationFailure
from studyshare.models import Rating, Resource, User

logger = logging.getLogger(__name__)

DOWNLOAD_WEIGHT = 0.4
RATING_WEIGHT = 0.6
MAX_TRENDING_SCORE = 100

# timeframe -> window length; None means unbounded
TIMEFRAMES: Dict[str, Optional[dt.timedelta]] = {
    "week": dt.timedelta(days=7),
    "month": dt.timedelta(days=30),
    "all": None,
}


@dataclass
class DashboardStats:
    total_resources: int = 0
    total_downloads: int = 0
    average_rating: float = 0.0
    active_users: int = 0


@dataclass
class UserStats:
    uploaded_count: int = 0
    total_downloads: int = 0
    average_rating: float = 0.0


@dataclass
class ContributorStats:
    user: User
    resource_count: int
    total_downloads: int
    average_rating: float


@dataclass
class TrendingResource:
    resource: Resource
    raw_score: float
    trending_score: int
    growth_rate: float


@dataclass
class TrendingSubject:
    subject: str
    resource_count: int
    total_downloads: int
    growth_rate: float


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes on some driver versions
    return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)


def raw_trending_score(download_count: int, average_rating: float, rating_count: int) -> float:
    return (download_count or 0) * DOWNLOAD_WEIGHT + (average_rating or 0) * (rating_count or 0) * RATING_WEIGHT


def display_trending_score(raw_score: float) -> int:
    """Clamp a raw score into the 0-100 badge range."""
    return min(MAX_TRENDING_SCORE, math.floor(raw_score))


def growth_rate(current: int, previous: int) -> float:
    """
    Period-over-period change in percent.

    100.0 when there was nothing before and something now, 0.0 when both
    periods are empty.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def resolve_window(timeframe: str, now: dt.datetime) -> Tuple[Optional[dt.datetime], Optional[dt.datetime]]:
    """
    Translate a timeframe name into (window_start, previous_window_start).

    Both are None for "all".

    Raises:
        ValidationFailure: Unknown timeframe
    """
    if timeframe not in TIMEFRAMES:
        raise ValidationFailure(f"Unsupported timeframe: {timeframe}")
    span = TIMEFRAMES[timeframe]
    if span is None:
        return None, None
    return now - span, now - 2 * span


class StatsService:
    """Read-only aggregate folds over the resources and ratings tables."""

    @staticmethod
    def _fold(rows: Iterable[dict]) -> Tuple[int, int, float, set]:
        count = 0
        downloads = 0
        ratings = []
        uploaders = set()
        for row in rows:
            count += 1
            downloads += row["download_count"] or 0
            ratings.append(row["average_rating"] or 0.0)
            uploaders.add(str(row["uploaded_by_id"]))
        return count, downloads, _mean(ratings), uploaders

    async def dashboard_stats(self) -> DashboardStats:
        """Totals across all active resources."""
        rows = await Resource.filter(is_active=True).values("download_count", "average_rating", "uploaded_by_id")
        count, downloads, average, uploaders = self._fold(rows)
        return DashboardStats(
            total_resources=count,
            total_downloads=downloads,
            average_rating=average,
            active_users=len(uploaders),
        )

    async def user_stats(self, user: User) -> UserStats:
        """Same totals as the dashboard, scoped to one uploader."""
        rows = await Resource.filter(is_active=True, uploaded_by_id=user.id).values(
            "download_count", "average_rating", "uploaded_by_id"
        )
        count, downloads, average, _ = self._fold(rows)
        return UserStats(uploaded_count=count, total_downloads=downloads, average_rating=average)

    async def top_contributors(self, limit: int = 10) -> List[ContributorStats]:
        """
        Uploaders ranked by resource count, then downloads, then mean rating.

        Only uploaders with at least one active resource appear; users who
        merely rate or bookmark are never listed.
        """
        rows = await Resource.filter(is_active=True).order_by("created_at").values(
            "uploaded_by_id", "download_count", "average_rating"
        )
        grouped: Dict[str, list] = defaultdict(list)
        for row in rows:
            grouped[str(row["uploaded_by_id"])].append(row)
        if not grouped:
            return []

        users = {str(u.id): u for u in await User.filter(id__in=list(grouped))}
        contributors = [
            ContributorStats(
                user=users[user_id],
                resource_count=len(items),
                total_downloads=sum(r["download_count"] or 0 for r in items),
                average_rating=_mean([r["average_rating"] or 0.0 for r in items]),
            )
            for user_id, items in grouped.items()
            if user_id in users
        ]
        contributors.sort(
            key=lambda c: (c.resource_count, c.total_downloads, c.average_rating),
            reverse=True,
        )
        return contributors[:limit]

    async def trending_resources(
        self, timeframe: str = "week", limit: int = 10, now: Optional[dt.datetime] = None
    ) -> List[TrendingResource]:
        """
        Active resources created inside the window, ranked by trending score.

        Ties keep creation order. growth_rate is the change in ratings
        received during the window versus the preceding window (0 for "all").
        """
        now = now or dt.datetime.now(dt.timezone.utc)
        start, previous_start = resolve_window(timeframe, now)

        qs = Resource.filter(is_active=True)
        if start is not None:
            qs = qs.filter(created_at__gte=start)
        resources = await qs.order_by("created_at").prefetch_related("uploaded_by")

        scored = [
            (resource, raw_trending_score(resource.download_count, resource.average_rating, resource.rating_count))
            for resource in resources
        ]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        scored = scored[:limit]

        current: Dict[str, int] = defaultdict(int)
        previous: Dict[str, int] = defaultdict(int)
        if start is not None and scored:
            ids = [resource.id for resource, _ in scored]
            rated = await Rating.filter(resource_id__in=ids, created_at__gte=previous_start).values_list(
                "resource_id", "created_at"
            )
            for resource_id, created_at in rated:
                bucket = current if _as_utc(created_at) >= start else previous
                bucket[str(resource_id)] += 1

        return [
            TrendingResource(
                resource=resource,
                raw_score=raw,
                trending_score=display_trending_score(raw),
                growth_rate=growth_rate(current[str(resource.id)], previous[str(resource.id)]) if start else 0.0,
            )
            for resource, raw in scored
        ]

    async def trending_subjects(
        self, timeframe: str = "week", limit: int = 10, now: Optional[dt.datetime] = None
    ) -> List[TrendingSubject]:
        """
        Subjects with the most uploads inside the window.

        Sorted by upload count, then total downloads, then subject name.
        growth_rate compares upload counts with the preceding window.
        """
        now = now or dt.datetime.now(dt.timezone.utc)
        start, previous_start = resolve_window(timeframe, now)

        qs = Resource.filter(is_active=True)
        if previous_start is not None:
            qs = qs.filter(created_at__gte=previous_start)
        rows = await qs.values("subject", "download_count", "created_at")

        counts: Dict[str, int] = defaultdict(int)
        downloads: Dict[str, int] = defaultdict(int)
        previous: Dict[str, int] = defaultdict(int)
        for row in rows:
            if start is not None and _as_utc(row["created_at"]) < start:
                previous[row["subject"]] += 1
                continue
            counts[row["subject"]] += 1
            downloads[row["subject"]] += row["download_count"] or 0

        subjects = [
            TrendingSubject(
                subject=subject,
                resource_count=count,
                total_downloads=downloads[subject],
                growth_rate=growth_rate(count, previous[subject]) if start else 0.0,
            )
            for subject, count in counts.items()
        ]
        subjects.sort(key=lambda s: (-s.resource_count, -s.total_downloads, s.subject))
        return subjects[:limit]

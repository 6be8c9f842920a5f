# studyshare/api/routers/stats.py
from typing import List, Literal

from fastapi import APIRouter, Depends, Query

from studyshare.api.deps import get_current_user, get_services
from studyshare.api.serializers import iso
from studyshare.models.user import User
from studyshare.schemas.stats import (
    ContributorOut,
    DashboardStatsOut,
    TrendingResourceOut,
    TrendingSubjectOut,
    UserStatsOut,
)
from studyshare.services import Services

router = APIRouter(tags=["stats"])

Timeframe = Literal["week", "month", "all"]

@router.get("/stats", response_model=DashboardStatsOut)
async def dashboard_stats(services: Services = Depends(get_services)):
    """Site-wide totals over active resources. All zeros on an empty database."""
    stats = await services.stats.dashboard_stats()
    return {
        "totalResources": stats.total_resources,
        "totalDownloads": stats.total_downloads,
        "averageRating": stats.average_rating,
        "activeUsers": stats.active_users,
    }

@router.get("/users/me/stats", response_model=UserStatsOut)
async def my_stats(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    stats = await services.stats.user_stats(user)
    return {
        "uploadedCount": stats.uploaded_count,
        "totalDownloads": stats.total_downloads,
        "averageRating": stats.average_rating,
    }

@router.get("/contributors", response_model=List[ContributorOut])
async def top_contributors(
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
):
    """
    Uploaders ranked by number of active resources, then downloads, then
    average rating. Users without an active resource are not listed.
    """
    rows = await services.stats.top_contributors(limit=limit)
    return [
        {
            "id": str(c.user.id),
            "username": c.user.username,
            "firstName": c.user.first_name,
            "lastName": c.user.last_name,
            "email": c.user.email,
            "resourceCount": c.resource_count,
            "totalDownloads": c.total_downloads,
            "averageRating": c.average_rating,
            "joinedAt": iso(c.user.created_at),
        }
        for c in rows
    ]

@router.get("/trending/resources", response_model=List[TrendingResourceOut])
async def trending_resources(
    timeframe: Timeframe = Query("week"),
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
):
    """
    Resources uploaded inside the timeframe, ranked by
    download_count * 0.4 + average_rating * rating_count * 0.6.
    trendingScore is that value floored and capped at 100.
    """
    rows = await services.stats.trending_resources(timeframe=timeframe, limit=limit)
    items = []
    for t in rows:
        r = t.resource
        items.append({
            "id": str(r.id),
            "title": r.title,
            "description": r.description,
            "subject": r.subject,
            "fileType": r.file_type,
            "downloadCount": r.download_count,
            "averageRating": float(r.average_rating or 0),
            "ratingCount": r.rating_count,
            "uploadedAt": iso(r.created_at),
            "uploader": {
                "username": r.uploaded_by.username,
                "firstName": r.uploaded_by.first_name,
                "lastName": r.uploaded_by.last_name,
            },
            "trendingScore": t.trending_score,
            "growthRate": t.growth_rate,
        })
    return items

@router.get("/trending/subjects", response_model=List[TrendingSubjectOut])
async def trending_subjects(
    timeframe: Timeframe = Query("week"),
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
):
    rows = await services.stats.trending_subjects(timeframe=timeframe, limit=limit)
    return [
        {
            "subject": s.subject,
            "resourceCount": s.resource_count,
            "totalDownloads": s.total_downloads,
            "growthRate": s.growth_rate,
        }
        for s in rows
    ]

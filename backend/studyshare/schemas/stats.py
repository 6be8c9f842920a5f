# studyshare/schemas/stats.py
"""
Pydantic schemas for the aggregate read endpoints
(dashboard, per-user stats, contributors, trending).
"""
from pydantic import BaseModel
from typing import Optional

class DashboardStatsOut(BaseModel):
    totalResources: int
    totalDownloads: int
    averageRating: float
    activeUsers: int  # Distinct uploaders of active resources

class UserStatsOut(BaseModel):
    uploadedCount: int
    totalDownloads: int
    averageRating: float

class ContributorOut(BaseModel):
    id: str
    username: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: str
    resourceCount: int
    totalDownloads: int
    averageRating: float
    joinedAt: Optional[str] = None

class UploaderOut(BaseModel):
    username: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None

class TrendingResourceOut(BaseModel):
    """
    trendingScore is clamped to 0-100; growthRate is the percent change in
    ratings received versus the previous window of the same length.
    """
    id: str
    title: str
    description: Optional[str] = None
    subject: str
    fileType: str
    downloadCount: int
    averageRating: float
    ratingCount: int
    uploadedAt: Optional[str] = None
    uploader: UploaderOut
    trendingScore: int
    growthRate: float

class TrendingSubjectOut(BaseModel):
    """growthRate is the percent change in uploads versus the previous window."""
    subject: str
    resourceCount: int
    totalDownloads: int
    growthRate: float

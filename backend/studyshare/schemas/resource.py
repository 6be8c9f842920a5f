# studyshare/schemas/resource.py
"""
Pydantic schemas for resource, rating, tag and favorite endpoints.
Field names are camelCase to match the web client.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from .auth import UserOut

class ResourceOut(BaseModel):
    """
    A resource as it appears in listings.
    averageRating/ratingCount are the denormalized rating summary.
    """
    id: str
    title: str
    description: Optional[str] = None
    subject: str
    semester: Optional[str] = None
    fileType: str
    fileName: str
    fileSize: int
    filePath: str
    uploadedById: str
    uploaderName: Optional[str] = None  # Display name of the uploader
    downloadCount: int
    averageRating: float
    ratingCount: int
    isActive: bool
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

class TagOut(BaseModel):
    id: str
    name: str

class RatingOut(BaseModel):
    resourceId: str
    userId: str
    userName: Optional[str] = None
    rating: int
    review: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

class ResourceDetailOut(ResourceOut):
    """
    Single-resource view: uploader, every rating and every tag.
    Soft-deleted resources are still returned (isActive=false).
    """
    uploadedBy: UserOut
    ratings: List[RatingOut]
    tags: List[TagOut]

class ResourceUpdateIn(BaseModel):
    """
    Partial metadata update (owner only).
    File content and uploader cannot be changed after upload.
    """
    title: Optional[str] = Field(default=None, max_length=256)
    description: Optional[str] = None
    subject: Optional[str] = Field(default=None, max_length=128)
    semester: Optional[str] = Field(default=None, max_length=64)

class RatingIn(BaseModel):
    """Create or replace the caller's rating of a resource."""
    rating: int = Field(ge=1, le=5)  # 1-5 stars
    review: Optional[str] = Field(default=None, max_length=5000)

class TagIn(BaseModel):
    tagName: str = Field(min_length=1, max_length=64)

class FavoriteOut(BaseModel):
    userId: str
    resourceId: str
    created: bool  # False when the bookmark already existed
    createdAt: Optional[str] = None

class MessageOut(BaseModel):
    message: str

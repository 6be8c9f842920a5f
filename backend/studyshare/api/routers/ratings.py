# studyshare/api/routers/ratings.py
import uuid
from typing import List

from fastapi import APIRouter, Depends

from studyshare.api.deps import get_current_user, get_services, resource_id_path
from studyshare.api.serializers import rating_to_dict
from studyshare.core.errors import NotFound
from studyshare.models.user import User
from studyshare.schemas.resource import MessageOut, RatingIn, RatingOut
from studyshare.services import Services

router = APIRouter(prefix="/resources/{resource_id}/ratings", tags=["ratings"])

@router.get("", response_model=List[RatingOut])
async def list_ratings(
    resource_id: uuid.UUID = Depends(resource_id_path),
    services: Services = Depends(get_services),
):
    """All ratings of a resource, oldest first. 404 for an unknown resource."""
    await services.resources.get_resource(resource_id)
    rows = await services.ratings.list_ratings(resource_id)
    return [rating_to_dict(r) for r in rows]

@router.post("", response_model=RatingOut)
async def rate_resource(
    body: RatingIn,
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Create or replace the caller's rating.

    The resource's averageRating/ratingCount are recomputed in the same
    transaction as the write.

    Raises:
        NotFound (404): Unknown resource
        ValidationFailure (400): Score outside 1..5
    """
    row = await services.ratings.upsert_rating(resource_id, user, body.rating, body.review)
    row.user = user
    return rating_to_dict(row)

@router.delete("", response_model=MessageOut)
async def delete_rating(
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Remove the caller's rating; 404 if they had not rated this resource."""
    if not await services.ratings.delete_rating(resource_id, user):
        raise NotFound("Rating not found")
    return {"message": "Rating deleted successfully"}

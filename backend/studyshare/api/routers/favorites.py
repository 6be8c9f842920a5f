# studyshare/api/routers/favorites.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status

from studyshare.api.deps import get_current_user, get_services, resource_id_path
from studyshare.api.serializers import favorite_to_dict, resource_to_dict
from studyshare.core.errors import NotFound
from studyshare.models.user import User
from studyshare.schemas.resource import FavoriteOut, MessageOut, ResourceOut
from studyshare.services import Services

router = APIRouter(tags=["favorites"])

@router.get("/users/me/favorites", response_model=List[ResourceOut])
async def list_my_favorites(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    """The caller's bookmarked resources, most recent first. Soft-deleted ones are hidden."""
    rows = await services.favorites.list_favorites(user)
    return [resource_to_dict(r) for r in rows]

@router.post("/resources/{resource_id}/favorites", response_model=FavoriteOut)
async def add_favorite(
    response: Response,
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Bookmark a resource.

    201 when the bookmark is new, 200 with created=false when it already existed.
    """
    favorite, created = await services.favorites.add_favorite(user, resource_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return favorite_to_dict(favorite, created)

@router.delete("/resources/{resource_id}/favorites", response_model=MessageOut)
async def remove_favorite(
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    if not await services.favorites.remove_favorite(user, resource_id):
        raise NotFound("Favorite not found")
    return {"message": "Favorite removed successfully"}

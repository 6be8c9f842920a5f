# studyshare/api/routers/tags.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, status

from studyshare.api.deps import get_current_user, get_services, resource_id_path, tag_id_path
from studyshare.api.serializers import tag_to_dict
from studyshare.models.user import User
from studyshare.schemas.resource import MessageOut, TagIn, TagOut
from studyshare.services import Services

router = APIRouter(tags=["tags"])

@router.get("/tags", response_model=List[TagOut])
async def list_tags(services: Services = Depends(get_services)):
    """Every known tag, alphabetical."""
    return [tag_to_dict(t) for t in await services.tags.list_tags()]

@router.get("/resources/{resource_id}/tags", response_model=List[TagOut])
async def list_resource_tags(
    resource_id: uuid.UUID = Depends(resource_id_path),
    services: Services = Depends(get_services),
):
    await services.resources.get_resource(resource_id)
    return [tag_to_dict(t) for t in await services.tags.tags_for_resource(resource_id)]

@router.post("/resources/{resource_id}/tags", response_model=TagOut, status_code=status.HTTP_201_CREATED)
async def add_resource_tag(
    body: TagIn,
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Attach a tag by name (uploader only). The tag is created if it does not
    exist yet; attaching an already-attached tag is a no-op.

    Raises:
        NotFound (404): Unknown resource
        Forbidden (403): Caller is not the uploader
    """
    resource = await services.resources.get_owned_resource(resource_id, user)
    tag = await services.tags.add_tag_to_resource(resource, body.tagName)
    return tag_to_dict(tag)

@router.delete("/resources/{resource_id}/tags/{tag_id}", response_model=MessageOut)
async def remove_resource_tag(
    resource_id: uuid.UUID = Depends(resource_id_path),
    tag_id: uuid.UUID | None = Depends(tag_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Detach a tag (uploader only). Detaching a tag that is not attached is not an error."""
    resource = await services.resources.get_owned_resource(resource_id, user)
    if tag_id is not None:
        await services.tags.remove_tag_from_resource(resource, tag_id)
    return {"message": "Tag removed successfully"}

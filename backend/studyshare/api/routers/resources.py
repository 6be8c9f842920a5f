# studyshare/api/routers/resources.py
import json
import logging
import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from studyshare.api.deps import get_current_user, get_download_user, get_services, resource_id_path
from studyshare.api.serializers import resource_detail_to_dict, resource_to_dict
from studyshare.core.errors import ValidationFailure
from studyshare.models.user import User
from studyshare.schemas.resource import MessageOut, ResourceDetailOut, ResourceOut, ResourceUpdateIn
from studyshare.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])

SortBy = Literal["newest", "oldest", "rating", "downloads", "relevance"]

def _parse_tags(raw: Optional[str]) -> List[str]:
    """
    The upload form carries tags as a JSON array string, e.g. '["exam","notes"]'.
    Anything unparseable is ignored rather than failing the upload.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("[Resources] Ignoring malformed tags field: %r", raw)
        return []
    if not isinstance(parsed, list):
        logger.warning("[Resources] Ignoring non-list tags field: %r", raw)
        return []
    return [str(name) for name in parsed if isinstance(name, (str, int, float))]

@router.get("", response_model=List[ResourceOut])
async def list_resources(
    subject: Optional[str] = Query(default=None),
    semester: Optional[str] = Query(default=None),
    minRating: Optional[float] = Query(default=None, ge=0, le=5),
    search: Optional[str] = Query(default=None, description="Substring of title or description"),
    sortBy: SortBy = Query(default="newest"),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    userId: Optional[uuid.UUID] = Query(default=None, description="Only resources uploaded by this user"),
    services: Services = Depends(get_services),
):
    """
    Browse active resources.

    All filters combine with AND. Page size defaults to settings.default_page_size
    and is capped at settings.max_page_size.

    Returns:
        List[ResourceOut]: Possibly empty list, each item with uploaderName
    """
    settings = services.settings
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    rows = await services.resources.list_resources(
        subject=subject,
        semester=semester,
        min_rating=minRating,
        search=search,
        uploaded_by_id=userId,
        sort_by=sortBy,
        limit=page_size,
        offset=offset,
    )
    return [resource_to_dict(r) for r in rows]

@router.get("/{resource_id}", response_model=ResourceDetailOut)
async def get_resource(
    resource_id: uuid.UUID = Depends(resource_id_path),
    services: Services = Depends(get_services),
):
    """
    Resource detail with uploader, ratings and tags.

    Soft-deleted resources are still returned by id.

    Raises:
        NotFound (404): Unknown id
    """
    resource = await services.resources.get_resource_detail(resource_id)
    return resource_detail_to_dict(resource)

@router.post("", response_model=ResourceOut, status_code=status.HTTP_201_CREATED)
async def create_resource(
    file: Optional[UploadFile] = File(default=None),
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    subject: Optional[str] = Form(default=None),
    semester: Optional[str] = Form(default=None),
    tags: Optional[str] = Form(default=None),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Upload a file and create the resource that describes it.

    The file is validated (type, size) and written to the upload directory
    before the row is inserted. If the insert fails, the stored file is
    removed again.

    Raises:
        ValidationFailure (400): Missing file, bad type, oversize, missing title or subject
    """
    if file is None:
        raise ValidationFailure("No file uploaded")

    stored = await services.files.save(user.id, file)
    try:
        resource = await services.resources.create_resource(
            user,
            title=title,
            subject=subject,
            description=description,
            semester=semester,
            file_type=stored.content_type,
            file_name=stored.file_name,
            file_size=stored.size,
            file_path=stored.path,
            tags=_parse_tags(tags),
        )
    except Exception:
        services.files.remove(stored.path)
        raise
    resource.uploaded_by = user
    return resource_to_dict(resource)

@router.put("/{resource_id}", response_model=ResourceOut)
async def update_resource(
    body: ResourceUpdateIn,
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Edit title, description, subject or semester (uploader only).

    Raises:
        NotFound (404): Unknown id
        Forbidden (403): Caller is not the uploader
    """
    resource = await services.resources.update_resource(
        resource_id,
        user,
        title=body.title,
        description=body.description,
        subject=body.subject,
        semester=body.semester,
    )
    resource.uploaded_by = user
    return resource_to_dict(resource)

@router.delete("/{resource_id}", response_model=MessageOut)
async def delete_resource(
    resource_id: uuid.UUID = Depends(resource_id_path),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Soft-delete (uploader only). The row and its file stay on disk."""
    await services.resources.soft_delete_resource(resource_id, user)
    return {"message": "Resource deleted successfully"}

@router.post("/{resource_id}/download", response_model=MessageOut)
async def record_download(
    resource_id: uuid.UUID = Depends(resource_id_path),
    _user: Optional[User] = Depends(get_download_user),
    services: Services = Depends(get_services),
):
    """
    Count one download.

    Open to anonymous callers unless DOWNLOAD_REQUIRES_AUTH is set.
    """
    await services.resources.increment_download_count(resource_id)
    return {"message": "Download count updated"}

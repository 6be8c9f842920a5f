# studyshare/api/serializers.py
"""
Model -> response dict helpers shared by the routers.
Output keys are camelCase to match the web client.
"""
import datetime as dt

from studyshare.models import Favorite, Rating, Resource, Tag, User

def iso(value: dt.datetime | None) -> str | None:
    return value.isoformat() if value else None

def user_to_dict(u: User) -> dict:
    return {
        "id": str(u.id),
        "email": u.email,
        "username": u.username,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "profileImageUrl": u.profile_image_url,
        "major": u.major,
        "displayName": u.display_name,
        "createdAt": iso(u.created_at),
    }

def resource_to_dict(r: Resource) -> dict:
    """
    Listing shape. Resolves the uploader's display name when uploaded_by
    has been prefetched.
    """
    uploader = r.uploaded_by if isinstance(r.uploaded_by, User) else None
    return {
        "id": str(r.id),
        "title": r.title,
        "description": r.description,
        "subject": r.subject,
        "semester": r.semester,
        "fileType": r.file_type,
        "fileName": r.file_name,
        "fileSize": r.file_size,
        "filePath": r.file_path,
        "uploadedById": str(r.uploaded_by_id),
        "uploaderName": uploader.display_name if uploader else None,
        "downloadCount": r.download_count or 0,
        "averageRating": float(r.average_rating or 0),
        "ratingCount": r.rating_count or 0,
        "isActive": r.is_active,
        "createdAt": iso(r.created_at),
        "updatedAt": iso(r.updated_at),
    }

def rating_to_dict(r: Rating) -> dict:
    rater = r.user if isinstance(r.user, User) else None
    return {
        "resourceId": str(r.resource_id),
        "userId": str(r.user_id),
        "userName": rater.display_name if rater else None,
        "rating": r.rating,
        "review": r.review,
        "createdAt": iso(r.created_at),
        "updatedAt": iso(r.updated_at),
    }

def tag_to_dict(t: Tag) -> dict:
    return {"id": str(t.id), "name": t.name}

def resource_detail_to_dict(r: Resource) -> dict:
    """Detail shape: listing fields plus uploader, ratings and tags (all prefetched)."""
    data = resource_to_dict(r)
    data["uploadedBy"] = user_to_dict(r.uploaded_by)
    data["ratings"] = [rating_to_dict(rating) for rating in r.ratings]
    data["tags"] = [tag_to_dict(link.tag) for link in r.resource_tags]
    return data

def favorite_to_dict(f: Favorite, created: bool) -> dict:
    return {
        "userId": str(f.user_id),
        "resourceId": str(f.resource_id),
        "created": created,
        "createdAt": iso(f.created_at),
    }

# studyshare/api/deps.py
import logging
import uuid

from fastapi import Depends, Header, HTTPException, Request, status

from studyshare.core.errors import NotFound, StudyShareError
from studyshare.core.security import PROFILE_CLAIMS, decode_access_token
from studyshare.models.user import User
from studyshare.services import Services

logger = logging.getLogger(__name__)

def get_services(request: Request) -> Services:
    """
    FastAPI dependency returning the service container built by create_app().
    """
    return request.app.state.services

def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError):
        return None

def resource_id_path(resource_id: str) -> uuid.UUID:
    """
    Path dependency for {resource_id}.

    Ids that are not UUIDs cannot name any resource, so they get the same
    404 as an unknown id rather than a request-validation 400.
    """
    parsed = _parse_uuid(resource_id)
    if parsed is None:
        raise NotFound("Resource not found")
    return parsed

def tag_id_path(tag_id: str) -> uuid.UUID | None:
    """Path dependency for {tag_id}; None when the id cannot name any tag."""
    return _parse_uuid(tag_id)

def _extract_token(request: Request, authorization: str | None) -> str | None:
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    # 2) Secondly HttpOnly Cookie: accessToken
    return request.cookies.get("accessToken")

def _claims_changed(user: User, claims: dict) -> bool:
    return any(value is not None and getattr(user, key) != value for key, value in claims.items())

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Tokens from the identity provider carry profile claims (email is
    required). An unknown subject is created from them; for a known subject
    the stored profile is overwritten whenever the claims differ from it.

    Returns:
        User: The authenticated user object from database

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        HTTPException (401): If token is invalid or expired (AUTH_INVALID_TOKEN)
        HTTPException (401): If user not found and cannot be created (AUTH_USER_NOT_FOUND)
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(str(payload.get("sub")))
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if payload.get("email"):
        claims = {key: payload.get(key) for key in PROFILE_CLAIMS}
        if user is None or _claims_changed(user, claims):
            try:
                user = await services.users.upsert_user(user_id, **claims)
            except StudyShareError as e:
                logger.warning("[Auth] Profile sync for %s failed: %s", user_id, e.message)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user

async def get_download_user(
    request: Request,
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> User | None:
    """
    Authentication for the download counter endpoint.

    Open (returns None) unless settings.download_requires_auth is on, in which
    case it behaves exactly like get_current_user.
    """
    if not services.settings.download_requires_auth:
        return None
    return await get_current_user(request, authorization, services)

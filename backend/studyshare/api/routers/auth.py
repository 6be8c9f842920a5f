# studyshare/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from studyshare.api.deps import get_current_user, get_services
from studyshare.api.serializers import user_to_dict
from studyshare.core.security import create_access_token
from studyshare.models.user import User
from studyshare.schemas.auth import LoginRequest, LoginResponse, ProfileUpdateIn, RegisterIn, UserOut
from studyshare.services import Services

router = APIRouter(prefix="/auth", tags=["auth"])

def _issue_token(user: User) -> str:
    # Local sessions carry only the subject; profile claims are reserved for
    # identity-provider tokens.
    return create_access_token(str(user.id))

@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, services: Services = Depends(get_services)):
    """
    Register a new local account.

    The password is hashed before storage. Username and email must be
    unique; duplicates are answered with 400.

    Args:
        body: username, email, password and optional profile fields

    Returns:
        UserOut: The created user (no password hash)
    """
    user = await services.users.register(
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.firstName,
        last_name=body.lastName,
        major=body.major,
    )
    return user_to_dict(user)

@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, response: Response, services: Services = Depends(get_services)):
    """
    Authenticate by username (or email) and password.

    The access token is returned in the body and also set as an HttpOnly
    cookie named "accessToken" for browser clients.

    Raises:
        HTTPException (401): If credentials are invalid
    """
    user = await services.users.authenticate(payload.username, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Incorrect username or password"})
    token = _issue_token(user)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"user": user_to_dict(user), "accessToken": token}

@router.get("/user", response_model=UserOut)
async def current_user(user: User = Depends(get_current_user)):
    """Profile of the authenticated caller."""
    return user_to_dict(user)

@router.patch("/user", response_model=UserOut)
async def update_current_user(
    body: ProfileUpdateIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Edit first name, last name or major. Omitted fields stay unchanged."""
    user = await services.users.update_profile(
        user, first_name=body.firstName, last_name=body.lastName, major=body.major
    )
    return user_to_dict(user)

@router.post("/logout")
async def logout(response: Response):
    """
    Clear the access token cookie.

    Note:
        The JWT itself stays valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"message": "Logged out"}

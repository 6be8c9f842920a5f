# studyshare/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request/response models for registration, login and the current user.
"""
from pydantic import BaseModel, Field
from typing import Optional

class RegisterIn(BaseModel):
    """
    Request model for local account registration.
    """
    username: str = Field(min_length=1, max_length=256)
    email: str = Field(min_length=3, max_length=256)
    password: str = Field(min_length=6)
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    major: Optional[str] = None

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    `username` may also be the account's email address.
    """
    username: str
    password: str

class UserOut(BaseModel):
    """
    User information returned by auth and detail endpoints.
    Never includes the password hash.
    """
    id: str
    email: str
    username: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    profileImageUrl: Optional[str] = None
    major: Optional[str] = None
    displayName: str
    createdAt: Optional[str] = None

class LoginResponse(BaseModel):
    """
    Response model for successful login.
    Returns user information and access token for authenticated requests.
    """
    user: UserOut
    accessToken: str

class ProfileUpdateIn(BaseModel):
    """Editable profile fields; omitted fields stay unchanged."""
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    major: Optional[str] = None

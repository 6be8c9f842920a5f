# studyshare/models/user.py
"""
Database model for users.
Represents a person who uploads, rates and bookmarks study resources.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Users are created the first time they authenticate. Accounts coming from
    the external identity provider carry no password hash; local accounts
    registered through /api/auth/register do.

    Relationships:
    - Has many Resources (via related_name="resources")
    - Has many Ratings (via related_name="ratings")
    - Has many Favorites (via related_name="favorites")
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key (identity-provider subject or generated)
    email = fields.CharField(max_length=256, unique=True, index=True)
    username = fields.CharField(max_length=256, unique=True, null=True)  # Optional handle
    first_name = fields.CharField(max_length=128, null=True)
    last_name = fields.CharField(max_length=128, null=True)
    profile_image_url = fields.CharField(max_length=1024, null=True)
    major = fields.CharField(max_length=128, null=True)
    password_hash = fields.CharField(max_length=255, null=True)  # Argon2 hash; null for identity-provider accounts
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    @property
    def display_name(self) -> str:
        """Full name when both parts are known, else username, else email."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username or self.email

# studyshare/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports throughout the application.

Models exported:
- User: Account that uploads, rates and bookmarks resources
- Resource: Uploaded study material with denormalized rating/download numbers
- Rating: One score per (resource, user)
- Tag / ResourceTag: Labels and their many-to-many join with resources
- Favorite: Bookmark join between users and resources
"""
from .user import User
from .resource import Resource
from .rating import Rating
from .tag import Tag, ResourceTag
from .favorite import Favorite

# studyshare/models/resource.py
"""
Database model for shared study resources.
A resource is an uploaded file plus its metadata and the summary numbers
(downloads, rating average and count) shown in listings.
"""
import uuid
from tortoise import fields, models

class Resource(models.Model):
    """
    Resource database model.

    average_rating and rating_count are a denormalized copy of the resource's
    Rating rows. They are only written by RatingService, inside the same
    transaction as the rating change that invalidates them.

    Resources are never physically removed: soft delete flips is_active.

    Relationships:
    - Belongs to a User (uploaded_by, many-to-one)
    - Has many Ratings, ResourceTags and Favorites
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    title = fields.CharField(max_length=256)
    description = fields.TextField(null=True)
    subject = fields.CharField(max_length=128, index=True)  # Free text, exact-match filter
    semester = fields.CharField(max_length=64, null=True)

    file_type = fields.CharField(max_length=128)   # MIME type of the upload
    file_name = fields.CharField(max_length=512)   # Original client-side file name
    file_size = fields.IntField()                  # Bytes
    file_path = fields.CharField(max_length=1024)  # Storage location (opaque to queries)

    uploaded_by = fields.ForeignKeyField(
        "models.User",
        related_name="resources",
        on_delete=fields.RESTRICT,
    )

    download_count = fields.IntField(default=0)     # Monotonic; only ever bumped with an F() update
    average_rating = fields.FloatField(default=0)   # Mean of current ratings, 0 when none
    rating_count = fields.IntField(default=0)
    is_active = fields.BooleanField(default=True, index=True)  # Soft-delete marker

    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "resources"

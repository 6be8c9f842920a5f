# studyshare/models/tag.py
import uuid
from tortoise import fields, models

class Tag(models.Model):
    """Free-text label, created on first use."""
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=64, unique=True, index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "tags"

class ResourceTag(models.Model):
    """Join row between a Resource and a Tag (one per pair)."""
    id = fields.IntField(pk=True)
    resource = fields.ForeignKeyField("models.Resource", related_name="resource_tags", on_delete=fields.CASCADE)
    tag = fields.ForeignKeyField("models.Tag", related_name="resource_tags", on_delete=fields.CASCADE)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "resource_tags"
        unique_together = (("resource", "tag"),)

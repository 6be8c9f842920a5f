# studyshare/models/favorite.py
from tortoise import fields, models

class Favorite(models.Model):
    """A user's bookmark on a resource (one per pair)."""
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="favorites", on_delete=fields.CASCADE)
    resource = fields.ForeignKeyField("models.Resource", related_name="favorites", on_delete=fields.CASCADE)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "favorites"
        unique_together = (("user", "resource"),)

# studyshare/models/rating.py
from tortoise import fields, models

class Rating(models.Model):
    """
    A user's 1-5 star score (plus optional review) for one resource.

    At most one row per (resource, user); re-rating overwrites the row.
    """
    id = fields.IntField(pk=True)
    resource = fields.ForeignKeyField("models.Resource", related_name="ratings", on_delete=fields.CASCADE)
    user = fields.ForeignKeyField("models.User", related_name="ratings", on_delete=fields.CASCADE)

    rating = fields.SmallIntField()         # 1..5
    review = fields.TextField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "ratings"
        unique_together = (("resource", "user"),)

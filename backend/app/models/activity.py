from tortoise import fields, models


class Activity(models.Model):
    """
    Audit log entry. Rows are only ever inserted.
    - user_id: acting user; plain integer so the entry outlives the user
    - action: REGISTER, LOGIN, CREATE_USER, ... (free text, see ActivityAction)
    - timestamp: server clock at insert time
    """
    id = fields.IntField(pk=True)
    user_id = fields.IntField(null=True, index=True)
    action = fields.CharField(max_length=64)
    description = fields.TextField()
    timestamp = fields.DatetimeField(index=True)

    class Meta:
        table = "activities"
        ordering = ["-timestamp", "-id"]

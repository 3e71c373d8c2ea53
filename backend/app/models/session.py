from tortoise import fields, models


class Session(models.Model):
    """Server-side login session; a row exists from login until logout or expiry purge."""
    id = fields.CharField(pk=True, max_length=64)  # opaque random session id
    user_id = fields.IntField(index=True)
    expires_at = fields.DatetimeField(index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "sessions"

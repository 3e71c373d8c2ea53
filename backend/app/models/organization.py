from tortoise import fields, models

from app.models.enums import OrganizationType


class Organization(models.Model):
    """Pharma company, distributor, or the seeded SYSTEM organization."""
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=256)
    type = fields.CharEnumField(OrganizationType, max_length=32)

    class Meta:
        table = "organizations"

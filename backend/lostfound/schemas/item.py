from marshmallow import Schema, fields, validate, EXCLUDE, pre_load

from ..models.enums import ITEM_TYPES


class CategorySchema(Schema):
    id = fields.Int(dump_only=True)
    name = fields.Str(required=True, validate=validate.Length(min=1, max=80))
    description = fields.Str(allow_none=True, validate=validate.Length(max=200))
    icon = fields.Str(allow_none=True, validate=validate.Length(max=50))


class ItemSchema(Schema):
    id = fields.Int(dump_only=True)
    type = fields.Str()
    status = fields.Str()
    item_name = fields.Str(data_key="itemName")
    description = fields.Str(allow_none=True)
    location = fields.Str(allow_none=True)
    date_lost_found = fields.Date(data_key="dateLostFound", allow_none=True)
    date_reported = fields.DateTime(data_key="dateReported")
    category_id = fields.Int(data_key="categoryId", allow_none=True)
    category = fields.Method("get_category_name")
    reported_by_id = fields.Int(data_key="reportedById", allow_none=True)
    reporter_name = fields.Str(data_key="reporterName", allow_none=True)
    contact_info = fields.Str(data_key="contactInfo", allow_none=True)

    def get_category_name(self, obj):
        cat = getattr(obj, "category", None)
        return cat.name if cat is not None else None


class ItemCreateSchema(Schema):
    """Validates a new lost/found report."""

    class Meta:
        unknown = EXCLUDE

    type = fields.Str(required=True, validate=validate.OneOf(ITEM_TYPES))
    item_name = fields.Str(required=True, data_key="itemName", validate=validate.Length(min=1, max=100))
    description = fields.Str(load_default=None, validate=validate.Length(max=1000))
    location = fields.Str(load_default=None, validate=validate.Length(max=200))
    date_lost_found = fields.Date(required=True, data_key="dateLostFound")
    category_id = fields.Int(load_default=None, data_key="categoryId", allow_none=True)
    reporter_name = fields.Str(load_default=None, data_key="reporterName", validate=validate.Length(max=100))
    reporter_email = fields.Email(load_default=None, data_key="reporterEmail")
    contact_info = fields.Str(load_default=None, data_key="contactInfo", validate=validate.Length(max=200))

    @pre_load
    def _strip(self, data, **kwargs):
        # Blank strings count as missing
        return {k: (v.strip() or None) if isinstance(v, str) else v for k, v in data.items()}

from marshmallow import Schema, fields, validate, EXCLUDE, pre_load

from .item import ItemSchema

_STATUS_LABELS = {
    "pending": "Pending Review",
    "under_review": "Under Review",
    "approved": "Approved",
    "rejected": "Rejected",
    "withdrawn": "Withdrawn",
}


def _strip_blanks(data):
    # Blank strings count as missing so defaults apply
    out = {}
    for k, v in (data or {}).items():
        if isinstance(v, str):
            v = v.strip()
            if not v:
                continue
        out[k] = v
    return out


class ClaimSchema(Schema):
    id = fields.Int(dump_only=True)
    item_id = fields.Int(data_key="itemId")
    item = fields.Nested(ItemSchema, allow_none=True)
    claimant_id = fields.Int(attribute="claimant_user_id", data_key="claimantId")
    claimant_name = fields.Method("get_claimant_name", data_key="claimantName")
    description = fields.Str()
    proof_of_ownership = fields.Str(data_key="proofOfOwnership")
    identifying_features = fields.Str(data_key="identifyingFeatures", allow_none=True)
    contact_phone = fields.Str(data_key="contactPhone", allow_none=True)
    preferred_contact_method = fields.Str(data_key="preferredContactMethod")
    status = fields.Str()
    status_label = fields.Method("get_status_label", data_key="statusLabel")
    admin_notes = fields.Str(data_key="adminNotes", allow_none=True)
    rejection_reason = fields.Str(data_key="rejectionReason", allow_none=True)
    reviewed_at = fields.DateTime(data_key="reviewedAt", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")

    def get_claimant_name(self, obj):
        u = getattr(obj, "claimant", None)
        return u.display_name if u is not None else None

    def get_status_label(self, obj):
        return _STATUS_LABELS.get(obj.status, obj.status)


class ClaimCreateSchema(Schema):
    """Validates an ownership claim on a reported item."""

    class Meta:
        unknown = EXCLUDE

    item_id = fields.Int(required=True, data_key="itemId")
    description = fields.Str(required=True, validate=validate.Length(min=20, max=1000))
    proof_of_ownership = fields.Str(required=True, data_key="proofOfOwnership", validate=validate.Length(min=10, max=1000))
    identifying_features = fields.Str(load_default=None, data_key="identifyingFeatures", validate=validate.Length(max=500))
    contact_phone = fields.Str(load_default=None, data_key="contactPhone", validate=validate.Length(max=50))
    preferred_contact_method = fields.Str(
        load_default="email",
        data_key="preferredContactMethod",
        validate=validate.OneOf(("email", "phone", "both")),
    )

    @pre_load
    def _strip(self, data, **kwargs):
        return _strip_blanks(data)


class ClaimReviewSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.Str(required=True, validate=validate.OneOf(("under_review", "approved", "rejected")))
    admin_notes = fields.Str(load_default=None, data_key="adminNotes", validate=validate.Length(max=1000))
    rejection_reason = fields.Str(load_default=None, data_key="rejectionReason", validate=validate.Length(max=500))

    @pre_load
    def _strip(self, data, **kwargs):
        return _strip_blanks(data)

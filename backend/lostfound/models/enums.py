from ..extensions import db

# Enum types shared by the models. On PostgreSQL these map to native ENUM types
# (created by migrations); other dialects fall back to VARCHAR.

role_enum = db.Enum("student", "admin", name="role_enum")
item_type_enum = db.Enum("lost", "found", name="item_type_enum")
item_status_enum = db.Enum("pending", "approved", "claimed", "rejected", name="item_status_enum")
notification_channel_enum = db.Enum("email", "push", "inapp", name="notification_channel_enum")
notification_status_enum = db.Enum("queued", "sent", "failed", "read", name="notification_status_enum")
claim_status_enum = db.Enum("pending", "under_review", "approved", "rejected", "withdrawn", name="claim_status_enum")
contact_method_enum = db.Enum("email", "phone", "both", name="contact_method_enum")

ITEM_TYPES = ("lost", "found")
ITEM_STATUSES = ("pending", "approved", "claimed", "rejected")
# Items visible to everyone; pending/rejected reports are admin-only
PUBLIC_STATUSES = ("approved", "claimed")

CLAIM_STATUSES = ("pending", "under_review", "approved", "rejected", "withdrawn")
# A claimant may hold one open claim per item
OPEN_CLAIM_STATUSES = ("pending", "under_review")


def opposite_type(item_type: str) -> str:
    return "found" if item_type == "lost" else "lost"

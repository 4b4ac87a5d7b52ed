from sqlalchemy import func, Index
from ..extensions import db
from .enums import item_type_enum, item_status_enum

# SQLite only autoincrements INTEGER primary keys
_pk_type = db.BigInteger().with_variant(db.Integer, "sqlite")


class Item(db.Model):
    __tablename__ = "items"

    id = db.Column(_pk_type, primary_key=True)
    type = db.Column(item_type_enum, nullable=False)
    status = db.Column(item_status_enum, nullable=False, default="pending", server_default="pending")
    category_id = db.Column(db.BigInteger, db.ForeignKey("categories.id", ondelete="SET NULL"))
    item_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    location = db.Column(db.String(200))
    date_lost_found = db.Column(db.Date)
    date_reported = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    # Guests may report without an account; reporter contact is kept on the row
    reported_by_id = db.Column(db.BigInteger, db.ForeignKey("users.id", ondelete="SET NULL"))
    reporter_name = db.Column(db.String(100))
    reporter_email = db.Column(db.String(255))
    contact_info = db.Column(db.String(200))
    admin_notes = db.Column(db.Text)
    claimed_by_name = db.Column(db.String(100))
    claimed_by_email = db.Column(db.String(255))
    claimed_by_phone = db.Column(db.String(50))
    claimed_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = db.relationship("Category", back_populates="items")
    reporter = db.relationship("User", back_populates="reported_items", foreign_keys=[reported_by_id])
    potential_matches = db.relationship(
        "PotentialMatch",
        back_populates="item",
        foreign_keys="PotentialMatch.item_id",
        order_by="PotentialMatch.position",
        cascade="all, delete-orphan",
    )
    claims = db.relationship(
        "ClaimRequest",
        back_populates="item",
        order_by="ClaimRequest.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_items_type_status", "type", "status"),
        Index("idx_items_category", "category_id"),
        Index("idx_items_date_lost_found", "date_lost_found"),
        Index("idx_items_date_reported", "date_reported"),
    )

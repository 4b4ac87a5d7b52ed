from sqlalchemy import func, Index
from ..extensions import db
from .enums import claim_status_enum, contact_method_enum


class ClaimRequest(db.Model):
    """A user's request to take ownership of a reported item."""

    __tablename__ = "claim_requests"

    id = db.Column(db.BigInteger().with_variant(db.Integer, "sqlite"), primary_key=True)
    item_id = db.Column(db.BigInteger, db.ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    claimant_user_id = db.Column(db.BigInteger, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    description = db.Column(db.Text, nullable=False)
    proof_of_ownership = db.Column(db.Text, nullable=False)
    identifying_features = db.Column(db.Text)
    contact_phone = db.Column(db.String(50))
    preferred_contact_method = db.Column(contact_method_enum, nullable=False, default="email", server_default="email")
    status = db.Column(claim_status_enum, nullable=False, default="pending", server_default="pending")
    admin_notes = db.Column(db.Text)
    rejection_reason = db.Column(db.Text)
    reviewed_by_id = db.Column(db.BigInteger, db.ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    item = db.relationship("Item", back_populates="claims")
    claimant = db.relationship("User", back_populates="claims", foreign_keys=[claimant_user_id])
    reviewer = db.relationship("User", foreign_keys=[reviewed_by_id])

    __table_args__ = (
        Index("idx_claims_item_status", "item_id", "status"),
        Index("idx_claims_claimant_status", "claimant_user_id", "status"),
    )

from sqlalchemy import UniqueConstraint, Index
from ..extensions import db


class PotentialMatch(db.Model):
    """One entry of an item's cached match list.

    The cache is derived data: rows for an item are always deleted and
    re-inserted together, ranked by ``position`` (0 = best score).
    """

    __tablename__ = "item_potential_matches"

    id = db.Column(db.BigInteger().with_variant(db.Integer, "sqlite"), primary_key=True)
    item_id = db.Column(db.BigInteger, db.ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    matched_item_id = db.Column(db.BigInteger, db.ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    position = db.Column(db.Integer, nullable=False, default=0)
    matched_at = db.Column(db.DateTime(timezone=True), nullable=False)

    item = db.relationship("Item", foreign_keys=[item_id], back_populates="potential_matches")
    matched_item = db.relationship("Item", foreign_keys=[matched_item_id])

    __table_args__ = (
        UniqueConstraint("item_id", "position", name="uq_potential_matches_item_position"),
        Index("idx_potential_matches_item", "item_id"),
        Index("idx_potential_matches_matched", "matched_item_id"),
    )

from sqlalchemy import func
from ..extensions import db


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.BigInteger().with_variant(db.Integer, "sqlite"), primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    description = db.Column(db.String(200))
    icon = db.Column(db.String(50))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    items = db.relationship("Item", back_populates="category", lazy=True)

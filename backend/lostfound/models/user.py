from sqlalchemy import func, true
from ..extensions import db
from .enums import role_enum


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.BigInteger().with_variant(db.Integer, "sqlite"), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    student_id = db.Column(db.String(50), unique=True, nullable=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    role = db.Column(role_enum, nullable=False, default="student", server_default="student")
    password_hash = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default=true())
    # Email notification preferences (all opt-in by default)
    email_on_approval = db.Column(db.Boolean, nullable=False, default=True, server_default=true())
    email_on_rejection = db.Column(db.Boolean, nullable=False, default=True, server_default=true())
    email_on_claim = db.Column(db.Boolean, nullable=False, default=True, server_default=true())
    email_on_match = db.Column(db.Boolean, nullable=False, default=True, server_default=true())
    last_login_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    reported_items = db.relationship(
        "Item",
        back_populates="reporter",
        foreign_keys="Item.reported_by_id",
        lazy=True,
    )
    claims = db.relationship(
        "ClaimRequest",
        back_populates="claimant",
        foreign_keys="ClaimRequest.claimant_user_id",
        lazy=True,
        cascade="all, delete-orphan",
    )
    notifications = db.relationship(
        "Notification",
        back_populates="user",
        lazy=True,
        cascade="all, delete-orphan",
    )

    @property
    def display_name(self) -> str:
        parts = [self.first_name, self.last_name]
        return " ".join(p for p in parts if p) or self.email

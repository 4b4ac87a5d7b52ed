from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppSetting(db.Model):
    __tablename__ = "app_settings"

    id = db.Column(db.BigInteger().with_variant(db.Integer, "sqlite"), primary_key=True)
    key = db.Column(db.String(200), nullable=False, unique=True, index=True)
    value_text = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @staticmethod
    def get(key: str, default: str | None = None) -> str | None:
        try:
            row = AppSetting.query.filter_by(key=key).first()
            return row.value_text if row else default
        except SQLAlchemyError:
            # Table may not exist yet; return default
            logger.warning("Could not read setting %s; using default", key)
            db.session.rollback()
            return default

    @staticmethod
    def set(key: str, value: str | None) -> None:
        row = AppSetting.query.filter_by(key=key).first()
        if row is None:
            row = AppSetting(key=key, value_text=value)
            db.session.add(row)
        else:
            row.value_text = value
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    @staticmethod
    def get_bool(key: str, default: bool = False) -> bool:
        val = AppSetting.get(key, None)
        if val is None:
            return default
        return str(val).strip().lower() in {"1", "true", "yes", "on"}

    @staticmethod
    def set_bool(key: str, value: bool) -> None:
        AppSetting.set(key, "true" if value else "false")

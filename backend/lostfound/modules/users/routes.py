from flask import Blueprint, jsonify, request, g
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...models.user import User
from ...schemas.user import NotificationPreferencesSchema, UserSchema

bp = Blueprint("users", __name__, url_prefix="/users")

_user_schema = UserSchema()
_prefs_schema = NotificationPreferencesSchema()


def _can_access(user_id: int) -> bool:
    u = getattr(g, "current_user", None)
    if u is None:
        return False
    return u.id == user_id or getattr(u, "role", None) == "admin"


@bp.get("/<int:user_id>")
def get_user(user_id: int):
    if not _can_access(user_id):
        return jsonify({"error": "Forbidden"}), 403
    u = db.session.get(User, user_id)
    if not u:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"user": _user_schema.dump(u)})


@bp.patch("/<int:user_id>")
def update_user(user_id: int):
    """Update profile fields and email notification preferences.

    Body: firstName, lastName, studentId, notificationPreferences {emailOnMatch, ...}
    """
    if not _can_access(user_id):
        return jsonify({"error": "Forbidden"}), 403
    u = db.session.get(User, user_id)
    if not u:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}

    if "firstName" in data:
        u.first_name = (data.get("firstName") or "").strip() or None
    if "lastName" in data:
        u.last_name = (data.get("lastName") or "").strip() or None
    if "studentId" in data:
        u.student_id = (data.get("studentId") or "").strip() or None

    prefs = data.get("notificationPreferences")
    if prefs is not None:
        try:
            loaded = _prefs_schema.load(prefs)
        except ValidationError as e:
            return jsonify({"error": "Invalid notification preferences", "details": e.messages}), 400
        for attr, value in loaded.items():
            setattr(u, attr, value)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Student ID already registered"}), 409

    return jsonify({"user": _user_schema.dump(u)})

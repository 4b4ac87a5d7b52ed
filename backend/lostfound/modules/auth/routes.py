from flask import Blueprint, request, jsonify
from sqlalchemy import func
from werkzeug.security import generate_password_hash, check_password_hash

from ...extensions import db
from ...models.user import User
from ...schemas.user import UserSchema
from ...security import issue_token

bp = Blueprint("auth", __name__, url_prefix="/auth")

_user_schema = UserSchema()


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}

    email = (data.get("email") or "").strip().lower()
    student_id = (data.get("studentId") or "").strip() or None
    first_name = (data.get("firstName") or "").strip()
    last_name = (data.get("lastName") or "").strip()
    password = data.get("password") or ""

    if not email or "@" not in email:
        return _json_error("Valid email is required")
    if not first_name:
        return _json_error("First name is required")
    if not last_name:
        return _json_error("Last name is required")
    if not password or len(password) < 8:
        return _json_error("Password must be at least 8 characters")

    if User.query.filter_by(email=email).first():
        return _json_error("Email already in use", 409)
    if student_id and User.query.filter_by(student_id=student_id).first():
        return _json_error("Student ID already registered", 409)

    user = User(
        email=email,
        student_id=student_id,
        first_name=first_name,
        last_name=last_name,
        role="student",
        password_hash=generate_password_hash(password),
    )
    db.session.add(user)
    db.session.commit()

    payload = _user_schema.dump(user)
    payload["token"] = issue_token(int(user.id), user.role)
    return jsonify(payload), 201


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}

    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or "@" not in email:
        return _json_error("Valid email is required")
    if not password:
        return _json_error("Password is required")

    user = User.query.filter_by(email=email).first()
    if not user or not user.password_hash or not check_password_hash(user.password_hash, password):
        return _json_error("Invalid email or password", 401)
    if not user.is_active:
        return _json_error("Account is disabled", 403)

    user.last_login_at = func.now()
    db.session.commit()

    payload = _user_schema.dump(user)
    payload["token"] = issue_token(int(user.id), user.role or "student")
    return jsonify(payload)

from flask import Blueprint, request, jsonify, g, current_app
from marshmallow import ValidationError
from sqlalchemy import or_

from ...extensions import db
from ...models.category import Category
from ...models.enums import PUBLIC_STATUSES
from ...models.item import Item
from ...schemas.item import ItemSchema, ItemCreateSchema
from ...schemas.match import MatchCandidateSchema
from ..matching import get_item_matches

bp = Blueprint("items", __name__, url_prefix="/items")

_item_schema = ItemSchema()
_items_schema = ItemSchema(many=True)
_create_schema = ItemCreateSchema()
_candidates_schema = MatchCandidateSchema(many=True)


def _is_admin() -> bool:
    u = getattr(g, "current_user", None)
    return bool(u) and getattr(u, "role", None) == "admin"


@bp.get("")
def list_items():
    """Browse approved items.

    Query params: type (lost|found), categoryId, q (name/description/location), limit (default 20, max 100), offset
    """
    try:
        limit = max(1, min(100, int(request.args.get("limit", 20))))
    except (TypeError, ValueError):
        limit = 20
    try:
        offset = max(0, int(request.args.get("offset", 0)))
    except (TypeError, ValueError):
        offset = 0

    q = Item.query.filter(Item.status == "approved")
    type_param = request.args.get("type")
    if type_param in ("lost", "found"):
        q = q.filter(Item.type == type_param)
    category = request.args.get("categoryId")
    if category:
        try:
            q = q.filter(Item.category_id == int(category))
        except ValueError:
            return jsonify({"error": "Invalid categoryId"}), 400
    text = (request.args.get("q") or "").strip()
    if text:
        like = f"%{text}%"
        q = q.filter(or_(Item.item_name.ilike(like), Item.description.ilike(like), Item.location.ilike(like)))

    total = q.count()
    rows = q.order_by(Item.date_reported.desc(), Item.id.desc()).offset(offset).limit(limit).all()
    return jsonify({"items": _items_schema.dump(rows), "total": total})


@bp.get("/<int:item_id>")
def get_item(item_id: int):
    it = db.session.get(Item, item_id)
    if not it or (it.status not in PUBLIC_STATUSES and not _is_admin()):
        return jsonify({"error": "Item not found"}), 404
    return jsonify({"item": _item_schema.dump(it)})


@bp.post("")
def create_item():
    """Report a lost or found item. New reports wait for admin approval."""
    data = request.get_json(silent=True) or {}
    try:
        fields = _create_schema.load(data)
    except ValidationError as e:
        return jsonify({"error": "Invalid item", "details": e.messages}), 400

    if fields.get("category_id") is not None and db.session.get(Category, fields["category_id"]) is None:
        return jsonify({"error": "Unknown category"}), 400

    item = Item(status="pending", **fields)
    user = getattr(g, "current_user", None)
    if user is not None:
        item.reported_by_id = user.id
        item.reporter_name = item.reporter_name or user.display_name
        item.reporter_email = item.reporter_email or user.email

    db.session.add(item)
    db.session.commit()
    current_app.logger.info("New %s item %s reported", item.type, item.id)
    return jsonify({"item": _item_schema.dump(item)}), 201


@bp.get("/<int:item_id>/matches")
def item_matches(item_id: int):
    """Live potential matches for an item (top 10, lenient threshold)."""
    it = db.session.get(Item, item_id)
    if not it or (it.status not in PUBLIC_STATUSES and not _is_admin()):
        return jsonify({"error": "Item not found"}), 404
    matches = get_item_matches(item_id)[:10]
    return jsonify({"matches": _candidates_schema.dump(matches)})

from __future__ import annotations

from datetime import datetime, timezone
import logging

from flask import Blueprint, jsonify, request, g, current_app
from marshmallow import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...models.app_setting import AppSetting
from ...models.category import Category
from ...models.enums import ITEM_STATUSES
from ...models.item import Item
from ...models.match import PotentialMatch
from ...schemas.item import CategorySchema, ItemSchema
from ...schemas.match import PotentialMatchSchema
from ..matching import process_and_notify, run_batch_sweep

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__, url_prefix="/admin")

AUTO_MATCHING_KEY = "features.auto_matching.enabled"

_item_schema = ItemSchema()
_category_schema = CategorySchema()


@bp.before_request
def _require_admin():
    u = getattr(g, "current_user", None)
    if not u or getattr(u, "role", None) != "admin":
        return jsonify({"error": "Admin access required"}), 403


def _admin_item_dict(it: Item) -> dict:
    payload = _item_schema.dump(it)
    payload["reporterEmail"] = it.reporter_email
    payload["adminNotes"] = it.admin_notes
    payload["matchCount"] = len(it.potential_matches)
    return payload


def _dispatch_matching(item_id: int) -> str:
    """Run match processing for a freshly approved item.

    Returns "queued" when handed to Celery, "done" when run inline and
    "skipped" when auto matching is switched off.
    """
    if not AppSetting.get_bool(AUTO_MATCHING_KEY, True):
        return "skipped"
    if current_app.config.get("MATCHING_USE_CELERY"):
        try:
            from ...tasks.jobs.matching import process_item_matches
            process_item_matches.delay(item_id)
            return "queued"
        except Exception:
            logger.exception("Could not enqueue matching for item %s; running inline", item_id)
    process_and_notify(item_id)
    return "done"


@bp.get("/items")
def admin_list_items():
    """List items for moderation.

    Query params: status (pending|approved|claimed|rejected), type (lost|found), limit (default 200, max 500)
    """
    q = Item.query
    status = (request.args.get("status") or "").strip().lower()
    if status:
        if status not in ITEM_STATUSES:
            return jsonify({"error": "Invalid status"}), 400
        q = q.filter(Item.status == status)
    type_param = (request.args.get("type") or "").strip().lower()
    if type_param in ("lost", "found"):
        q = q.filter(Item.type == type_param)
    try:
        limit = max(1, min(500, int(request.args.get("limit", 200))))
    except (TypeError, ValueError):
        limit = 200
    rows = q.order_by(Item.date_reported.desc(), Item.id.desc()).limit(limit).all()
    return jsonify({"items": [_admin_item_dict(it) for it in rows]})


@bp.post("/items/<int:item_id>/approve")
def admin_approve_item(item_id: int):
    it: Item | None = db.session.get(Item, item_id)
    if not it:
        return jsonify({"error": "Item not found"}), 404
    if it.status == "claimed":
        return jsonify({"error": "Claimed items cannot be re-approved"}), 409
    it.status = "approved"
    db.session.commit()
    matching = _dispatch_matching(item_id)
    it = db.session.get(Item, item_id)
    return jsonify({"item": _admin_item_dict(it), "matching": matching})


@bp.post("/items/<int:item_id>/reject")
def admin_reject_item(item_id: int):
    it: Item | None = db.session.get(Item, item_id)
    if not it:
        return jsonify({"error": "Item not found"}), 404
    data = request.get_json(silent=True) or {}
    it.status = "rejected"
    it.admin_notes = (data.get("reason") or "").strip() or "Rejected by admin"
    db.session.commit()
    return jsonify({"item": _admin_item_dict(it)})


@bp.post("/items/<int:item_id>/claim")
def admin_mark_claimed(item_id: int):
    """Mark an item as returned to its owner; it leaves the matching pool."""
    it: Item | None = db.session.get(Item, item_id)
    if not it:
        return jsonify({"error": "Item not found"}), 404
    data = request.get_json(silent=True) or {}
    it.status = "claimed"
    it.claimed_by_name = (data.get("claimerName") or "").strip() or None
    it.claimed_by_email = (data.get("claimerEmail") or "").strip() or None
    it.claimed_by_phone = (data.get("claimerPhone") or "").strip() or None
    it.claimed_at = datetime.now(timezone.utc)
    db.session.commit()
    return jsonify({"item": _admin_item_dict(it)})


@bp.delete("/items/<int:item_id>")
def admin_delete_item(item_id: int):
    """Permanently delete an item; cached match rows on both sides go with it."""
    it: Item | None = db.session.get(Item, item_id)
    if not it:
        return jsonify({"error": "Item not found"}), 404
    try:
        PotentialMatch.query.filter(PotentialMatch.matched_item_id == item_id).delete(synchronize_session="evaluate")
        db.session.delete(it)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Failed to delete item %s", item_id)
        return jsonify({"error": "Failed to delete item"}), 500
    return jsonify({"deleted": True, "id": item_id})


@bp.get("/matching")
def admin_matching_overview():
    """Summary of the stored match lists: counts plus the strongest pairs."""
    try:
        limit = max(1, min(100, int(request.args.get("limit", 20))))
    except (TypeError, ValueError):
        limit = 20
    approved = dict(
        db.session.query(Item.type, func.count(Item.id))
        .filter(Item.status == "approved")
        .group_by(Item.type)
        .all()
    )
    items_with_matches = db.session.query(func.count(func.distinct(PotentialMatch.item_id))).scalar() or 0
    top = (
        PotentialMatch.query
        .join(Item, Item.id == PotentialMatch.item_id)
        .filter(Item.type == "lost")
        .order_by(PotentialMatch.score.desc(), PotentialMatch.id.asc())
        .limit(limit)
        .all()
    )
    pairs = []
    for pm in top:
        entry = PotentialMatchSchema().dump(pm)
        entry["item"] = _item_schema.dump(pm.item)
        pairs.append(entry)
    return jsonify({
        "approved": {"lost": int(approved.get("lost", 0)), "found": int(approved.get("found", 0))},
        "itemsWithMatches": int(items_with_matches),
        "topMatches": pairs,
    })


@bp.post("/matching/run")
def admin_run_matching():
    """Run the batch sweep over every approved item."""
    if current_app.config.get("MATCHING_USE_CELERY"):
        try:
            from ...tasks.jobs.matching import run_batch_matching
            res = run_batch_matching.delay()
            return jsonify({"queued": True, "taskId": res.id}), 202
        except Exception:
            logger.exception("Could not enqueue batch matching; running inline")
    total = run_batch_sweep()
    return jsonify({"queued": False, "totalMatches": total})


@bp.post("/categories")
def admin_create_category():
    data = request.get_json(silent=True) or {}
    try:
        fields = _category_schema.load(data)
    except ValidationError as e:
        return jsonify({"error": "Invalid category", "details": e.messages}), 400
    cat = Category(**fields)
    db.session.add(cat)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Category already exists"}), 409
    return jsonify({"category": _category_schema.dump(cat)}), 201


@bp.get("/settings")
def admin_get_settings():
    return jsonify({"settings": {"features": {"autoMatching": AppSetting.get_bool(AUTO_MATCHING_KEY, True)}}})


@bp.patch("/settings")
def admin_update_settings():
    data = request.get_json(silent=True) or {}
    features = data.get("features") or {}
    if not isinstance(features, dict) or "autoMatching" not in features:
        return jsonify({"error": "No recognized settings"}), 400
    val = bool(features.get("autoMatching"))
    AppSetting.set_bool(AUTO_MATCHING_KEY, val)
    return jsonify({"updated": {"features": {"autoMatching": val}}})

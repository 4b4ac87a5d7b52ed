from __future__ import annotations

from datetime import datetime, timezone
import logging

from flask import Blueprint, jsonify, request, g
from marshmallow import ValidationError

from ...extensions import db
from ...models.claim import ClaimRequest
from ...models.enums import CLAIM_STATUSES, OPEN_CLAIM_STATUSES, PUBLIC_STATUSES
from ...models.item import Item
from ...schemas.claim import ClaimCreateSchema, ClaimReviewSchema, ClaimSchema
from ..notifications.notifier import notify_claim_reviewed

logger = logging.getLogger(__name__)

bp = Blueprint("claims", __name__, url_prefix="/claims")

_claim_schema = ClaimSchema()
_claims_schema = ClaimSchema(many=True)
_create_schema = ClaimCreateSchema()
_review_schema = ClaimReviewSchema()


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _is_admin() -> bool:
    u = getattr(g, "current_user", None)
    return bool(u) and getattr(u, "role", None) == "admin"


def _current_user_id() -> int | None:
    uid = getattr(g, "current_user_id", None)
    return int(uid) if uid is not None else None


@bp.post("")
def create_claim():
    uid = _current_user_id()
    if not uid:
        return _json_error("Authentication required", 401)
    try:
        fields = _create_schema.load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": "Invalid claim", "details": e.messages}), 400

    item = db.session.get(Item, fields["item_id"])
    if not item or (item.status not in PUBLIC_STATUSES and not _is_admin()):
        return _json_error("Item not found", 404)
    if item.type != "found":
        return _json_error("Only found items can be claimed", 400)
    if item.status != "approved":
        return _json_error("This item is not available for claiming", 409)

    existing = ClaimRequest.query.filter(
        ClaimRequest.item_id == item.id,
        ClaimRequest.claimant_user_id == uid,
        ClaimRequest.status.in_(OPEN_CLAIM_STATUSES),
    ).first()
    if existing:
        return _json_error("You already have a pending claim for this item", 409)

    claim = ClaimRequest(claimant_user_id=uid, **fields)
    db.session.add(claim)
    db.session.commit()
    logger.info("User %s submitted claim %s for item %s", uid, claim.id, item.id)
    return jsonify({"claim": _claim_schema.dump(claim)}), 201


@bp.get("")
def list_claims():
    """List claims, newest first.

    Students only ever see their own claims. Admins may filter with
    ``status``, ``itemId`` and ``claimantId``.
    """
    uid = _current_user_id()
    if not uid:
        return _json_error("Authentication required", 401)

    q = ClaimRequest.query
    if not _is_admin():
        q = q.filter(ClaimRequest.claimant_user_id == uid)
    else:
        claimant_id = request.args.get("claimantId")
        if claimant_id:
            try:
                q = q.filter(ClaimRequest.claimant_user_id == int(claimant_id))
            except ValueError:
                return _json_error("Invalid claimantId", 400)
    status = (request.args.get("status") or "").strip().lower()
    if status:
        if status not in CLAIM_STATUSES:
            return _json_error("Invalid status", 400)
        q = q.filter(ClaimRequest.status == status)
    item_id = request.args.get("itemId")
    if item_id:
        try:
            q = q.filter(ClaimRequest.item_id == int(item_id))
        except ValueError:
            return _json_error("Invalid itemId", 400)

    rows = q.order_by(ClaimRequest.created_at.desc(), ClaimRequest.id.desc()).limit(200).all()
    return jsonify({"claims": _claims_schema.dump(rows)})


def _load_visible_claim(claim_id: int):
    claim = db.session.get(ClaimRequest, claim_id)
    if not claim or (claim.claimant_user_id != _current_user_id() and not _is_admin()):
        return None
    return claim


@bp.get("/<int:claim_id>")
def get_claim(claim_id: int):
    claim = _load_visible_claim(claim_id)
    if not claim:
        return _json_error("Claim not found", 404)
    return jsonify({"claim": _claim_schema.dump(claim)})


@bp.post("/<int:claim_id>/withdraw")
def withdraw_claim(claim_id: int):
    claim = db.session.get(ClaimRequest, claim_id)
    if not claim or claim.claimant_user_id != _current_user_id():
        return _json_error("Claim not found", 404)
    if claim.status not in OPEN_CLAIM_STATUSES:
        return _json_error("This claim cannot be withdrawn", 409)
    claim.status = "withdrawn"
    db.session.commit()
    return jsonify({"claim": _claim_schema.dump(claim)})


@bp.patch("/<int:claim_id>")
def review_claim(claim_id: int):
    """Admin review of an open claim.

    Body JSON: { status: 'under_review' | 'approved' | 'rejected', adminNotes?, rejectionReason? }

    Approving marks the item as claimed, which takes it out of the matching
    pool, and rejects every other open claim on the same item.
    """
    if not _is_admin():
        return _json_error("Admin access required", 403)
    claim = db.session.get(ClaimRequest, claim_id)
    if not claim:
        return _json_error("Claim not found", 404)
    try:
        data = _review_schema.load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": "Invalid review", "details": e.messages}), 400
    if claim.status not in OPEN_CLAIM_STATUSES:
        return _json_error(f"Claim is already {claim.status}", 409)

    item = claim.item
    new_status = data["status"]
    if new_status == "approved" and item.status != "approved":
        return _json_error("This item is no longer available for claiming", 409)

    now = datetime.now(timezone.utc)
    reviewer_id = _current_user_id()
    claim.status = new_status
    if data["admin_notes"]:
        claim.admin_notes = data["admin_notes"]
    claim.reviewed_by_id = reviewer_id
    claim.reviewed_at = now
    if new_status == "rejected":
        claim.rejection_reason = data["rejection_reason"]

    if new_status == "approved":
        claimant = claim.claimant
        item.status = "claimed"
        item.claimed_by_name = claimant.display_name
        item.claimed_by_email = claimant.email
        item.claimed_by_phone = claim.contact_phone
        item.claimed_at = now
        others = ClaimRequest.query.filter(
            ClaimRequest.item_id == item.id,
            ClaimRequest.id != claim.id,
            ClaimRequest.status.in_(OPEN_CLAIM_STATUSES),
        ).all()
        for other in others:
            other.status = "rejected"
            other.rejection_reason = "Another claim was approved for this item"
            other.reviewed_by_id = reviewer_id
            other.reviewed_at = now

    db.session.commit()
    logger.info("Claim %s set to %s by admin %s", claim.id, new_status, reviewer_id)

    if new_status in ("approved", "rejected"):
        notify_claim_reviewed(claim, approved=new_status == "approved")
    return jsonify({"claim": _claim_schema.dump(claim)})

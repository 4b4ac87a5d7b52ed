from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from ...extensions import db
from ...models.enums import PUBLIC_STATUSES
from ...models.item import Item
from ...schemas.match import PotentialMatchSchema
from ..matching import cached_matches, score_one

bp = Blueprint("matches", __name__, url_prefix="/matches")

_cache_schema = PotentialMatchSchema(many=True)


def _is_admin() -> bool:
    u = getattr(g, "current_user", None)
    return bool(u) and getattr(u, "role", None) == "admin"


def _visible(it: Item | None) -> bool:
    return it is not None and (it.status in PUBLIC_STATUSES or _is_admin())


@bp.get("/score")
def score_pair_route():
    """Score one lost item against one found item.

    Query params: lostItemId, foundItemId (both required)
    """
    try:
        lost_id = int(request.args.get("lostItemId"))
        found_id = int(request.args.get("foundItemId"))
    except (TypeError, ValueError):
        return jsonify({"error": "lostItemId and foundItemId must be integers"}), 400

    lost = db.session.get(Item, lost_id)
    found = db.session.get(Item, found_id)
    if not _visible(lost) or not _visible(found) or lost.type != "lost" or found.type != "found":
        return jsonify({"error": "Invalid lost/found item ids"}), 400
    return jsonify({"lostItemId": lost_id, "foundItemId": found_id, "score": score_one(lost, found)})


@bp.get("/cache/<int:item_id>")
def cached_for_item(item_id: int):
    """The item's stored match list from the last notify run or sweep.

    Entries can be stale if either item changed after they were computed.
    Non-admins only see entries whose matched item is still public.
    """
    if not _visible(db.session.get(Item, item_id)):
        return jsonify({"error": "Item not found"}), 404
    rows = [r for r in cached_matches(item_id) if _visible(r.matched_item)]
    return jsonify({"itemId": item_id, "matches": _cache_schema.dump(rows)})

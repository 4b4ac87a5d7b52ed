"""Heuristic similarity score between a lost item and a found item.

The score is a weighted sum over five independent features. Each feature
contributes up to its maximum weight; the weights add up to a fixed 100-point
scale that does not shrink when a field is missing. Downstream thresholds
(40/50/60) are calibrated against that fixed scale.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import math
import re
from typing import Any, List

CATEGORY_WEIGHT = 25
LOCATION_WEIGHT = 20
DATE_WEIGHT = 20
NAME_WEIGHT = 20
DESCRIPTION_WEIGHT = 15
MAX_SCORE = CATEGORY_WEIGHT + LOCATION_WEIGHT + DATE_WEIGHT + NAME_WEIGHT + DESCRIPTION_WEIGHT

# Applied to the running total (not the date feature) when the find predates the loss
FOUND_BEFORE_LOST_PENALTY = 10

# (max day difference, points), checked in order
_DATE_BANDS = ((1, 20), (3, 15), (7, 10), (14, 5))

_LOCATION_SPLIT_RE = re.compile(r"[\s\-_]+")
_NAME_SPLIT_RE = re.compile(r"[\s\-_,]+")
_DESCRIPTION_SPLIT_RE = re.compile(r"[\s\-_,.:;!?]+")
_STOP = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
    "for", "of", "with", "is", "was", "it", "this", "that", "my", "i",
}


@dataclass(frozen=True)
class ItemSnapshot:
    """Read-only view of the item fields that take part in matching."""

    id: Any
    type: str
    status: str | None = None
    category_id: Any | None = None
    location: str | None = None
    item_name: str | None = None
    description: str | None = None
    date_lost_found: date | None = None
    reported_by_id: Any | None = None

    @classmethod
    def from_model(cls, item: Any) -> "ItemSnapshot":
        dlf = getattr(item, "date_lost_found", None)
        if isinstance(dlf, datetime):
            dlf = dlf.date()
        return cls(
            id=item.id,
            type=item.type,
            status=getattr(item, "status", None),
            category_id=getattr(item, "category_id", None),
            location=getattr(item, "location", None),
            item_name=getattr(item, "item_name", None),
            description=getattr(item, "description", None),
            date_lost_found=dlf,
            reported_by_id=getattr(item, "reported_by_id", None),
        )


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; scores round .5 upwards
    return int(math.floor(value + 0.5))


def _tokens(text: str, splitter: re.Pattern) -> List[str]:
    return [t for t in splitter.split(text) if t]


def category_points(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    if lost.category_id is None or found.category_id is None:
        return 0
    return CATEGORY_WEIGHT if str(lost.category_id) == str(found.category_id) else 0


def location_points(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    if not lost.location or not found.location:
        return 0
    ll = lost.location.lower()
    fl = found.location.lower()
    if ll == fl:
        return LOCATION_WEIGHT
    if ll in fl or fl in ll:
        return 15
    lost_words = _tokens(ll, _LOCATION_SPLIT_RE)
    found_words = _tokens(fl, _LOCATION_SPLIT_RE)
    common = [w for w in lost_words if any(fw in w or w in fw for fw in found_words)]
    return min(10, len(common) * 5)


def date_points(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    if lost.date_lost_found is None or found.date_lost_found is None:
        return 0
    diff = abs((found.date_lost_found - lost.date_lost_found).days)
    for max_days, points in _DATE_BANDS:
        if diff <= max_days:
            return points
    return 0


def date_penalty(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    if lost.date_lost_found is None or found.date_lost_found is None:
        return 0
    return FOUND_BEFORE_LOST_PENALTY if found.date_lost_found < lost.date_lost_found else 0


def name_points(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    if not lost.item_name or not found.item_name:
        return 0
    ln = lost.item_name.lower()
    fn = found.item_name.lower()
    if ln == fn:
        return NAME_WEIGHT
    lost_words = [w for w in _tokens(ln, _NAME_SPLIT_RE) if len(w) > 2]
    found_words = [w for w in _tokens(fn, _NAME_SPLIT_RE) if len(w) > 2]
    matched = sum(1 for lw in lost_words if any(fw in lw or lw in fw for fw in found_words))
    ratio = matched / max(len(lost_words), 1)
    return round_half_up(ratio * NAME_WEIGHT)


def _significant_words(text: str) -> List[str]:
    return [w for w in _tokens(text, _DESCRIPTION_SPLIT_RE) if len(w) > 2 and w not in _STOP]


def _description_word_matches(lw: str, found_words: List[str]) -> bool:
    for fw in found_words:
        if fw == lw:
            return True
        if len(fw) > 4 and len(lw) > 4 and (fw in lw or lw in fw):
            return True
    return False


def description_points(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    if not lost.description or not found.description:
        return 0
    lost_words = _significant_words(lost.description.lower())
    found_words = _significant_words(found.description.lower())
    matched = sum(1 for lw in lost_words if _description_word_matches(lw, found_words))
    ratio = min(matched / max(len(lost_words), 1), 1.0)
    return round_half_up(ratio * DESCRIPTION_WEIGHT)


def score_items(lost: ItemSnapshot, found: ItemSnapshot) -> int:
    """Return the 0-100 match score of ``lost`` against ``found``.

    Argument order matters: the found-before-lost penalty is directional, so
    ``score_items(a, b)`` and ``score_items(b, a)`` can differ.
    """
    total = (
        category_points(lost, found)
        + location_points(lost, found)
        + date_points(lost, found)
        - date_penalty(lost, found)
        + name_points(lost, found)
        + description_points(lost, found)
    )
    score = round_half_up(100 * total / MAX_SCORE)
    return max(0, min(100, score))


def score_pair(a: ItemSnapshot, b: ItemSnapshot) -> int:
    """Score two items of opposite types, whichever order they come in."""
    if a.type == b.type:
        raise ValueError("Only a lost item and a found item can be scored against each other")
    if a.type == "lost":
        return score_items(a, b)
    return score_items(b, a)

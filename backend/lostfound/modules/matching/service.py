"""Match retrieval and orchestration.

Entry points:

- :func:`score_one` scores one lost item against one found item.
- :func:`find_matches` ranks the approved items of the opposite type.
- :func:`process_and_notify` ranks at the notify threshold, notifies
  reporters and overwrites the item's cached match list.
- :func:`run_batch_sweep` runs :func:`process_and_notify` for every approved item.
- :func:`get_item_matches` is the "show matches" lookup used by the item page.

Failures never propagate out of the orchestration functions: they are logged,
the session is rolled back and an empty result is returned, so callers
cannot tell "matching failed" apart from "no matches" by the return value
alone.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, List

from flask import current_app, has_app_context

from .scoring import ItemSnapshot, score_items
from .store import ItemStore, default_store

logger = logging.getLogger(__name__)

DISPLAY_MIN_SCORE = 40
DEFAULT_MIN_SCORE = 50
NOTIFY_MIN_SCORE = 60
CACHE_SIZE = 10
FOUND_NOTIFY_FANOUT = 3


@dataclass
class MatchCandidate:
    item: Any
    score: int
    matched_at: datetime


def _config_int(name: str, default: int) -> int:
    if not has_app_context():
        return default
    try:
        return int(current_app.config.get(name, default))
    except (TypeError, ValueError):
        return default


def _default_notifier():
    # Imported lazily; the notifier pulls in mail and notification models
    from ..notifications.notifier import default_notifier
    return default_notifier


def _reset(store: ItemStore) -> None:
    # A failed statement leaves the session unusable until it is rolled back
    try:
        store.reset()
    except Exception:
        logger.exception("Could not reset the session after a matching failure")


def score_one(lost_item, found_item) -> int:
    lost = ItemSnapshot.from_model(lost_item)
    found = ItemSnapshot.from_model(found_item)
    if lost.type != "lost" or found.type != "found":
        raise ValueError("score_one expects a lost item and a found item")
    return score_items(lost, found)


def _rank(item, min_score: int, store: ItemStore) -> List[MatchCandidate]:
    source = ItemSnapshot.from_model(item)
    pool = store.opposing_pool(item)
    now = datetime.now(timezone.utc)

    matches: List[MatchCandidate] = []
    for cand in pool:
        snap = ItemSnapshot.from_model(cand)
        if snap.id == source.id or snap.type == source.type:
            continue
        if source.type == "lost":
            score = score_items(source, snap)
        else:
            score = score_items(snap, source)
        if score >= min_score:
            matches.append(MatchCandidate(item=cand, score=score, matched_at=now))

    # list.sort is stable: equal scores keep storage order
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches


def find_matches(item, min_score: int | None = None, store: ItemStore | None = None) -> List[MatchCandidate]:
    """Rank approved items of the opposite type against ``item``.

    Only candidates scoring at least ``min_score`` are returned, best first.
    """
    store = store or default_store
    if min_score is None:
        min_score = _config_int("MATCH_MIN_SCORE_DEFAULT", DEFAULT_MIN_SCORE)
    try:
        return _rank(item, min_score, store)
    except Exception:
        logger.exception(
            "Find matches failed for item %s; returning an empty result (matches undetermined)",
            getattr(item, "id", None),
        )
        _reset(store)
        return []


def _notify(store: ItemStore, notifier, user_id, lost_item, found_item, score: int) -> bool:
    try:
        if not store.match_notification_preference(user_id):
            logger.info("User %s opted out of match notifications", user_id)
            return False
        user = store.get_user(user_id)
        if user is None:
            return False
        notifier.notify_match(user, lost_item, found_item, score)
        return True
    except Exception:
        logger.exception(
            "Match notification to user %s failed (lost=%s found=%s)",
            user_id, getattr(lost_item, "id", None), getattr(found_item, "id", None),
        )
        _reset(store)
        return False


def process_and_notify(item, store: ItemStore | None = None, notifier=None) -> List[MatchCandidate]:
    """Recompute matches for one item, notify reporters and refresh its cache.

    A lost item's reporter hears about the single best match. For a found
    item, the reporters of up to the top three matching lost items are each
    notified about their own pairing. The cache always ends up holding the
    current top matches, even when that list is empty.
    """
    store = store or default_store
    notifier = notifier or _default_notifier()
    item_id = getattr(item, "id", item)
    try:
        fresh = store.get_item(item_id)
        if fresh is None:
            logger.warning("Process matches: item %s not found", item_id)
            return []

        matches = _rank(fresh, _config_int("MATCH_MIN_SCORE_NOTIFY", NOTIFY_MIN_SCORE), store)

        if fresh.type == "lost":
            if matches and fresh.reported_by_id is not None:
                top = matches[0]
                _notify(store, notifier, fresh.reported_by_id, fresh, top.item, top.score)
        else:
            fanout = _config_int("MATCH_NOTIFY_FOUND_FANOUT", FOUND_NOTIFY_FANOUT)
            for m in matches[:fanout]:
                if m.item.reported_by_id is not None:
                    _notify(store, notifier, m.item.reported_by_id, m.item, fresh, m.score)

        store.update_match_cache(fresh.id, matches[: _config_int("MATCH_CACHE_SIZE", CACHE_SIZE)])
        return matches
    except Exception:
        logger.exception("Process matches failed for item %s", item_id)
        _reset(store)
        return []


def run_batch_sweep(store: ItemStore | None = None, notifier=None) -> int:
    """Process every approved item; return the total number of matches found."""
    store = store or default_store
    notifier = notifier or _default_notifier()
    logger.info("Starting batch matching")
    try:
        item_ids = [it.id for it in store.approved_items()]
    except Exception:
        logger.exception("Batch matching could not load approved items")
        _reset(store)
        return 0

    total = 0
    for item_id in item_ids:
        total += len(process_and_notify(item_id, store=store, notifier=notifier))
    logger.info("Batch matching complete. Found %d potential matches across %d items", total, len(item_ids))
    return total


def get_item_matches(item_id, store: ItemStore | None = None) -> List[MatchCandidate]:
    """Live matches for the item page at the lenient display threshold.

    The item's cached match list is loaded alongside it but the result is
    always a fresh computation.
    """
    store = store or default_store
    try:
        item = store.get_item(item_id, with_cache=True)
    except Exception:
        logger.exception("Get item matches failed to load item %s", item_id)
        _reset(store)
        return []
    if item is None:
        return []
    return find_matches(item, _config_int("MATCH_MIN_SCORE_DISPLAY", DISPLAY_MIN_SCORE), store)


def cached_matches(item_id, store: ItemStore | None = None) -> list:
    """The persisted match list of an item, best first (may be stale)."""
    store = store or default_store
    item = store.get_item(item_id, with_cache=True)
    if item is None:
        return []
    return list(item.potential_matches)

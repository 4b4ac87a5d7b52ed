from .scoring import ItemSnapshot, score_items, score_pair
from .service import (
    MatchCandidate,
    cached_matches,
    find_matches,
    get_item_matches,
    process_and_notify,
    run_batch_sweep,
    score_one,
)
from .store import ItemStore

__all__ = [
    "ItemSnapshot",
    "ItemStore",
    "MatchCandidate",
    "cached_matches",
    "find_matches",
    "get_item_matches",
    "process_and_notify",
    "run_batch_sweep",
    "score_items",
    "score_one",
    "score_pair",
]

from __future__ import annotations

from collections import defaultdict
from queue import Queue, Full
from threading import Lock
from typing import Any, Dict, List

# In-process pub/sub feeding the SSE stream. Each worker process has its own
# subscribers, so events only reach clients connected to the same process.
_subs: Dict[int, List[Queue]] = defaultdict(list)
_lock = Lock()


def subscribe(user_id: int) -> Queue:
    q: Queue = Queue(maxsize=100)
    with _lock:
        _subs[user_id].append(q)
    return q


def unsubscribe(user_id: int, q: Queue) -> None:
    with _lock:
        arr = _subs.get(user_id)
        if not arr:
            return
        if q in arr:
            arr.remove(q)
        if not arr:
            _subs.pop(user_id, None)


def publish(user_id: int, event: Dict[str, Any]) -> int:
    """Queue ``event`` for every live subscriber of ``user_id``.

    Returns how many subscribers received it; full queues are skipped.
    """
    with _lock:
        arr = list(_subs.get(user_id, []))
    delivered = 0
    for q in arr:
        try:
            q.put_nowait(event)
            delivered += 1
        except Full:
            continue
    return delivered

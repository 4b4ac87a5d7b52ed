from __future__ import annotations

from flask import Flask, has_app_context

from lostfound.modules.matching import process_and_notify, run_batch_sweep
from lostfound.tasks.celery_app import celery_app

_flask_app: Flask | None = None


def _worker_app() -> Flask:
    global _flask_app
    if _flask_app is None:
        from lostfound import create_app
        _flask_app = create_app()
    return _flask_app


def _in_app_context(fn, *args):
    if has_app_context():
        return fn(*args)
    with _worker_app().app_context():
        return fn(*args)


def _process(item_id: int) -> int:
    return len(process_and_notify(item_id))


@celery_app.task(name="lostfound.tasks.jobs.matching.process_item_matches")
def process_item_matches(item_id: int) -> int:
    """Match one item, notify reporters, refresh its cache. Returns the match count."""
    return _in_app_context(_process, item_id)


@celery_app.task(name="lostfound.tasks.jobs.matching.run_batch_matching")
def run_batch_matching() -> int:
    return _in_app_context(run_batch_sweep)

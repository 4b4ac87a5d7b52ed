import os
from celery import Celery


def make_celery() -> Celery:
    broker = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    backend = os.getenv("CELERY_RESULT_BACKEND", broker)
    app = Celery("lostfound", broker=broker, backend=backend, include=[
        "lostfound.tasks.jobs.matching",
    ])
    app.conf.update(
        task_track_started=True,
        task_always_eager=os.getenv("CELERY_TASK_ALWAYS_EAGER", "").lower() in {"1", "true", "yes"},
    )
    # Optional periodic batch sweep (celery beat)
    try:
        interval = int(os.getenv("MATCHING_SWEEP_INTERVAL_SECONDS", "0") or 0)
    except ValueError:
        interval = 0
    if interval > 0:
        app.conf.beat_schedule = {
            "matching-batch-sweep": {
                "task": "lostfound.tasks.jobs.matching.run_batch_matching",
                "schedule": float(interval),
            },
        }
    return app

celery_app = make_celery()

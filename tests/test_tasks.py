from lostfound.models import PotentialMatch
from lostfound.tasks.jobs.matching import process_item_matches, run_batch_matching


def test_process_item_task_runs_in_current_app_context(make_item):
    lost = make_item("lost")
    make_item("found")
    # Calling the task directly executes it in-process
    assert process_item_matches(lost.id) == 1
    assert PotentialMatch.query.filter_by(item_id=lost.id).count() == 1


def test_batch_task_returns_total(make_item):
    make_item("lost")
    make_item("found")
    make_item("found", status="pending")
    assert run_batch_matching() == 2

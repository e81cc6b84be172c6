"""Tests for the worker-process task, run in-process."""

from queue import Queue
from threading import Event

import pytest

from nonogram.exceptions import SearchExhaustedError
from nonogram.solver import worker as worker_module
from nonogram.solver.task_args import WorkerTask
from nonogram.solver.verifier import has_unique_solution
from nonogram.solver.worker import init_worker_globals, worker_task


def make_task(**kwargs) -> WorkerTask:
    fields = dict(
        request_id=7, epoch=3, size=5, max_attempts=200, require_unique=True, worker_idx=1
    )
    fields.update(kwargs)
    return WorkerTask(**fields)


def drain(queue: Queue) -> list:
    reports = []
    while not queue.empty():
        reports.append(queue.get_nowait())
    return reports


@pytest.fixture
def reports(monkeypatch):
    monkeypatch.setattr(worker_module, "worker_state", None)
    queue: Queue = Queue()
    init_worker_globals(queue, Event())
    return queue


def test_worker_requires_initialization(monkeypatch):
    monkeypatch.setattr(worker_module, "worker_state", None)
    with pytest.raises(RuntimeError):
        worker_task(make_task())


def test_success_is_reported_last(reports):
    assert worker_task(make_task()) == "success"
    posted = drain(reports)
    final = posted[-1]
    assert final.status == "success"
    assert (final.request_id, final.epoch, final.worker_idx) == (7, 3, 1)
    assert has_unique_solution(final.puzzle.rows, final.puzzle.cols, 5)
    assert all(r.status == "progress" for r in posted[:-1])
    assert [r.attempt for r in posted[:-1]] == list(range(1, len(posted)))


def test_cancelled_worker_reports_cancelled(reports):
    worker_module.worker_state.cancel_token.cancel()
    assert worker_task(make_task()) == "cancelled"
    assert [r.status for r in drain(reports)] == ["cancelled"]


def test_exhaustion_reports_no_solution(reports, monkeypatch):
    def exhausted(size, max_attempts, *args, **kwargs):
        raise SearchExhaustedError(size, max_attempts)

    monkeypatch.setattr(worker_module, "search", exhausted)
    assert worker_task(make_task(max_attempts=9)) == "no_solution"
    (report,) = drain(reports)
    assert report.attempt == 9
    assert "9 attempts" in report.err_msg


def test_unexpected_exception_reports_error_with_traceback(reports, monkeypatch):
    def broken(*args, **kwargs):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr(worker_module, "search", broken)
    assert worker_task(make_task()) == "error"
    (report,) = drain(reports)
    assert report.status == "error"
    assert "boom" in report.err_msg
    assert "Traceback" in report.err_msg

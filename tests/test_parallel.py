import threading
import time

import pytest

from core.analysis.parallel import run_in_parallel
from core.errors import RepositoryError


def test_results_keyed_by_branch():
    results = run_in_parallel({"a": lambda: 1, "b": lambda: "two"})

    assert results == {"a": 1, "b": "two"}
    assert list(results) == ["a", "b"]


def test_empty_tasks():
    assert run_in_parallel({}) == {}


def test_branches_run_concurrently():
    barrier = threading.Barrier(3, timeout=5)

    def branch():
        barrier.wait()
        return threading.current_thread().name

    results = run_in_parallel({"a": branch, "b": branch, "c": branch}, name="kpi")

    assert len(set(results.values())) == 3
    assert all(name.startswith("kpi") for name in results.values())


def test_first_failure_is_reraised_unchanged():
    error = RepositoryError("Failed to fetch stage durations", "stage durations")

    def failing():
        raise error

    with pytest.raises(RepositoryError) as excinfo:
        run_in_parallel({"ok": lambda: 1, "broken": failing})

    assert excinfo.value is error


def test_pending_siblings_are_cancelled():
    started = []

    def failing():
        raise ValueError("boom")

    def slow():
        started.append(True)
        time.sleep(0.05)
        return "late"

    with pytest.raises(ValueError, match="boom"):
        run_in_parallel(
            {"broken": failing, "slow_1": slow, "slow_2": slow, "slow_3": slow},
            max_workers=1
        )

    assert len(started) < 3

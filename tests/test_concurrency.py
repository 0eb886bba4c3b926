import threading
import time

import pytest

from carbon_estimation.core.concurrency import run_concurrently
from carbon_estimation.core.exceptions import RemoteCallError


def test_results_are_keyed_by_task():
    results = run_concurrently({
        "a": lambda: 1,
        "b": lambda: "two",
        3: lambda: [3],
    })
    assert results == {"a": 1, "b": "two", 3: [3]}


def test_empty_task_group():
    assert run_concurrently({}) == {}


def test_tasks_run_in_parallel():
    barrier = threading.Barrier(3, timeout=5)

    def task():
        barrier.wait()
        return True

    results = run_concurrently({i: task for i in range(3)}, max_workers=3)
    assert all(results.values())


def test_first_failure_is_propagated():
    def boom():
        raise RemoteCallError("quota exhausted", operation="class histogram")

    with pytest.raises(RemoteCallError, match="class histogram: quota exhausted"):
        run_concurrently({"ok": lambda: 1, "bad": boom}, max_workers=2)


def test_failure_cancels_tasks_not_yet_started():
    started = []

    def boom():
        raise ValueError("failed")

    def slow(name):
        def task():
            started.append(name)
            time.sleep(0.05)
            return name
        return task

    tasks = {"bad": boom}
    tasks.update({f"slow{i}": slow(f"slow{i}") for i in range(20)})

    with pytest.raises(ValueError):
        run_concurrently(tasks, max_workers=1)
    assert len(started) < 20


def test_group_timeout_raises_remote_call_error():
    release = threading.Event()

    def hang():
        release.wait(5)
        return None

    try:
        with pytest.raises(RemoteCallError, match="timed out"):
            run_concurrently({"hang": hang}, timeout=0.1, description="Loading datasets")
    finally:
        release.set()

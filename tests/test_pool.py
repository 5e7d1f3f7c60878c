"""Unit tests for utils.pool."""

import threading

from signal_desk.utils.pool import run_bounded


def test_run_bounded_collects_results():
    out = run_bounded([1, 2, 3], lambda x: x * 10, max_workers=2)
    assert out.results == {1: 10, 2: 20, 3: 30}
    assert out.failures == {}
    assert out.timed_out == []


def test_run_bounded_isolates_failures():
    def fn(x):
        if x == 2:
            raise ValueError("bad item")
        return x

    out = run_bounded([1, 2, 3], fn)
    assert out.results == {1: 1, 3: 3}
    assert out.failures == {2: "ValueError: bad item"}


def test_run_bounded_deadline():
    gate = threading.Event()

    def fn(x):
        if x == "slow":
            gate.wait(5)
        return x

    try:
        out = run_bounded(["fast", "slow"], fn, max_workers=2, deadline=0.5)
    finally:
        gate.set()
    assert out.results == {"fast": "fast"}
    assert out.timed_out == ["slow"]


def test_run_bounded_respects_worker_limit():
    lock = threading.Lock()
    active = [0]
    peak = [0]
    release = threading.Event()

    def fn(x):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
        release.wait(0.05)
        with lock:
            active[0] -= 1
        return x

    out = run_bounded(list(range(12)), fn, max_workers=3)
    assert len(out.results) == 12
    assert peak[0] <= 3


def test_run_bounded_empty():
    out = run_bounded([], lambda x: x)
    assert out.results == {} and out.failures == {} and out.timed_out == []

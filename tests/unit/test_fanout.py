"""Tests for the fan-out/fan-in helper."""
from __future__ import annotations

import threading
import time

import pytest

from repovend.core.fanout import FanOut, fan_out


def test_outcomes_keep_submission_order() -> None:
    def slow_square(n: int) -> int:
        time.sleep(0.01 * (5 - n))
        return n * n

    outcomes = fan_out([1, 2, 3, 4], slow_square)

    assert [o.key for o in outcomes] == [1, 2, 3, 4]
    assert [o.value for o in outcomes] == [1, 4, 9, 16]


def test_failure_does_not_affect_siblings() -> None:
    def work(n: int) -> int:
        if n == 2:
            raise ValueError("boom")
        return n

    outcomes = fan_out([1, 2, 3], work)

    assert [o.ok for o in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, ValueError)
    assert outcomes[1].value is None
    assert outcomes[2].value == 3


def test_units_run_concurrently() -> None:
    """Three units can only pass a 3-party barrier if they run at the same time."""
    barrier = threading.Barrier(3, timeout=5)

    def wait(_: int) -> bool:
        barrier.wait()
        return True

    outcomes = fan_out([1, 2, 3], wait, max_workers=3)

    assert all(o.ok for o in outcomes)


def test_join_can_be_called_per_phase() -> None:
    with FanOut(max_workers=2) as fan:
        fan.submit("a", lambda: 1)
        first = fan.join()
        fan.submit("b", lambda: 2)
        second = fan.join()

    assert [(o.key, o.value) for o in first] == [("a", 1)]
    assert [(o.key, o.value) for o in second] == [("b", 2)]


def test_custom_keys() -> None:
    outcomes = fan_out(["x", "yy"], len, key=lambda s: ("k", s))
    assert [o.key for o in outcomes] == [("k", "x"), ("k", "yy")]


def test_submit_after_close_raises() -> None:
    fan = FanOut()
    fan.close()
    with pytest.raises(RuntimeError):
        fan.submit("late", lambda: None)

"""Tests for the Check aggregator.

Covers:
- Fresh checks are healthy
- Health is the AND of all components (last mark per name wins)
- Idempotent marking
- Empty marks are no-ops
- failing() appends in place
- Concurrent marking and reading
"""

from __future__ import annotations

import threading

import pytest

from healthz.core.check import Check


@pytest.fixture()
def check() -> Check:
    """Create a fresh Check."""
    return Check()


# =============================================================================
#  Health state
# =============================================================================


class TestHealthy:
    """healthy() is true exactly when nothing is failing."""

    def test_fresh_check_is_healthy(self, check: Check) -> None:
        assert check.healthy() is True
        assert check.failing() == []

    def test_failing_component_makes_unhealthy(self, check: Check) -> None:
        check.mark_failing("db")
        assert check.healthy() is False

    def test_fail_then_pass_is_healthy(self, check: Check) -> None:
        check.mark_failing("db")
        check.mark_passing("db")
        assert check.healthy() is True

    def test_one_remaining_failure_keeps_unhealthy(self, check: Check) -> None:
        check.mark_failing("a", "b")
        check.mark_passing("a")
        assert check.healthy() is False
        assert check.failing([]) == ["b"]

    def test_mixed_sequence_ends_empty(self, check: Check) -> None:
        check.mark_passing()
        check.mark_failing("1")
        check.mark_failing("2")
        check.mark_failing("3", "4", "5")
        check.mark_passing("3", "4", "5")
        check.mark_passing("2")
        check.mark_passing("1")
        check.mark_failing()
        assert check.healthy() is True

    def test_last_mark_wins_per_component(self, check: Check) -> None:
        check.mark_passing("1", "3")
        check.mark_failing("2")
        check.mark_passing("2")
        check.mark_failing("3")
        assert check.failing() == ["3"]

    def test_passing_unknown_component_is_harmless(self, check: Check) -> None:
        check.mark_passing("never-seen")
        assert check.healthy() is True


class TestIdempotence:
    """Repeated marks leave state unchanged."""

    def test_repeated_failing(self, check: Check) -> None:
        check.mark_failing("x")
        check.mark_failing("x", "x")
        assert check.failing() == ["x"]

    def test_repeated_passing(self, check: Check) -> None:
        check.mark_failing("x", "y")
        check.mark_passing("x")
        check.mark_passing("x")
        assert check.failing() == ["y"]

    @pytest.mark.parametrize("initial", [(), ("a",), ("a", "b")])
    def test_empty_marks_change_nothing(self, check: Check, initial: tuple[str, ...]) -> None:
        check.mark_failing(*initial)
        before = sorted(check.failing())

        check.mark_failing()
        check.mark_passing()

        assert sorted(check.failing()) == before


# =============================================================================
#  failing()
# =============================================================================


class TestFailing:
    """failing() appends to the caller's list."""

    def test_returns_all_failing(self, check: Check) -> None:
        check.mark_failing("1", "2", "3")
        assert sorted(check.failing()) == ["1", "2", "3"]

    def test_appends_after_existing_items(self, check: Check) -> None:
        check.mark_failing("b", "c")
        dst = ["keep", "me"]

        result = check.failing(dst)

        assert result is dst
        assert result[:2] == ["keep", "me"]
        assert sorted(result[2:]) == ["b", "c"]

    def test_healthy_check_leaves_dst_alone(self, check: Check) -> None:
        dst = ["x"]
        assert check.failing(dst) is dst
        assert dst == ["x"]

    def test_none_returns_new_list(self, check: Check) -> None:
        check.mark_failing("z")
        first = check.failing()
        second = check.failing()
        assert first == second == ["z"]
        assert first is not second


# =============================================================================
#  Concurrency
# =============================================================================


class TestConcurrency:
    """Writers toggling components alongside readers."""

    WRITERS = 8
    READERS = 4
    ITERATIONS = 1000

    def test_toggling_writers_leave_check_healthy(self, check: Check) -> None:
        done = threading.Event()
        errors: list[BaseException] = []

        def writer() -> None:
            try:
                for _ in range(self.ITERATIONS):
                    check.mark_failing("x")
                    check.mark_passing("x")
            except BaseException as exc:  # surfaced below
                errors.append(exc)

        def reader() -> None:
            try:
                while not done.is_set():
                    healthy = check.healthy()
                    failing = check.failing()
                    assert isinstance(healthy, bool)
                    assert set(failing) <= {"x"}
            except BaseException as exc:
                errors.append(exc)

        writers = [threading.Thread(target=writer) for _ in range(self.WRITERS)]
        readers = [threading.Thread(target=reader) for _ in range(self.READERS)]
        for thread in readers + writers:
            thread.start()
        for thread in writers:
            thread.join(timeout=30)
        done.set()
        for thread in readers:
            thread.join(timeout=30)

        assert errors == []
        assert not any(thread.is_alive() for thread in writers + readers)
        assert check.healthy() is True

    def test_batches_are_applied_atomically(self, check: Check) -> None:
        components = tuple(f"c{i}" for i in range(50))
        done = threading.Event()
        partial: list[int] = []

        def writer() -> None:
            for _ in range(200):
                check.mark_failing(*components)
                check.mark_passing(*components)
            done.set()

        thread = threading.Thread(target=writer)
        thread.start()
        while not done.is_set():
            seen = len(check.failing())
            if seen not in (0, len(components)):
                partial.append(seen)
        thread.join(timeout=30)

        assert partial == []
        assert check.healthy() is True

"""
Tests for achievement evaluation.

Tests:
- Badge thresholds over a four-location hunt
- Unlock timestamps
- Monotonicity as progress grows
"""

from datetime import datetime, timezone

from .conftest import make_records
from ..engine_core.achievements import ACHIEVEMENTS, evaluate_achievements, unlocked_ids


class TestThresholds:
    """Which badges unlock at which count."""

    def test_no_progress(self):
        """Nothing unlocked at zero."""
        assert unlocked_ids(evaluate_achievements([], 4)) == set()

    def test_first_step(self):
        assert unlocked_ids(evaluate_achievements(make_records("p1", ["a"]), 4)) == {"first_step"}

    def test_halfway(self):
        """Two of four unlocks halfway_hero."""
        records = make_records("p1", ["a", "b"])
        assert unlocked_ids(evaluate_achievements(records, 4)) == {"first_step", "halfway_hero"}

    def test_halfway_rounds_up(self):
        """With five locations halfway needs three."""
        assert "halfway_hero" not in unlocked_ids(evaluate_achievements(make_records("p1", "ab"), 5))
        assert "halfway_hero" in unlocked_ids(evaluate_achievements(make_records("p1", "abc"), 5))

    def test_all(self):
        """Everything done unlocks every badge."""
        records = make_records("p1", ["a", "b", "c", "d"])
        assert unlocked_ids(evaluate_achievements(records, 4)) == {d.id for d in ACHIEVEMENTS}

    def test_empty_catalog(self):
        """No badge unlocks for an empty hunt."""
        assert unlocked_ids(evaluate_achievements([], 0)) == set()

    def test_one_result_per_definition(self):
        """Results come back in definition order."""
        result = evaluate_achievements([], 4)
        assert [a.id for a in result] == [d.id for d in ACHIEVEMENTS]


class TestUnlockTimes:
    """unlocked_at is the completion that crossed the threshold."""

    def test_timestamps(self):
        records = make_records("p1", ["a", "b", "c", "d"])
        by_id = {a.id: a for a in evaluate_achievements(records, 4)}

        assert by_id["first_step"].unlocked_at == records[0].completed_at
        assert by_id["halfway_hero"].unlocked_at == records[1].completed_at
        assert by_id["halloween_champion"].unlocked_at == records[3].completed_at

    def test_unsorted_input(self):
        """Records are sorted by completed_at before evaluating."""
        records = make_records("p1", ["a", "b", "c"])
        by_id = {a.id: a for a in evaluate_achievements(list(reversed(records)), 4)}
        assert by_id["first_step"].unlocked_at == records[0].completed_at

    def test_duplicate_records_count_once(self):
        """Two records for one location are still one completion."""
        records = make_records("p1", ["a", "a"])
        assert unlocked_ids(evaluate_achievements(records, 4)) == {"first_step"}

    def test_duplicate_uses_earliest_time(self):
        records = make_records("p1", ["a", "b", "a"])
        by_id = {a.id: a for a in evaluate_achievements(list(reversed(records)), 4)}
        assert by_id["first_step"].unlocked_at == records[0].completed_at
        assert by_id["halfway_hero"].unlocked_at == records[1].completed_at

    def test_locked_has_no_timestamp(self):
        result = evaluate_achievements(make_records("p1", ["a"]), 4)
        assert all(a.unlocked_at is None for a in result if not a.unlocked)


class TestMonotonicity:
    """More progress never revokes a badge."""

    def test_grows_with_progress(self):
        ids = ["a", "b", "c", "d"]
        previous: set[str] = set()
        for k in range(len(ids) + 1):
            current = unlocked_ids(evaluate_achievements(make_records("p1", ids[:k]), 4))
            assert previous <= current
            previous = current

    def test_unlock_time_stable(self):
        """A badge keeps its unlock time as more records arrive."""
        start = datetime(2025, 10, 31, 19, 0, tzinfo=timezone.utc)
        two = evaluate_achievements(make_records("p1", ["a", "b"], start), 4)
        four = evaluate_achievements(make_records("p1", ["a", "b", "c", "d"], start), 4)
        assert two[1].unlocked_at == four[1].unlocked_at

"""
Tests for progress aggregation.
"""

import pytest

from ..engine_core.catalog import LocationCatalog
from ..engine_core.progress import aggregate, round_percentage


class TestAggregate:
    """Tests for aggregate."""

    def test_half(self, catalog):
        """2 of 4 is 50%."""
        summary = aggregate({"main_lobby", "south_lobby"}, catalog)
        assert (summary.completed_count, summary.total_count, summary.percentage) == (2, 4, 50)
        assert not summary.is_complete

    def test_complete(self, catalog):
        """All four is 100% and complete."""
        summary = aggregate(catalog.ids, catalog)
        assert summary.percentage == 100
        assert summary.is_complete

    def test_empty_catalog(self):
        """Zero locations gives 0%, never a division error."""
        summary = aggregate({"main_lobby"}, LocationCatalog([]))
        assert summary.percentage == 0
        assert summary.completed_count == 0
        assert not summary.is_complete

    def test_foreign_ids_not_counted(self, catalog):
        """Records for locations outside the catalog are ignored."""
        assert aggregate({"main_lobby", "old_event_spot"}, catalog).completed_count == 1

    def test_duplicates_counted_once(self, catalog):
        """The same id twice counts once."""
        assert aggregate(["main_lobby", "main_lobby"], catalog).completed_count == 1


class TestRounding:
    """Percentages round half-up to an integer."""

    @pytest.mark.parametrize(
        "completed,total,expected",
        [
            (0, 4, 0),
            (1, 3, 33),
            (2, 3, 67),
            (1, 8, 13),  # 12.5 rounds up
            (3, 8, 38),  # 37.5 rounds up
            (1, 200, 1),  # 0.5 rounds up
            (5, 5, 100),
            (0, 0, 0),
        ],
    )
    def test_round_percentage(self, completed, total, expected):
        assert round_percentage(completed, total) == expected

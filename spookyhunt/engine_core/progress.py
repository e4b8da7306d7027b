"""
Progress Aggregator - Completed/total counts and percentage.

Safe to call on every render or poll tick.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from .catalog import LocationCatalog


@dataclass(frozen=True)
class ProgressSummary:
    completed_count: int
    total_count: int
    percentage: int

    @property
    def is_complete(self) -> bool:
        return self.total_count > 0 and self.completed_count >= self.total_count


def round_percentage(completed: int, total: int) -> int:
    """100 * completed / total rounded half-up; 0 when total is 0."""
    if total <= 0:
        return 0
    # Integer form of floor(100 * c / t + 0.5)
    return (200 * completed + total) // (2 * total)


def aggregate(completed: Iterable[str], catalog: LocationCatalog) -> ProgressSummary:
    """
    Summarize progress.

    Only completed ids that belong to the catalog are counted.
    """
    done = {location_id for location_id in completed if location_id in catalog}
    total = len(catalog)
    return ProgressSummary(
        completed_count=len(done),
        total_count=total,
        percentage=round_percentage(len(done), total),
    )

"""
Achievement Evaluator - Derived badges from progress records.

Badges:
- first_step: first location completed
- halfway_hero: ceil(total / 2) locations completed
- photo_master: every location photographed (i.e. completed)
- halloween_champion: every challenge completed

Thresholds are monotonic in the completed count, and every evaluation
starts from scratch, so a badge is never revoked by a later call with
more progress. Unlock time is the completed_at of the record that
crossed the threshold.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from math import ceil
from typing import Callable

from .state import ProgressRecord, sort_records


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    icon: str
    # (total_count) -> number of completions needed
    threshold: Callable[[int], int]


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool
    unlocked_at: datetime | None = None


def _all(total: int) -> int:
    return total


def _half(total: int) -> int:
    return ceil(total / 2)


def _first(total: int) -> int:
    return 1


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("first_step", "First Step", "Complete your first location", "🎯", _first),
    AchievementDefinition("halfway_hero", "Halfway Hero", "Complete half of all locations", "⭐", _half),
    AchievementDefinition("photo_master", "Photo Master", "Take a photo at every location", "📸", _all),
    AchievementDefinition("halloween_champion", "Halloween Champion", "Complete every challenge", "🏆", _all),
)


def evaluate_achievements(
    records: list[ProgressRecord],
    total_count: int,
    definitions: tuple[AchievementDefinition, ...] = ACHIEVEMENTS,
) -> list[Achievement]:
    """
    Evaluate every badge.

    Args:
        records: The player's progress records (any order; duplicates per location are
            counted once, at their earliest completed_at)
        total_count: Number of locations in the catalog

    Returns:
        One Achievement per definition, in definition order
    """
    # One completion per location, the earliest one
    earliest: dict[str, ProgressRecord] = {}
    for record in sort_records(records):
        earliest.setdefault(record.location_id, record)
    ordered = sort_records(list(earliest.values()))
    completed_count = len(ordered)

    result = []
    for definition in definitions:
        # An empty catalog unlocks nothing: every badge needs at least one record.
        needed = max(1, definition.threshold(total_count))
        unlocked = total_count > 0 and completed_count >= needed
        result.append(
            Achievement(
                id=definition.id,
                title=definition.title,
                description=definition.description,
                icon=definition.icon,
                unlocked=unlocked,
                unlocked_at=ordered[needed - 1].completed_at if unlocked else None,
            )
        )
    return result


def unlocked_ids(achievements: list[Achievement]) -> set[str]:
    return {a.id for a in achievements if a.unlocked}

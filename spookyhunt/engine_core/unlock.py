"""
Unlock Resolver - Which locations a player may open.

Strict linear progression: location k+1 becomes available only once
location k is completed.

Completion records are trusted. If the data has a hole (k+2 completed,
k+1 not), k+2 is still reported completed and k+3 available. The hole is
tolerated here, never repaired.
"""

from __future__ import annotations
from typing import Iterable, Sequence

from .state import Location, UnlockStatus


def resolve(
    locations: Sequence[Location],
    completed: Iterable[str],
) -> dict[str, UnlockStatus]:
    """
    Compute the unlock status of every location.

    Args:
        locations: Locations of the event (any order; sorted by order here)
        completed: Ids of locations the player has completed

    Returns:
        Mapping of location id -> UnlockStatus, in catalog order
    """
    done = set(completed)
    ordered = sorted(locations, key=lambda loc: loc.order)

    statuses: dict[str, UnlockStatus] = {}
    for idx, loc in enumerate(ordered):
        if loc.id in done:
            statuses[loc.id] = UnlockStatus.COMPLETED
        elif idx == 0 or ordered[idx - 1].id in done:
            statuses[loc.id] = UnlockStatus.AVAILABLE
        else:
            statuses[loc.id] = UnlockStatus.LOCKED
    return statuses


def next_available(
    locations: Sequence[Location],
    completed: Iterable[str],
) -> Location | None:
    """First available location in sequence, or None when none is open."""
    statuses = resolve(locations, completed)
    for loc in sorted(locations, key=lambda loc: loc.order):
        if statuses[loc.id] == UnlockStatus.AVAILABLE:
            return loc
    return None

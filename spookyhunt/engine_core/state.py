"""
Hunt State - Data types the engine operates on.

Design principles:
- Immutable where the lifecycle says so: locations are seeded once per
  event, progress records are created once and never edited
- Ephemeral cooldown state is a plain value; persistence lives in the
  injected key-value store, not here
- No backend details leak into these types
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class Floor(Enum):
    """Venue floor labels."""
    LG = "LG"
    UG = "UG"
    GF = "GF"
    F1 = "1F"
    F2 = "2F"
    F3 = "3F"


class UnlockStatus(Enum):
    """Per-location status for a player."""
    LOCKED = "locked"
    AVAILABLE = "available"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Location:
    """
    A physical point in the venue.

    accepted_codes are match tokens; comparison is case-insensitive
    and done by substring (see codes.validate_code).
    """
    id: str
    order: int
    floor: Floor
    clue: str
    accepted_codes: frozenset[str]
    quiz_question: str
    quiz_options: tuple[str, ...]
    correct_option_index: int
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id.replace("_", " ").title()

    @property
    def normalized_codes(self) -> frozenset[str]:
        """Accepted codes, uppercased for matching."""
        return frozenset(code.upper() for code in self.accepted_codes)

    def is_correct(self, selected: int) -> bool:
        """Advisory client-side answer check. The backend is authoritative."""
        return selected == self.correct_option_index


@dataclass(frozen=True)
class Player:
    """A registered player. phone is the recovery key and unique."""
    id: str
    name: str
    phone: str


@dataclass(frozen=True)
class ProgressRecord:
    """Durable proof that a player completed a location."""
    player_id: str
    location_id: str
    completed_at: datetime


@dataclass
class CooldownState:
    """
    Quiz cooldown for one (player, location) pair.

    cooldown_until is epoch seconds, or None when no penalty is pending.
    """
    attempt_count: int = 0
    cooldown_until: float | None = None

    def is_active(self, now: float) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until

    def with_failure(self, now: float, penalty_seconds: float) -> CooldownState:
        """Return the state after one more incorrect answer."""
        return replace(
            self,
            attempt_count=self.attempt_count + 1,
            cooldown_until=now + penalty_seconds,
        )


def completed_ids(records: list[ProgressRecord]) -> set[str]:
    """Location ids present in a list of progress records."""
    return {record.location_id for record in records}


def sort_records(records: list[ProgressRecord]) -> list[ProgressRecord]:
    """Order records by completion time, ties broken by location id."""
    return sorted(records, key=lambda r: (r.completed_at, r.location_id))


@dataclass
class PlayerProgress:
    """Snapshot of one player's durable progress, as last read from the store."""
    player_id: str
    records: list[ProgressRecord] = field(default_factory=list)
    fetched_at: float | None = None

    @property
    def completed(self) -> set[str]:
        return completed_ids(self.records)

    def has_completed(self, location_id: str) -> bool:
        return location_id in self.completed

"""
Pytest fixtures for Spooky Hunt tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ..engine_core.catalog import LocationCatalog
from ..engine_core.cooldown import QuizCooldownEngine
from ..engine_core.state import Floor, Location, Player, ProgressRecord
from ..events import create_halloween_catalog
from ..storage.backend import InMemoryHuntBackend
from ..storage.kv import InMemoryKeyValueStore

START = 1_761_900_000.0  # 2025-10-31, the night of the hunt
THREE_HOURS = 3 * 60 * 60


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def make_location(location_id: str, order: int, codes=None, options=("A", "B", "C"), correct=0) -> Location:
    return Location(
        id=location_id,
        order=order,
        floor=Floor.GF,
        clue=f"Clue for {location_id}",
        accepted_codes=frozenset(codes or {f"CODE_{location_id.upper()}"}),
        quiz_question=f"Question for {location_id}?",
        quiz_options=tuple(options),
        correct_option_index=correct,
    )


def make_records(player_id: str, location_ids, start: datetime | None = None) -> list[ProgressRecord]:
    """One record per id, a minute apart, in the given order."""
    start = start or datetime(2025, 10, 31, 18, 0, tzinfo=timezone.utc)
    return [
        ProgressRecord(player_id, location_id, start + timedelta(minutes=i))
        for i, location_id in enumerate(location_ids)
    ]


@pytest.fixture
def catalog() -> LocationCatalog:
    """The built-in Halloween catalog (main_lobby, south_lobby, east_dome, u_walk)."""
    return create_halloween_catalog()


@pytest.fixture
def abcd_catalog() -> LocationCatalog:
    """Four plain locations A..D in order."""
    return LocationCatalog([
        make_location("a", 0),
        make_location("b", 1),
        make_location("c", 2),
        make_location("d", 3),
    ])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(catalog, clock) -> InMemoryHuntBackend:
    return InMemoryHuntBackend(catalog, signup_codes={"HUNT01", "HUNT02"}, clock=clock)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def engine(store, backend, clock) -> QuizCooldownEngine:
    return QuizCooldownEngine(store, backend, clock=clock)


@pytest.fixture
def player(backend) -> Player:
    """A registered player with no progress."""
    return backend.add_player(Player(id="p1", name="Ayu", phone="081234567890"))

"""
Location Catalog - Ordered, immutable list of locations for the event.

The catalog is read-only at runtime. It is seeded once (built-in event
or a catalog file) and validated before the engine uses it.

Validates that:
1. Location ids are unique
2. order values are unique and contiguous from 0
3. Every location has at least one accepted code
4. Accepted codes are disjoint across locations (case-insensitive)
5. Quizzes have 2-4 options and a correct index in range
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, Iterable

from .state import Location

MIN_QUIZ_OPTIONS = 2
MAX_QUIZ_OPTIONS = 4


class CatalogError(Exception):
    """Raised when a catalog fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Catalog validation failed with {len(errors)} error(s)")


@dataclass
class CatalogValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class LocationCatalog:
    """
    Locations sorted by order.

    Usage:
        catalog = LocationCatalog(locations)
        first = catalog.locations[0]
        loc = catalog.get("south_lobby")
    """

    def __init__(self, locations: Iterable[Location]):
        self._locations: tuple[Location, ...] = tuple(
            sorted(locations, key=lambda loc: loc.order)
        )
        self._by_id = {loc.id: loc for loc in self._locations}

    @property
    def locations(self) -> tuple[Location, ...]:
        return self._locations

    @property
    def ids(self) -> list[str]:
        return [loc.id for loc in self._locations]

    def get(self, location_id: str) -> Location | None:
        return self._by_id.get(location_id)

    def index_of(self, location_id: str) -> int | None:
        for idx, loc in enumerate(self._locations):
            if loc.id == location_id:
                return idx
        return None

    def next_after(self, location_id: str) -> Location | None:
        """The location that follows location_id in sequence, if any."""
        idx = self.index_of(location_id)
        if idx is None or idx + 1 >= len(self._locations):
            return None
        return self._locations[idx + 1]

    def __len__(self) -> int:
        return len(self._locations)

    def __iter__(self) -> Iterator[Location]:
        return iter(self._locations)

    def __contains__(self, location_id: object) -> bool:
        return location_id in self._by_id


def validate_catalog(catalog: LocationCatalog) -> CatalogValidationResult:
    """
    Validate catalog invariants.

    Returns CatalogValidationResult with errors and warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []
    locations = catalog.locations

    if not locations:
        warnings.append("Catalog is empty")

    seen_ids: set[str] = set()
    for loc in locations:
        if not loc.id:
            errors.append(f"Location at order {loc.order} has no id")
        elif loc.id in seen_ids:
            errors.append(f"Duplicate location id: {loc.id}")
        seen_ids.add(loc.id)

    orders = [loc.order for loc in locations]
    if sorted(orders) != list(range(len(locations))):
        errors.append(
            f"Location orders must be unique and contiguous from 0, got {sorted(orders)}"
        )

    for loc in locations:
        errors.extend(_validate_location(loc))

    # Code ownership, case-insensitive
    owners: dict[str, str] = {}
    for loc in locations:
        for code in loc.normalized_codes:
            owner = owners.get(code)
            if owner and owner != loc.id:
                errors.append(f"Code {code} is accepted by both {owner} and {loc.id}")
            owners.setdefault(code, loc.id)

    # Substring matching means a code embedded in another location's code
    # would match at both places.
    for code, owner in owners.items():
        for other_code, other_owner in owners.items():
            if owner != other_owner and code != other_code and code in other_code:
                warnings.append(
                    f"Code {code} ({owner}) is a substring of {other_code} ({other_owner})"
                )

    return CatalogValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _validate_location(loc: Location) -> list[str]:
    errors = []
    if not loc.accepted_codes or not all(code.strip() for code in loc.accepted_codes):
        errors.append(f"Location {loc.id}: accepted_codes must be non-empty")
    count = len(loc.quiz_options)
    if not MIN_QUIZ_OPTIONS <= count <= MAX_QUIZ_OPTIONS:
        errors.append(
            f"Location {loc.id}: quiz needs {MIN_QUIZ_OPTIONS}-{MAX_QUIZ_OPTIONS} options, got {count}"
        )
    if not 0 <= loc.correct_option_index < count:
        errors.append(
            f"Location {loc.id}: correct_option_index {loc.correct_option_index} out of range"
        )
    if not loc.quiz_question.strip():
        errors.append(f"Location {loc.id}: quiz_question is required")
    return errors


def require_valid(catalog: LocationCatalog) -> LocationCatalog:
    """Return the catalog, or raise CatalogError if it is invalid."""
    result = validate_catalog(catalog)
    if not result.valid:
        raise CatalogError(result.errors)
    return catalog

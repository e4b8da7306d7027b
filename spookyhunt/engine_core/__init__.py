"""
Engine Core - Hunt progression and validation rules.

The engine decides:
1. Which locations a player may open (unlock resolution)
2. What counts as a valid scan (code validation)
3. Whether a quiz answer may be submitted (cooldown gate)
4. Completion percentage and achievements

Everything exported here is pure: total functions over their inputs that
classify instead of raising. The stateful quiz gate talks to the backend
and lives in engine_core.cooldown.
"""

from .state import (
    Floor,
    Location,
    Player,
    ProgressRecord,
    CooldownState,
    PlayerProgress,
    UnlockStatus,
)
from .catalog import LocationCatalog, CatalogError, validate_catalog, require_valid
from .unlock import resolve, next_available
from .codes import ScanResult, validate_code
from .progress import ProgressSummary, aggregate
from .achievements import Achievement, ACHIEVEMENTS, evaluate_achievements

__all__ = [
    "Floor",
    "Location",
    "Player",
    "ProgressRecord",
    "CooldownState",
    "PlayerProgress",
    "UnlockStatus",
    "LocationCatalog",
    "CatalogError",
    "validate_catalog",
    "require_valid",
    "resolve",
    "next_available",
    "ScanResult",
    "validate_code",
    "ProgressSummary",
    "aggregate",
    "Achievement",
    "ACHIEVEMENTS",
    "evaluate_achievements",
]

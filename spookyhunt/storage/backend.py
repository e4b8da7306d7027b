"""
Hunt Backend - The durable collaborator: players, locations, progress.

The engine only knows the HuntBackend contract. Responses from the
submission and sign-up calls are loosely shaped dicts (the way a remote
API returns them); they are mapped to a tagged BackendResult right here
at the boundary, so nothing past this module branches on raw fields.

PROGRESS RULES:
- At most one ProgressRecord per (player, location)
- Records are appended, never edited or deleted
- A correct answer for an already completed pair is a no-op success

InMemoryHuntBackend is the reference implementation. It also enforces
the quiz cooldown server-side, so clearing local state does not bypass
the penalty.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable
import logging
import re
import time

from ..engine_core.catalog import LocationCatalog
from ..engine_core.state import Location, Player, ProgressRecord, completed_ids
from ..errors import (
    BackendUnavailable,
    Conflict,
    CooldownActive,
    HuntError,
    NotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 3 * 60 * 60
SIGNUP_CODE_LENGTH = 6


class HuntBackend(ABC):
    """Collaborator operations the engine consumes."""

    @abstractmethod
    def get_locations(self) -> list[Location]:
        """Locations sorted by order."""

    @abstractmethod
    def get_player(self, player_id: str) -> Player | None:
        ...

    @abstractmethod
    def get_player_progress(self, player_id: str) -> list[ProgressRecord]:
        ...

    @abstractmethod
    def submit_quiz_answer(
        self, player_id: str, location_id: str, selected_option: int
    ) -> dict[str, Any]:
        """Returns {"accepted": bool, "correct": bool, "message": str, ...}."""

    @abstractmethod
    def validate_signup_code(self, code: str) -> dict[str, Any]:
        """Returns {"valid": bool, "message": str}."""

    @abstractmethod
    def register_player(self, code: str, name: str, phone: str) -> dict[str, Any]:
        """Returns {"success": bool, "player": Player | None, "message": str}."""

    def get_cooldown(self, player_id: str, location_id: str) -> float | None:
        """Server-side cooldown deadline (epoch seconds), if the backend keeps one."""
        return None

    def store_photo(
        self, player_id: str, location_id: str, data: bytes, content_type: str | None = None
    ) -> str:
        """Persist a photo and return a reference to it."""
        raise NotImplementedError


# =============================================================================
# Boundary mapping
# =============================================================================

class ErrorKind(Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    COOLDOWN = "cooldown"
    UNAVAILABLE = "unavailable"


_REASON_KINDS = {
    "invalid_answer": ErrorKind.VALIDATION,
    "invalid_code": ErrorKind.VALIDATION,
    "not_found": ErrorKind.NOT_FOUND,
    "location_locked": ErrorKind.CONFLICT,
    "duplicate": ErrorKind.CONFLICT,
    "cooldown_active": ErrorKind.COOLDOWN,
}


@dataclass(frozen=True)
class SubmissionReceipt:
    """An accepted quiz submission."""
    correct: bool
    message: str = ""
    duplicate: bool = False
    cooldown_until: float | None = None


@dataclass(frozen=True)
class RegistrationReceipt:
    player: Player
    message: str = ""


@dataclass
class BackendResult:
    """
    Tagged result of a backend call: ok with a value, or err with a kind.
    """
    ok: bool
    value: Any | None = None
    error_kind: ErrorKind | None = None
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: Any, message: str = "") -> BackendResult:
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(
        cls, kind: ErrorKind, message: str, details: dict[str, Any] | None = None
    ) -> BackendResult:
        return cls(ok=False, error_kind=kind, message=message, details=details or {})

    def unwrap(self) -> Any:
        """Return the value, or raise the HuntError matching error_kind."""
        if self.ok:
            return self.value
        raise self.to_exception()

    def to_exception(self) -> HuntError:
        code = self.details.get("reason", "").upper() or None
        if self.error_kind == ErrorKind.VALIDATION:
            return ValidationError(self.message, error_code=code)
        if self.error_kind == ErrorKind.NOT_FOUND:
            return NotFound(self.message, error_code=code)
        if self.error_kind == ErrorKind.CONFLICT:
            return Conflict(self.message, error_code=code)
        if self.error_kind == ErrorKind.COOLDOWN:
            from ..engine_core.cooldown import remaining_time
            until = self.details.get("cooldown_until") or 0.0
            now = self.details.get("now") or time.time()
            return CooldownActive(remaining_time(until, now), message=self.message or None)
        return BackendUnavailable(self.message or "Backend unavailable")


def map_submission(raw: Any) -> BackendResult:
    """Map a raw submit_quiz_answer response to a BackendResult."""
    if not isinstance(raw, dict):
        return BackendResult.failure(ErrorKind.UNAVAILABLE, "Malformed backend response")

    until = raw.get("cooldown_until")
    try:
        until = float(until) if until is not None else None
    except (TypeError, ValueError):
        logger.warning("Backend sent unreadable cooldown_until %r", until)
        return BackendResult.failure(ErrorKind.UNAVAILABLE, "Malformed backend response")

    message = str(raw.get("message") or "")
    if not bool(raw.get("accepted")):
        reason = str(raw.get("reason") or "")
        kind = _REASON_KINDS.get(reason, ErrorKind.UNAVAILABLE)
        details = {"reason": reason}
        if until is not None:
            details["cooldown_until"] = until
        return BackendResult.failure(kind, message or "Submission rejected", details)

    return BackendResult.success(
        SubmissionReceipt(
            correct=bool(raw.get("correct")),
            message=message,
            duplicate=bool(raw.get("duplicate")),
            cooldown_until=until,
        ),
        message=message,
    )


def map_registration(raw: Any) -> BackendResult:
    """Map a raw register_player response to a BackendResult."""
    if not isinstance(raw, dict):
        return BackendResult.failure(ErrorKind.UNAVAILABLE, "Malformed backend response")
    message = str(raw.get("message") or "")
    player = raw.get("player")
    if not bool(raw.get("success")) or not isinstance(player, Player):
        reason = str(raw.get("reason") or "")
        kind = _REASON_KINDS.get(reason, ErrorKind.VALIDATION)
        return BackendResult.failure(kind, message or "Registration failed", {"reason": reason})
    return BackendResult.success(RegistrationReceipt(player=player, message=message), message)


def call_backend(operation: str, fn: Callable[..., Any], *args: Any) -> Any:
    """
    Invoke a backend operation, turning transport failures into BackendUnavailable.

    HuntErrors raised by the backend itself pass through unchanged.
    """
    try:
        return fn(*args)
    except HuntError:
        raise
    except Exception as exc:
        logger.warning("Backend call %s failed: %s", operation, exc)
        raise BackendUnavailable(f"Backend unavailable during {operation}") from exc


# =============================================================================
# Sign-up field rules
# =============================================================================

def normalize_signup_code(code: str) -> str:
    """Uppercase, strip everything but A-Z0-9, cap at six characters."""
    return re.sub(r"[^A-Z0-9]", "", (code or "").upper())[:SIGNUP_CODE_LENGTH]


def normalize_phone(phone: str) -> str:
    return re.sub(r"[^0-9]", "", phone or "")


def registration_errors(code: str, name: str, phone: str) -> list[str]:
    """Field problems with a registration request; empty when it is valid."""
    errors = []
    if len(normalize_signup_code(code)) != SIGNUP_CODE_LENGTH:
        errors.append(f"Sign-up code must be {SIGNUP_CODE_LENGTH} letters or digits")
    if len((name or "").strip()) < 2:
        errors.append("Name must be at least 2 characters")
    digits = normalize_phone(phone)
    if len(digits) < 10 or not digits.startswith("08"):
        errors.append("Phone must start with 08 and have at least 10 digits")
    return errors


# =============================================================================
# In-memory backend
# =============================================================================

class InMemoryHuntBackend(HuntBackend):
    """
    Reference backend held in process memory.

    Usage:
        backend = InMemoryHuntBackend(catalog, signup_codes={"HUNT01"})
        raw = backend.register_player("HUNT01", "Ayu", "081234567890")
    """

    def __init__(
        self,
        catalog: LocationCatalog,
        signup_codes: set[str] | None = None,
        cooldown_seconds: float | None = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.catalog = catalog
        self.signup_codes = {normalize_signup_code(c) for c in (signup_codes or set())}
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self.offline = False

        self._players: dict[str, Player] = {}
        self._used_codes: set[str] = set()
        self._progress: dict[tuple[str, str], ProgressRecord] = {}
        self._cooldowns: dict[tuple[str, str], float] = {}
        self._photos: dict[str, bytes] = {}
        self._next_player_id = 1

    def _check_online(self) -> None:
        if self.offline:
            raise ConnectionError("backend offline")

    def _now_dt(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    def get_locations(self) -> list[Location]:
        self._check_online()
        return list(self.catalog.locations)

    def get_player(self, player_id: str) -> Player | None:
        self._check_online()
        return self._players.get(str(player_id))

    def get_player_progress(self, player_id: str) -> list[ProgressRecord]:
        self._check_online()
        records = [r for (pid, _), r in self._progress.items() if pid == str(player_id)]
        return sorted(records, key=lambda r: r.completed_at)

    def get_cooldown(self, player_id: str, location_id: str) -> float | None:
        self._check_online()
        until = self._cooldowns.get((player_id, location_id))
        if until is not None and self.clock() >= until:
            return None
        return until

    def submit_quiz_answer(
        self, player_id: str, location_id: str, selected_option: int
    ) -> dict[str, Any]:
        self._check_online()
        key = (str(player_id), location_id)
        location = self.catalog.get(location_id)

        if str(player_id) not in self._players or location is None:
            return {"accepted": False, "correct": False, "reason": "not_found",
                    "message": "Player or location not found"}

        if key in self._progress:
            return {"accepted": True, "correct": True, "duplicate": True,
                    "message": "Location already completed"}

        done = completed_ids(self.get_player_progress(player_id))
        idx = self.catalog.index_of(location_id)
        if idx and self.catalog.locations[idx - 1].id not in done:
            return {"accepted": False, "correct": False, "reason": "location_locked",
                    "message": "Complete the previous location first"}

        now = self.clock()
        until = self._cooldowns.get(key)
        if until is not None and now < until:
            return {"accepted": False, "correct": False, "reason": "cooldown_active",
                    "cooldown_until": until, "message": "Quiz is cooling down"}

        if not 0 <= selected_option < len(location.quiz_options):
            return {"accepted": False, "correct": False, "reason": "invalid_answer",
                    "message": "Answer option out of range"}

        if location.is_correct(selected_option):
            self._progress[key] = ProgressRecord(
                player_id=str(player_id),
                location_id=location_id,
                completed_at=self._now_dt(),
            )
            self._cooldowns.pop(key, None)
            return {"accepted": True, "correct": True, "message": "Location completed"}

        response: dict[str, Any] = {"accepted": True, "correct": False, "message": "Wrong answer"}
        if self.cooldown_seconds:
            self._cooldowns[key] = now + self.cooldown_seconds
            response["cooldown_until"] = self._cooldowns[key]
        return response

    def validate_signup_code(self, code: str) -> dict[str, Any]:
        self._check_online()
        normalized = normalize_signup_code(code)
        if len(normalized) != SIGNUP_CODE_LENGTH:
            return {"valid": False, "message": "Sign-up code must be 6 characters"}
        if normalized not in self.signup_codes:
            return {"valid": False, "message": "Unknown sign-up code"}
        if normalized in self._used_codes:
            return {"valid": False, "message": "Sign-up code already used"}
        return {"valid": True, "message": "Code accepted"}

    def register_player(self, code: str, name: str, phone: str) -> dict[str, Any]:
        self._check_online()
        check = self.validate_signup_code(code)
        if not check["valid"]:
            return {"success": False, "player": None, "reason": "invalid_code",
                    "message": check["message"]}

        digits = normalize_phone(phone)
        if any(p.phone == digits for p in self._players.values()):
            return {"success": False, "player": None, "reason": "duplicate",
                    "message": "Phone number already registered"}

        player = Player(id=str(self._next_player_id), name=name.strip(), phone=digits)
        self._next_player_id += 1
        self._players[player.id] = player
        self._used_codes.add(normalize_signup_code(code))
        return {"success": True, "player": player, "message": "Registered"}

    def store_photo(
        self, player_id: str, location_id: str, data: bytes, content_type: str | None = None
    ) -> str:
        self._check_online()
        ref = f"photos/{player_id}/{location_id}/{len(self._photos) + 1}"
        self._photos[ref] = data
        return ref

    # Seeding helpers

    def add_player(self, player: Player) -> Player:
        self._players[player.id] = player
        return player

    def seed_progress(self, record: ProgressRecord) -> None:
        """Insert a record directly, bypassing sequence checks."""
        self._progress.setdefault((record.player_id, record.location_id), record)

    def photo(self, ref: str) -> bytes | None:
        return self._photos.get(ref)

"""
Quiz Cooldown Engine - Gates quiz submission per (player, location).

State machine:

    IDLE -> ANSWERING -> CORRECT (terminal)
                      -> INCORRECT -> COOLDOWN_ACTIVE -> IDLE (deadline passed)

Rules:
- A correct answer appends the progress record (through the backend) and
  clears the cooldown state
- An incorrect answer increments attempt_count and sets
  cooldown_until = now + 3 hours. The penalty is fixed; the attempt count
  is informational only
- While now < cooldown_until, submit_answer raises CooldownActive with the
  remaining time, and nothing is evaluated
- Answering again for a completed location is a no-op success. No
  duplicate record is ever produced

The cooldown lives in the injected KeyValueStore (device-local). The
backend may keep its own deadline; the later of the two wins.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from math import ceil
from typing import Callable
import logging
import time

from .state import CooldownState, Location, completed_ids
from ..errors import Conflict, CooldownActive, ValidationError
from ..storage.backend import ErrorKind, HuntBackend, call_backend, map_submission
from ..storage.kv import KeyValueStore, attempts_key, cooldown_key

logger = logging.getLogger(__name__)

COOLDOWN_SECONDS = 3 * 60 * 60


class QuizState(Enum):
    IDLE = "idle"
    ANSWERING = "answering"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    COOLDOWN_ACTIVE = "cooldown_active"


class AnswerOutcome(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class RemainingTime:
    """Whole hours/minutes/seconds left on a cooldown."""
    total_seconds: int
    hours: int
    minutes: int
    seconds: int

    @property
    def is_zero(self) -> bool:
        return self.total_seconds <= 0

    @property
    def display(self) -> str:
        return format_remaining(self)


def remaining_time(cooldown_until: float, now: float) -> RemainingTime:
    """
    Split cooldown_until - now into h/m/s.

    Seconds are rounded up, so a countdown never shows zero while the
    gate is still closed.
    """
    total = max(0, ceil(cooldown_until - now))
    return RemainingTime(
        total_seconds=total,
        hours=total // 3600,
        minutes=(total % 3600) // 60,
        seconds=total % 60,
    )


def format_remaining(remaining: RemainingTime) -> str:
    if remaining.hours > 0:
        return f"{remaining.hours}h {remaining.minutes}m {remaining.seconds}s"
    if remaining.minutes > 0:
        return f"{remaining.minutes}m {remaining.seconds}s"
    return f"{remaining.seconds}s"


@dataclass(frozen=True)
class AnswerResult:
    """Result of one quiz submission."""
    outcome: AnswerOutcome
    location_id: str
    attempt_count: int = 0
    cooldown_until: float | None = None
    remaining: RemainingTime | None = None
    already_completed: bool = False
    message: str = ""

    @property
    def correct(self) -> bool:
        return self.outcome == AnswerOutcome.CORRECT


class QuizCooldownEngine:
    """
    Usage:
        engine = QuizCooldownEngine(store, backend)
        result = engine.submit_answer(player_id, location, selected=2)
        if not result.correct:
            show_countdown(result.remaining)
    """

    def __init__(
        self,
        store: KeyValueStore,
        backend: HuntBackend,
        clock: Callable[[], float] = time.time,
        penalty_seconds: float = COOLDOWN_SECONDS,
    ):
        self.store = store
        self.backend = backend
        self.clock = clock
        self.penalty_seconds = penalty_seconds
        self._answering: set[tuple[str, str]] = set()

    # =========================================================================
    # Cooldown state (key-value store)
    # =========================================================================

    def load_state(self, player_id: str, location_id: str) -> CooldownState:
        raw_until = self.store.get(cooldown_key(player_id, location_id))
        raw_attempts = self.store.get(attempts_key(player_id, location_id))

        until = None
        if raw_until:
            try:
                until = float(raw_until)
            except ValueError:
                logger.warning("Ignoring malformed cooldown value %r", raw_until)

        attempts = 0
        if raw_attempts:
            try:
                attempts = max(0, int(raw_attempts))
            except ValueError:
                logger.warning("Ignoring malformed attempt count %r", raw_attempts)

        return CooldownState(attempt_count=attempts, cooldown_until=until)

    def save_state(self, player_id: str, location_id: str, state: CooldownState) -> None:
        self.store.set(attempts_key(player_id, location_id), str(state.attempt_count))
        if state.cooldown_until is None:
            self.store.clear(cooldown_key(player_id, location_id))
        else:
            self.store.set(cooldown_key(player_id, location_id), repr(state.cooldown_until))

    def clear(self, player_id: str, location_id: str) -> None:
        self.store.clear(cooldown_key(player_id, location_id))
        self.store.clear(attempts_key(player_id, location_id))

    def quiz_state(self, player_id: str, location_id: str, completed: bool = False) -> QuizState:
        if completed:
            return QuizState.CORRECT
        if (player_id, location_id) in self._answering:
            return QuizState.ANSWERING
        if self.load_state(player_id, location_id).is_active(self.clock()):
            return QuizState.COOLDOWN_ACTIVE
        return QuizState.IDLE

    def remaining(self, player_id: str, location_id: str) -> RemainingTime | None:
        """Time left on the cooldown, or None when the quiz is open."""
        state = self.load_state(player_id, location_id)
        now = self.clock()
        if not state.is_active(now):
            return None
        return remaining_time(state.cooldown_until, now)

    def check_gate(self, player_id: str, location_id: str) -> None:
        """Raise CooldownActive if the quiz is still locked."""
        remaining = self.remaining(player_id, location_id)
        if remaining is not None:
            raise CooldownActive(remaining)

    def sync_from_backend(self, player_id: str, location_id: str) -> CooldownState:
        """
        Pull the backend's deadline into local state.

        Used on reload so a cleared device store does not reopen the quiz.
        """
        state = self.load_state(player_id, location_id)
        remote = call_backend("get_cooldown", self.backend.get_cooldown, player_id, location_id)
        if remote is not None and (state.cooldown_until is None or remote > state.cooldown_until):
            state = CooldownState(attempt_count=state.attempt_count, cooldown_until=remote)
            self.save_state(player_id, location_id, state)
        return state

    # =========================================================================
    # Submission
    # =========================================================================

    def submit_answer(self, player_id: str, location: Location, selected: int) -> AnswerResult:
        """
        Submit an answer for a location.

        Raises:
            ValidationError: selected is not an option index
            CooldownActive: the quiz is still locked
            Conflict: the location is locked, or a submission is in flight
            BackendUnavailable: the backend call failed
        """
        if isinstance(selected, bool) or not isinstance(selected, int):
            raise ValidationError("Answer must be an option index", error_code="INVALID_ANSWER")
        if not 0 <= selected < len(location.quiz_options):
            raise ValidationError(
                f"Answer must be between 0 and {len(location.quiz_options) - 1}",
                error_code="INVALID_ANSWER",
            )

        key = (player_id, location.id)
        if key in self._answering:
            raise Conflict("An answer is already being submitted", error_code="SUBMISSION_IN_PROGRESS")

        records = call_backend("get_player_progress", self.backend.get_player_progress, player_id)
        if location.id in completed_ids(records):
            logger.info("Player %s re-answered completed location %s; no-op", player_id, location.id)
            self.clear(player_id, location.id)
            return AnswerResult(
                outcome=AnswerOutcome.CORRECT,
                location_id=location.id,
                already_completed=True,
                message="Location already completed",
            )

        self.check_gate(player_id, location.id)

        self._answering.add(key)
        try:
            raw = call_backend(
                "submit_quiz_answer", self.backend.submit_quiz_answer,
                player_id, location.id, selected,
            )
        finally:
            self._answering.discard(key)

        result = map_submission(raw)
        if not result.ok:
            if result.error_kind == ErrorKind.COOLDOWN:
                self._mirror_deadline(player_id, location.id, result.details.get("cooldown_until"))
                result.details.setdefault("now", self.clock())
            raise result.to_exception()

        receipt = result.value
        if receipt.correct != location.is_correct(selected):
            logger.warning(
                "Backend and catalog disagree on answer %d for %s; backend wins",
                selected, location.id,
            )

        if receipt.correct:
            self.clear(player_id, location.id)
            logger.info("Player %s completed location %s", player_id, location.id)
            return AnswerResult(
                outcome=AnswerOutcome.CORRECT,
                location_id=location.id,
                already_completed=receipt.duplicate,
                message=receipt.message,
            )

        now = self.clock()
        state = self.load_state(player_id, location.id).with_failure(now, self.penalty_seconds)
        if receipt.cooldown_until is not None and receipt.cooldown_until > state.cooldown_until:
            state = CooldownState(state.attempt_count, receipt.cooldown_until)
        self.save_state(player_id, location.id, state)
        logger.info(
            "Player %s answered %s incorrectly (attempt %d); quiz locked until %s",
            player_id, location.id, state.attempt_count, state.cooldown_until,
        )
        return AnswerResult(
            outcome=AnswerOutcome.INCORRECT,
            location_id=location.id,
            attempt_count=state.attempt_count,
            cooldown_until=state.cooldown_until,
            remaining=remaining_time(state.cooldown_until, now),
            message=receipt.message,
        )

    def _mirror_deadline(self, player_id: str, location_id: str, until: float | None) -> None:
        if until is None:
            return
        state = self.load_state(player_id, location_id)
        if state.cooldown_until is None or until > state.cooldown_until:
            self.save_state(player_id, location_id, CooldownState(state.attempt_count, until))

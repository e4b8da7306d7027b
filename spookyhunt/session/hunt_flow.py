"""
Hunt Flow - One player's visit to one location.

The flow:
1. Player opens an available location
2. Player scans the location code (any number of retries, no penalty)
3. Player takes a photo
4. Player answers the quiz
5. Correct: location completed. Incorrect: quiz locked for 3 hours

Entering a location out of sequence, or one already completed, is
refused up front. Each step is a single request/response; a failed step
leaves the flow where it was.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable
import logging
import time

from ..engine_core.catalog import LocationCatalog
from ..engine_core.codes import SCAN_MESSAGES, ScanResult, validate_code
from ..engine_core.cooldown import AnswerResult, QuizCooldownEngine
from ..engine_core.state import Location, UnlockStatus, completed_ids
from ..engine_core.unlock import resolve
from ..errors import Conflict, NotFound, ValidationError
from ..storage.backend import HuntBackend, call_backend

logger = logging.getLogger(__name__)

MIN_MANUAL_CODE_LENGTH = 6


class FlowStage(Enum):
    """Where the player is within a location."""
    SCANNING = "scanning"
    PHOTO = "photo"
    QUIZ = "quiz"
    COOLDOWN = "cooldown"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ScanOutcome:
    result: ScanResult
    stage: FlowStage
    message: str

    @property
    def accepted(self) -> bool:
        return self.result == ScanResult.OK


class HuntFlow:
    """
    Usage:
        flow = HuntFlow.open(player_id, "south_lobby", catalog, backend, engine)

        outcome = flow.scan(decoded_qr_text)
        if outcome.accepted:
            flow.submit_photo(photo_bytes)
            result = flow.answer(selected=1)
    """

    def __init__(
        self,
        player_id: str,
        location: Location,
        catalog: LocationCatalog,
        backend: HuntBackend,
        engine: QuizCooldownEngine,
        clock: Callable[[], float] = time.time,
    ):
        self.player_id = player_id
        self.location = location
        self.catalog = catalog
        self.backend = backend
        self.engine = engine
        self.clock = clock
        self.opened_at = clock()
        self.photo_ref: str | None = None
        self.scan_attempts = 0
        self._stage = FlowStage.SCANNING

    @classmethod
    def open(
        cls,
        player_id: str,
        location_id: str,
        catalog: LocationCatalog,
        backend: HuntBackend,
        engine: QuizCooldownEngine,
        clock: Callable[[], float] = time.time,
    ) -> HuntFlow:
        """
        Open a location for a player.

        Raises:
            NotFound: unknown location
            Conflict: location locked or already completed
        """
        location = catalog.get(location_id)
        if location is None:
            raise NotFound(f"Location {location_id} not found", error_code="LOCATION_NOT_FOUND")

        records = call_backend("get_player_progress", backend.get_player_progress, player_id)
        status = resolve(catalog.locations, completed_ids(records))[location_id]
        if status == UnlockStatus.COMPLETED:
            raise Conflict(f"{location.display_name} is already completed", error_code="ALREADY_COMPLETED")
        if status == UnlockStatus.LOCKED:
            raise Conflict(f"{location.display_name} is still locked", error_code="LOCATION_LOCKED")

        # Refresh the local gate from the backend's deadline, if it keeps one
        engine.sync_from_backend(player_id, location_id)
        return cls(player_id, location, catalog, backend, engine, clock)

    @property
    def stage(self) -> FlowStage:
        if self._stage == FlowStage.COOLDOWN and self.engine.remaining(self.player_id, self.location.id) is None:
            return FlowStage.QUIZ
        return self._stage

    def scan(self, code: str, manual: bool = False) -> ScanOutcome:
        """
        Validate a decoded QR payload, or a code typed by hand.

        Wrong or invalid codes leave the flow in SCANNING for a retry.
        """
        if self.stage != FlowStage.SCANNING:
            return ScanOutcome(ScanResult.OK, self.stage, "Code already accepted")
        if manual and len((code or "").strip()) < MIN_MANUAL_CODE_LENGTH:
            raise ValidationError(
                f"Manual codes need at least {MIN_MANUAL_CODE_LENGTH} characters",
                error_code="CODE_TOO_SHORT",
            )

        self.scan_attempts += 1
        result = validate_code(code, self.location.id, self.catalog)
        if result == ScanResult.OK:
            self._stage = FlowStage.PHOTO
        else:
            logger.info(
                "Player %s scanned %s code at %s", self.player_id, result.value, self.location.id
            )
        return ScanOutcome(result=result, stage=self._stage, message=SCAN_MESSAGES[result])

    def submit_photo(self, data: bytes, content_type: str | None = None) -> str:
        """Store the player's photo and move on to the quiz."""
        if self.stage != FlowStage.PHOTO:
            raise ValidationError("Scan the location code before taking a photo", error_code="SCAN_REQUIRED")
        if not data:
            raise ValidationError("Photo is empty", error_code="EMPTY_PHOTO")

        self.photo_ref = call_backend(
            "store_photo", self.backend.store_photo,
            self.player_id, self.location.id, data, content_type,
        )
        self._stage = FlowStage.QUIZ
        if self.engine.remaining(self.player_id, self.location.id) is not None:
            self._stage = FlowStage.COOLDOWN
        return self.photo_ref

    def answer(self, selected: int) -> AnswerResult:
        """
        Submit a quiz answer.

        CooldownActive, Conflict and BackendUnavailable propagate; the flow
        stays on the quiz.
        """
        if self.stage not in {FlowStage.QUIZ, FlowStage.COOLDOWN, FlowStage.COMPLETED}:
            raise ValidationError("Take a photo before answering the quiz", error_code="PHOTO_REQUIRED")

        result = self.engine.submit_answer(self.player_id, self.location, selected)
        self._stage = FlowStage.COMPLETED if result.correct else FlowStage.COOLDOWN
        return result

    @property
    def is_complete(self) -> bool:
        return self._stage == FlowStage.COMPLETED

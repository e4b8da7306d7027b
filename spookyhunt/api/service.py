"""
API Service - Business logic layer between the API and the engine.

The service:
1. Translates API requests to engine calls
2. Owns the catalog, backend, key-value store and cooldown engine
3. Builds dashboard views (unlock status, progress, achievements)
4. Raises HuntError subclasses; the web layer maps them to responses

This layer is framework-agnostic.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging
import time

from .schemas import (
    AchievementInfo,
    AnswerOutcome,
    AnswerRequest,
    AnswerResponse,
    CooldownInfo,
    DashboardResponse,
    FlowStage,
    HealthResponse,
    LocationInfo,
    LocationListResponse,
    LocationStatusInfo,
    PhotoResponse,
    PlayerInfo,
    ProgressInfo,
    RegisterRequest,
    RegisterResponse,
    ScanRequest,
    ScanResponse,
    ScanResult,
    SignupCodeRequest,
    SignupCodeResponse,
    UnlockStatus,
)
from .. import __version__
from ..config import HuntConfig
from ..engine_core.achievements import evaluate_achievements
from ..engine_core.catalog import LocationCatalog
from ..engine_core.cooldown import AnswerResult, QuizCooldownEngine, remaining_time
from ..engine_core.progress import aggregate
from ..engine_core.state import Location, Player, UnlockStatus as EngineStatus, completed_ids
from ..engine_core.unlock import next_available, resolve
from ..errors import NotFound
from ..events import create_halloween_catalog, load_catalog
from ..session import PlayerSession, SessionManager
from ..storage.backend import HuntBackend, InMemoryHuntBackend, call_backend
from ..storage.kv import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class HuntService:
    """
    Main API service.

    Usage:
        service = HuntService.from_config(HuntConfig.from_env())

        player = service.register(RegisterRequest(code=..., name=..., phone=...))
        dashboard = service.dashboard(player.player.player_id)
        service.scan(player_id, "main_lobby", ScanRequest(code=qr_text))
    """
    catalog: LocationCatalog = field(default_factory=create_halloween_catalog)
    backend: HuntBackend | None = None
    store: KeyValueStore = field(default_factory=InMemoryKeyValueStore)
    clock: Callable[[], float] = time.time
    cooldown_seconds: float = 3 * 60 * 60
    env: str = "development"

    def __post_init__(self):
        if self.backend is None:
            self.backend = InMemoryHuntBackend(
                self.catalog, cooldown_seconds=self.cooldown_seconds, clock=self.clock
            )
        self.engine = QuizCooldownEngine(
            self.store, self.backend, clock=self.clock, penalty_seconds=self.cooldown_seconds
        )
        self.sessions = SessionManager(self.catalog, self.backend, self.engine, clock=self.clock)

    @classmethod
    def from_config(cls, config: HuntConfig) -> HuntService:
        catalog = load_catalog(config.catalog_path) if config.catalog_path else create_halloween_catalog()
        store: KeyValueStore = (
            JsonFileKeyValueStore(config.state_file) if config.state_file else InMemoryKeyValueStore()
        )
        backend = InMemoryHuntBackend(
            catalog,
            signup_codes=config.signup_codes,
            cooldown_seconds=config.cooldown_seconds,
        )
        return cls(
            catalog=catalog,
            backend=backend,
            store=store,
            cooldown_seconds=config.cooldown_seconds,
            env=config.env,
        )

    # =========================================================================
    # Catalog & players
    # =========================================================================

    def health(self) -> HealthResponse:
        return HealthResponse(version=__version__, env=self.env, location_count=len(self.catalog))

    def list_locations(self) -> LocationListResponse:
        locations = [self._location_info(loc) for loc in self.catalog]
        return LocationListResponse(locations=locations, count=len(locations))

    def validate_signup(self, request: SignupCodeRequest) -> SignupCodeResponse:
        code = PlayerSession(self.backend, InMemoryKeyValueStore()).check_signup_code(request.code)
        return SignupCodeResponse(valid=True, code=code, message="Code accepted")

    def register(self, request: RegisterRequest) -> RegisterResponse:
        # Identity caching is the client's job; the server keeps none
        session = PlayerSession(self.backend, InMemoryKeyValueStore())
        player = session.register(request.code, request.name, request.phone)
        return RegisterResponse(player=self._player_info(player), message="Registered")

    def get_player(self, player_id: str) -> Player:
        player = call_backend("get_player", self.backend.get_player, player_id)
        if player is None:
            raise NotFound(f"Player {player_id} not found", error_code="PLAYER_NOT_FOUND")
        return player

    # =========================================================================
    # Dashboard
    # =========================================================================

    def dashboard(self, player_id: str) -> DashboardResponse:
        player = self.get_player(player_id)
        records = [
            r for r in call_backend("get_player_progress", self.backend.get_player_progress, player_id)
            if r.location_id in self.catalog
        ]
        completed_at = {r.location_id: r.completed_at for r in records}
        statuses = resolve(self.catalog.locations, completed_at.keys())
        summary = aggregate(completed_at.keys(), self.catalog)
        nxt = next_available(self.catalog.locations, completed_at.keys())

        locations = []
        for loc in self.catalog:
            status = statuses[loc.id]
            locations.append(
                LocationStatusInfo(
                    location=self._location_info(loc),
                    status=UnlockStatus(status.value),
                    completed_at=completed_at.get(loc.id),
                    cooldown=(
                        self._cooldown_info(player_id, loc.id)
                        if status == EngineStatus.AVAILABLE else None
                    ),
                )
            )

        achievements = [
            AchievementInfo(
                achievement_id=a.id,
                title=a.title,
                description=a.description,
                icon=a.icon,
                unlocked=a.unlocked,
                unlocked_at=a.unlocked_at,
            )
            for a in evaluate_achievements(records, len(self.catalog))
        ]

        return DashboardResponse(
            player=self._player_info(player),
            progress=ProgressInfo(
                completed_count=summary.completed_count,
                total_count=summary.total_count,
                percentage=summary.percentage,
            ),
            locations=locations,
            next_location_id=nxt.id if nxt else None,
            achievements=achievements,
            is_complete=summary.is_complete,
        )

    # =========================================================================
    # Location flow
    # =========================================================================

    def scan(self, player_id: str, location_id: str, request: ScanRequest) -> ScanResponse:
        self.get_player(player_id)
        flow = self.sessions.open_flow(player_id, location_id)
        outcome = flow.scan(request.code, manual=request.manual)
        return ScanResponse(
            result=ScanResult(outcome.result.value),
            accepted=outcome.accepted,
            stage=FlowStage(outcome.stage.value),
            message=outcome.message,
        )

    def upload_photo(
        self,
        player_id: str,
        location_id: str,
        data: bytes,
        content_type: str | None = None,
    ) -> PhotoResponse:
        self.get_player(player_id)
        flow = self.sessions.open_flow(player_id, location_id)
        ref = flow.submit_photo(data, content_type)
        return PhotoResponse(photo_ref=ref, stage=FlowStage(flow.stage.value))

    def answer(self, player_id: str, location_id: str, request: AnswerRequest) -> AnswerResponse:
        self.get_player(player_id)
        flow = self.sessions.get_flow(player_id, location_id)
        if flow is None:
            location = self.catalog.get(location_id)
            if location is None:
                raise NotFound(f"Location {location_id} not found", error_code="LOCATION_NOT_FOUND")
            records = call_backend("get_player_progress", self.backend.get_player_progress, player_id)
            if location_id in completed_ids(records):
                # No flow to reopen for a completed location; the engine answers the retry
                result = self.engine.submit_answer(player_id, location, request.selected)
                return self._answer_response(player_id, location_id, result, FlowStage.COMPLETED)
            flow = self.sessions.open_flow(player_id, location_id)

        result = flow.answer(request.selected)
        return self._answer_response(player_id, location_id, result, FlowStage(flow.stage.value))

    def cooldown(self, player_id: str, location_id: str) -> CooldownInfo:
        self.get_player(player_id)
        if location_id not in self.catalog:
            raise NotFound(f"Location {location_id} not found", error_code="LOCATION_NOT_FOUND")
        return self._cooldown_info(player_id, location_id)

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _answer_response(
        self,
        player_id: str,
        location_id: str,
        result: AnswerResult,
        stage: FlowStage,
    ) -> AnswerResponse:
        return AnswerResponse(
            outcome=AnswerOutcome(result.outcome.value),
            correct=result.correct,
            already_completed=result.already_completed,
            attempt_count=result.attempt_count,
            stage=stage,
            cooldown=None if result.correct else self._cooldown_info(player_id, location_id),
            message=result.message,
        )

    def _cooldown_info(self, player_id: str, location_id: str) -> CooldownInfo:
        state = self.engine.load_state(player_id, location_id)
        now = self.clock()
        if not state.is_active(now):
            return CooldownInfo(active=False, attempt_count=state.attempt_count)
        remaining = remaining_time(state.cooldown_until, now)
        return CooldownInfo(
            active=True,
            attempt_count=state.attempt_count,
            cooldown_until=state.cooldown_until,
            remaining_seconds=remaining.total_seconds,
            remaining=remaining.display,
        )

    def _location_info(self, loc: Location) -> LocationInfo:
        return LocationInfo(
            location_id=loc.id,
            name=loc.display_name,
            order=loc.order,
            floor=loc.floor.value,
            clue=loc.clue,
            quiz_question=loc.quiz_question,
            quiz_options=list(loc.quiz_options),
        )

    def _player_info(self, player: Player) -> PlayerInfo:
        return PlayerInfo(player_id=player.id, name=player.name, phone=player.phone)

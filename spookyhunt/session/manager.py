"""
Session Manager - Player identity and active location flows.

LIFECYCLE:
1. Player enters a sign-up code → validated by the backend
2. Player registers (name, phone) → identity cached in the key-value store
3. On reload, the cached identity is restored and checked against the
   backend; an identity the backend no longer knows is wiped
4. Player opens locations → one HuntFlow per (player, location)
5. Leaving a location ends its flow

PERSISTENCE RULES:
- Progress lives in the backend only
- Identity and cooldowns live in the key-value store only
- Flows are in-memory and can always be reopened
"""

from __future__ import annotations
from typing import Callable
import logging
import time

from .hunt_flow import HuntFlow
from ..engine_core.catalog import LocationCatalog
from ..engine_core.cooldown import QuizCooldownEngine
from ..engine_core.state import Player
from ..errors import ValidationError
from ..storage.backend import (
    HuntBackend,
    call_backend,
    map_registration,
    normalize_phone,
    normalize_signup_code,
    registration_errors,
)
from ..storage.kv import (
    KeyValueStore,
    PLAYER_ID_KEY,
    PLAYER_NAME_KEY,
    PLAYER_PHONE_KEY,
)

logger = logging.getLogger(__name__)


class PlayerSession:
    """
    The identity cache for one device.

    Usage:
        session = PlayerSession(backend, store)
        player = session.restore()
        if player is None:
            session.check_signup_code(code)
            player = session.register(code, name, phone)
    """

    def __init__(self, backend: HuntBackend, store: KeyValueStore):
        self.backend = backend
        self.store = store

    def cached_player_id(self) -> str | None:
        return self.store.get(PLAYER_ID_KEY)

    def restore(self) -> Player | None:
        """
        Restore the cached identity.

        Returns None when nothing is cached or the backend does not know
        the player anymore (local state is wiped in that case).
        """
        player_id = self.cached_player_id()
        if not player_id:
            return None
        player = call_backend("get_player", self.backend.get_player, player_id)
        if player is None:
            logger.warning("Cached player %s unknown to backend; clearing local state", player_id)
            self.store.clear_all()
            return None
        self._cache(player)
        return player

    def check_signup_code(self, code: str) -> str:
        """Validate a sign-up code. Returns the normalized code."""
        normalized = normalize_signup_code(code)
        raw = call_backend("validate_signup_code", self.backend.validate_signup_code, normalized)
        if not isinstance(raw, dict) or not bool(raw.get("valid")):
            message = raw.get("message") if isinstance(raw, dict) else None
            raise ValidationError(message or "Invalid sign-up code", error_code="INVALID_CODE")
        return normalized

    def register(self, code: str, name: str, phone: str) -> Player:
        errors = registration_errors(code, name, phone)
        if errors:
            raise ValidationError("; ".join(errors), details={"errors": errors})

        raw = call_backend(
            "register_player", self.backend.register_player,
            normalize_signup_code(code), name.strip(), normalize_phone(phone),
        )
        receipt = map_registration(raw).unwrap()
        self._cache(receipt.player)
        logger.info("Registered player %s", receipt.player.id)
        return receipt.player

    def sign_out(self) -> None:
        for key in (PLAYER_ID_KEY, PLAYER_NAME_KEY, PLAYER_PHONE_KEY):
            self.store.clear(key)

    def _cache(self, player: Player) -> None:
        self.store.set(PLAYER_ID_KEY, player.id)
        self.store.set(PLAYER_NAME_KEY, player.name)
        self.store.set(PLAYER_PHONE_KEY, player.phone)


class SessionManager:
    """
    Tracks open location flows.

    No persistence - a flow is rebuilt by opening the location again.
    """

    def __init__(
        self,
        catalog: LocationCatalog,
        backend: HuntBackend,
        engine: QuizCooldownEngine,
        clock: Callable[[], float] = time.time,
    ):
        self.catalog = catalog
        self.backend = backend
        self.engine = engine
        self.clock = clock
        self._flows: dict[tuple[str, str], HuntFlow] = {}

    def open_flow(self, player_id: str, location_id: str) -> HuntFlow:
        """Return the open flow for this pair, or open a new one. Stale flows are dropped first."""
        self.cleanup_stale_flows()
        key = (player_id, location_id)
        flow = self._flows.get(key)
        if flow is not None and not flow.is_complete:
            return flow
        flow = HuntFlow.open(
            player_id, location_id, self.catalog, self.backend, self.engine, self.clock
        )
        self._flows[key] = flow
        return flow

    def get_flow(self, player_id: str, location_id: str) -> HuntFlow | None:
        return self._flows.get((player_id, location_id))

    def end_flow(self, player_id: str, location_id: str) -> bool:
        return self._flows.pop((player_id, location_id), None) is not None

    def active_flows(self, player_id: str | None = None) -> list[HuntFlow]:
        return [
            flow for (pid, _), flow in self._flows.items()
            if player_id is None or pid == player_id
        ]

    def cleanup_stale_flows(self, max_age_seconds: float = 3600) -> int:
        """Drop flows opened more than max_age_seconds ago. Returns the count."""
        now = self.clock()
        stale = [
            key for key, flow in self._flows.items()
            if now - flow.opened_at > max_age_seconds
        ]
        for key in stale:
            del self._flows[key]
        return len(stale)

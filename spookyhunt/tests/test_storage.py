"""
Tests for local state and the backend boundary.

Tests:
- Key-value stores
- Mapping raw backend responses to BackendResult
- In-memory backend progress rules
"""

import pytest

from ..engine_core.state import Player
from ..errors import BackendUnavailable, Conflict, CooldownActive, NotFound, ValidationError
from ..storage.backend import (
    ErrorKind,
    call_backend,
    map_registration,
    map_submission,
    normalize_signup_code,
    registration_errors,
)
from ..storage.kv import InMemoryKeyValueStore, JsonFileKeyValueStore, cooldown_key


class TestKeyValueStores:
    """Tests for the two store implementations."""

    @pytest.fixture(params=["memory", "file"])
    def kv(self, request, tmp_path):
        if request.param == "memory":
            return InMemoryKeyValueStore()
        return JsonFileKeyValueStore(tmp_path / "state" / "state.json")

    def test_get_set_clear(self, kv):
        kv.set("a", "1")
        kv.set("b", "2")
        assert kv.get("a") == "1"

        kv.clear("a")
        kv.clear("missing")
        assert kv.get("a") is None
        assert kv.get("b") == "2"

        kv.clear_all()
        assert kv.get("b") is None

    def test_file_survives_reopen(self, tmp_path):
        path = tmp_path / "state.json"
        JsonFileKeyValueStore(path).set("player_id", "7")
        assert JsonFileKeyValueStore(path).get("player_id") == "7"

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        kv = JsonFileKeyValueStore(path)

        assert kv.get("player_id") is None
        kv.set("player_id", "7")
        assert kv.get("player_id") == "7"

    def test_key_layout(self):
        assert cooldown_key("42", "east_dome") == "quiz_cooldown_42_east_dome"


class TestBoundaryMapping:
    """Raw dict responses become tagged results."""

    def test_accepted(self):
        result = map_submission({"accepted": True, "correct": False, "cooldown_until": 99})
        assert result.ok
        assert result.value.cooldown_until == 99.0
        assert not result.value.correct

    @pytest.mark.parametrize(
        "reason,kind,exc",
        [
            ("invalid_answer", ErrorKind.VALIDATION, ValidationError),
            ("not_found", ErrorKind.NOT_FOUND, NotFound),
            ("location_locked", ErrorKind.CONFLICT, Conflict),
            ("cooldown_active", ErrorKind.COOLDOWN, CooldownActive),
            ("teapot", ErrorKind.UNAVAILABLE, BackendUnavailable),
        ],
    )
    def test_rejections(self, reason, kind, exc):
        result = map_submission({"accepted": False, "reason": reason, "cooldown_until": 200.0})
        assert not result.ok
        assert result.error_kind == kind
        with pytest.raises(exc):
            result.unwrap()

    def test_malformed(self):
        assert map_submission(None).error_kind == ErrorKind.UNAVAILABLE
        assert map_registration("oops").error_kind == ErrorKind.UNAVAILABLE

    @pytest.mark.parametrize(
        "raw",
        [
            {"accepted": False, "reason": "cooldown_active", "cooldown_until": "soon"},
            {"accepted": True, "correct": False, "cooldown_until": [1]},
        ],
    )
    def test_unreadable_cooldown_until(self, raw):
        """A garbled cooldown timestamp is a backend failure, not a crash."""
        result = map_submission(raw)
        assert result.error_kind == ErrorKind.UNAVAILABLE
        with pytest.raises(BackendUnavailable):
            result.unwrap()

    def test_registration(self):
        player = Player("1", "Ayu", "081234567890")
        assert map_registration({"success": True, "player": player}).unwrap().player == player
        assert not map_registration({"success": True, "player": None}).ok

    def test_call_backend_wraps_transport_errors(self):
        def broken():
            raise TimeoutError("slow network")

        with pytest.raises(BackendUnavailable) as exc_info:
            call_backend("get_player", broken)
        assert isinstance(exc_info.value.__cause__, TimeoutError)

    def test_call_backend_passes_hunt_errors(self):
        def refuses():
            raise NotFound("gone")

        with pytest.raises(NotFound):
            call_backend("get_player", refuses)


class TestSignupRules:
    """Tests for sign-up field normalization."""

    def test_normalize_code(self):
        assert normalize_signup_code(" ab-12 cd99 ") == "AB12CD"

    def test_valid_registration(self):
        assert registration_errors("HUNT01", "Ayu", "0812 3456 7890") == []

    @pytest.mark.parametrize("phone", ["0712345678", "081234", ""])
    def test_bad_phone(self, phone):
        assert len(registration_errors("HUNT01", "Ayu", phone)) == 1


class TestInMemoryBackend:
    """Progress rules of the reference backend."""

    def test_append_only(self, backend, player):
        backend.submit_quiz_answer(player.id, "main_lobby", 0)
        first = backend.get_player_progress(player.id)[0]
        again = backend.submit_quiz_answer(player.id, "main_lobby", 0)

        assert again["duplicate"]
        assert backend.get_player_progress(player.id) == [first]

    def test_server_cooldown(self, backend, player, clock):
        wrong = backend.submit_quiz_answer(player.id, "main_lobby", 1)
        assert wrong["cooldown_until"] == clock.now + backend.cooldown_seconds

        blocked = backend.submit_quiz_answer(player.id, "main_lobby", 0)
        assert blocked["reason"] == "cooldown_active"
        assert backend.get_cooldown(player.id, "main_lobby") == wrong["cooldown_until"]

    def test_unknown_player(self, backend):
        assert backend.submit_quiz_answer("nobody", "main_lobby", 0)["reason"] == "not_found"

    def test_offline(self, backend):
        backend.offline = True
        with pytest.raises(ConnectionError):
            backend.get_locations()

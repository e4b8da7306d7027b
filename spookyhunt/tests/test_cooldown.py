"""
Tests for the quiz cooldown engine.

Tests:
- Gate timing around the 3 hour penalty
- Remaining time formatting
- Idempotent completion
- Backend failures and server-side deadlines
"""

import pytest

from .conftest import THREE_HOURS
from ..engine_core.cooldown import (
    AnswerOutcome,
    QuizState,
    format_remaining,
    remaining_time,
)
from ..engine_core.state import CooldownState
from ..errors import BackendUnavailable, Conflict, CooldownActive, ValidationError
from ..storage.kv import attempts_key, cooldown_key


def wrong_answer(location):
    return (location.correct_option_index + 1) % len(location.quiz_options)


class TestRemainingTime:
    """Tests for remaining_time and its display."""

    def test_split(self):
        """Seconds split into hours, minutes and seconds."""
        r = remaining_time(10_000.0, 10_000.0 - 3725)
        assert (r.hours, r.minutes, r.seconds) == (1, 2, 5)

    def test_rounds_up(self):
        """Partial seconds count as a whole second."""
        r = remaining_time(100.0, 99.2)
        assert r.total_seconds == 1
        assert not r.is_zero

    def test_never_negative(self):
        """A past deadline is zero."""
        assert remaining_time(100.0, 250.0).is_zero

    def test_format(self):
        """Display drops leading zero units."""
        assert format_remaining(remaining_time(THREE_HOURS - 1, 0)) == "2h 59m 59s"
        assert format_remaining(remaining_time(303, 0)) == "5m 3s"
        assert format_remaining(remaining_time(42, 0)) == "42s"


class TestCooldownGate:
    """Tests for the gate after an incorrect answer."""

    def test_correct_answer(self, engine, catalog, player, backend):
        """A correct answer completes the location."""
        loc = catalog.get("main_lobby")
        result = engine.submit_answer(player.id, loc, loc.correct_option_index)

        assert result.correct
        assert result.outcome == AnswerOutcome.CORRECT
        assert [r.location_id for r in backend.get_player_progress(player.id)] == ["main_lobby"]

    def test_incorrect_answer_starts_cooldown(self, engine, catalog, player, clock, store):
        """A wrong answer locks the quiz for three hours."""
        loc = catalog.get("main_lobby")
        result = engine.submit_answer(player.id, loc, wrong_answer(loc))

        assert result.outcome == AnswerOutcome.INCORRECT
        assert result.attempt_count == 1
        assert result.cooldown_until == clock.now + THREE_HOURS
        assert result.remaining.display == "3h 0m 0s"
        assert store.get(attempts_key(player.id, loc.id)) == "1"
        assert store.get(cooldown_key(player.id, loc.id)) is not None
        assert engine.quiz_state(player.id, loc.id) == QuizState.COOLDOWN_ACTIVE

    @pytest.mark.parametrize("elapsed", [0, 1, 60, THREE_HOURS / 2, THREE_HOURS - 1, THREE_HOURS - 0.5])
    def test_blocked_during_cooldown(self, engine, catalog, player, clock, backend, elapsed):
        """Every submission in [T, T+3h) is refused and nothing is evaluated."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, wrong_answer(loc))
        clock.advance(elapsed)

        with pytest.raises(CooldownActive) as exc_info:
            engine.submit_answer(player.id, loc, loc.correct_option_index)

        assert exc_info.value.remaining.total_seconds == pytest.approx(THREE_HOURS - elapsed, abs=1)
        assert exc_info.value.status_code == 429
        assert backend.get_player_progress(player.id) == []

    def test_allowed_at_deadline(self, engine, catalog, player, clock):
        """At exactly T+3h the quiz reopens."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, wrong_answer(loc))
        clock.advance(THREE_HOURS)

        assert engine.remaining(player.id, loc.id) is None
        assert engine.quiz_state(player.id, loc.id) == QuizState.IDLE
        assert engine.submit_answer(player.id, loc, loc.correct_option_index).correct

    def test_second_failure_increments_attempts(self, engine, catalog, player, clock):
        """Attempt count grows; the penalty stays fixed."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, wrong_answer(loc))
        clock.advance(THREE_HOURS)
        result = engine.submit_answer(player.id, loc, wrong_answer(loc))

        assert result.attempt_count == 2
        assert result.cooldown_until == clock.now + THREE_HOURS

    def test_correct_clears_state(self, engine, catalog, player, clock, store):
        """Completing a location wipes its cooldown keys."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, wrong_answer(loc))
        clock.advance(THREE_HOURS)
        engine.submit_answer(player.id, loc, loc.correct_option_index)

        assert store.get(cooldown_key(player.id, loc.id)) is None
        assert store.get(attempts_key(player.id, loc.id)) is None

    def test_cooldowns_are_per_location(self, engine, catalog, player, backend):
        """A cooldown on one location leaves others alone."""
        first = catalog.get("main_lobby")
        engine.submit_answer(player.id, first, first.correct_option_index)
        second = catalog.get("south_lobby")
        engine.submit_answer(player.id, second, wrong_answer(second))

        assert engine.remaining(player.id, "main_lobby") is None
        assert engine.remaining(player.id, "south_lobby") is not None


class TestIdempotentCompletion:
    """Answering a completed location again."""

    def test_no_duplicate_record(self, engine, catalog, player, backend):
        """Two correct submissions leave exactly one record."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, loc.correct_option_index)
        again = engine.submit_answer(player.id, loc, loc.correct_option_index)

        assert again.correct
        assert again.already_completed
        assert len(backend.get_player_progress(player.id)) == 1

    def test_wrong_answer_after_completion(self, engine, catalog, player, backend):
        """Any answer for a completed location is a no-op success."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, loc.correct_option_index)
        again = engine.submit_answer(player.id, loc, wrong_answer(loc))

        assert again.correct
        assert engine.remaining(player.id, loc.id) is None


class TestSubmissionErrors:
    """Error paths of submit_answer."""

    @pytest.mark.parametrize("selected", [-1, 4, 99, True, "1", 1.0])
    def test_invalid_index(self, engine, catalog, player, selected):
        """Out-of-range or non-integer answers are a ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            engine.submit_answer(player.id, catalog.get("main_lobby"), selected)
        assert exc_info.value.error_code == "INVALID_ANSWER"

    def test_backend_offline(self, engine, catalog, player, backend, store):
        """A failing backend surfaces as BackendUnavailable and changes nothing."""
        backend.offline = True
        loc = catalog.get("main_lobby")

        with pytest.raises(BackendUnavailable):
            engine.submit_answer(player.id, loc, wrong_answer(loc))

        assert store.snapshot() == {}

    def test_locked_location(self, engine, catalog, player):
        """The backend refuses a location out of sequence."""
        loc = catalog.get("east_dome")
        with pytest.raises(Conflict) as exc_info:
            engine.submit_answer(player.id, loc, loc.correct_option_index)
        assert exc_info.value.error_code == "LOCATION_LOCKED"

    def test_in_flight_submission(self, engine, catalog, player):
        """A second submission for the same pair while one is pending is refused."""
        loc = catalog.get("main_lobby")
        engine._answering.add((player.id, loc.id))

        assert engine.quiz_state(player.id, loc.id) == QuizState.ANSWERING
        with pytest.raises(Conflict) as exc_info:
            engine.submit_answer(player.id, loc, loc.correct_option_index)
        assert exc_info.value.error_code == "SUBMISSION_IN_PROGRESS"


class TestServerDeadline:
    """The backend keeps its own copy of the deadline."""

    def test_cleared_store_does_not_bypass(self, engine, catalog, player, store, clock):
        """Wiping local state still hits the backend cooldown, which is mirrored back."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, wrong_answer(loc))
        store.clear_all()
        clock.advance(60)

        with pytest.raises(CooldownActive) as exc_info:
            engine.submit_answer(player.id, loc, loc.correct_option_index)

        assert exc_info.value.remaining.total_seconds == THREE_HOURS - 60
        assert engine.remaining(player.id, loc.id) is not None

    def test_sync_from_backend(self, engine, catalog, player, store, clock):
        """sync_from_backend restores a wiped deadline."""
        loc = catalog.get("main_lobby")
        engine.submit_answer(player.id, loc, wrong_answer(loc))
        store.clear_all()

        state = engine.sync_from_backend(player.id, loc.id)
        assert state.cooldown_until == clock.now + THREE_HOURS

    def test_later_local_deadline_wins(self, engine, catalog, player, clock):
        """A local deadline later than the backend's is kept."""
        later = clock.now + 2 * THREE_HOURS
        engine.save_state(player.id, "main_lobby", CooldownState(1, later))

        assert engine.sync_from_backend(player.id, "main_lobby").cooldown_until == later

    def test_malformed_values_ignored(self, engine, player, store):
        """Garbage in the store reads as no cooldown."""
        store.set(cooldown_key(player.id, "main_lobby"), "soon")
        store.set(attempts_key(player.id, "main_lobby"), "many")

        state = engine.load_state(player.id, "main_lobby")
        assert state == CooldownState()

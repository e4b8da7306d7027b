"""
Scheduler - Cancellable repeating tasks for the player's screens.

Two independent loops:
- CooldownCountdown: 1-second tick reading the single cooldown deadline;
  stops itself when the quiz reopens
- ProgressPoller: 30-second refresh of durable progress

They share no mutable state. The poller never reads or writes cooldown
keys, and the countdown never touches progress, so a poll landing in the
middle of a countdown cannot corrupt it.

Both are asyncio tasks with explicit start/stop. Whoever starts a task
stops it when the player navigates away.
"""

from __future__ import annotations
from typing import Any, Callable
import asyncio
import inspect
import logging
import time

from ..config import COUNTDOWN_TICK_SECONDS, DEFAULT_POLL_INTERVAL
from ..engine_core.cooldown import QuizCooldownEngine, RemainingTime
from ..engine_core.state import PlayerProgress
from ..errors import BackendUnavailable
from ..storage.backend import HuntBackend, call_backend

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Any]


class RepeatingTask:
    """
    Runs callback every interval seconds until stopped.

    The callback may be sync or async. Returning False ends the loop.
    """

    def __init__(self, callback: TickCallback, interval: float, name: str = "task"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self.name = name
        self.ticks = 0
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule on the running event loop. Starting twice is a no-op."""
        if self.is_running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        return self._task

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait until the loop ends on its own (or is cancelled)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            result = self.callback()
            if inspect.isawaitable(result):
                result = await result
            self.ticks += 1
            if result is False:
                logger.debug("%s finished after %d ticks", self.name, self.ticks)
                return
            await asyncio.sleep(self.interval)


class CooldownCountdown:
    """
    Live countdown for one (player, location) quiz.

    on_tick receives the RemainingTime each second, then None once when
    the quiz reopens, after which the countdown stops.
    """

    def __init__(
        self,
        engine: QuizCooldownEngine,
        player_id: str,
        location_id: str,
        on_tick: Callable[[RemainingTime | None], Any],
        interval: float = COUNTDOWN_TICK_SECONDS,
    ):
        self.engine = engine
        self.player_id = player_id
        self.location_id = location_id
        self.on_tick = on_tick
        self._task = RepeatingTask(
            self._tick, interval, name=f"countdown:{player_id}:{location_id}"
        )

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def start(self) -> asyncio.Task:
        return self._task.start()

    def stop(self) -> None:
        self._task.stop()

    async def wait(self) -> None:
        await self._task.wait()

    async def _tick(self) -> bool:
        remaining = self.engine.remaining(self.player_id, self.location_id)
        result = self.on_tick(remaining)
        if inspect.isawaitable(result):
            await result
        return remaining is not None


class ProgressPoller:
    """
    Periodic refresh of a player's progress records.

    Backend failures are logged and the poll continues on the next
    interval; the last good snapshot is kept.
    """

    def __init__(
        self,
        backend: HuntBackend,
        player_id: str,
        on_update: Callable[[PlayerProgress], Any] | None = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.player_id = player_id
        self.on_update = on_update
        self.clock = clock
        self.snapshot: PlayerProgress | None = None
        self.failures = 0
        self._task = RepeatingTask(self.poll_once, interval, name=f"poller:{player_id}")

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def start(self) -> asyncio.Task:
        return self._task.start()

    def stop(self) -> None:
        self._task.stop()

    async def poll_once(self) -> PlayerProgress | None:
        try:
            records = call_backend(
                "get_player_progress", self.backend.get_player_progress, self.player_id
            )
        except BackendUnavailable as exc:
            self.failures += 1
            logger.warning("Progress refresh for %s failed: %s", self.player_id, exc)
            return self.snapshot

        self.snapshot = PlayerProgress(
            player_id=self.player_id, records=list(records), fetched_at=self.clock()
        )
        if self.on_update is not None:
            result = self.on_update(self.snapshot)
            if inspect.isawaitable(result):
                await result
        return self.snapshot

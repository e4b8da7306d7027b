"""
Session Module - A player's time in the hunt.

- PlayerSession: sign-up, registration and the cached identity
- SessionManager / HuntFlow: scan → photo → quiz at one location
- CooldownCountdown / ProgressPoller: cancellable screen timers

Flows are ephemeral. Durable progress is always re-read from the backend.
"""

from .manager import PlayerSession, SessionManager
from .hunt_flow import HuntFlow, FlowStage, ScanOutcome
from .scheduler import RepeatingTask, CooldownCountdown, ProgressPoller

__all__ = [
    "PlayerSession",
    "SessionManager",
    "HuntFlow",
    "FlowStage",
    "ScanOutcome",
    "RepeatingTask",
    "CooldownCountdown",
    "ProgressPoller",
]

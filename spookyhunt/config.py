"""
Configuration - Environment-driven settings.

    SPOOKYHUNT_ENV               development | production
    SPOOKYHUNT_CATALOG_PATH      JSON catalog file (default: built-in event)
    SPOOKYHUNT_STATE_DIR         Directory for the local state file
                                 (default: in-memory)
    SPOOKYHUNT_COOLDOWN_SECONDS  Quiz penalty after a wrong answer (10800)
    SPOOKYHUNT_POLL_INTERVAL     Progress refresh interval in seconds (30)
    SPOOKYHUNT_SIGNUP_CODES      Comma-separated sign-up codes
    ALLOWED_ORIGINS              CORS origins, comma-separated (*)
    SPOOKYHUNT_LOG_LEVEL         Logging level (INFO)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging
import os

DEFAULT_COOLDOWN_SECONDS = 3 * 60 * 60
DEFAULT_POLL_INTERVAL = 30.0
COUNTDOWN_TICK_SECONDS = 1.0

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class HuntConfig:
    env: str = "development"
    catalog_path: Path | None = None
    state_dir: Path | None = None
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    signup_codes: set[str] = field(default_factory=set)
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> HuntConfig:
        env = os.environ if environ is None else environ

        catalog_path = env.get("SPOOKYHUNT_CATALOG_PATH")
        state_dir = env.get("SPOOKYHUNT_STATE_DIR")
        codes = env.get("SPOOKYHUNT_SIGNUP_CODES", "")

        return cls(
            env=env.get("SPOOKYHUNT_ENV", "development"),
            catalog_path=Path(catalog_path) if catalog_path else None,
            state_dir=Path(state_dir) if state_dir else None,
            cooldown_seconds=_float(env, "SPOOKYHUNT_COOLDOWN_SECONDS", DEFAULT_COOLDOWN_SECONDS),
            poll_interval=_float(env, "SPOOKYHUNT_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            signup_codes={c.strip() for c in codes.split(",") if c.strip()},
            allowed_origins=[
                o.strip() for o in env.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()
            ],
            log_level=env.get("SPOOKYHUNT_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def state_file(self) -> Path | None:
        return self.state_dir / "state.json" if self.state_dir else None


def _float(env, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the CLI and the server."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

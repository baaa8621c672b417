# rook_server/settings.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from a .env file if present.
load_dotenv()


@dataclass(frozen=True)
class Timing:
    """Pauses (seconds) the table waits between automatic steps."""

    trick_pause: float = 2.0
    round_result_pause: float = 2.0
    next_round_delay: float = 5.0
    autoplay_start_delay: float = 1.0
    autoplay_step_delay: float = 0.5


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    results_dir: Optional[Path] = None
    timing: Timing = field(default_factory=Timing)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """
        Build settings from environment variables.

        ROOK_HOST, PORT (or ROOK_PORT), ROOK_LOG_LEVEL, ROOK_RESULTS_DIR and the
        ROOK_*_PAUSE / ROOK_*_DELAY timings. Missing variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        defaults = Timing()

        port_raw = env.get("PORT") or env.get("ROOK_PORT")
        port = _parse_int("PORT", port_raw, cls.port)
        if not 0 < port < 65536:
            raise ValueError(f"PORT must be between 1 and 65535, got {port}")

        log_level = env.get("ROOK_LOG_LEVEL", cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"ROOK_LOG_LEVEL is not a logging level: {log_level!r}")

        results_raw = env.get("ROOK_RESULTS_DIR")
        results_dir = Path(results_raw).expanduser() if results_raw else None

        timing = Timing(
            trick_pause=_parse_delay(env, "ROOK_TRICK_PAUSE", defaults.trick_pause),
            round_result_pause=_parse_delay(
                env, "ROOK_ROUND_RESULT_PAUSE", defaults.round_result_pause
            ),
            next_round_delay=_parse_delay(env, "ROOK_NEXT_ROUND_DELAY", defaults.next_round_delay),
            autoplay_start_delay=_parse_delay(
                env, "ROOK_AUTOPLAY_START_DELAY", defaults.autoplay_start_delay
            ),
            autoplay_step_delay=_parse_delay(
                env, "ROOK_AUTOPLAY_STEP_DELAY", defaults.autoplay_step_delay
            ),
        )
        return cls(
            host=env.get("ROOK_HOST", cls.host),
            port=port,
            log_level=log_level,
            results_dir=results_dir,
            timing=timing,
        )


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _parse_delay(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value

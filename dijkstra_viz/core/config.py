# dijkstra_viz/core/config.py
#!/usr/bin/env python3
"""
Runtime knobs.

- ENV: DIJKSTRA_VIZ_SPEED=slow|medium|fast, DIJKSTRA_VIZ_MAP=<name or path>,
       DIJKSTRA_VIZ_SPEED_SCALE=<float>, DIJKSTRA_VIZ_LOG_LEVEL=<level>
- CLI: --speed=..., --map=..., --log-level=... (CLI wins over ENV)
"""

import math
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence

from dijkstra_viz.core.errors import ConfigurationError
from dijkstra_viz.core.types import Speed

SPEEDS_MS: Dict[Speed, int] = {Speed.SLOW: 150, Speed.MEDIUM: 50, Speed.FAST: 15}
REPLAY_FACTOR = 2

MAP_DIR = Path(__file__).resolve().parents[1] / "maps"
DEFAULT_MAP = "default"


@dataclass
class SchedulerConfig:
    delays_ms: Dict[Speed, float] = field(default_factory=lambda: dict(SPEEDS_MS))
    replay_factor: float = REPLAY_FACTOR

    def step_delay(self, speed: Speed) -> float:
        """Seconds to wait after each visited cell."""
        return self.delays_ms[speed] / 1000.0

    def replay_delay(self, speed: Speed) -> float:
        return self.step_delay(speed) * self.replay_factor

    @classmethod
    def from_env(cls, environ=None) -> "SchedulerConfig":
        environ = os.environ if environ is None else environ
        raw = environ.get("DIJKSTRA_VIZ_SPEED_SCALE")
        if raw is None:
            return cls()
        try:
            scale = float(raw)
        except ValueError:
            raise ConfigurationError(f"DIJKSTRA_VIZ_SPEED_SCALE must be a number, got {raw!r}") from None
        if not math.isfinite(scale) or scale < 0:
            raise ConfigurationError(f"DIJKSTRA_VIZ_SPEED_SCALE must be a finite, non-negative number, got {raw!r}")
        return cls(delays_ms={k: v * scale for k, v in SPEEDS_MS.items()})


def _cli_value(name: str, argv: Sequence[str]) -> Optional[str]:
    value = None
    for arg in argv:
        if arg.startswith(f"--{name}="):
            value = arg.split("=", 1)[1]
    return value


def _resolve(name: str, env_key: str, default: str, argv=None, environ=None) -> str:
    argv = sys.argv[1:] if argv is None else argv
    environ = os.environ if environ is None else environ
    value = environ.get(env_key, default)
    cli = _cli_value(name, argv)
    if cli is not None:
        value = cli
    return value


def resolve_speed(argv=None, environ=None) -> Speed:
    return Speed.parse(_resolve("speed", "DIJKSTRA_VIZ_SPEED", Speed.MEDIUM.value, argv, environ))


def resolve_map(argv=None, environ=None) -> Path:
    """Bundled map name (e.g. 'open') or a path to a JSON map file."""
    value = _resolve("map", "DIJKSTRA_VIZ_MAP", DEFAULT_MAP, argv, environ)
    candidate = Path(value)
    if candidate.suffix == ".json" or candidate.exists():
        return candidate
    return MAP_DIR / f"{value}.json"


def resolve_log_level(argv=None, environ=None) -> str:
    return _resolve("log-level", "DIJKSTRA_VIZ_LOG_LEVEL", "WARNING", argv, environ).upper()

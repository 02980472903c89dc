# gridrace/core/config.py
#!/usr/bin/env python3
"""
Race configuration.

Resolution order (later wins):
- defaults below
- ENV: GRIDRACE_ROWS, GRIDRACE_COLS, GRIDRACE_MAX_ITERATIONS, GRIDRACE_TIMEOUT_MS,
       GRIDRACE_VISITED_DELAY_MS, GRIDRACE_PATH_DELAY_MS, GRIDRACE_SCENARIO
- CLI: --rows=20 --cols=30 --max-iterations=10000 --timeout-ms=10000
       --visited-delay-ms=5 --path-delay-ms=25 --scenario=walled_end
"""

import os
import sys
from dataclasses import dataclass, fields, replace
from typing import Dict, Mapping, Optional, Sequence

from gridrace.core.errors import ConfigError
from gridrace.core.sink import Pacing
from gridrace.core.types import DEFAULT_ROWS, DEFAULT_COLS
from gridrace.core.engine import DEFAULT_MAX_ITERATIONS

DEFAULT_TIMEOUT_MS = 10000
ENV_PREFIX = "GRIDRACE_"


@dataclass(frozen=True)
class RaceConfig:
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    visited_delay_ms: float = 5.0
    path_delay_ms: float = 25.0
    scenario: Optional[str] = None

    def __post_init__(self):
        if self.rows < 1 or self.cols < 1:
            raise ConfigError(f"grid must be at least 1x1, got {self.rows}x{self.cols}")
        if self.max_iterations < 0:
            raise ConfigError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if self.visited_delay_ms < 0 or self.path_delay_ms < 0:
            raise ConfigError("pacing delays must be >= 0")

    @property
    def pacing(self) -> Pacing:
        return Pacing(self.visited_delay_ms, self.path_delay_ms)

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    def headless(self) -> "RaceConfig":
        """Same race rules with presentation pacing removed."""
        return replace(self, visited_delay_ms=0.0, path_delay_ms=0.0)


def _convert(name: str, raw: str):
    kind = {f.name: f.type for f in fields(RaceConfig)}[name]
    if name == "scenario":
        return raw or None
    try:
        if kind in (int, "int"):
            return int(raw)
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name}: expected a number, got {raw!r}") from None


def resolve_config(argv: Optional[Sequence[str]] = None,
                   environ: Optional[Mapping[str, str]] = None) -> RaceConfig:
    argv = sys.argv[1:] if argv is None else argv
    environ = os.environ if environ is None else environ

    values: Dict[str, object] = {}
    for f in fields(RaceConfig):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw is not None:
            values[f.name] = _convert(f.name, raw)

    known = {f.name for f in fields(RaceConfig)}
    for arg in argv:
        if not arg.startswith("--") or "=" not in arg:
            continue
        key, raw = arg[2:].split("=", 1)
        key = key.replace("-", "_").lower()
        if key in known:
            values[key] = _convert(key, raw)

    return RaceConfig(**values)

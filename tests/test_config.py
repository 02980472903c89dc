import pytest

from gridrace.core.config import RaceConfig, resolve_config
from gridrace.core.errors import ConfigError
from gridrace.core.sink import Pacing
from gridrace.core.types import PathCell, Visited


def test_defaults():
    config = resolve_config(argv=[], environ={})
    assert config == RaceConfig()
    assert (config.rows, config.cols) == (20, 30)
    assert config.max_iterations == 10000
    assert config.timeout_ms == 10000
    assert config.timeout_s == 10.0
    assert config.pacing == Pacing(5.0, 25.0)
    assert config.scenario is None


def test_environment_overrides_defaults():
    env = {"GRIDRACE_ROWS": "12", "GRIDRACE_TIMEOUT_MS": "2500", "GRIDRACE_PATH_DELAY_MS": "0.5"}
    config = resolve_config(argv=[], environ=env)
    assert config.rows == 12
    assert config.timeout_ms == 2500
    assert config.path_delay_ms == 0.5
    assert config.cols == 30


def test_command_line_overrides_environment():
    env = {"GRIDRACE_COLS": "40", "GRIDRACE_SCENARIO": "corners"}
    argv = ["--cols=25", "--max-iterations=77", "--scenario=walled_end", "--verbose", "stray"]
    config = resolve_config(argv=argv, environ=env)
    assert config.cols == 25
    assert config.max_iterations == 77
    assert config.scenario == "walled_end"


def test_unknown_switches_are_ignored():
    assert resolve_config(argv=["--mode=fast", "--colour=red"], environ={}) == RaceConfig()


def test_bad_number():
    with pytest.raises(ConfigError, match="rows"):
        resolve_config(argv=["--rows=many"], environ={})


@pytest.mark.parametrize("kwargs", [
    {"rows": 0},
    {"cols": -3},
    {"max_iterations": -1},
    {"timeout_ms": 0},
    {"visited_delay_ms": -5},
])
def test_invalid_values(kwargs):
    with pytest.raises(ConfigError):
        RaceConfig(**kwargs)


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        resolve_config(argv=["--timeout-ms=-4"], environ={})


def test_headless_drops_pacing_only():
    config = RaceConfig(rows=8, timeout_ms=300).headless()
    assert config.pacing == Pacing.none()
    assert (config.rows, config.timeout_ms) == (8, 300)


def test_pacing_delays():
    pacing = Pacing()
    assert pacing.delay_for(Visited((0, 0))) == pytest.approx(0.005)
    assert pacing.delay_for(PathCell((0, 0))) == pytest.approx(0.025)
    assert Pacing.none().delay_for(PathCell((0, 0))) == 0

# gridrace/core/errors.py
#!/usr/bin/env python3
"""Error kinds raised by the grid model, the race and the config layer."""


class GridRaceError(Exception):
    """Base class; the viewer shows these to the user instead of crashing."""


class InvalidCoordinate(GridRaceError, ValueError):
    def __init__(self, coord, reason: str = "out of bounds"):
        self.coord = coord
        self.reason = reason
        super().__init__(f"Invalid cell {coord}: {reason}")


class GridLocked(GridRaceError):
    def __init__(self, state):
        self.state = state
        super().__init__(f"The grid is locked ({state.value}). Reset the grid to start a new race.")


# ---------- race validation ----------
class RaceValidationError(GridRaceError):
    pass


class MissingEndpoint(RaceValidationError):
    def __init__(self):
        super().__init__("Please set both start and end points")


class SameEndpoints(RaceValidationError):
    def __init__(self):
        super().__init__("Start and end points cannot be the same")


class EndpointIsObstacle(RaceValidationError):
    def __init__(self, coord):
        self.coord = coord
        super().__init__(f"Start and end points cannot be walls (wall at {coord})")


class RaceTimeout(GridRaceError):
    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Race timed out after {timeout_ms} ms")


# ---------- config / presets ----------
class ConfigError(GridRaceError, ValueError):
    pass


class UnknownScenario(GridRaceError, KeyError):
    def __init__(self, name: str, known):
        self.name = name
        super().__init__(f"Unknown scenario {name!r} (known: {', '.join(sorted(known))})")

    def __str__(self) -> str:
        return self.args[0]

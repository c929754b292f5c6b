"""
Exceptions raised by the simulation engine.

All of them derive from `SimulationError`, and additionally from the closest
built-in exception type, so that callers may catch either.
"""


class SimulationError(Exception):
    """Base class of all errors reported by the engine."""


class InvalidConfiguration(SimulationError, ValueError):
    """
    Configuration rejected before any integration was attempted.

    Parameters
    ----------
    option : str
        Name of the offending option.
    message : str
        Description of the problem.
    """

    def __init__(self, option: str, message: str):
        super().__init__(f"Invalid '{option}': {message}")
        self.option = option


class DegenerateGeometry(SimulationError, ArithmeticError):
    """Isocline geometry is unbounded (zero competition coefficient)."""


class IntegrationFailure(SimulationError, RuntimeError):
    """
    ODE solver could not advance the solution.

    Parameters
    ----------
    message : str
        Message reported by the solver.
    time : float, optional
        Time at which the failure occurred, if known.
    """

    def __init__(self, message: str, time: float | None = None):
        where = f" at t={time:g}" if time is not None else ""
        super().__init__(f"ODE solver failed{where}: {message}")
        self.time = time

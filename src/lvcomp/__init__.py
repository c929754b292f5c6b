from lvcomp.competition import Competition, caption, steady_state_residual
from lvcomp.config import (
    FixedConfig,
    Mode,
    SimulationConfig,
    SteadyStateConfig,
)
from lvcomp.errors import (
    DegenerateGeometry,
    IntegrationFailure,
    InvalidConfiguration,
    SimulationError,
)
from lvcomp.interval import Interval
from lvcomp.simulation import Report, SimulationResult, recompute, simulate

__all__ = [
    "Competition",
    "DegenerateGeometry",
    "FixedConfig",
    "IntegrationFailure",
    "Interval",
    "InvalidConfiguration",
    "Mode",
    "Report",
    "SimulationConfig",
    "SimulationError",
    "SimulationResult",
    "SteadyStateConfig",
    "caption",
    "recompute",
    "simulate",
    "steady_state_residual",
]

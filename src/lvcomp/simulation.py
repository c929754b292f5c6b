"""
Simulation runs of the competition model.

.. currentmodule:: lvcomp.simulation

The entry point is `recompute`, which takes a complete `SimulationConfig` and
returns a `Report` with everything an external renderer needs: the time series,
isocline geometry, equilibria and the caption. Lower level functions
`integrate_fixed` and `integrate_until_steady` run a single integration mode.
"""
import functools
import logging
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from lvcomp.competition import Competition, caption, steady_state_residual
from lvcomp.config import FixedConfig, Mode, SimulationConfig, SteadyStateConfig
from lvcomp.errors import DegenerateGeometry
from lvcomp.ode import Solution, solve, solve_until
from lvcomp.utils import frozen_array, stopwatch
from lvcomp.zngi import (
    AxisBounds,
    Isoclines,
    Outcome,
    Point,
    axis_bounds,
    equilibria,
    isoclines,
    outcome,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """
    Time series of population densities.

    Attributes
    ----------
    t : ndarray, shape (M,)
        Strictly increasing time points.
    N1, N2 : ndarray, shape (M,)
        Population densities of the two species.
    total : ndarray, shape (M,)
        Combined population density.
    mode : Mode
        Integration mode that produced the result.
    steady : bool
        ``True`` if integration stopped because a steady state was detected.
    """

    t: NDArray
    N1: NDArray
    N2: NDArray
    total: NDArray
    mode: Mode
    steady: bool = False

    def __post_init__(self):
        if self.t.ndim != 1:
            raise ValueError(f"Time axis is not one-dimensional (shape {self.t.shape})")
        for name in ("N1", "N2", "total"):
            data = getattr(self, name)
            if data.shape != self.t.shape:
                raise ValueError(
                    f"Shape of '{name}' does not match the time axis "
                    f"({data.shape} != {self.t.shape})"
                )
        if np.any(np.diff(self.t) <= 0):
            raise ValueError("Time points are not strictly increasing")

    @classmethod
    def from_solution(
        cls, solution: Solution, mode: Mode, steady: bool = False
    ) -> "SimulationResult":
        series = solution.series
        return cls(
            t=frozen_array(solution.t),
            N1=frozen_array(series["N1"]),
            N2=frozen_array(series["N2"]),
            total=frozen_array(series["total"]),
            mode=mode,
            steady=steady,
        )

    def __len__(self) -> int:
        return self.t.size

    def __iter__(self) -> Iterator[tuple[float, float, float]]:
        """Iterate over ``(t, N1, N2)`` samples."""
        return zip(self.t.tolist(), self.N1.tolist(), self.N2.tolist(), strict=True)

    @property
    def final(self) -> tuple[float, float, float]:
        return (float(self.t[-1]), float(self.N1[-1]), float(self.N2[-1]))

    def truncated(self) -> NDArray:
        """
        Samples with values truncated toward zero, for integer display.

        Returns
        -------
        ndarray, shape (M, 3)
            Rows of ``(t, N1, N2)``.
        """
        return np.trunc(np.column_stack([self.t, self.N1, self.N2]))


def integrate_fixed(
    params: Competition, init: ArrayLike, run: FixedConfig
) -> SimulationResult:
    """
    Integrate the model over the time points ``0, 1, ..., run.steps``.

    Raises
    ------
    IntegrationFailure
        If the solver fails to reach the end of the time span.
    """
    time_points = run.domain.lattice()
    solution = solve(params, init, time_points)
    return SimulationResult.from_solution(solution, Mode.FIXED)


def integrate_until_steady(
    params: Competition, init: ArrayLike, run: SteadyStateConfig
) -> SimulationResult:
    """
    Integrate the model until the total rate of change becomes negligible.

    The solution is sampled at integer time points. Integration stops after the
    first solver step at whose end `steady_state_residual` is non-positive, and that
    step end becomes the last sample. If no steady state is detected, the result
    covers the whole horizon.

    Raises
    ------
    IntegrationFailure
        If the solver fails to take a step.
    """

    def residual(t, state):
        return steady_state_residual(params, state)

    solution = solve_until(params, init, run.domain, stop=residual)
    if solution.stopped:
        logger.info("Steady state reached at t=%g", solution.t[-1])
    else:
        logger.info("No steady state detected until t=%g", run.domain.end)

    return SimulationResult.from_solution(
        solution, Mode.STEADY_STATE, steady=solution.stopped
    )


def simulate(config: SimulationConfig) -> SimulationResult:
    """
    Run the integration mode selected by the configuration.

    Parameters
    ----------
    config : SimulationConfig
        Validated run configuration.

    Returns
    -------
    SimulationResult
        Computed time series.
    """
    params = config.params
    match config.run:
        case FixedConfig() as run:
            return integrate_fixed(params, config.init, run)
        case SteadyStateConfig() as run:
            return integrate_until_steady(params, config.init, run)
        case run:
            raise TypeError(f"Unsupported run configuration: {run!r}")


@dataclass(frozen=True, eq=False)
class Report:
    """
    Everything computed for a single configuration.

    Attributes
    ----------
    config : SimulationConfig
        Configuration the report was computed for.
    result : SimulationResult
        Population time series.
    isoclines : Isoclines
        Zero net growth isoclines of both species.
    bounds : AxisBounds or None
        Suggested plot bounds, ``None`` if an isocline is unbounded.
    equilibria : tuple of Point
        Equilibria of the model.
    outcome : Outcome
        Predicted long-term outcome of the competition.
    caption : str
        Summary of the parameters.
    """

    config: SimulationConfig
    result: SimulationResult
    isoclines: Isoclines
    bounds: AxisBounds | None
    equilibria: tuple[Point, ...]
    outcome: Outcome
    caption: str


@functools.lru_cache(maxsize=32)
def recompute(config: SimulationConfig) -> Report:
    """
    Compute the simulation and equilibrium geometry for a configuration.

    Results are cached on the complete configuration. Any change of a parameter
    produces a different configuration and a complete recomputation.

    Parameters
    ----------
    config : SimulationConfig
        Validated run configuration.

    Returns
    -------
    Report
        Computed data for external rendering.

    Raises
    ------
    IntegrationFailure
        If the solver fails. No partial result is returned.
    """
    params = config.params
    logger.debug("Simulating %s in %s mode", caption(params), config.mode.name)

    with stopwatch() as s:
        result = simulate(config)
    logger.debug("Computed %d samples in %s", len(result), s.elapsed_time)

    try:
        bounds = axis_bounds(params)
    except DegenerateGeometry as e:
        logger.warning("No axis bounds: %s", e)
        bounds = None

    return Report(
        config=config,
        result=result,
        isoclines=isoclines(params),
        bounds=bounds,
        equilibria=equilibria(params),
        outcome=outcome(params),
        caption=caption(params),
    )

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.integrate import LSODA

from lvcomp.errors import IntegrationFailure
from lvcomp.interval import Interval
from lvcomp.utils import zip_to_dict

logger = logging.getLogger(__name__)


class ODE(ABC):
    """
    Autonomous or time-dependent system of ordinary differential equations.

    Subclasses are usually frozen dataclasses whose fields are the parameters of the
    system, so that `rhs` is a pure function of time and state.
    """

    @property
    @abstractmethod
    def state_vars(self) -> tuple[str, ...]:
        """Names of the integrated quantities, in state vector order."""

    @property
    @abstractmethod
    def derived_vars(self) -> tuple[str, ...]:
        """Names of quantities computed from the state after integration."""

    @abstractmethod
    def rhs(self, t: float, state: NDArray) -> ArrayLike:
        """
        Compute time derivatives of the state.

        Parameters
        ----------
        t : float
            Time point.
        state : ndarray
            Vector of state variables.

        Returns
        -------
        array_like
            Derivatives of the state variables, in `state_vars` order.
        """

    @abstractmethod
    def derived(self, state: NDArray) -> ArrayLike:
        """
        Compute derived quantities from a single state vector.

        Returns
        -------
        array_like
            Values of the derived variables, in `derived_vars` order.
        """


class Solution(NamedTuple):
    """
    Time series produced by an ODE solver.

    Attributes
    ----------
    t : ndarray, shape (M,)
        Strictly increasing time points.
    series : dict of ndarray, shape (M,)
        Time series of state and derived variables.
    stopped : bool
        ``True`` if integration was terminated by the stopping condition before
        reaching the end of the domain.
    """

    t: NDArray
    series: dict[str, NDArray]
    stopped: bool = False


def solve(
    ode: ODE, init: ArrayLike, time_points: NDArray, **solver_options
) -> Solution:
    """
    Solve an ODE system.

    Given an ODE system and initial state vector, it computes values of state and
    derived variables at specified points in time.

    Parameters
    ----------
    ode : ODE
        Object representing the differential equation to solve.
    init : array_like, shape (N,)
        Initial state.
    time_points : ndarray, shape (M,)
        Times at which to store the computed solution, must be strictly increasing.
        Integration runs from the first to the last of them.

    Returns
    -------
    Solution
        Time series of state and derived variables at `time_points`.

    Other Parameters
    ----------------
    **solver_options : dict, optional
        Additional arguments passed to the `scipy.integrate.LSODA` solver.

    Raises
    ------
    IntegrationFailure
        If the solver fails to take a step or the solution is not finite.
    """
    time_points = np.asarray(time_points, dtype=float)
    domain = Interval(time_points[0], time_points[-1])
    return _integrate(ode, init, domain, time_points, None, solver_options)


def solve_until(
    ode: ODE,
    init: ArrayLike,
    domain: Interval,
    stop: Callable[[float, NDArray], float],
    **solver_options,
) -> Solution:
    """
    Solve an ODE system until the stopping condition is met.

    The solution is stored at integer time points of the domain. After each step
    taken by the solver, the stopping function is evaluated at the end of the step.
    Once it is non-positive, integration is terminated and the step end is appended
    as the final sample.

    Parameters
    ----------
    ode : ODE
        Object representing the differential equation to solve.
    init : array_like, shape (N,)
        Initial state.
    domain : Interval
        Maximum time span of the integration.
    stop : callable
        Function ``stop(t, state) -> float`` of the step end state. Integration
        terminates the first time it returns a value ``<= 0``.

    Returns
    -------
    Solution
        Time series of state and derived variables.

    Other Parameters
    ----------------
    **solver_options : dict, optional
        Additional arguments passed to the `scipy.integrate.LSODA` solver.

    Raises
    ------
    IntegrationFailure
        If the solver fails to take a step or the solution is not finite.
    """
    return _integrate(ode, init, domain, domain.lattice(), stop, solver_options)


def _integrate(ode, init, domain, samples, stop, solver_options) -> Solution:
    # every accepted step must end in a finite state
    y0 = np.asarray(init, dtype=float)
    solver = LSODA(ode.rhs, domain.start, y0, domain.end, **solver_options)

    times = [float(domain.start)]
    states = [solver.y.copy()]
    pending = int(np.searchsorted(samples, domain.start, side="right"))
    stopped = False

    while solver.status == "running":
        message = solver.step()
        if solver.status == "failed":
            raise IntegrationFailure(message, time=solver.t)
        if not np.all(np.isfinite(solver.y)):
            raise IntegrationFailure("solution is not finite", time=solver.t)

        t_new = solver.t
        dense = solver.dense_output()
        while pending < samples.size and samples[pending] <= t_new:
            times.append(samples[pending])
            states.append(dense(samples[pending]))
            pending += 1

        if stop is not None and stop(t_new, solver.y) <= 0:
            # the step end itself is the last sample, even if on the lattice
            if t_new > times[-1]:
                times.append(t_new)
                states.append(solver.y.copy())
            else:
                states[-1] = solver.y.copy()
            stopped = True
            logger.debug("Stopping condition met at t=%g", t_new)
            break

    state = np.column_stack(states)
    return Solution(np.array(times), _assemble_vars(ode, state), stopped)


def _assemble_vars(ode: ODE, state: NDArray) -> dict[str, NDArray]:
    derived = np.apply_along_axis(ode.derived, axis=0, arr=state)

    state_dict = zip_to_dict(ode.state_vars, state)
    derived_dict = zip_to_dict(ode.derived_vars, derived)

    return state_dict | derived_dict

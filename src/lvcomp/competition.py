import math
from dataclasses import dataclass
from typing import Annotated, ClassVar

import numpy as np
from numpy.typing import ArrayLike

from lvcomp.errors import InvalidConfiguration
from lvcomp.meta import Param
from lvcomp.ode import ODE
from lvcomp.utils import Range

STEADY_STATE_TOLERANCE = 1e-3
"""Total absolute rate of change below which the system is considered steady."""

COEFFICIENT_RANGE = Range(0.0, 2.0)
"""Conventional range of competition coefficients."""


@dataclass(frozen=True)
class Competition(ODE):
    """
    Lotka-Volterra competition of two species.

    Both species grow logistically, each reducing the growth rate of the other in
    proportion to its own density.
    """

    K1: Annotated[
        float, Param("K_1", desc="Carrying capacity of species 1", range=Range(0.0))
    ]
    K2: Annotated[
        float, Param("K_2", desc="Carrying capacity of species 2", range=Range(0.0))
    ]
    alpha: Annotated[
        float,
        Param(
            r"\alpha",
            desc="Per-capita effect of species 2 on the growth of species 1",
            range=COEFFICIENT_RANGE,
        ),
    ]
    beta: Annotated[
        float,
        Param(
            r"\beta",
            desc="Per-capita effect of species 1 on the growth of species 2",
            range=COEFFICIENT_RANGE,
        ),
    ]
    r1: Annotated[float, Param("r_1", desc="Intrinsic growth rate of species 1")] = 1.0
    r2: Annotated[float, Param("r_2", desc="Intrinsic growth rate of species 2")] = 1.0

    state_vars: ClassVar = ("N1", "N2")
    derived_vars: ClassVar = ("total",)

    def __post_init__(self):
        for name in ("K1", "K2"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise InvalidConfiguration(
                    name.lower(), f"carrying capacity must be positive, got {value}"
                )

    def rhs(self, t: float, state) -> list[float]:
        n1, n2 = state
        dn1 = self.r1 * n1 * (1 - (n1 + self.alpha * n2) / self.K1)
        dn2 = self.r2 * n2 * (1 - (n2 + self.beta * n1) / self.K2)
        return [dn1, dn2]

    def derived(self, state) -> list[float]:
        n1, n2 = state
        return [n1 + n2]


def steady_state_residual(params: Competition, state: ArrayLike) -> float:
    """
    Distance of the system from steady state.

    Parameters
    ----------
    params : Competition
        Model parameters.
    state : array_like, shape (2,)
        Population densities ``(N1, N2)``.

    Returns
    -------
    float
        Sum of absolute growth rates minus `STEADY_STATE_TOLERANCE`. Non-positive
        values indicate the state is approximately steady.
    """
    rates = params.rhs(0.0, state)
    return float(np.sum(np.abs(rates))) - STEADY_STATE_TOLERANCE


def caption(params: Competition) -> str:
    """
    Summary of the parameters for figure captions.

    Values are printed in full, whole numbers without a fractional part.

    Examples
    --------
    >>> caption(Competition(K1=500, K2=400, alpha=0.75, beta=1.5))
    'K1=500, K2=400, r1=1, r2=1, Alpha=0.75, Beta=1.5'
    """
    values = {
        "K1": params.K1,
        "K2": params.K2,
        "r1": params.r1,
        "r2": params.r2,
        "Alpha": params.alpha,
        "Beta": params.beta,
    }
    return ", ".join(f"{name}={_format_value(v)}" for name, v in values.items())


def _format_value(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)

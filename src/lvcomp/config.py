"""
Configuration of a simulation run.

A run is described by `SimulationConfig`, which bundles model parameters, initial
populations and the integration mode. Mode-specific settings are carried by the
`run` field, holding either `FixedConfig` or `SteadyStateConfig`.

Configurations are frozen and hashable, so they can be used as cache keys.
"""
import logging
import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

import lvcomp.meta as meta
from lvcomp.competition import Competition
from lvcomp.errors import InvalidConfiguration
from lvcomp.interval import Interval

logger = logging.getLogger(__name__)

STEADY_STATE_HORIZON = 1000
"""End of the time span searched for a steady state."""


class Mode(Enum):
    FIXED = "fixed"
    STEADY_STATE = "steady_state"

    @classmethod
    def parse(cls, value: "Mode | str") -> "Mode":
        if isinstance(value, Mode):
            return value
        try:
            return cls[str(value).strip().upper().replace("-", "_")]
        except KeyError:
            names = ", ".join(m.name for m in cls)
            raise InvalidConfiguration(
                "mode", f"expected one of {names}, got {value!r}"
            ) from None


@dataclass(frozen=True)
class FixedConfig:
    """Integrate over the integer time points ``0, 1, ..., steps``."""

    steps: int

    mode: Mode = field(default=Mode.FIXED, init=False)

    def __post_init__(self):
        steps = self.steps
        if isinstance(steps, bool) or not isinstance(steps, numbers.Integral):
            raise InvalidConfiguration("steps", f"must be an integer, got {steps!r}")
        if steps < 1:
            raise InvalidConfiguration("steps", f"must be positive, got {steps}")

    @property
    def domain(self) -> Interval:
        return Interval(0, self.steps)


@dataclass(frozen=True)
class SteadyStateConfig:
    """Integrate until a steady state is reached, or until the horizon."""

    mode: Mode = field(default=Mode.STEADY_STATE, init=False)

    @property
    def domain(self) -> Interval:
        return Interval(0, STEADY_STATE_HORIZON)


RunConfig: TypeAlias = FixedConfig | SteadyStateConfig


@dataclass(frozen=True)
class SimulationConfig:
    """
    Complete description of a simulation run.

    Attributes
    ----------
    n1, n2 : float
        Initial population densities, must be positive.
    k1, k2 : float
        Carrying capacities, must be positive.
    alpha, beta : float
        Competition coefficients, conventionally between 0 and 2.
    run : FixedConfig or SteadyStateConfig
        Integration mode and its settings.
    r1, r2 : float
        Intrinsic growth rates.
    """

    n1: float
    n2: float
    k1: float
    k2: float
    alpha: float
    beta: float
    run: RunConfig
    r1: float = 1.0
    r2: float = 1.0

    def __post_init__(self):
        for name in ("n1", "n2", "k1", "k2"):
            value = getattr(self, name)
            if not _is_number(value):
                raise InvalidConfiguration(name, f"must be a number, got {value!r}")
            if not math.isfinite(value) or value <= 0:
                raise InvalidConfiguration(name, f"must be positive, got {value}")

        for name in ("alpha", "beta", "r1", "r2"):
            value = getattr(self, name)
            if not _is_number(value) or not math.isfinite(value):
                raise InvalidConfiguration(name, f"must be a number, got {value!r}")

        if not isinstance(self.run, FixedConfig | SteadyStateConfig):
            raise InvalidConfiguration("mode", f"unsupported run type {self.run!r}")

        _warn_if_unconventional(self.params)

    @property
    def mode(self) -> Mode:
        return self.run.mode

    @property
    def params(self) -> Competition:
        return Competition(
            K1=self.k1,
            K2=self.k2,
            alpha=self.alpha,
            beta=self.beta,
            r1=self.r1,
            r2=self.r2,
        )

    @property
    def init(self) -> tuple[float, float]:
        return (self.n1, self.n2)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "SimulationConfig":
        """
        Build configuration from a flat mapping of options.

        Recognized options are ``n1``, ``n2``, ``k1``, ``k2``, ``alpha``, ``beta``,
        ``r1``, ``r2``, ``mode`` and ``steps``. The ``steps`` option is required in
        fixed mode and ignored otherwise.

        Parameters
        ----------
        options : mapping
            Option values.

        Returns
        -------
        SimulationConfig
            Validated configuration.

        Raises
        ------
        InvalidConfiguration
            If an option is missing, unknown or has an invalid value.

        Examples
        --------
        >>> config = SimulationConfig.from_options(
        ...     dict(n1=10, n2=10, k1=500, k2=500, alpha=0.75, beta=0.75,
        ...          mode="fixed", steps=50)
        ... )
        >>> config.run
        FixedConfig(steps=50, mode=<Mode.FIXED: 'fixed'>)
        """
        unknown = set(options) - _OPTIONS
        if unknown:
            names = ", ".join(sorted(unknown))
            raise InvalidConfiguration(names, "unknown option")

        for name in _REQUIRED:
            if name not in options:
                raise InvalidConfiguration(name, "missing value")

        mode = Mode.parse(options["mode"])
        run: RunConfig
        if mode is Mode.FIXED:
            steps = options.get("steps")
            if steps is None:
                raise InvalidConfiguration("steps", "required in FIXED mode")
            run = FixedConfig(steps)
        else:
            run = SteadyStateConfig()

        values = {name: options[name] for name in _REQUIRED if name != "mode"}
        rates = {name: options[name] for name in ("r1", "r2") if name in options}
        return cls(**values, **rates, run=run)


_REQUIRED = ("n1", "n2", "k1", "k2", "alpha", "beta", "mode")
_OPTIONS = frozenset(_REQUIRED + ("r1", "r2", "steps"))


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _warn_if_unconventional(params: Competition) -> None:
    for name, bounds in meta.outside_range(params).items():
        logger.warning(
            "Parameter %s=%g is outside its conventional range [%s, %s]",
            name,
            getattr(params, name),
            bounds.min,
            bounds.max,
        )

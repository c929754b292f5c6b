"""
Zero net growth isoclines and equilibria of the competition model.

The isocline of species 1 is the line ``N1 + alpha * N2 = K1`` on which its growth
rate vanishes, and similarly ``N2 + beta * N1 = K2`` for species 2. Their relative
position determines the long-term outcome of the competition.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from lvcomp.competition import Competition
from lvcomp.errors import DegenerateGeometry

AXIS_MARGIN = 1.25


class Point(NamedTuple):
    n1: float
    n2: float

    @property
    def finite(self) -> bool:
        return math.isfinite(self.n1) and math.isfinite(self.n2)


class Segment(NamedTuple):
    start: Point
    end: Point

    @property
    def bounded(self) -> bool:
        """``False`` if either endpoint lies at infinity."""
        return self.start.finite and self.end.finite


@dataclass(frozen=True)
class Isoclines:
    species1: Segment
    species2: Segment

    @property
    def bounded(self) -> bool:
        return self.species1.bounded and self.species2.bounded


class AxisBounds(NamedTuple):
    x_max: float
    y_max: float


class Outcome(Enum):
    COEXISTENCE = "coexistence"
    SPECIES_1_WINS = "species 1 wins"
    SPECIES_2_WINS = "species 2 wins"
    BISTABLE = "bistable"


def _ratio(k: float, coefficient: float) -> float:
    # inf marks the intercept of an isocline parallel to the axis
    return k / coefficient if coefficient != 0 else math.inf


def isoclines(params: Competition) -> Isoclines:
    """
    Compute the zero net growth isoclines.

    Parameters
    ----------
    params : Competition
        Model parameters.

    Returns
    -------
    Isoclines
        Segment ``(K1, 0) -> (0, K1/alpha)`` for species 1 and
        ``(K2/beta, 0) -> (0, K2)`` for species 2. If ``alpha`` or ``beta`` is zero,
        the corresponding intercept is ``math.inf`` and the segment is not bounded.
    """
    p = params
    species1 = Segment(Point(p.K1, 0.0), Point(0.0, _ratio(p.K1, p.alpha)))
    species2 = Segment(Point(_ratio(p.K2, p.beta), 0.0), Point(0.0, p.K2))
    return Isoclines(species1, species2)


def axis_bounds(params: Competition) -> AxisBounds:
    """
    Suggest plot bounds enclosing both isoclines with a margin.

    Raises
    ------
    DegenerateGeometry
        If ``alpha`` or ``beta`` is zero, so that an isocline is unbounded.
    """
    lines = isoclines(params)
    if not lines.bounded:
        raise DegenerateGeometry(
            f"isocline is unbounded for alpha={params.alpha:g}, beta={params.beta:g}"
        )
    x_max = AXIS_MARGIN * max(lines.species1.start.n1, lines.species2.start.n1)
    y_max = AXIS_MARGIN * max(lines.species2.end.n2, lines.species1.end.n2)
    return AxisBounds(x_max, y_max)


def interior_equilibrium(params: Competition) -> Point | None:
    """
    Intersection of the two isoclines.

    Returns
    -------
    Point or None
        Solution of ``N1 = K1 - alpha*N2``, ``N2 = K2 - beta*N1``, or ``None`` if
        ``alpha * beta == 1`` and the isoclines are parallel or identical. The point
        may lie outside the positive quadrant.
    """
    p = params
    det = 1 - p.alpha * p.beta
    if det == 0:
        return None
    n1 = (p.K1 - p.alpha * p.K2) / det
    n2 = (p.K2 - p.beta * p.K1) / det
    return Point(n1, n2)


def equilibria(params: Competition) -> tuple[Point, ...]:
    """
    List biologically meaningful equilibria.

    These are the extinction of both species, each species alone at its carrying
    capacity, and the interior equilibrium if it exists with non-negative densities.
    """
    points = [Point(0.0, 0.0), Point(params.K1, 0.0), Point(0.0, params.K2)]
    interior = interior_equilibrium(params)
    if interior is not None and interior.n1 >= 0 and interior.n2 >= 0:
        if interior not in points:
            points.append(interior)
    return tuple(points)


def outcome(params: Competition) -> Outcome:
    """
    Classify the long-term outcome from the relative position of the isoclines.

    Species 1 excludes species 2 when its isocline lies entirely outside the other,
    i.e. ``K1 >= K2/beta`` and ``K1/alpha >= K2``. If each isocline crosses the
    other, the interior equilibrium is either stable (coexistence) or a saddle
    separating two exclusion outcomes (bistable).
    """
    p = params
    x1, x2 = p.K1, _ratio(p.K2, p.beta)
    y1, y2 = _ratio(p.K1, p.alpha), p.K2

    if x1 > x2 and y2 > y1:
        return Outcome.BISTABLE
    if x1 < x2 and y1 > y2:
        return Outcome.COEXISTENCE
    if x1 >= x2 and y1 >= y2:
        return Outcome.SPECIES_1_WINS
    return Outcome.SPECIES_2_WINS

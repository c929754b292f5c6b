from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray


class Interval(NamedTuple):
    """Closed time span ``[start, end]``."""

    start: float
    end: float

    def lattice(self) -> NDArray:
        """Integer time points covering the interval, endpoints included."""
        first = int(np.ceil(self.start))
        last = int(np.floor(self.end))
        return np.arange(first, last + 1, dtype=float)

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar, Generic, TypeVar

import numpy as np
from numpy.typing import ArrayLike, NDArray


class stopwatch:
    """
    Context manager capturing time elapsed during the execution inside it.

    Attributes
    ----------
    elapsed_time : timedelta
        Time spend inside the context

    Examples
    --------
    >>> with stopwatch() as s:
    ...     pass
    >>> s.elapsed_time
    datetime.timedelta(...)
    """

    def __enter__(self):
        self.start = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.end = time.monotonic()
        diff_sec = self.end - self.start
        self.elapsed_time = timedelta(seconds=diff_sec)


_T = TypeVar("_T")


def zip_to_dict(names: Iterable[str], values: Iterable[_T]) -> dict[str, _T]:
    """
    Combine sequences of names and values into a dict.

    Parameters
    ----------
    names : iterable of str
        Sequence of keys.
    values : iterable
        Sequence of values.

    Returns
    -------
    dict
        Dictionary of (k, v) pairs from the two passed sequences.
    """
    return dict(zip(names, values, strict=True))


def frozen_array(data: ArrayLike) -> NDArray:
    """
    Return a read-only float copy of the data.

    Parameters
    ----------
    data : array_like
        Values to copy.

    Returns
    -------
    ndarray
        Array that raises ``ValueError`` on any attempt to modify it.
    """
    array = np.array(data, dtype=float)
    array.setflags(write=False)
    return array


_T_co = TypeVar("_T_co", covariant=True)


@dataclass(frozen=True)
class Range(Generic[_T_co]):
    """
    Partially defined range of some variable.

    Range is treated as a boolean truth, unless both bounds are unknown.

    Attributes
    ----------
    min : T, optional
        Lower bound.
    max : T, optional
        Upper bound.
    """

    min: _T_co | None = None
    max: _T_co | None = None

    UNKNOWN: ClassVar[Range[object]]
    """Range with both bound unknown."""

    def __bool__(self) -> bool:
        return self != Range.UNKNOWN

    def __contains__(self, value) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


Range.UNKNOWN = Range[object]()

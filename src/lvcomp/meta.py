"""
Parameter metadata of population models.

Model parameters are dataclass fields, described by a `Param` placed in their
`typing.Annotated` type hint::

    K1: Annotated[float, Param("K_1", desc="Carrying capacity", range=Range(0.0))]

The metadata is read back from the class itself with `params`, so a model needs no
registration step and is described the same way wherever it is imported.
"""
import dataclasses
import typing
from dataclasses import dataclass
from textwrap import dedent
from typing import Any

from lvcomp.utils import Range


@dataclass(frozen=True)
class Param:
    """
    Additional information about a model parameter.

    Attributes
    ----------
    label : str, optional
        Text used to describe the parameter for display purposes.
    desc : str, optional
        Short description of the parameter. Common indentation is removed.
    range : Range, optional
        Conventional range of parameter values.
    """

    label: str | None = None
    desc: str | None = None
    range: Range = Range.UNKNOWN

    def __post_init__(self):
        if self.desc is not None:
            object.__setattr__(self, "desc", dedent(self.desc).strip())


def params(cls: type) -> dict[str, Param]:
    """
    Describe parameters of a model dataclass.

    Parameters
    ----------
    cls : type
        Dataclass whose fields are the model parameters.

    Returns
    -------
    dict of str to Param
        Metadata of each field, in field order. Fields without a `Param` annotation
        get an empty description.

    Raises
    ------
    TypeError
        If `cls` is not a dataclass.
    """
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"'{cls.__name__}' is not a dataclass")

    hints = typing.get_type_hints(cls, include_extras=True)
    return {f.name: _find_param(hints[f.name]) for f in dataclasses.fields(cls)}


def outside_range(instance: Any) -> dict[str, Range]:
    """
    Find parameters whose values lie outside their conventional range.

    Parameters
    ----------
    instance : dataclass instance
        Model with parameter values.

    Returns
    -------
    dict of str to Range
        Range of each offending parameter.
    """
    return {
        name: p.range
        for name, p in params(type(instance)).items()
        if p.range and getattr(instance, name) not in p.range
    }


def _find_param(ann) -> Param:
    for item in getattr(ann, "__metadata__", ()):
        if isinstance(item, Param):
            return item
    return Param()

"""
Structural expansion of aggregate arguments.

Some declared methods take a single aggregate argument (a dataclass, named
tuple, pydantic model or a class declaring ``__aggregate_fields__``) whose
components feed several template variables. Before binding, every flagged
argument is replaced in place by its component values, so the variable
positions recorded on the call metadata refer to the *derived* vector.

The positions only line up when expansion walks the components in the order
the metadata builder assumed. Both sides must take that order from
``aggregate_fields``; an explicit per-position descriptor on the metadata
overrides it.
"""

import dataclasses
import logging
from collections.abc import Collection, Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from callwire.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


def aggregate_fields(value_or_type: Any) -> tuple[str, ...] | None:
    """
    Return the declared component order of an aggregate, or None.

    Dataclasses use ``dataclasses.fields`` order, named tuples ``_fields``,
    pydantic models ``model_fields`` and bean-like classes their
    ``__aggregate_fields__`` sequence.
    """
    cls = value_or_type if isinstance(value_or_type, type) else type(value_or_type)
    if dataclasses.is_dataclass(cls):
        return tuple(field.name for field in dataclasses.fields(cls))
    if issubclass(cls, tuple) and hasattr(cls, "_fields"):
        return tuple(cls._fields)
    if issubclass(cls, BaseModel):
        return tuple(cls.model_fields)
    declared = getattr(cls, "__aggregate_fields__", None)
    if declared is not None:
        return tuple(declared)
    return None


def aggregate_values(value: Any, fields: Sequence[str], *, index: int | None = None) -> list[Any]:
    """Read the named components of ``value`` in the given order."""
    values = []
    for name in fields:
        try:
            values.append(getattr(value, name))
        except AttributeError as exc:
            raise InvalidArgumentError(
                f"Argument {index} of type {type(value).__name__} has no field '{name}'.",
                index=index,
            ) from exc
    return values


def expand_arguments(
    argv: Sequence[Any],
    index_to_expand: Collection[int],
    index_to_fields: Mapping[int, Sequence[str]] | None = None,
) -> Sequence[Any]:
    """
    Build the derived argument vector.

    Returns ``argv`` itself when nothing is flagged. Expansion is one level
    deep: components that are aggregates themselves are kept whole.
    """
    if not index_to_expand:
        return argv

    index_to_fields = index_to_fields or {}
    derived: list[Any] = []
    for index, value in enumerate(argv):
        if value is None or index not in index_to_expand:
            derived.append(value)
            continue
        fields = index_to_fields.get(index) or aggregate_fields(value)
        if fields is None:
            derived.append(value)
            continue
        components = aggregate_values(value, fields, index=index)
        logger.debug(
            "Expanded aggregate argument",
            extra={"index": index, "type": type(value).__name__, "fields": list(fields)},
        )
        derived.extend(components)
    return tuple(derived)

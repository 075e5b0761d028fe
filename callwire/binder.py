"""Binding of (derived) argument values onto template variable names."""

from collections.abc import Mapping, Sequence
from typing import Any

from callwire.expanders import Expander
from callwire.template import is_collection


def expand_elements(expander: Expander, value: Any) -> Any:
    """Apply an expander to a scalar, or element-wise to a collection skipping None."""
    if value is None:
        return None
    if is_collection(value):
        return [expander.expand(element) for element in value if element is not None]
    return expander.expand(value)


def bind_variables(
    argv: Sequence[Any],
    index_to_name: Mapping[int, Sequence[str]],
    expanders: Mapping[int, Expander],
) -> dict[str, Any]:
    """
    Map every declared position to its variable names.

    One position may feed several names; each gets the same (expanded) value.
    """
    variables: dict[str, Any] = {}
    for index, names in index_to_name.items():
        value = argv[index]
        expander = expanders.get(index)
        if expander is not None:
            value = expand_elements(expander, value)
        for name in names:
            variables[name] = value
    return variables

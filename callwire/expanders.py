"""Single-value converters applied to arguments before they are bound to template variables."""

from dataclasses import dataclass
from typing import Any, Protocol

from callwire.errors import InvalidArgumentError
from callwire.template import is_collection


class Expander(Protocol):
    """Turns one argument value into its string wire form."""

    def expand(self, value: Any) -> str:
        ...


class ToStringExpander:
    """Default expander: the value's ``str()``."""

    def expand(self, value: Any) -> str:
        return str(value)


@dataclass(frozen=True, slots=True)
class Cookie:
    """A named cookie value passed as a call argument."""

    name: str
    value: str


class CookieParamExpander:
    """
    Expander for cookie parameters bound to a fixed cookie name.

    Accepts either a raw ``str`` (used verbatim) or a ``Cookie`` whose name
    matches the one the parameter was declared with.
    """

    NULL_NAME_ERROR_MESSAGE = "Cookie parameter name must not be empty."
    MISMATCH_ERROR_MESSAGE = "The Cookie's name '%s' does not match with CookieParam's value '%s'!"
    ALLOWED_TYPES: tuple[type, ...] = (str, Cookie)

    def __init__(self, name: str | None) -> None:
        if not name:
            raise ValueError(self.NULL_NAME_ERROR_MESSAGE)
        self.name = name

    def accepts(self, value: Any) -> bool:
        """True when the value, or every element of a collection value, is an allowed type."""
        if is_collection(value):
            return all(isinstance(item, self.ALLOWED_TYPES) for item in value)
        return isinstance(value, self.ALLOWED_TYPES)

    def expand(self, value: Any) -> str:
        if isinstance(value, Cookie):
            if value.name != self.name:
                raise InvalidArgumentError(self.MISMATCH_ERROR_MESSAGE % (value.name, self.name))
            return value.value
        if isinstance(value, str):
            return value
        raise InvalidArgumentError(
            f"Cookie parameter '{self.name}' expects str or Cookie, got {type(value).__name__}."
        )

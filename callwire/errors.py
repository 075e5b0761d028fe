"""Error taxonomy raised while turning call arguments into request templates."""


class CallwireError(Exception):
    """Base class for every failure raised by callwire."""


class ConfigurationError(CallwireError, RuntimeError):
    """A required collaborator is missing or cannot be built."""


class InvalidArgumentError(CallwireError, ValueError):
    """A call argument is missing or was rejected by an expander."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


class EncodeError(CallwireError, RuntimeError):
    """A body, form or query map payload could not be serialized."""


class MissingVariableError(CallwireError, ValueError):
    """A template placeholder has no usable value bound to it."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"No value bound to template variable '{name}'.")
        self.name = name

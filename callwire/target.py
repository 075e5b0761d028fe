"""Base-URL resolution for request templates."""

from typing import Protocol

from callwire.errors import InvalidArgumentError
from callwire.settings import Settings
from callwire.template import RequestTemplate


class Target(Protocol):
    """Where the requests of an API definition are sent."""

    name: str
    url: str

    def apply(self, template: RequestTemplate) -> RequestTemplate:
        ...


class HardCodedTarget:
    """Target with a fixed base URL prefixed onto relative templates."""

    def __init__(self, url: str, name: str | None = None) -> None:
        if not url or not url.strip():
            raise ValueError("Target url must be a non-empty string.")
        self.url = url.strip().rstrip("/")
        self.name = name or self.url

    @classmethod
    def from_settings(cls, settings: Settings) -> "HardCodedTarget":
        return cls(settings.target_url, settings.target_name)

    def apply(self, template: RequestTemplate) -> RequestTemplate:
        if not template.is_absolute():
            template.target(f"{self.url}{template.target_url or ''}")
        return template

    def __repr__(self) -> str:
        return f"HardCodedTarget(name={self.name!r}, url={self.url!r})"


class EmptyTarget:
    """Target for APIs whose every call carries its own absolute URL."""

    url = ""

    def __init__(self, name: str = "empty") -> None:
        self.name = name

    def apply(self, template: RequestTemplate) -> RequestTemplate:
        if not template.is_absolute():
            raise InvalidArgumentError(
                f"Request with non-absolute URL not supported with {self.name} target: {template.url()}"
            )
        return template

"""httpx hand-off for resolved request templates."""

import logging

import httpx

from callwire.settings import Settings
from callwire.template import RequestTemplate

logger = logging.getLogger(__name__)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build an AsyncClient configured for the target service.

    Sending, retries and response decoding stay with the caller.
    """
    return httpx.AsyncClient(
        base_url=settings.target_url,
        timeout=settings.api_timeout,
    )


def build_httpx_request(
    template: RequestTemplate,
    client: httpx.AsyncClient | httpx.Client | None = None,
) -> httpx.Request:
    """Convert a resolved template into an unsent ``httpx.Request``; the template itself is left untouched."""
    if template.bound_target is not None and not template.is_absolute():
        template = template.bound_target.apply(RequestTemplate.from_template(template))

    headers: list[tuple[str, str]] = []
    for name, values in template.headers.items():
        for value in values:
            if value is None:
                logger.debug("Skipping null header value", extra={"header": name})
                continue
            headers.append((name, value))

    if client is not None:
        return client.build_request(template.method, template.url(), headers=headers, content=template.body)
    return httpx.Request(template.method, template.url(), headers=headers, content=template.body)

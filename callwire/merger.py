"""
Query-map and header-map merging.

Runs after the template has been resolved so values supplied through a map
argument override anything the path template produced for the same name.
Query values are percent-encoded and None entries skipped; header values are
kept verbatim and None entries preserved.
"""

import logging
from collections.abc import Mapping
from typing import Any

from callwire.codecs import QueryMapEncoder
from callwire.errors import EncodeError
from callwire.template import RequestTemplate, encode_component, encode_query_name, is_collection

logger = logging.getLogger(__name__)


def to_query_map(value: Any, query_map_encoder: QueryMapEncoder) -> Mapping[str, Any]:
    """Use mappings directly; reflect anything else through the query map encoder."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    try:
        return query_map_encoder.encode(value)
    except EncodeError:
        raise
    except Exception as exc:
        logger.error(
            "Query map encoder failed unexpectedly",
            extra={"type": type(value).__name__},
            exc_info=exc,
        )
        raise EncodeError(str(exc)) from exc


def _collect(value: Any, *, encode: bool, keep_none: bool) -> list[str | None]:
    items = list(value) if is_collection(value) else [value]
    values: list[str | None] = []
    for item in items:
        if item is None:
            if keep_none:
                values.append(None)
            continue
        text = str(item)
        values.append(encode_component(text) if encode else text)
    return values


def merge_query_map(template: RequestTemplate, query_map: Mapping[str, Any]) -> RequestTemplate:
    for name, value in query_map.items():
        values = _collect(value, encode=True, keep_none=False)
        if values:
            template.queries.override(encode_query_name(str(name)), values)
    return template


def merge_header_map(template: RequestTemplate, header_map: Mapping[str, Any]) -> RequestTemplate:
    for name, value in header_map.items():
        template.headers.override(str(name), _collect(value, encode=False, keep_none=True))
    return template

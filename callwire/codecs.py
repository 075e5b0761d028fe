"""
Body and query-map serialization collaborators.

The resolution strategies only depend on the ``Encoder`` and
``QueryMapEncoder`` protocols; the classes below are the implementations
shipped with the package.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import urlencode

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from callwire.errors import EncodeError
from callwire.expansion import aggregate_fields, aggregate_values
from callwire.template import RequestTemplate, is_collection

logger = logging.getLogger(__name__)

MAP_STRING_WILDCARD = dict[str, Any]
OBJECT_ARRAY = list[Any]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


class Encoder(Protocol):
    """Writes a payload into the body of a request template."""

    def encode(self, payload: Any, body_type: Any, template: RequestTemplate) -> None:
        ...


class QueryMapEncoder(Protocol):
    """Reflects an object into name/value pairs."""

    def encode(self, value: Any) -> Mapping[str, Any]:
        ...


class DefaultEncoder:
    """Accepts ``str`` and ``bytes`` bodies only."""

    def encode(self, payload: Any, body_type: Any, template: RequestTemplate) -> None:
        if isinstance(payload, (str, bytes)):
            template.set_body(payload)
            return
        raise EncodeError(f"{type(payload).__name__} is not a type supported by this encoder.")


class JsonEncoder:
    """Serializes any JSON-able payload (models, dataclasses, dates...) as JSON."""

    def encode(self, payload: Any, body_type: Any, template: RequestTemplate) -> None:
        try:
            document = json.dumps(to_jsonable_python(payload))
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            raise EncodeError(f"Could not serialize {type(payload).__name__} as JSON: {exc!s}") from exc
        template.set_body(document, f"{JSON_CONTENT_TYPE}; charset={template.charset}")


class FormEncoder:
    """
    Writes ``MAP_STRING_WILDCARD`` payloads as an urlencoded form body.

    Any other payload is handed to the delegate encoder.
    """

    def __init__(self, delegate: Encoder | None = None) -> None:
        self.delegate = delegate if delegate is not None else JsonEncoder()

    def encode(self, payload: Any, body_type: Any, template: RequestTemplate) -> None:
        if body_type != MAP_STRING_WILDCARD or not isinstance(payload, Mapping):
            self.delegate.encode(payload, body_type, template)
            return

        pairs: list[tuple[str, str]] = []
        for name, value in payload.items():
            if value is None:
                continue
            if is_collection(value):
                pairs.extend((name, str(item)) for item in value if item is not None)
            else:
                pairs.append((name, str(value)))
        logger.debug("Encoding form body", extra={"fields": [name for name, _ in pairs]})
        template.set_body(urlencode(pairs, encoding=template.charset), FORM_CONTENT_TYPE)


class FieldQueryMapEncoder:
    """Query map encoder reading an aggregate's declared fields, skipping None values."""

    def encode(self, value: Any) -> Mapping[str, Any]:
        if isinstance(value, BaseModel):
            return value.model_dump(by_alias=True, exclude_none=True)
        fields = aggregate_fields(value)
        if fields is None:
            raise EncodeError(f"{type(value).__name__} cannot be used as a query map.")
        values = aggregate_values(value, fields)
        return {name: item for name, item in zip(fields, values) if item is not None}

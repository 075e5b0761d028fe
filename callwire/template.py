"""
Request template model used while building outgoing HTTP calls.

A template starts life as a blueprint attached to call metadata, is copied for
every invocation, filled from the bound argument variables and finally handed
to a transport. Query parameters and headers live in an ``OrderedMultiMap`` so
that the difference between appending values and overriding them is explicit.
"""

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence, Set
from typing import Any
from urllib.parse import quote, urlsplit

from callwire.errors import MissingVariableError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][\w.\-]*)\}")


def is_collection(value: Any) -> bool:
    """Return True for multi-valued arguments (strings, bytes, mappings and named tuples are scalars)."""
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return False
    return isinstance(value, (Sequence, Set, Iterator))


def encode_component(value: str) -> str:
    """Percent-encode a single query or path component."""
    return quote(value, safe="")


_KEEP_IN_NAME = re.compile(r"%[0-9A-Fa-f]{2}")
_KEEP_IN_LITERAL = re.compile(rf"{_PLACEHOLDER.pattern}|%[0-9A-Fa-f]{{2}}")


def _encode_around(text: str, keep: re.Pattern[str]) -> str:
    pieces = []
    position = 0
    for match in keep.finditer(text):
        pieces.append(encode_component(text[position : match.start()]))
        pieces.append(match.group(0))
        position = match.end()
    pieces.append(encode_component(text[position:]))
    return "".join(pieces)


def encode_query_name(name: str) -> str:
    """Percent-encode a query parameter name, leaving existing %XX escapes alone."""
    return _encode_around(name, _KEEP_IN_NAME)


def encode_literal(text: str) -> str:
    """Percent-encode literal template text, keeping placeholders and existing escapes."""
    return _encode_around(text, _KEEP_IN_LITERAL)


def placeholders(text: str) -> list[str]:
    """List the variable names referenced by a template string, in order."""
    return _PLACEHOLDER.findall(text)


class OrderedMultiMap:
    """Insertion-ordered mapping of names to lists of values."""

    def __init__(self, *, case_insensitive: bool = False) -> None:
        self.case_insensitive = case_insensitive
        self._entries: dict[str, tuple[str, list[str | None]]] = {}

    def _key(self, name: str) -> str:
        return name.lower() if self.case_insensitive else name

    def append(self, name: str, values: Iterable[str | None]) -> None:
        """Add values after any already stored under ``name``."""
        key = self._key(name)
        if key in self._entries:
            self._entries[key][1].extend(values)
        else:
            self._entries[key] = (name, list(values))

    def override(self, name: str, values: Iterable[str | None]) -> None:
        """Replace whatever is stored under ``name`` with ``values``."""
        key = self._key(name)
        existing = self._entries.get(key)
        display = existing[0] if existing is not None else name
        self._entries[key] = (display, list(values))

    def remove(self, name: str) -> list[str | None] | None:
        entry = self._entries.pop(self._key(name), None)
        return entry[1] if entry is not None else None

    def get(self, name: str, default: list[str | None] | None = None) -> list[str | None] | None:
        entry = self._entries.get(self._key(name))
        return list(entry[1]) if entry is not None else default

    def names(self) -> list[str]:
        return [display for display, _ in self._entries.values()]

    def items(self) -> list[tuple[str, list[str | None]]]:
        return [(display, list(values)) for display, values in self._entries.values()]

    def copy(self) -> "OrderedMultiMap":
        clone = OrderedMultiMap(case_insensitive=self.case_insensitive)
        for name, values in self.items():
            clone.append(name, values)
        return clone

    def __getitem__(self, name: str) -> list[str | None]:
        entry = self._entries.get(self._key(name))
        if entry is None:
            raise KeyError(name)
        return list(entry[1])

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedMultiMap):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"OrderedMultiMap({dict(self.items())!r})"


class RequestTemplate:
    """In-progress representation of one outgoing HTTP request."""

    def __init__(
        self,
        method: str = "GET",
        uri: str = "",
        *,
        charset: str = "utf-8",
        decode_slash: bool = True,
    ) -> None:
        self.method = method.upper()
        self.charset = charset
        self.decode_slash = decode_slash
        self.queries = OrderedMultiMap()
        self.headers = OrderedMultiMap(case_insensitive=True)
        self.body: bytes | None = None
        self.body_template: str | None = None
        self.already_encoded: set[str] = set()
        self.bound_target: Any = None
        self.resolved = False
        self._target_url: str | None = None
        self._uri = ""
        if uri:
            self.uri(uri)

    @classmethod
    def from_template(cls, other: "RequestTemplate") -> "RequestTemplate":
        """Copy a blueprint so the copy can be mutated independently."""
        clone = cls(other.method, charset=other.charset, decode_slash=other.decode_slash)
        clone.queries = other.queries.copy()
        clone.headers = other.headers.copy()
        clone.body = other.body
        clone.body_template = other.body_template
        clone.already_encoded = set(other.already_encoded)
        clone.bound_target = other.bound_target
        clone.resolved = other.resolved
        clone._target_url = other._target_url
        clone._uri = other._uri
        return clone

    @property
    def target_url(self) -> str | None:
        return self._target_url

    def uri(self, path: str, append: bool = False) -> "RequestTemplate":
        """Set (or extend) the path template; a ``?query`` suffix feeds the query map."""
        path, _, query = path.partition("?")
        if append:
            self._uri += path
        else:
            if path and not path.startswith(("/", "{")) and "://" not in path:
                path = f"/{path}"
            self._uri = path
        if query:
            self._parse_query(query)
        return self

    def target(self, url: str) -> "RequestTemplate":
        """Point the template at a base URL, absolute or relative."""
        base, _, query = url.partition("?")
        self._target_url = base.rstrip("/")
        if query:
            self._parse_query(query)
        return self

    def is_absolute(self) -> bool:
        return bool(self._target_url and urlsplit(self._target_url).scheme)

    def query(self, name: str, values: str | Iterable[str | None]) -> "RequestTemplate":
        """Append query values; an empty value list removes the parameter."""
        if isinstance(values, str):
            values = [values]
        encoded = [encode_literal(value) if value is not None else None for value in values]
        self._append(self.queries, encode_query_name(name), encoded)
        return self

    def header(self, name: str, values: str | Iterable[str | None]) -> "RequestTemplate":
        """Append header values; an empty value list removes the header."""
        self._append(self.headers, name, values)
        return self

    def set_body(self, data: str | bytes | None, content_type: str | None = None) -> "RequestTemplate":
        if isinstance(data, str):
            data = data.encode(self.charset)
        self.body = data
        self.body_template = None
        if content_type:
            self.headers.override("Content-Type", [content_type])
        return self

    def body_text(self) -> str | None:
        return self.body.decode(self.charset) if self.body is not None else None

    def set_already_encoded(self, names: Iterable[str]) -> "RequestTemplate":
        self.already_encoded.update(names)
        return self

    def resolve(
        self,
        variables: Mapping[str, Any],
        already_encoded: Iterable[str] = (),
    ) -> "RequestTemplate":
        """
        Substitute every placeholder and return a new, resolved template.

        Query and header values whose variables are bound to None are dropped.
        A placeholder with no binding at all, or a path or body placeholder
        bound to None, raises MissingVariableError.
        """
        encoded = set(self.already_encoded).union(already_encoded)
        resolved = RequestTemplate.from_template(self)
        resolved.already_encoded = encoded
        resolved._uri = self._expand_required(self._uri, variables, encoded, kind="Path", encode=True)
        resolved.queries = self._expand_map(self.queries, variables, encoded, encode=True)
        resolved.headers = self._expand_map(self.headers, variables, encoded, encode=False)
        if self.body_template is not None:
            body = self._expand_required(self.body_template, variables, encoded, kind="Body", encode=False)
            resolved.body = body.encode(self.charset)
            resolved.body_template = None
        resolved.resolved = True
        return resolved

    def path(self) -> str:
        return self._uri

    def query_string(self) -> str:
        parts = []
        for name, values in self.queries.items():
            for value in values:
                parts.append(name if value is None else f"{name}={value}")
        return "&".join(parts)

    def url(self) -> str:
        base = f"{self._target_url or ''}{self._uri}"
        query = self.query_string()
        return f"{base}?{query}" if query else base

    def _parse_query(self, query: str) -> None:
        for pair in query.split("&"):
            if not pair:
                continue
            name, sep, value = pair.partition("=")
            self.queries.append(encode_query_name(name), [encode_literal(value) if sep else None])

    @staticmethod
    def _append(target: OrderedMultiMap, name: str, values: str | Iterable[str | None]) -> None:
        if isinstance(values, str):
            values = [values]
        values = list(values)
        if not values:
            target.remove(name)
            return
        target.append(name, values)

    def _expand_required(
        self,
        template: str,
        variables: Mapping[str, Any],
        encoded: set[str],
        *,
        kind: str,
        encode: bool,
    ) -> str:
        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            value = _lookup(variables, name)
            if value is None:
                raise MissingVariableError(name, f"{kind} variable '{name}' was null.")
            return self._format(name, value, encoded, encode, path=encode)

        return _PLACEHOLDER.sub(_substitute, template)

    def _expand_map(
        self,
        source: OrderedMultiMap,
        variables: Mapping[str, Any],
        encoded: set[str],
        *,
        encode: bool,
    ) -> OrderedMultiMap:
        expanded_map = OrderedMultiMap(case_insensitive=source.case_insensitive)
        for name, values in source.items():
            expanded: list[str | None] = []
            for value in values:
                if value is None:
                    expanded.append(None)
                    continue
                names = placeholders(value)
                if not names:
                    expanded.append(value)
                    continue
                bound = {var: _lookup(variables, var) for var in names}
                if any(item is None for item in bound.values()):
                    logger.debug("Dropping template value with null variable", extra={"parameter": name})
                    continue
                if _PLACEHOLDER.fullmatch(value) and is_collection(bound[names[0]]):
                    expanded.extend(
                        self._format(names[0], item, encoded, encode)
                        for item in bound[names[0]]
                        if item is not None
                    )
                    continue
                expanded.append(
                    _PLACEHOLDER.sub(
                        lambda match: self._format(match.group(1), bound[match.group(1)], encoded, encode),
                        value,
                    )
                )
            if expanded:
                expanded_map.append(name, expanded)
        return expanded_map

    def _format(self, name: str, value: Any, encoded: set[str], encode: bool, path: bool = False) -> str:
        if is_collection(value):
            return ",".join(
                self._format(name, item, encoded, encode, path) for item in value if item is not None
            )
        text = str(value)
        if not encode or name in encoded:
            return text
        text = encode_component(text)
        if path and self.decode_slash:
            text = text.replace("%2F", "/")
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestTemplate):
            return NotImplemented
        return (
            self.method == other.method
            and self.url() == other.url()
            and self.queries == other.queries
            and self.headers == other.headers
            and self.body == other.body
            and self.body_template == other.body_template
        )

    def __repr__(self) -> str:
        return f"RequestTemplate({self.method} {self.url()})"


def _lookup(variables: Mapping[str, Any], name: str) -> Any:
    if name not in variables:
        raise MissingVariableError(name)
    return variables[name]

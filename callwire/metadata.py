"""Static description of one API method's call shape."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from callwire.template import RequestTemplate


class CallMetadata(BaseModel):
    """
    Everything needed to turn an argument vector into a request template.

    Built once per declared method by whatever parses the API definition.
    ``url_index`` refers to the raw argument vector; every other position
    refers to the vector produced by aggregate expansion.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    config_key: str = ""
    template: RequestTemplate = Field(default_factory=RequestTemplate)
    index_to_name: dict[int, tuple[str, ...]] = Field(default_factory=dict)
    index_to_expand: frozenset[int] = frozenset()
    index_to_fields: dict[int, tuple[str, ...]] = Field(default_factory=dict)
    index_to_expander_class: dict[int, type] = Field(default_factory=dict)
    index_to_expander: dict[int, Any] | None = None
    form_params: tuple[str, ...] = ()
    body_index: int | None = None
    body_type: Any = None
    always_encode_body: bool = False
    url_index: int | None = None
    query_map_index: int | None = None
    header_map_index: int | None = None
    index_to_encoded: frozenset[int] = frozenset()

    @field_validator("body_index", "url_index", "query_map_index", "header_map_index")
    @classmethod
    def index_must_be_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("argument positions must be non-negative")
        return v

    @field_validator("index_to_name", "index_to_fields", "index_to_expander_class", "index_to_expander")
    @classmethod
    def keys_must_be_non_negative(cls, v: dict[int, Any] | None) -> dict[int, Any] | None:
        if v is not None and any(index < 0 for index in v):
            raise ValueError("argument positions must be non-negative")
        return v

    @field_validator("index_to_expand", "index_to_encoded")
    @classmethod
    def members_must_be_non_negative(cls, v: frozenset[int]) -> frozenset[int]:
        if any(index < 0 for index in v):
            raise ValueError("argument positions must be non-negative")
        return v

    @model_validator(mode="after")
    def fields_only_for_expanded_positions(self) -> "CallMetadata":
        stray = set(self.index_to_fields) - set(self.index_to_expand)
        if stray:
            raise ValueError(f"index_to_fields names positions that are not expanded: {sorted(stray)}")
        return self

    def names_at(self, indices: frozenset[int] | set[int]) -> set[str]:
        """Variable names bound to any of the given positions."""
        names: set[str] = set()
        for index in indices:
            names.update(self.index_to_name.get(index, ()))
        return names

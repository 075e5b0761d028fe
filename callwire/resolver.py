"""
Template factories: from call metadata plus arguments to a resolved request.

``TemplateFactoryResolver`` picks one factory per metadata:

* form parameters without a body template -> ``BuildFormEncodedTemplateFromArgs``
* a body position or ``always_encode_body`` -> ``BuildEncodedTemplateFromArgs``
* otherwise -> ``BuildTemplateByResolvingArgs``

Factories keep no per-call state, so one instance serves every invocation of
a method. Each ``create`` call expands aggregates, binds variables, runs the
strategy-specific resolve and then merges query and header maps.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from callwire.binder import bind_variables
from callwire.codecs import MAP_STRING_WILDCARD, OBJECT_ARRAY, Encoder, QueryMapEncoder
from callwire.errors import ConfigurationError, EncodeError, InvalidArgumentError
from callwire.expanders import Expander
from callwire.expansion import expand_arguments
from callwire.merger import merge_header_map, merge_query_map, to_query_map
from callwire.metadata import CallMetadata
from callwire.target import Target
from callwire.template import RequestTemplate

logger = logging.getLogger(__name__)


class RequestTemplateFactory(Protocol):
    """Builds one request template per call."""

    def create(self, argv: Sequence[Any] | None) -> RequestTemplate:
        ...


class TemplateFactoryResolver:
    """Chooses the resolution strategy for each call metadata."""

    def __init__(self, encoder: Encoder, query_map_encoder: QueryMapEncoder) -> None:
        if encoder is None:
            raise ConfigurationError("encoder is required.")
        if query_map_encoder is None:
            raise ConfigurationError("query_map_encoder is required.")
        self.encoder = encoder
        self.query_map_encoder = query_map_encoder

    def resolve(self, target: Target, metadata: CallMetadata) -> "BuildTemplateByResolvingArgs":
        if metadata.form_params and metadata.template.body_template is None:
            factory: BuildTemplateByResolvingArgs = BuildFormEncodedTemplateFromArgs(
                metadata, self.encoder, self.query_map_encoder, target
            )
        elif metadata.body_index is not None or metadata.always_encode_body:
            factory = BuildEncodedTemplateFromArgs(metadata, self.encoder, self.query_map_encoder, target)
        else:
            factory = BuildTemplateByResolvingArgs(metadata, self.query_map_encoder, target)
        logger.debug(
            "Selected template factory",
            extra={"config_key": metadata.config_key, "strategy": factory.strategy},
        )
        return factory

    def resolve_all(
        self,
        target: Target,
        metadata_by_key: Mapping[str, CallMetadata],
    ) -> dict[str, "BuildTemplateByResolvingArgs"]:
        """Build one factory per declared method."""
        return {key: self.resolve(target, metadata) for key, metadata in metadata_by_key.items()}


class BuildTemplateByResolvingArgs:
    """Plain strategy: substitute bound variables, no body."""

    strategy = "plain"

    def __init__(self, metadata: CallMetadata, query_map_encoder: QueryMapEncoder, target: Target) -> None:
        self.metadata = metadata
        self.query_map_encoder = query_map_encoder
        self.target = target
        self._expanders = self._build_expanders(metadata)
        self._encoded_names = frozenset(metadata.names_at(metadata.index_to_encoded))

    @staticmethod
    def _build_expanders(metadata: CallMetadata) -> dict[int, Expander]:
        if metadata.index_to_expander is not None:
            return dict(metadata.index_to_expander)
        expanders: dict[int, Expander] = {}
        for index, expander_class in metadata.index_to_expander_class.items():
            try:
                expanders[index] = expander_class()
            except Exception as exc:
                raise ConfigurationError(
                    f"Could not instantiate expander {expander_class.__name__} for argument {index}: {exc!s}"
                ) from exc
        return expanders

    def create(self, argv: Sequence[Any] | None) -> RequestTemplate:
        argv = tuple(argv) if argv is not None else ()
        mutable = RequestTemplate.from_template(self.metadata.template)
        mutable.bound_target = self.target

        url_index = self.metadata.url_index
        if url_index is not None:
            if argv[url_index] is None:
                raise InvalidArgumentError(f"URI parameter {url_index} was null", index=url_index)
            mutable.target(str(argv[url_index]))

        derived = expand_arguments(argv, self.metadata.index_to_expand, self.metadata.index_to_fields)
        variables = bind_variables(derived, self.metadata.index_to_name, self._expanders)
        template = self._resolve(derived, mutable, variables)

        # map arguments go last so they override values from the path template
        if self.metadata.query_map_index is not None:
            query_map = to_query_map(derived[self.metadata.query_map_index], self.query_map_encoder)
            merge_query_map(template, query_map)
        if self.metadata.header_map_index is not None:
            header_map = to_query_map(derived[self.metadata.header_map_index], self.query_map_encoder)
            merge_header_map(template, header_map)

        logger.debug(
            "Resolved request template",
            extra={
                "config_key": self.metadata.config_key,
                "strategy": self.strategy,
                "method": template.method,
                "url": template.url(),
            },
        )
        return template

    def _resolve(
        self,
        argv: Sequence[Any],
        mutable: RequestTemplate,
        variables: dict[str, Any],
    ) -> RequestTemplate:
        return mutable.resolve(variables, self._encoded_names)

    def _encode(self, encoder: Encoder, payload: Any, body_type: Any, template: RequestTemplate) -> None:
        try:
            encoder.encode(payload, body_type, template)
        except EncodeError:
            raise
        except Exception as exc:
            logger.error(
                "Encoder failed unexpectedly",
                extra={"config_key": self.metadata.config_key, "strategy": self.strategy},
                exc_info=exc,
            )
            raise EncodeError(str(exc)) from exc

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.metadata.config_key or self.metadata.template!r})"


class BuildFormEncodedTemplateFromArgs(BuildTemplateByResolvingArgs):
    """Form strategy: form parameters become the body, the rest is substituted."""

    strategy = "form"

    def __init__(
        self,
        metadata: CallMetadata,
        encoder: Encoder,
        query_map_encoder: QueryMapEncoder,
        target: Target,
    ) -> None:
        super().__init__(metadata, query_map_encoder, target)
        self.encoder = encoder

    def _resolve(
        self,
        argv: Sequence[Any],
        mutable: RequestTemplate,
        variables: dict[str, Any],
    ) -> RequestTemplate:
        form_variables = {
            name: value for name, value in variables.items() if name in self.metadata.form_params
        }
        mutable.set_already_encoded(form_variables)
        mutable.set_already_encoded(self._encoded_names)
        self._encode(self.encoder, form_variables, MAP_STRING_WILDCARD, mutable)
        return super()._resolve(argv, mutable, variables)


class BuildEncodedTemplateFromArgs(BuildTemplateByResolvingArgs):
    """Body strategy: one argument, or the whole vector, becomes the body."""

    strategy = "body"

    def __init__(
        self,
        metadata: CallMetadata,
        encoder: Encoder,
        query_map_encoder: QueryMapEncoder,
        target: Target,
    ) -> None:
        super().__init__(metadata, query_map_encoder, target)
        self.encoder = encoder

    def _resolve(
        self,
        argv: Sequence[Any],
        mutable: RequestTemplate,
        variables: dict[str, Any],
    ) -> RequestTemplate:
        if self.metadata.always_encode_body:
            self._encode(self.encoder, list(argv), OBJECT_ARRAY, mutable)
        else:
            body_index = self.metadata.body_index
            body = argv[body_index]
            if body is None:
                raise InvalidArgumentError(f"Body parameter {body_index} was null", index=body_index)
            self._encode(self.encoder, body, self.metadata.body_type, mutable)
        return super()._resolve(argv, mutable, variables)

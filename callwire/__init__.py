"""
Client-side HTTP request building.

Call metadata describes how one API method maps its arguments onto a request
template; the resolver turns metadata plus runtime arguments into a resolved
template ready for a transport.
"""

from callwire.codecs import (
    MAP_STRING_WILDCARD,
    OBJECT_ARRAY,
    DefaultEncoder,
    Encoder,
    FieldQueryMapEncoder,
    FormEncoder,
    JsonEncoder,
    QueryMapEncoder,
)
from callwire.errors import (
    CallwireError,
    ConfigurationError,
    EncodeError,
    InvalidArgumentError,
    MissingVariableError,
)
from callwire.expanders import Cookie, CookieParamExpander, Expander, ToStringExpander
from callwire.metadata import CallMetadata
from callwire.resolver import TemplateFactoryResolver
from callwire.target import EmptyTarget, HardCodedTarget, Target
from callwire.template import OrderedMultiMap, RequestTemplate

__all__ = [
    "MAP_STRING_WILDCARD",
    "OBJECT_ARRAY",
    "CallMetadata",
    "CallwireError",
    "ConfigurationError",
    "Cookie",
    "CookieParamExpander",
    "DefaultEncoder",
    "EmptyTarget",
    "EncodeError",
    "Encoder",
    "Expander",
    "FieldQueryMapEncoder",
    "FormEncoder",
    "HardCodedTarget",
    "InvalidArgumentError",
    "JsonEncoder",
    "MissingVariableError",
    "OrderedMultiMap",
    "QueryMapEncoder",
    "RequestTemplate",
    "Target",
    "TemplateFactoryResolver",
    "ToStringExpander",
]

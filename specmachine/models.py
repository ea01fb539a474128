"""
Core data models describing the API surface fed into the document generator.

These objects are produced by an API description provider (see ``providers``
and ``router``) and are read-only to the generator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class HTTPMethod(Enum):
    """Enumeration of HTTP methods that map to OpenAPI operations."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    PATCH = "PATCH"
    TRACE = "TRACE"


class BindingSource(Enum):
    """Where a parameter's value is bound from."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    FORM = "form"
    FORM_FILE = "form_file"
    BODY = "body"
    MODEL_BINDING = "model_binding"
    SERVICES = "services"
    CUSTOM = "custom"


@dataclass
class PropertyInfo:
    """A property on a container type, with its declared attributes."""

    name: str
    attributes: List[Any] = field(default_factory=list)
    type: Optional[Any] = None


@dataclass
class DeclaringType:
    """The type that owns a handler or a bound property."""

    name: str
    attributes: List[Any] = field(default_factory=list)
    properties: Dict[str, PropertyInfo] = field(default_factory=dict)
    type: Optional[Any] = None

    def get_property(self, name: Optional[str]) -> Optional[PropertyInfo]:
        if name is None:
            return None
        return self.properties.get(name)


@dataclass
class HandlerInfo:
    """A handler function and the attributes declared on it and its owner."""

    name: str
    func: Optional[Callable] = None
    attributes: List[Any] = field(default_factory=list)
    declaring_type: Optional[DeclaringType] = None


@dataclass
class ParameterInfo:
    """A handler's language-level parameter."""

    name: str
    attributes: List[Any] = field(default_factory=list)
    default: Any = None
    has_default: bool = False


@dataclass
class ParameterDescriptor:
    """Links a bound parameter name back to the handler parameter."""

    name: str
    parameter_info: Optional[ParameterInfo] = None
    binder_model_name: Optional[str] = None


@dataclass
class ActionDescriptor:
    """Describes the action that serves an ApiDescription."""

    display_name: Optional[str] = None
    route_values: Dict[str, str] = field(default_factory=dict)
    route_name: Optional[str] = None
    parameters: List[ParameterDescriptor] = field(default_factory=list)
    handler: Optional[HandlerInfo] = None


@dataclass
class ModelMetadata:
    """Binding metadata for a parameter, including its container property if any."""

    is_binding_allowed: bool = True
    container_type: Optional[DeclaringType] = None
    property_name: Optional[str] = None


@dataclass
class ApiParameterDescription:
    """One candidate parameter of an ApiDescription."""

    name: str
    source: BindingSource = BindingSource.QUERY
    type: Optional[Any] = None
    model_metadata: Optional[ModelMetadata] = None


@dataclass
class ApiRequestFormat:
    media_type: str


@dataclass
class ApiResponseFormat:
    media_type: str


@dataclass
class ApiResponseType:
    """A response an action can produce."""

    status_code: int = 200
    type: Optional[Any] = None
    is_default_response: bool = False
    api_response_formats: List[ApiResponseFormat] = field(default_factory=list)


@dataclass
class ApiDescription:
    """One reflected route/handler binding.

    ``relative_path`` has no leading slash and may carry a query string
    fragment. ``http_method`` is ``None`` when the action accepts any method.
    """

    relative_path: str
    http_method: Optional[str] = None
    parameter_descriptions: List[ApiParameterDescription] = field(default_factory=list)
    action_descriptor: ActionDescriptor = field(default_factory=ActionDescriptor)
    supported_request_formats: List[ApiRequestFormat] = field(default_factory=list)
    supported_response_types: List[ApiResponseType] = field(default_factory=list)
    group_name: Optional[str] = None


@dataclass
class ApiDescriptionGroup:
    group_name: Optional[str]
    items: List[ApiDescription] = field(default_factory=list)


@dataclass
class ApiDescriptionGroupCollection:
    items: List[ApiDescriptionGroup] = field(default_factory=list)
    version: int = 1

    def flatten(self) -> List[ApiDescription]:
        """Return every ApiDescription across groups, in group order."""
        return [api_desc for group in self.items for api_desc in group.items]

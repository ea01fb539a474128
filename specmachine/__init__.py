"""
A lightweight OpenAPI document generator.

Describe an HTTP API as ApiDescriptions (by hand, or with the decorator-based
``Router``) and let ``DocumentGenerator`` assemble paths, operations,
parameters, request bodies and a de-duplicated schema table, with pluggable
selectors, conflict resolution and filters.
"""

from .attributes import (
    BindRequired,
    Consumes,
    FromBody,
    FromForm,
    FromHeader,
    FromPath,
    FromQuery,
    Obsolete,
    Required,
    UploadFile,
    consumes,
    obsolete,
)
from .exceptions import (
    AmbiguousMethodError,
    ConflictingActionsError,
    InvariantViolationError,
    SchemaIdConflictError,
    SpecMachineError,
    UnknownDocumentError,
    UnsupportedMethodError,
)
from .filters import (
    DocumentFilterContext,
    OperationFilterContext,
    ParameterFilterContext,
    docstring_operation_filter,
)
from .generator import DocumentGenerator
from .models import ApiDescription, ApiParameterDescription, BindingSource, HTTPMethod
from .openapi import Info, OpenApiDocument, SecurityScheme
from .options import GeneratorOptions
from .providers import StaticApiDescriptionProvider
from .router import (
    Router,
    http_delete,
    http_get,
    http_head,
    http_options,
    http_patch,
    http_post,
    http_put,
    http_trace,
    route,
)
from .schema_registry import PydanticSchemaRegistry, SchemaRegistryFactory, SchemaRegistrySettings

__version__ = "0.1.0"
__author__ = "specmachine Contributors"
__license__ = "MIT"

__all__ = [
    "DocumentGenerator",
    "GeneratorOptions",
    "Router",
    "route",
    "http_get",
    "http_put",
    "http_post",
    "http_delete",
    "http_patch",
    "http_head",
    "http_options",
    "http_trace",
    "StaticApiDescriptionProvider",
    "ApiDescription",
    "ApiParameterDescription",
    "BindingSource",
    "HTTPMethod",
    "Info",
    "OpenApiDocument",
    "SecurityScheme",
    "PydanticSchemaRegistry",
    "SchemaRegistryFactory",
    "SchemaRegistrySettings",
    "DocumentFilterContext",
    "OperationFilterContext",
    "ParameterFilterContext",
    "docstring_operation_filter",
    "Required",
    "BindRequired",
    "Obsolete",
    "Consumes",
    "FromPath",
    "FromQuery",
    "FromHeader",
    "FromForm",
    "FromBody",
    "UploadFile",
    "obsolete",
    "consumes",
    "SpecMachineError",
    "UnknownDocumentError",
    "AmbiguousMethodError",
    "ConflictingActionsError",
    "UnsupportedMethodError",
    "InvariantViolationError",
    "SchemaIdConflictError",
]

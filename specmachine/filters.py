"""
Filter contexts and built-in filters.

Filters are plain callables taking the object being built and a context, and
mutate the object in place. They run synchronously in registration order:

- parameter filters: ``(Parameter, ParameterFilterContext) -> None``
- operation filters: ``(Operation, OperationFilterContext) -> None``
- document filters: ``(OpenApiDocument, DocumentFilterContext) -> None``
"""

import inspect
from dataclasses import dataclass
from typing import Callable, List, Optional

from .models import (
    ApiDescription,
    ApiDescriptionGroupCollection,
    ApiParameterDescription,
    HandlerInfo,
    ParameterInfo,
    PropertyInfo,
)
from .openapi import OpenApiDocument, Operation, Parameter
from .schema_registry import SchemaRegistry


@dataclass
class ParameterFilterContext:
    api_parameter_description: ApiParameterDescription
    api_description: ApiDescription
    schema_registry: SchemaRegistry
    parameter_info: Optional[ParameterInfo] = None
    property_info: Optional[PropertyInfo] = None


@dataclass
class OperationFilterContext:
    api_description: ApiDescription
    schema_registry: SchemaRegistry
    handler_info: Optional[HandlerInfo] = None


@dataclass
class DocumentFilterContext:
    """Context for document filters.

    ``api_description_groups`` holds everything the provider surfaced, before
    per-document filtering; ``api_descriptions`` only those in this document.
    """

    api_description_groups: ApiDescriptionGroupCollection
    api_descriptions: List[ApiDescription]
    schema_registry: SchemaRegistry


ParameterFilter = Callable[[Parameter, ParameterFilterContext], None]
OperationFilter = Callable[[Operation, OperationFilterContext], None]
DocumentFilter = Callable[[OpenApiDocument, DocumentFilterContext], None]


def docstring_operation_filter(operation: Operation, context: OperationFilterContext) -> None:
    """Fill summary and description from the handler's docstring.

    The first docstring line becomes the summary and the remainder the
    description. Handlers without a docstring get a summary derived from their
    name (``list_items`` -> ``List Items``). Values already set are kept.
    """
    handler_info = context.handler_info
    if handler_info is None:
        return

    doc = inspect.getdoc(handler_info.func) if handler_info.func is not None else None
    if doc:
        summary, _, description = doc.partition("\n")
        if operation.summary is None:
            operation.summary = summary.strip()
        if operation.description is None and description.strip():
            operation.description = description.strip()
    elif operation.summary is None:
        operation.summary = handler_info.name.replace("_", " ").title()

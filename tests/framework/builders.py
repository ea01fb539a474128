"""
Builders for the objects an API description provider would normally produce.

Tests describe the API surface in a few lines and hand it to the generator,
without going through the Router's signature inspection.
"""

from typing import Any, Callable, Dict, List, Optional

from specmachine import DocumentGenerator, GeneratorOptions, Info
from specmachine.models import (
    ActionDescriptor,
    ApiDescription,
    ApiParameterDescription,
    ApiRequestFormat,
    ApiResponseType,
    BindingSource,
    DeclaringType,
    HandlerInfo,
    ModelMetadata,
    ParameterDescriptor,
    ParameterInfo,
    PropertyInfo,
)
from specmachine.providers import StaticApiDescriptionProvider

DOCUMENT_NAME = "v1"


def param(
    name: str,
    source: BindingSource = BindingSource.QUERY,
    type: Optional[Any] = None,
    binding_allowed: Optional[bool] = None,
    property_attributes: Optional[List[Any]] = None,
) -> ApiParameterDescription:
    """Build a parameter description.

    ``property_attributes`` binds the parameter to a property on a synthetic
    container type carrying those attributes.
    """
    model_metadata = None
    if property_attributes is not None:
        container = DeclaringType(
            name="Container",
            properties={name: PropertyInfo(name=name, attributes=list(property_attributes))},
        )
        model_metadata = ModelMetadata(container_type=container, property_name=name)
    if binding_allowed is not None:
        model_metadata = model_metadata or ModelMetadata()
        model_metadata.is_binding_allowed = binding_allowed
    return ApiParameterDescription(name=name, source=source, type=type, model_metadata=model_metadata)


def describe(
    relative_path: str = "items",
    http_method: Optional[str] = "GET",
    parameters: Optional[List[ApiParameterDescription]] = None,
    display_name: Optional[str] = None,
    controller: Optional[str] = "Items",
    route_name: Optional[str] = None,
    attributes: Optional[List[Any]] = None,
    controller_attributes: Optional[List[Any]] = None,
    parameter_attributes: Optional[Dict[str, List[Any]]] = None,
    request_formats: Optional[List[str]] = None,
    response_types: Optional[List[ApiResponseType]] = None,
    group_name: Optional[str] = None,
    handler: Optional[Callable] = None,
    handler_backed: bool = True,
) -> ApiDescription:
    """Build an ApiDescription backed by a handler on an ``<controller>Controller`` class.

    ``parameter_attributes`` maps handler parameter names to their attributes.
    """
    action_name = display_name or f"{controller or 'Default'}Controller.{(http_method or 'any').lower()}_{relative_path}"

    handler_info = None
    if handler_backed:
        handler_info = HandlerInfo(
            name=getattr(handler, "__name__", action_name.rsplit(".", 1)[-1]),
            func=handler,
            attributes=list(attributes or []),
            declaring_type=DeclaringType(
                name=f"{controller or 'Default'}Controller",
                attributes=list(controller_attributes or []),
            ),
        )

    route_values = {"action": action_name}
    if controller:
        route_values["controller"] = controller

    return ApiDescription(
        relative_path=relative_path,
        http_method=http_method,
        parameter_descriptions=list(parameters or []),
        action_descriptor=ActionDescriptor(
            display_name=action_name,
            route_values=route_values,
            route_name=route_name,
            parameters=[
                ParameterDescriptor(name=name, parameter_info=ParameterInfo(name=name, attributes=list(attrs)))
                for name, attrs in (parameter_attributes or {}).items()
            ],
            handler=handler_info,
        ),
        supported_request_formats=[ApiRequestFormat(media_type) for media_type in request_formats or []],
        supported_response_types=list(response_types or []),
        group_name=group_name,
    )


def make_generator(api_descriptions: List[ApiDescription], **option_kwargs) -> DocumentGenerator:
    option_kwargs.setdefault("documents", {DOCUMENT_NAME: Info(title="Test API", version="1.0.0")})
    return DocumentGenerator(
        StaticApiDescriptionProvider(api_descriptions),
        options=GeneratorOptions(**option_kwargs),
    )


def generate(api_descriptions: List[ApiDescription], **option_kwargs) -> Dict[str, Any]:
    """Generate the test document and return it as a plain dict."""
    return make_generator(api_descriptions, **option_kwargs).get_document(DOCUMENT_NAME).to_dict()

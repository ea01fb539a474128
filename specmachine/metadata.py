"""
Helpers for reading additional metadata off ApiDescriptions and their parameters.
"""

from typing import Any, List, Optional, Tuple

from .attributes import Obsolete
from .models import (
    ApiDescription,
    ApiParameterDescription,
    HandlerInfo,
    ParameterInfo,
    PropertyInfo,
)


def try_get_handler_info(api_description: ApiDescription) -> Optional[HandlerInfo]:
    """Return the handler behind an ApiDescription, if it is handler-backed."""
    return api_description.action_descriptor.handler


def get_additional_metadata(api_description: ApiDescription) -> Tuple[Optional[HandlerInfo], List[Any]]:
    """Return the handler and the union of its attributes with its declaring type's.

    Handler attributes come first, followed by declaring-type attributes.
    Duplicates are kept. Actions that aren't handler-backed yield ``(None, [])``.
    """
    handler_info = try_get_handler_info(api_description)
    if handler_info is None:
        return None, []

    attributes = list(handler_info.attributes)
    if handler_info.declaring_type is not None:
        attributes.extend(handler_info.declaring_type.attributes)
    return handler_info, attributes


def is_obsolete(api_description: ApiDescription) -> bool:
    _, attributes = get_additional_metadata(api_description)
    return any(isinstance(attr, Obsolete) for attr in attributes)


def relative_path_sans_query_string(api_description: ApiDescription) -> str:
    return api_description.relative_path.split("?")[0]


def supported_request_media_types(api_description: ApiDescription) -> List[str]:
    return [request_format.media_type for request_format in api_description.supported_request_formats]


def _try_get_parameter_info(
    api_parameter_description: ApiParameterDescription,
    api_description: ApiDescription,
) -> Optional[ParameterInfo]:
    for descriptor in api_description.action_descriptor.parameters:
        if api_parameter_description.name in (descriptor.binder_model_name, descriptor.name):
            return descriptor.parameter_info
    return None


def _try_get_property_info(api_parameter_description: ApiParameterDescription) -> Optional[PropertyInfo]:
    model_metadata = api_parameter_description.model_metadata
    if model_metadata is None or model_metadata.container_type is None:
        return None
    return model_metadata.container_type.get_property(model_metadata.property_name)


def get_parameter_metadata(
    api_parameter_description: ApiParameterDescription,
    api_description: ApiDescription,
) -> Tuple[Optional[ParameterInfo], Optional[PropertyInfo], List[Any]]:
    """Resolve the handler parameter or container property behind a bound parameter.

    The handler parameter wins when both could be resolved; at most one of the
    two returned infos is not ``None``.

    Returns:
        Tuple of (parameter_info, property_info, parameter_or_property_attributes)
    """
    parameter_info = _try_get_parameter_info(api_parameter_description, api_description)
    if parameter_info is not None:
        return parameter_info, None, list(parameter_info.attributes)

    property_info = _try_get_property_info(api_parameter_description)
    if property_info is not None:
        return None, property_info, list(property_info.attributes)

    return None, None, []

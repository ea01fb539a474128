"""
Document generator: assembles an OpenAPI document from ApiDescriptions.
"""

import json
import logging
import os
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from .attributes import Consumes, Obsolete, REQUIRED_ATTRIBUTE_TYPES
from .exceptions import (
    AmbiguousMethodError,
    ConflictingActionsError,
    InvariantViolationError,
    UnknownDocumentError,
    UnsupportedMethodError,
)
from .filters import DocumentFilterContext, OperationFilterContext, ParameterFilterContext
from .metadata import (
    get_additional_metadata,
    get_parameter_metadata,
    is_obsolete,
    relative_path_sans_query_string,
    supported_request_media_types,
)
from .models import (
    ApiDescription,
    ApiParameterDescription,
    ApiResponseType,
    BindingSource,
    HTTPMethod,
)
from .openapi import (
    Components,
    MediaType,
    OpenApiDocument,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    Server,
)
from .options import GeneratorOptions
from .providers import ApiDescriptionProvider
from .schema_registry import SchemaRegistry, SchemaRegistryFactory

# Set up logger for this module
logger = logging.getLogger(__name__)

T = TypeVar("T")

PARAMETER_LOCATION_MAP: Dict[BindingSource, str] = {
    BindingSource.QUERY: "query",
    BindingSource.MODEL_BINDING: "query",
    BindingSource.HEADER: "header",
    BindingSource.PATH: "path",
}

FORM_BINDING_SOURCES = (BindingSource.FORM, BindingSource.FORM_FILE)

OPERATION_TYPE_MAP: Dict[str, HTTPMethod] = {method.value: method for method in HTTPMethod}

# First match wins, so specific codes come before their class
RESPONSE_DESCRIPTION_MAP: List[Tuple[str, str]] = [
    (r"1\d{2}", "Information"),
    (r"2\d{2}", "Success"),
    (r"3\d{2}", "Redirect"),
    (r"400", "Bad Request"),
    (r"401", "Unauthorized"),
    (r"403", "Forbidden"),
    (r"404", "Not Found"),
    (r"405", "Method Not Allowed"),
    (r"406", "Not Acceptable"),
    (r"408", "Request Timeout"),
    (r"409", "Conflict"),
    (r"4\d{2}", "Client Error"),
    (r"5\d{2}", "Server Error"),
]

DEFAULT_RESPONSE_MEDIA_TYPE = "application/json"


def to_camel_case(name: str) -> str:
    """Lower-case the first character: ``UserId`` -> ``userId``."""
    return name[:1].lower() + name[1:]


def group_by(items: Iterable[T], key: Callable[[T], Any]) -> Dict[Any, List[T]]:
    """Group items by key, keeping first-seen key order and item order within groups."""
    groups: Dict[Any, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def _method_key(api_description: ApiDescription) -> Optional[str]:
    http_method = api_description.http_method
    return http_method.upper() if http_method is not None else None


def _is_required(attributes: Iterable[Any]) -> bool:
    return any(isinstance(attr, REQUIRED_ATTRIBUTE_TYPES) for attr in attributes)


def _distinct(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


class DocumentGenerator:
    """Generates OpenAPI documents from the descriptions surfaced by a provider.

    Example::

        generator = DocumentGenerator(
            router,
            options=GeneratorOptions(documents={"v1": {"title": "Items API", "version": "1.0"}}),
        )
        document = generator.get_document("v1")
    """

    def __init__(
        self,
        api_descriptions_provider: ApiDescriptionProvider,
        schema_registry_factory: Optional[SchemaRegistryFactory] = None,
        options: Optional[GeneratorOptions] = None,
    ):
        self.api_descriptions_provider = api_descriptions_provider
        self.schema_registry_factory = schema_registry_factory or SchemaRegistryFactory()
        self.options = options or GeneratorOptions()

    def get_document(
        self,
        document_name: str,
        host: Optional[str] = None,
        base_path: Optional[str] = None,
    ) -> OpenApiDocument:
        """Build the named document.

        Raises:
            UnknownDocumentError: ``document_name`` isn't configured.
            AmbiguousMethodError: An action has no HTTP method.
            ConflictingActionsError: Actions share a path and method and no
                resolver is configured.
            InvariantViolationError: A request body was inferred but can't be built.
        """
        info = self.options.documents.get(document_name)
        if info is None:
            raise UnknownDocumentError(document_name)

        api_description_groups = self.api_descriptions_provider.api_description_groups
        applicable_api_descriptions = [
            api_desc
            for api_desc in api_description_groups.flatten()
            if self.options.doc_inclusion_predicate(document_name, api_desc)
            and not (self.options.ignore_obsolete_actions and is_obsolete(api_desc))
        ]
        logger.debug(
            f"Generating document {document_name!r} from "
            f"{len(applicable_api_descriptions)} applicable api descriptions"
        )

        schema_registry = self.schema_registry_factory.create()

        document = OpenApiDocument(
            info=info.model_copy(deep=True),
            servers=self._create_servers(host, base_path),
            paths=self._create_paths(applicable_api_descriptions, schema_registry),
            components=Components(),
        )
        document.components.schemas = schema_registry.schemas
        document.components.security_schemes = {
            name: scheme.model_copy(deep=True) for name, scheme in self.options.security_schemes.items()
        }
        if self.options.security_requirements:
            document.security = [dict(requirement) for requirement in self.options.security_requirements]

        filter_context = DocumentFilterContext(
            api_description_groups=api_description_groups,
            api_descriptions=applicable_api_descriptions,
            schema_registry=schema_registry,
        )
        for document_filter in self.options.document_filters:
            document_filter(document, filter_context)

        return document

    def generate_json(
        self,
        document_name: str,
        host: Optional[str] = None,
        base_path: Optional[str] = None,
    ) -> str:
        """Generate the named document as an OpenAPI JSON string."""
        document = self.get_document(document_name, host, base_path)
        return json.dumps(document.to_dict(), indent=2)

    def save_json(
        self,
        document_name: str,
        filename: str = "openapi.json",
        docs_dir: str = "docs",
        host: Optional[str] = None,
        base_path: Optional[str] = None,
    ) -> str:
        """Generate the named document and save it to a file in the docs directory."""
        openapi_json = self.generate_json(document_name, host, base_path)

        # Create docs directory if it doesn't exist
        if not os.path.exists(docs_dir):
            os.makedirs(docs_dir)

        file_path = os.path.join(docs_dir, filename)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(openapi_json)

        logger.info(f"Saved document {document_name!r} to {file_path}")
        return file_path

    def _create_servers(self, host: Optional[str], base_path: Optional[str]) -> List[Server]:
        if host is None and base_path is None:
            return []
        return [Server(url=f"{host or ''}/{(base_path or '').lstrip('/')}")]

    def _create_paths(
        self,
        api_descriptions: List[ApiDescription],
        schema_registry: SchemaRegistry,
    ) -> Dict[str, PathItem]:
        api_descriptions_by_path = group_by(
            sorted(api_descriptions, key=self.options.sort_key_selector),
            relative_path_sans_query_string,
        )

        return {
            f"/{path}": self._create_path_item(group, schema_registry)
            for path, group in api_descriptions_by_path.items()
        }

    def _create_path_item(
        self,
        api_descriptions: List[ApiDescription],
        schema_registry: SchemaRegistry,
    ) -> PathItem:
        api_descriptions_by_method = group_by(
            sorted(api_descriptions, key=self.options.sort_key_selector),
            _method_key,
        )

        path_item = PathItem()
        for http_method, group in api_descriptions_by_method.items():
            first = group[0]

            if http_method is None:
                raise AmbiguousMethodError(first.action_descriptor.display_name)

            operation_type = OPERATION_TYPE_MAP.get(http_method)
            if operation_type is None:
                raise UnsupportedMethodError(http_method, first.action_descriptor.display_name)

            if len(group) > 1:
                resolver = self.options.conflicting_actions_resolver
                if resolver is None:
                    raise ConflictingActionsError(
                        http_method,
                        relative_path_sans_query_string(first),
                        [api_desc.action_descriptor.display_name for api_desc in group],
                    )
                logger.debug(
                    f"Resolving {len(group)} conflicting actions for {http_method} "
                    f"{relative_path_sans_query_string(first)}"
                )
                api_description = resolver(group)
            else:
                api_description = first

            path_item.set_operation(operation_type, self._create_operation(api_description, schema_registry))

        return path_item

    def _create_operation(self, api_description: ApiDescription, schema_registry: SchemaRegistry) -> Operation:
        handler_info, handler_attributes = get_additional_metadata(api_description)

        operation = Operation(
            tags=list(self.options.tags_selector(api_description)),
            operation_id=self.options.operation_id_selector(api_description),
            parameters=self._create_parameters(api_description, schema_registry),
            request_body=self._create_request_body(api_description, handler_attributes, schema_registry),
            responses=self._create_responses(api_description, schema_registry),
            deprecated=any(isinstance(attr, Obsolete) for attr in handler_attributes),
        )

        filter_context = OperationFilterContext(
            api_description=api_description,
            schema_registry=schema_registry,
            handler_info=handler_info,
        )
        for operation_filter in self.options.operation_filters:
            operation_filter(operation, filter_context)

        return operation

    def _create_parameters(self, api_description: ApiDescription, schema_registry: SchemaRegistry) -> List[Parameter]:
        applicable_parameter_descriptions = [
            api_param
            for api_param in api_description.parameter_descriptions
            if api_param.source in PARAMETER_LOCATION_MAP
            and (api_param.model_metadata is None or api_param.model_metadata.is_binding_allowed)
        ]

        return [
            self._create_parameter(api_description, api_param, schema_registry)
            for api_param in applicable_parameter_descriptions
        ]

    def _create_parameter(
        self,
        api_description: ApiDescription,
        api_parameter_description: ApiParameterDescription,
        schema_registry: SchemaRegistry,
    ) -> Parameter:
        parameter_info, property_info, attributes = get_parameter_metadata(api_parameter_description, api_description)

        is_required = api_parameter_description.source == BindingSource.PATH or _is_required(attributes)

        parameter = Parameter(
            name=self._parameter_name(api_parameter_description),
            location=PARAMETER_LOCATION_MAP[api_parameter_description.source],
            required=is_required,
            schema_=self._parameter_schema(api_parameter_description, schema_registry),
        )

        filter_context = ParameterFilterContext(
            api_parameter_description=api_parameter_description,
            api_description=api_description,
            schema_registry=schema_registry,
            parameter_info=parameter_info,
            property_info=property_info,
        )
        for parameter_filter in self.options.parameter_filters:
            parameter_filter(parameter, filter_context)

        return parameter

    def _parameter_name(self, api_parameter_description: ApiParameterDescription) -> str:
        if self.options.describe_all_parameters_in_camel_case:
            return to_camel_case(api_parameter_description.name)
        return api_parameter_description.name

    def _parameter_schema(
        self,
        api_parameter_description: ApiParameterDescription,
        schema_registry: SchemaRegistry,
    ) -> Schema:
        if api_parameter_description.type is None:
            return Schema(type="string")
        return schema_registry.get_or_register(api_parameter_description.type)

    def _create_request_body(
        self,
        api_description: ApiDescription,
        handler_attributes: List[Any],
        schema_registry: SchemaRegistry,
    ) -> Optional[RequestBody]:
        supported_content_types = self._infer_supported_content_types(api_description, handler_attributes)
        if not supported_content_types:
            return None

        return RequestBody(
            content={
                content_type: self._create_request_media_type(content_type, api_description, schema_registry)
                for content_type in supported_content_types
            }
        )

    def _infer_supported_content_types(
        self,
        api_description: ApiDescription,
        handler_attributes: List[Any],
    ) -> List[str]:
        explicit_content_types = _distinct(
            content_type
            for attr in handler_attributes
            if isinstance(attr, Consumes)
            for content_type in attr.content_types
        )
        if explicit_content_types:
            return explicit_content_types

        api_explorer_content_types = supported_request_media_types(api_description)
        if api_explorer_content_types:
            return api_explorer_content_types

        if any(api_param.source in FORM_BINDING_SOURCES for api_param in api_description.parameter_descriptions):
            return ["multipart/form-data"]
        return []

    def _create_request_media_type(
        self,
        content_type: str,
        api_description: ApiDescription,
        schema_registry: SchemaRegistry,
    ) -> MediaType:
        body_parameter = next(
            (
                api_param
                for api_param in api_description.parameter_descriptions
                if api_param.source == BindingSource.BODY
            ),
            None,
        )
        form_parameters = [
            api_param
            for api_param in api_description.parameter_descriptions
            if api_param.source in FORM_BINDING_SOURCES
        ]

        display_name = api_description.action_descriptor.display_name
        if body_parameter is None and not form_parameters:
            raise InvariantViolationError(
                f"Request body content type {content_type!r} was inferred for action - {display_name}, "
                "but it has neither a body parameter nor form parameters"
            )
        if body_parameter is not None and form_parameters:
            raise InvariantViolationError(
                f"Action - {display_name} binds both a body parameter and form parameters"
            )

        if body_parameter is not None:
            schema = self._parameter_schema(body_parameter, schema_registry)
        else:
            schema = self._create_form_schema(api_description, form_parameters, schema_registry)
        return MediaType(schema_=schema)

    def _create_form_schema(
        self,
        api_description: ApiDescription,
        form_parameters: List[ApiParameterDescription],
        schema_registry: SchemaRegistry,
    ) -> Schema:
        properties: Dict[str, Schema] = {}
        required_names = set()

        for api_param in form_parameters:
            _, _, attributes = get_parameter_metadata(api_param, api_description)
            name = self._parameter_name(api_param)
            # Duplicate names overwrite; the last parameter wins
            properties[name] = self._parameter_schema(api_param, schema_registry)
            if _is_required(attributes):
                required_names.add(name)

        return Schema(
            type="object",
            properties=properties,
            required=sorted(required_names) or None,
        )

    def _create_responses(
        self,
        api_description: ApiDescription,
        schema_registry: SchemaRegistry,
    ) -> Dict[str, Response]:
        response_types = api_description.supported_response_types or [ApiResponseType(status_code=200)]

        responses: Dict[str, Response] = {}
        for response_type in response_types:
            key = "default" if response_type.is_default_response else str(response_type.status_code)
            responses[key] = self._create_response(response_type, schema_registry)
        return responses

    def _create_response(self, response_type: ApiResponseType, schema_registry: SchemaRegistry) -> Response:
        status_code = str(response_type.status_code)
        description = next(
            (text for pattern, text in RESPONSE_DESCRIPTION_MAP if re.fullmatch(pattern, status_code)),
            "Default Response" if response_type.is_default_response else "Response",
        )

        if response_type.type is None or response_type.type is type(None):
            return Response(description=description)

        media_types = [
            response_format.media_type for response_format in response_type.api_response_formats
        ] or [DEFAULT_RESPONSE_MEDIA_TYPE]
        schema = schema_registry.get_or_register(response_type.type)
        return Response(
            description=description,
            content={media_type: MediaType(schema_=schema) for media_type in media_types},
        )

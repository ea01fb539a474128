"""
OpenAPI 3.0 document models.

The generator builds these pydantic models; filters may mutate them freely
before the document is returned. Use ``OpenApiDocument.to_dict()`` for a plain,
JSON-ready representation.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import HTTPMethod


class OpenApiModel(BaseModel):
    """Base for all document models: populate by field name or alias."""

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Schema(OpenApiModel):
    """A schema object, or a ``$ref`` to one in ``components.schemas``.

    Keywords without a dedicated field are kept as extra attributes.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    ref: Optional[str] = Field(None, alias="$ref")
    type: Optional[str] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    nullable: Optional[bool] = None
    enum: Optional[List[Any]] = None
    items: Optional["Schema"] = None
    properties: Optional[Dict[str, "Schema"]] = None
    required: Optional[List[str]] = None
    additional_properties: Optional[Union[bool, "Schema"]] = Field(None, alias="additionalProperties")
    all_of: Optional[List["Schema"]] = Field(None, alias="allOf")
    any_of: Optional[List["Schema"]] = Field(None, alias="anyOf")
    one_of: Optional[List["Schema"]] = Field(None, alias="oneOf")
    default: Optional[Any] = None


class Contact(OpenApiModel):
    name: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None


class License(OpenApiModel):
    name: str
    url: Optional[str] = None


class Info(OpenApiModel):
    title: str
    version: str
    description: Optional[str] = None
    terms_of_service: Optional[str] = Field(None, alias="termsOfService")
    contact: Optional[Contact] = None
    license: Optional[License] = None


class Server(OpenApiModel):
    url: str
    description: Optional[str] = None


class Parameter(OpenApiModel):
    name: str
    location: str = Field(..., alias="in")
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[Schema] = Field(None, alias="schema")


class MediaType(OpenApiModel):
    schema_: Optional[Schema] = Field(None, alias="schema")


class RequestBody(OpenApiModel):
    description: Optional[str] = None
    content: Dict[str, MediaType] = Field(default_factory=dict)
    required: Optional[bool] = None


class Response(OpenApiModel):
    description: str
    content: Optional[Dict[str, MediaType]] = None


class Operation(OpenApiModel):
    tags: List[str] = Field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = Field(None, alias="operationId")
    parameters: List[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = Field(None, alias="requestBody")
    responses: Dict[str, Response] = Field(default_factory=dict)
    deprecated: bool = False
    security: Optional[List[Dict[str, List[str]]]] = None


class PathItem(OpenApiModel):
    """Operations available on a single path, at most one per HTTP method."""

    get: Optional[Operation] = None
    put: Optional[Operation] = None
    post: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    patch: Optional[Operation] = None
    trace: Optional[Operation] = None

    def set_operation(self, method: HTTPMethod, operation: Operation) -> None:
        setattr(self, method.value.lower(), operation)

    def get_operation(self, method: HTTPMethod) -> Optional[Operation]:
        return getattr(self, method.value.lower())

    @property
    def operations(self) -> Dict[HTTPMethod, Operation]:
        return dict(self._iter_operations())

    def _iter_operations(self) -> Iterator[Tuple[HTTPMethod, Operation]]:
        for method in HTTPMethod:
            operation = self.get_operation(method)
            if operation is not None:
                yield method, operation


class SecurityScheme(OpenApiModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str
    description: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = Field(None, alias="in")
    scheme: Optional[str] = None
    bearer_format: Optional[str] = Field(None, alias="bearerFormat")
    flows: Optional[Dict[str, Any]] = None
    open_id_connect_url: Optional[str] = Field(None, alias="openIdConnectUrl")


class Components(OpenApiModel):
    schemas: Dict[str, Schema] = Field(default_factory=dict)
    security_schemes: Dict[str, SecurityScheme] = Field(default_factory=dict, alias="securitySchemes")


class OpenApiDocument(OpenApiModel):
    openapi: str = "3.0.1"
    info: Info
    servers: List[Server] = Field(default_factory=list)
    paths: Dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)
    security: Optional[List[Dict[str, List[str]]]] = None


Schema.model_rebuild()

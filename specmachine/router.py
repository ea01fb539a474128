"""Router: a decorator-based API description provider.

Handlers are registered with decorators and described from their signatures,
so a document can be generated without a running web framework::

    router = Router(controller="Items")

    @router.get("/items/{item_id}")
    def get_item(item_id: int, verbose: bool = False) -> Item:
        ...

    @router.controller("/users")
    class UsersController:

        @http_post()
        def create_user(self, user: NewUser) -> User:
            ...

Binding rules for handler parameters, first match wins:

- an ``Annotated[T, FromPath()/FromQuery()/FromHeader()/FromForm()/FromBody()]`` marker
- a name that appears in the path template binds from the path
- ``UploadFile`` binds from a multipart form
- a pydantic model binds from the body
- anything else binds from the query string

A pydantic model bound with ``FromQuery``, ``FromHeader`` or ``FromForm`` is
expanded into one parameter per field.
"""

import inspect
import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, Dict, List, Optional, Sequence, Tuple, Union, get_args, get_origin, get_type_hints

from .attributes import (
    BindingMarker,
    FromBody,
    FromForm,
    FromHeader,
    FromPath,
    FromQuery,
    Required,
    UploadFile,
    get_attributes,
)
from .models import (
    ActionDescriptor,
    ApiDescription,
    ApiDescriptionGroup,
    ApiDescriptionGroupCollection,
    ApiParameterDescription,
    ApiRequestFormat,
    ApiResponseFormat,
    ApiResponseType,
    BindingSource,
    DeclaringType,
    HandlerInfo,
    HTTPMethod,
    ModelMetadata,
    ParameterDescriptor,
    ParameterInfo,
    PropertyInfo,
)
from .schema_registry import is_optional_type, is_pydantic_model

ROUTES_KEY = "__specmachine_routes__"

MARKER_SOURCES = {
    FromPath: BindingSource.PATH,
    FromQuery: BindingSource.QUERY,
    FromHeader: BindingSource.HEADER,
    FromForm: BindingSource.FORM,
    FromBody: BindingSource.BODY,
}

EXPANDABLE_SOURCES = (BindingSource.QUERY, BindingSource.HEADER, BindingSource.FORM)

MethodsArg = Optional[Sequence[Union[str, HTTPMethod]]]


def normalize_path(prefix: str, path: str) -> str:
    """Normalize a path by combining prefix and path, handling double slashes.

    Examples:
        normalize_path("/", "/users") -> "/users"
        normalize_path("/api", "users") -> "/api/users"
        normalize_path("/api/", "/users") -> "/api/users"
        normalize_path("/api", "") -> "/api"
    """
    # Ensure prefix starts with /
    if not prefix.startswith("/"):
        prefix = "/" + prefix

    # Remove trailing slash from prefix unless it's just "/"
    if prefix != "/" and prefix.endswith("/"):
        prefix = prefix.rstrip("/")

    if not path or path == "/":
        return prefix

    # Ensure path starts with /
    if not path.startswith("/"):
        path = "/" + path

    # Combine and handle the root case
    if prefix == "/":
        return path

    return prefix + path


def path_template_parameters(path: str) -> List[str]:
    return re.findall(r"\{(\w+)\}", path)


def _to_methods(methods: MethodsArg) -> List[Optional[HTTPMethod]]:
    """Convert method names to HTTPMethod; ``None`` means "any method"."""
    if methods is None:
        return [None]
    return [m if isinstance(m, HTTPMethod) else HTTPMethod(m.upper()) for m in methods]


@dataclass
class RouteSpec:
    """A route declared on a controller method, before the controller is registered."""

    path: str
    methods: MethodsArg = None
    name: Optional[str] = None
    responses: Dict[int, Any] = field(default_factory=dict)


def route(path: str = "", methods: MethodsArg = None, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    """Declare a route on a controller method. Pass ``methods=None`` to accept any method."""

    def decorator(func: Callable):
        routes = func.__dict__.setdefault(ROUTES_KEY, [])
        routes.append(RouteSpec(path, methods, name, dict(responses or {})))
        return func

    return decorator


def http_get(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.GET], name, responses)


def http_put(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.PUT], name, responses)


def http_post(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.POST], name, responses)


def http_delete(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.DELETE], name, responses)


def http_patch(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.PATCH], name, responses)


def http_head(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.HEAD], name, responses)


def http_options(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.OPTIONS], name, responses)


def http_trace(path: str = "", name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
    return route(path, [HTTPMethod.TRACE], name, responses)


class RouteHandler:
    """Represents a registered route and its handler."""

    def __init__(
        self,
        method: Optional[HTTPMethod],
        path: str,
        handler: Callable,
        name: Optional[str] = None,
        controller: Optional[str] = None,
        owner: Optional[type] = None,
        responses: Optional[Dict[int, Any]] = None,
    ):
        self.method = method
        self.path = path
        self.handler = handler
        self.name = name
        self.controller = controller
        self.owner = owner
        self.responses = dict(responses or {})

        # Cache signature for describing parameters
        self.handler_signature = inspect.signature(handler)

    @property
    def display_name(self) -> str:
        return f"{self.handler.__module__}.{self.handler.__qualname__}"

    def bound_parameters(self) -> List[inspect.Parameter]:
        """Handler parameters that take request values (no ``self``, no ``*args``)."""
        params = list(self.handler_signature.parameters.values())
        if self.owner is not None and params and not self._is_static():
            params = params[1:]
        return [
            param for param in params
            if param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        ]

    def type_hints(self) -> Dict[str, Any]:
        try:
            return get_type_hints(self.handler, include_extras=True)
        except (NameError, TypeError):
            # Unresolvable forward references; fall back to raw annotations
            return dict(getattr(self.handler, "__annotations__", {}))

    def _is_static(self) -> bool:
        name = self.handler.__name__
        for klass in self.owner.__mro__:
            if name in klass.__dict__:
                return isinstance(klass.__dict__[name], staticmethod)
        return False


class Router:
    """Router class for organizing routes with mounting support.

    The router is itself an API description provider: pass it straight to
    ``DocumentGenerator``.
    """

    def __init__(
        self,
        controller: Optional[str] = None,
        group_name: Optional[str] = None,
        request_formats: Sequence[str] = ("application/json",),
        response_formats: Sequence[str] = ("application/json",),
    ):
        """Initialize a router.

        Args:
            controller: Controller name for function routes (used for default tags)
            group_name: Group name for every description from this router
            request_formats: Media types reported for handlers with a body parameter
            response_formats: Media types reported for annotated return types
        """
        self.controller_name = controller
        self.group_name = group_name
        self.request_formats = list(request_formats)
        self.response_formats = list(response_formats)
        self._routes: List[RouteHandler] = []
        self._mounted_routers: List[Tuple[str, "Router"]] = []  # (prefix, router) pairs

    def mount(self, prefix: str, router: "Router"):
        """Mount another router with a given prefix."""
        self._mounted_routers.append((prefix, router))

    def route(
        self,
        path: str,
        methods: MethodsArg = None,
        name: Optional[str] = None,
        responses: Optional[Dict[int, Any]] = None,
    ):
        """Register a function for the given methods; ``methods=None`` accepts any method."""
        http_methods = _to_methods(methods)

        def decorator(func: Callable):
            for method in http_methods:
                self._routes.append(
                    RouteHandler(method, path, func, name=name, controller=self.controller_name, responses=responses)
                )
            return func

        return decorator

    def get(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.GET], name, responses)

    def put(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.PUT], name, responses)

    def post(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.POST], name, responses)

    def delete(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.DELETE], name, responses)

    def patch(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.PATCH], name, responses)

    def head(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.HEAD], name, responses)

    def options(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.OPTIONS], name, responses)

    def trace(self, path: str, name: Optional[str] = None, responses: Optional[Dict[int, Any]] = None):
        return self.route(path, [HTTPMethod.TRACE], name, responses)

    def controller(self, prefix: str = "", name: Optional[str] = None):
        """Register every routed method of a class, under a common path prefix.

        The controller name defaults to the class name without a ``Controller``
        suffix. Attributes on the class apply to all its actions.
        """

        def decorator(cls: type):
            controller_name = name or re.sub(r"Controller$", "", cls.__name__)
            for _, member in inspect.getmembers(cls, predicate=inspect.isfunction):
                for spec in getattr(member, ROUTES_KEY, []):
                    for method in _to_methods(spec.methods):
                        self._routes.append(
                            RouteHandler(
                                method,
                                normalize_path(prefix, spec.path),
                                member,
                                name=spec.name,
                                controller=controller_name,
                                owner=cls,
                                responses=spec.responses,
                            )
                        )
            return cls

        return decorator

    def get_all_routes(self) -> List[Tuple[str, RouteHandler, "Router"]]:
        """Get all routes including those from mounted routers.

        Returns:
            List of (full_path, route_handler, owning_router) tuples
        """
        routes = [(normalize_path("/", r.path), r, self) for r in self._routes]
        for prefix, router in self._mounted_routers:
            for path, route_handler, owner in router.get_all_routes():
                routes.append((normalize_path(prefix, path), route_handler, owner))
        return routes

    @property
    def api_description_groups(self) -> ApiDescriptionGroupCollection:
        groups: Dict[Optional[str], List[ApiDescription]] = {}
        for path, route_handler, owner in self.get_all_routes():
            api_description = owner.describe(path, route_handler)
            groups.setdefault(api_description.group_name, []).append(api_description)

        return ApiDescriptionGroupCollection(
            items=[ApiDescriptionGroup(group_name=name, items=items) for name, items in groups.items()]
        )

    def describe(self, path: str, route_handler: RouteHandler) -> ApiDescription:
        """Build the ApiDescription for one registered route."""
        func = route_handler.handler
        declaring_type = None
        if route_handler.owner is not None:
            declaring_type = DeclaringType(
                name=route_handler.owner.__name__,
                attributes=get_attributes(route_handler.owner),
                type=route_handler.owner,
            )

        route_values = {"action": func.__name__}
        if route_handler.controller:
            route_values["controller"] = route_handler.controller

        descriptors, parameter_descriptions = self._describe_parameters(path, route_handler)

        has_body = any(p.source == BindingSource.BODY for p in parameter_descriptions)
        return ApiDescription(
            relative_path=path.lstrip("/"),
            http_method=route_handler.method.value if route_handler.method else None,
            parameter_descriptions=parameter_descriptions,
            action_descriptor=ActionDescriptor(
                display_name=route_handler.display_name,
                route_values=route_values,
                route_name=route_handler.name,
                parameters=descriptors,
                handler=HandlerInfo(
                    name=func.__name__,
                    func=func,
                    attributes=get_attributes(func),
                    declaring_type=declaring_type,
                ),
            ),
            supported_request_formats=[ApiRequestFormat(media_type) for media_type in self.request_formats] if has_body else [],
            supported_response_types=self._describe_responses(route_handler),
            group_name=self.group_name,
        )

    def _describe_parameters(
        self,
        path: str,
        route_handler: RouteHandler,
    ) -> Tuple[List[ParameterDescriptor], List[ApiParameterDescription]]:
        template_parameters = path_template_parameters(path)
        hints = route_handler.type_hints()

        descriptors: List[ParameterDescriptor] = []
        parameter_descriptions: List[ApiParameterDescription] = []

        for param in route_handler.bound_parameters():
            param_type, markers = _split_annotated(hints.get(param.name))
            binding = next((m for m in markers if isinstance(m, BindingMarker)), None)
            attributes = [m for m in markers if not isinstance(m, BindingMarker)]
            bound_name = (binding.name if binding else None) or param.name
            source = _binding_source(bound_name, param_type, binding, template_parameters)

            has_default = param.default is not inspect.Parameter.empty
            descriptors.append(
                ParameterDescriptor(
                    name=param.name,
                    parameter_info=ParameterInfo(
                        name=param.name,
                        attributes=attributes,
                        default=param.default if has_default else None,
                        has_default=has_default,
                    ),
                    binder_model_name=binding.name if binding else None,
                )
            )

            if source in EXPANDABLE_SOURCES and is_pydantic_model(param_type):
                parameter_descriptions.extend(_expand_model(param_type, source))
            else:
                parameter_descriptions.append(ApiParameterDescription(name=bound_name, source=source, type=param_type))

        # Template parameters the handler doesn't take are still part of the path
        bound_names = {p.name for p in parameter_descriptions}
        for name in template_parameters:
            if name not in bound_names:
                parameter_descriptions.append(ApiParameterDescription(name=name, source=BindingSource.PATH))

        return descriptors, parameter_descriptions

    def _describe_responses(self, route_handler: RouteHandler) -> List[ApiResponseType]:
        formats = [ApiResponseFormat(media_type) for media_type in self.response_formats]
        return_annotation = route_handler.handler_signature.return_annotation

        return_type = route_handler.type_hints().get("return", return_annotation)
        if return_annotation is inspect.Signature.empty:
            response_types = [ApiResponseType(status_code=200)]
        elif return_type is None or return_type is type(None):
            # Handler explicitly returns None -> 204 No Content
            response_types = [ApiResponseType(status_code=204)]
        else:
            response_types = [ApiResponseType(status_code=200, type=return_type, api_response_formats=formats)]

        for status_code, response_type in route_handler.responses.items():
            response_types.append(
                ApiResponseType(
                    status_code=status_code,
                    type=response_type,
                    api_response_formats=list(formats) if response_type is not None else [],
                )
            )
        return response_types


def _split_annotated(annotation: Any) -> Tuple[Optional[Any], List[Any]]:
    if annotation is None:
        return None, []
    is_optional, inner = is_optional_type(annotation)
    if is_optional and get_origin(inner) is Annotated:
        # Implicit Optional added for a None default on older interpreters
        base, *metadata = get_args(inner)
        return Optional[base], list(metadata)
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        return base, list(metadata)
    return annotation, []


def _is_upload_file(param_type: Any) -> bool:
    _, inner = is_optional_type(param_type)
    if inner is UploadFile:
        return True
    args = get_args(inner)
    return get_origin(inner) in (list, tuple) and bool(args) and args[0] is UploadFile


def _binding_source(
    name: str,
    param_type: Any,
    binding: Optional[BindingMarker],
    template_parameters: List[str],
) -> BindingSource:
    if binding is not None:
        source = MARKER_SOURCES.get(type(binding), BindingSource.CUSTOM)
        if source == BindingSource.FORM and _is_upload_file(param_type):
            return BindingSource.FORM_FILE
        return source
    if name in template_parameters:
        return BindingSource.PATH
    if _is_upload_file(param_type):
        return BindingSource.FORM_FILE
    if is_pydantic_model(is_optional_type(param_type)[1]):
        return BindingSource.BODY
    return BindingSource.QUERY


def _expand_model(model: type, source: BindingSource) -> List[ApiParameterDescription]:
    """One parameter per model field, each pointing back at its container property."""
    properties: Dict[str, PropertyInfo] = {}
    for field_name, field_info in model.model_fields.items():
        attributes: List[Any] = [Required()] if field_info.is_required() else []
        attributes.extend(field_info.metadata)
        properties[field_name] = PropertyInfo(name=field_name, attributes=attributes, type=field_info.annotation)

    container = DeclaringType(
        name=model.__name__,
        attributes=get_attributes(model),
        properties=properties,
        type=model,
    )

    descriptions = []
    for field_name, field_info in model.model_fields.items():
        field_source = source
        if source == BindingSource.FORM and _is_upload_file(field_info.annotation):
            field_source = BindingSource.FORM_FILE
        descriptions.append(
            ApiParameterDescription(
                name=field_info.alias or field_name,
                source=field_source,
                type=field_info.annotation,
                model_metadata=ModelMetadata(container_type=container, property_name=field_name),
            )
        )
    return descriptions

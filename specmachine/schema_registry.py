"""
Schema registry: maps Python types to OpenAPI schemas.

A registry lives for exactly one document generation pass. pydantic models and
enums are registered once in the shared ``schemas`` table and referenced by
``$ref`` everywhere else; primitives and containers are inlined.
"""

import collections.abc
import datetime
import decimal
import inspect
import logging
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Set,
    Tuple,
    Type,
    Union,
    get_args,
    get_origin,
)

from pydantic import TypeAdapter
from pydantic.errors import PydanticInvalidForJsonSchema, PydanticSchemaGenerationError

from .attributes import UploadFile
from .exceptions import SchemaIdConflictError
from .openapi import Schema

# Set up logger for this module
logger = logging.getLogger(__name__)

REF_TEMPLATE = "#/components/schemas/{model}"

PRIMITIVE_SCHEMAS: Dict[Any, Dict[str, Any]] = {
    str: {"type": "string"},
    int: {"type": "integer"},
    float: {"type": "number"},
    bool: {"type": "boolean"},
    bytes: {"type": "string", "format": "byte"},
    decimal.Decimal: {"type": "number"},
    datetime.datetime: {"type": "string", "format": "date-time"},
    datetime.date: {"type": "string", "format": "date"},
    datetime.time: {"type": "string", "format": "time"},
    uuid.UUID: {"type": "string", "format": "uuid"},
    UploadFile: {"type": "string", "format": "binary"},
    object: {"type": "object"},
}

ARRAY_ORIGINS = (list, set, frozenset, tuple, collections.abc.Sequence, collections.abc.Set, collections.abc.Iterable)
MAPPING_ORIGINS = (dict, collections.abc.Mapping)


class SchemaRegistry(Protocol):
    """What the generator needs from a schema registry."""

    schemas: Dict[str, Schema]

    def get_or_register(self, type_: Any) -> Schema:
        ...


def default_schema_id(type_: Any) -> str:
    """Derive a component name from a type, e.g. ``Page[Item]`` -> ``Page_Item_``."""
    name = getattr(type_, "__name__", None) or repr(type_)
    return re.sub(r"[^A-Za-z0-9.\-_]", "_", name)


@dataclass
class SchemaRegistrySettings:
    """Configuration for the pydantic-backed schema registry.

    Attributes:
        schema_id_selector: Maps a registered type to its component name.
            Nested models discovered inside a registered model keep the names
            pydantic gives them.

        custom_type_mappings: Explicit schemas for types the registry can't
            (or shouldn't) derive, as factories returning a JSON-schema dict.

    Examples:
        SchemaRegistrySettings(schema_id_selector=lambda t: f"v1.{t.__name__}")

        SchemaRegistrySettings(custom_type_mappings={
            Money: lambda: {"type": "string", "pattern": r"^\\d+\\.\\d{2}$"},
        })
    """

    schema_id_selector: Callable[[Any], str] = default_schema_id
    custom_type_mappings: Dict[Any, Callable[[], Dict[str, Any]]] = field(default_factory=dict)


def _lookup(mapping: Dict[Any, Any], key: Any) -> Any:
    try:
        return mapping.get(key)
    except TypeError:
        return None


def is_pydantic_model(annotation) -> bool:
    """Check if the annotation is a pydantic model class."""
    if annotation is None or not inspect.isclass(annotation):
        return False
    try:
        return hasattr(annotation, "model_fields") and hasattr(annotation, "model_validate")
    except (TypeError, AttributeError):
        return False


def is_component_type(annotation) -> bool:
    """Check if the annotation is registered as a shared component (a model or an enum)."""
    if is_pydantic_model(annotation):
        return True
    try:
        return inspect.isclass(annotation) and issubclass(annotation, Enum)
    except TypeError:
        # list[int] passes isclass on older interpreters but isn't a class
        return False


def component_types(annotation: Any) -> Dict[str, Any]:
    """Map the ``$defs`` names pydantic gives to the models and enums reachable from a type.

    A name shared by two distinct types maps to ``None``; pydantic renames both
    of those definitions, so neither can be identified by name.
    """
    found: Dict[str, Any] = {}
    seen: Set[int] = set()

    def walk(candidate: Any) -> None:
        if id(candidate) in seen:
            return
        seen.add(id(candidate))

        if is_component_type(candidate):
            name = default_schema_id(candidate)
            if name in found and found[name] is not candidate:
                found[name] = None
            else:
                found[name] = candidate
            if is_pydantic_model(candidate):
                for field_info in candidate.model_fields.values():
                    walk(field_info.annotation)
            return

        for arg in get_args(candidate):
            walk(arg)

    walk(annotation)
    return found


def is_optional_type(annotation) -> Tuple[bool, Any]:
    """Check if type annotation is Optional and return the inner type."""
    origin = get_origin(annotation)
    if origin is Union:
        args = get_args(annotation)
        if len(args) == 2 and type(None) in args:
            # This is Optional[T] which is Union[T, None]
            inner_type = args[0] if args[1] is type(None) else args[1]
            return True, inner_type
    return False, annotation


def convert_json_schema_to_openapi(schema: Any) -> Any:
    """Convert a pydantic JSON schema to an OpenAPI 3.0 compliant schema."""
    if not isinstance(schema, dict):
        return schema

    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key == "anyOf" and isinstance(value, list):
            # Handle anyOf patterns for optional fields
            converted.update(_convert_anyof_to_nullable(value))
        elif key == "exclusiveMinimum" and isinstance(value, (int, float)) and not isinstance(value, bool):
            # Convert exclusiveMinimum from number to boolean + minimum
            converted["minimum"] = value
            converted["exclusiveMinimum"] = True
        elif key == "exclusiveMaximum" and isinstance(value, (int, float)) and not isinstance(value, bool):
            converted["maximum"] = value
            converted["exclusiveMaximum"] = True
        elif key == "const":
            converted["enum"] = [value]
        elif key == "examples" and isinstance(value, list):
            if value:
                converted["example"] = value[0]
        elif key in ("properties", "$defs", "definitions") and isinstance(value, dict):
            # Keys here are names, not keywords
            converted[key] = {name: convert_json_schema_to_openapi(item) for name, item in value.items()}
        elif isinstance(value, dict):
            converted[key] = convert_json_schema_to_openapi(value)
        elif isinstance(value, list):
            converted[key] = [convert_json_schema_to_openapi(item) if isinstance(item, dict) else item for item in value]
        else:
            converted[key] = value
    return converted


def _convert_anyof_to_nullable(anyof_list: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Convert anyOf with null to a nullable schema for OpenAPI 3.0."""
    # Pattern: anyOf: [{"type": "someType"}, {"type": "null"}]
    if len(anyof_list) == 2:
        non_null = [item for item in anyof_list if isinstance(item, dict) and item.get("type") != "null"]
        if len(non_null) == 1:
            type_schema = convert_json_schema_to_openapi(non_null[0])
            if "$ref" in type_schema:
                # Siblings of $ref are ignored in OpenAPI 3.0
                return {"allOf": [type_schema], "nullable": True}
            result = dict(type_schema)
            result["nullable"] = True
            return result

    return {"anyOf": [convert_json_schema_to_openapi(item) for item in anyof_list]}


class PydanticSchemaRegistry:
    """Schema registry backed by pydantic's JSON schema generation.

    ``get_or_register`` is idempotent: asking twice for a model or enum returns
    the very same ``$ref`` schema, and asking twice for any other type returns
    equal copies, so a filter editing one inline schema leaves the others
    alone. Not safe to share between concurrent generation passes.
    """

    def __init__(self, settings: Optional[SchemaRegistrySettings] = None):
        self.settings = settings or SchemaRegistrySettings()
        self.schemas: Dict[str, Schema] = {}
        self._registered_types: Dict[str, Any] = {}
        self._cache: Dict[Any, Schema] = {}

    def get_or_register(self, type_: Any) -> Schema:
        try:
            cached = self._cache.get(type_)
        except TypeError:
            # Unhashable annotation (e.g. Annotated with unhashable metadata)
            return Schema.model_validate(self._create_schema(type_))

        if cached is None:
            cached = Schema.model_validate(self._create_schema(type_))
            self._cache[type_] = cached
        if cached.ref is None:
            return cached.model_copy(deep=True)
        return cached

    def _create_schema(self, type_: Any) -> Dict[str, Any]:
        custom_mapping = _lookup(self.settings.custom_type_mappings, type_)
        if custom_mapping is not None:
            return dict(custom_mapping())

        if type_ is None or type_ is type(None):
            return {}

        is_optional, inner_type = is_optional_type(type_)
        if is_optional:
            inner = self._create_schema(inner_type)
            if "$ref" in inner:
                return {"allOf": [inner], "nullable": True}
            inner["nullable"] = True
            return inner

        primitive = _lookup(PRIMITIVE_SCHEMAS, type_)
        if primitive is not None:
            return dict(primitive)

        if is_component_type(type_):
            return {"$ref": REF_TEMPLATE.format(model=self._register_component(type_))}

        origin = get_origin(type_)
        args = get_args(type_)

        if type_ in (list, set, frozenset, tuple):
            return {"type": "array", "items": {}}
        if type_ is dict:
            return {"type": "object"}

        if origin in MAPPING_ORIGINS:
            schema: Dict[str, Any] = {"type": "object"}
            if len(args) == 2:
                schema["additionalProperties"] = self._create_schema(args[1])
            return schema

        if origin in ARRAY_ORIGINS:
            item_args = [arg for arg in args if arg is not Ellipsis]
            schema = {"type": "array"}
            if origin is tuple and len(set(item_args)) > 1:
                schema["items"] = {}
            else:
                schema["items"] = self._create_schema(item_args[0]) if item_args else {}
            if origin in (set, frozenset, collections.abc.Set):
                schema["uniqueItems"] = True
            return schema

        return self._create_schema_with_type_adapter(type_)

    def _create_schema_with_type_adapter(self, type_: Any) -> Dict[str, Any]:
        try:
            json_schema = TypeAdapter(type_).json_schema(ref_template=REF_TEMPLATE)
        except (PydanticSchemaGenerationError, PydanticInvalidForJsonSchema, TypeError) as e:
            logger.warning(f"Unable to generate schema for {type_!r}, falling back to object: {e}")
            return {"type": "object"}

        self._hoist_definitions(json_schema.pop("$defs", {}), component_types(type_))
        return convert_json_schema_to_openapi(json_schema)

    def _register_component(self, type_: Type) -> str:
        schema_id = self.settings.schema_id_selector(type_)
        existing = self._registered_types.get(schema_id)
        if existing is not None:
            if existing is not type_:
                raise SchemaIdConflictError(schema_id, existing, type_)
            return schema_id

        # Hoisted earlier from a type whose nested models couldn't be told apart
        previous = self.schemas.get(schema_id)

        # Claim the id before generating, so self-references resolve to it
        self._registered_types[schema_id] = type_
        self.schemas[schema_id] = Schema()

        if is_pydantic_model(type_):
            json_schema = type_.model_json_schema(ref_template=REF_TEMPLATE)
        else:
            json_schema = TypeAdapter(type_).json_schema(ref_template=REF_TEMPLATE)

        definitions = json_schema.pop("$defs", {})
        ref = json_schema.get("$ref")
        if ref is not None and len(json_schema) == 1:
            # Recursive models come back as a bare $ref into their own $defs
            json_schema = definitions.pop(ref.rsplit("/", 1)[-1], json_schema)

        schema = Schema.model_validate(convert_json_schema_to_openapi(json_schema))
        if previous is not None and previous.to_dict() != schema.to_dict():
            self.schemas[schema_id] = previous
            del self._registered_types[schema_id]
            raise SchemaIdConflictError(schema_id, None, type_)

        self._hoist_definitions(definitions, component_types(type_))
        self.schemas[schema_id] = schema
        logger.debug(f"Registered schema {schema_id} for {type_!r}")
        return schema_id

    def _hoist_definitions(self, definitions: Dict[str, Any], owners: Dict[str, Any]) -> None:
        """Add nested ``$defs`` to the shared table, raising if a name is already taken by another type."""
        for name, definition in definitions.items():
            owner = owners.get(name)
            registered = self._registered_types.get(name)
            if registered is not None:
                if owner is not None and owner is not registered:
                    raise SchemaIdConflictError(name, registered, owner)
                continue

            schema = Schema.model_validate(convert_json_schema_to_openapi(definition))
            existing = self.schemas.get(name)
            if existing is not None and existing.to_dict() != schema.to_dict():
                raise SchemaIdConflictError(name, None, owner)

            self.schemas[name] = schema
            if owner is not None:
                self._registered_types[name] = owner


class SchemaRegistryFactory:
    """Creates a fresh registry for every generation pass."""

    def __init__(self, settings: Optional[SchemaRegistrySettings] = None):
        self.settings = settings or SchemaRegistrySettings()

    def create(self) -> PydanticSchemaRegistry:
        return PydanticSchemaRegistry(self.settings)

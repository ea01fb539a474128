"""Tests for the pydantic-backed schema registry."""

import datetime
import logging
import uuid
from enum import Enum
from typing import Dict, Generic, List, Optional, Set, Tuple, TypeVar

import pytest
from pydantic import BaseModel, Field

from specmachine import SchemaIdConflictError, UploadFile
from specmachine.schema_registry import (
    PydanticSchemaRegistry,
    SchemaRegistryFactory,
    SchemaRegistrySettings,
    convert_json_schema_to_openapi,
    default_schema_id,
)


class Color(str, Enum):
    RED = "red"
    GREEN = "green"


class Item(BaseModel):
    id: int
    name: str
    color: Color


class Order(BaseModel):
    item: Item
    quantity: int = Field(gt=0, lt=100)
    note: Optional[str] = None


class Node(BaseModel):
    value: str
    children: List["Node"] = []


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]


class Money:
    pass


class Opaque:
    pass


def _dump(schema):
    return schema.to_dict()


def _catalog_models():
    """An ``Order`` whose nested model is also named ``Item``."""

    class Item(BaseModel):
        sku: str

    class Order(BaseModel):
        item: Item

    return Order


@pytest.fixture
def registry():
    return PydanticSchemaRegistry()


class TestPrimitives:

    @pytest.mark.parametrize(
        "type_,expected",
        [
            (str, {"type": "string"}),
            (int, {"type": "integer"}),
            (float, {"type": "number"}),
            (bool, {"type": "boolean"}),
            (datetime.datetime, {"type": "string", "format": "date-time"}),
            (datetime.date, {"type": "string", "format": "date"}),
            (uuid.UUID, {"type": "string", "format": "uuid"}),
            (UploadFile, {"type": "string", "format": "binary"}),
        ],
    )
    def test_primitive_schemas_are_inlined(self, registry, type_, expected):
        assert _dump(registry.get_or_register(type_)) == expected
        assert registry.schemas == {}

    def test_optional_primitive_is_nullable(self, registry):
        assert _dump(registry.get_or_register(Optional[int])) == {"type": "integer", "nullable": True}


class TestContainers:

    def test_list(self, registry):
        assert _dump(registry.get_or_register(List[str])) == {"type": "array", "items": {"type": "string"}}

    def test_set_has_unique_items(self, registry):
        assert _dump(registry.get_or_register(Set[int])) == {
            "type": "array",
            "items": {"type": "integer"},
            "uniqueItems": True,
        }

    def test_homogeneous_tuple(self, registry):
        assert _dump(registry.get_or_register(Tuple[int, ...])) == {"type": "array", "items": {"type": "integer"}}

    def test_dict_values_become_additional_properties(self, registry):
        assert _dump(registry.get_or_register(Dict[str, int])) == {
            "type": "object",
            "additionalProperties": {"type": "integer"},
        }

    def test_list_of_models_references_the_model(self, registry):
        schema = _dump(registry.get_or_register(List[Item]))

        assert schema == {"type": "array", "items": {"$ref": "#/components/schemas/Item"}}
        assert "Item" in registry.schemas


class TestModels:
    """Test that models are registered once and referenced everywhere."""

    def test_model_is_registered_and_referenced(self, registry):
        schema = registry.get_or_register(Item)

        assert _dump(schema) == {"$ref": "#/components/schemas/Item"}
        item_schema = _dump(registry.schemas["Item"])
        assert item_schema["type"] == "object"
        assert item_schema["required"] == ["id", "name", "color"]
        assert item_schema["properties"]["color"]["$ref"] == "#/components/schemas/Color"

    def test_get_or_register_is_idempotent(self, registry):
        first = registry.get_or_register(Item)
        second = registry.get_or_register(Item)

        assert first is second
        assert list(registry.schemas) == ["Item", "Color"]

    def test_inline_schemas_are_copied_per_request(self, registry):
        first = registry.get_or_register(List[int])
        first.items.default = [1]

        second = registry.get_or_register(List[int])

        assert second is not first
        assert _dump(second) == {"type": "array", "items": {"type": "integer"}}

    def test_nested_models_are_hoisted(self, registry):
        registry.get_or_register(Order)

        assert set(registry.schemas) == {"Order", "Item", "Color"}
        order_schema = _dump(registry.schemas["Order"])
        assert order_schema["properties"]["item"] == {"$ref": "#/components/schemas/Item"}
        assert "$defs" not in order_schema

    def test_field_constraints_are_converted(self, registry):
        registry.get_or_register(Order)

        order_schema = _dump(registry.schemas["Order"])
        quantity = order_schema["properties"]["quantity"]
        assert quantity["minimum"] == 0
        assert quantity["exclusiveMinimum"] is True
        assert quantity["maximum"] == 100
        assert quantity["exclusiveMaximum"] is True
        note = order_schema["properties"]["note"]
        assert note["type"] == "string"
        assert note["nullable"] is True
        assert "anyOf" not in note

    def test_optional_model_wraps_reference(self, registry):
        schema = _dump(registry.get_or_register(Optional[Item]))

        assert schema == {"allOf": [{"$ref": "#/components/schemas/Item"}], "nullable": True}

    def test_recursive_model(self, registry):
        schema = _dump(registry.get_or_register(Node))

        assert schema == {"$ref": "#/components/schemas/Node"}
        node_schema = _dump(registry.schemas["Node"])
        assert node_schema["type"] == "object"
        assert node_schema["properties"]["children"]["items"] == {"$ref": "#/components/schemas/Node"}

    def test_enum_is_registered(self, registry):
        assert _dump(registry.get_or_register(Color)) == {"$ref": "#/components/schemas/Color"}
        assert _dump(registry.schemas["Color"])["enum"] == ["red", "green"]


class TestSchemaIds:

    def test_distinct_types_with_same_id_conflict(self, registry):
        def make_item():
            class Item(BaseModel):
                sku: str

            return Item

        registry.get_or_register(Item)

        with pytest.raises(SchemaIdConflictError) as exc_info:
            registry.get_or_register(make_item())

        assert exc_info.value.schema_id == "Item"

    def test_custom_schema_id_selector(self):
        registry = PydanticSchemaRegistry(SchemaRegistrySettings(schema_id_selector=lambda t: f"v1.{t.__name__}"))

        assert _dump(registry.get_or_register(Item)) == {"$ref": "#/components/schemas/v1.Item"}
        assert "v1.Item" in registry.schemas

    def test_default_schema_id_sanitizes_names(self):
        assert default_schema_id(Item) == "Item"
        assert default_schema_id(Page[Item]) == "Page_Item_"

    def test_nested_model_conflicts_with_later_registration(self, registry):
        catalog_order = _catalog_models()

        registry.get_or_register(catalog_order)

        with pytest.raises(SchemaIdConflictError) as exc_info:
            registry.get_or_register(Item)

        assert exc_info.value.schema_id == "Item"
        assert exc_info.value.existing_type is catalog_order.model_fields["item"].annotation
        assert exc_info.value.new_type is Item
        assert list(_dump(registry.schemas["Item"])["properties"]) == ["sku"]

    def test_nested_model_conflicts_with_earlier_registration(self, registry):
        catalog_order = _catalog_models()

        registry.get_or_register(Item)

        with pytest.raises(SchemaIdConflictError) as exc_info:
            registry.get_or_register(catalog_order)

        assert exc_info.value.schema_id == "Item"
        assert exc_info.value.existing_type is Item
        assert "color" in _dump(registry.schemas["Item"])["properties"]

    def test_hoisted_model_can_be_registered_directly(self, registry):
        registry.get_or_register(Order)
        hoisted = _dump(registry.schemas["Item"])

        assert _dump(registry.get_or_register(Item)) == {"$ref": "#/components/schemas/Item"}
        assert _dump(registry.schemas["Item"]) == hoisted


class TestFallbacks:

    def test_custom_type_mapping(self):
        registry = PydanticSchemaRegistry(
            SchemaRegistrySettings(custom_type_mappings={Money: lambda: {"type": "string", "pattern": r"^\d+\.\d{2}$"}})
        )

        assert _dump(registry.get_or_register(Money)) == {"type": "string", "pattern": r"^\d+\.\d{2}$"}

    def test_unsupported_type_falls_back_to_object(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="specmachine.schema_registry"):
            schema = registry.get_or_register(Opaque)

        assert _dump(schema) == {"type": "object"}
        assert any("Opaque" in record.getMessage() for record in caplog.records)


class TestFactory:

    def test_each_registry_is_independent(self):
        factory = SchemaRegistryFactory()

        first = factory.create()
        second = factory.create()
        first.get_or_register(Item)

        assert "Item" in first.schemas
        assert second.schemas == {}


class TestJsonSchemaConversion:
    """Test converting pydantic JSON schema keywords to their OpenAPI 3.0 form."""

    def test_const_becomes_enum(self):
        assert convert_json_schema_to_openapi({"const": "a"}) == {"enum": ["a"]}

    def test_examples_become_example(self):
        assert convert_json_schema_to_openapi({"type": "string", "examples": ["x", "y"]}) == {
            "type": "string",
            "example": "x",
        }

    def test_anyof_with_more_than_null_is_kept(self):
        schema = {"anyOf": [{"type": "string"}, {"type": "integer"}, {"type": "null"}]}

        assert convert_json_schema_to_openapi(schema) == schema

    def test_property_names_are_not_treated_as_keywords(self):
        schema = {"type": "object", "properties": {"const": {"type": "string"}}}

        assert convert_json_schema_to_openapi(schema) == schema

"""Tests for grouping descriptions into paths and building operations."""

import pytest
from pydantic import BaseModel

from specmachine import (
    AmbiguousMethodError,
    ConflictingActionsError,
    HTTPMethod,
    Obsolete,
    UnsupportedMethodError,
)
from specmachine.filters import OperationFilterContext, docstring_operation_filter
from specmachine.models import ApiResponseFormat, ApiResponseType
from tests.framework import DOCUMENT_NAME, describe, generate, make_generator


class Item(BaseModel):
    id: int
    name: str


class TestPathGrouping:
    """Test how descriptions are grouped by path and HTTP method."""

    def test_distinct_paths_become_distinct_path_items(self):
        document = generate([
            describe(relative_path="items"),
            describe(relative_path="items/{id}"),
        ])

        assert list(document["paths"]) == ["/items", "/items/{id}"]

    def test_query_string_does_not_split_a_path(self):
        document = generate([
            describe(relative_path="items?sort={sort}", http_method="GET"),
            describe(relative_path="items", http_method="POST"),
        ])

        assert list(document["paths"]) == ["/items"]
        assert set(document["paths"]["/items"]) == {"get", "post"}

    def test_methods_are_grouped_case_insensitively(self):
        with pytest.raises(ConflictingActionsError):
            make_generator([
                describe(http_method="get", display_name="A.list"),
                describe(http_method="GET", display_name="B.list"),
            ]).get_document(DOCUMENT_NAME)

    def test_every_supported_method_maps_to_its_operation_slot(self):
        methods = ["GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE"]

        document = generate([describe(http_method=method) for method in methods])

        assert set(document["paths"]["/items"]) == {method.lower() for method in methods}

    def test_path_item_operations(self):
        document = make_generator([
            describe(http_method="POST", route_name="create_item"),
            describe(http_method="GET", route_name="list_items"),
        ]).get_document(DOCUMENT_NAME)

        path_item = document.paths["/items"]

        assert list(path_item.operations) == [HTTPMethod.GET, HTTPMethod.POST]
        assert path_item.get_operation(HTTPMethod.POST).operation_id == "create_item"
        assert path_item.get_operation(HTTPMethod.DELETE) is None

    def test_empty_description_set_produces_no_paths(self):
        assert generate([])["paths"] == {}


class TestMethodErrors:

    def test_missing_method_is_ambiguous(self):
        api_desc = describe(http_method=None, display_name="ItemsController.any")

        with pytest.raises(AmbiguousMethodError) as exc_info:
            make_generator([api_desc]).get_document(DOCUMENT_NAME)

        assert "ItemsController.any" in str(exc_info.value)

    def test_unknown_method_is_unsupported(self):
        api_desc = describe(http_method="CONNECT", display_name="ItemsController.connect")

        with pytest.raises(UnsupportedMethodError) as exc_info:
            make_generator([api_desc]).get_document(DOCUMENT_NAME)

        assert exc_info.value.http_method == "CONNECT"
        assert "ItemsController.connect" in str(exc_info.value)

    def test_ambiguous_method_is_reported_before_conflicts(self):
        descs = [
            describe(http_method=None, display_name="A.any"),
            describe(http_method=None, display_name="B.any"),
        ]

        with pytest.raises(AmbiguousMethodError):
            make_generator(descs).get_document(DOCUMENT_NAME)

    def test_unsupported_method_is_reported_before_conflicts(self):
        descs = [
            describe(http_method="CONNECT", display_name="A.connect"),
            describe(http_method="CONNECT", display_name="B.connect"),
        ]

        with pytest.raises(UnsupportedMethodError):
            make_generator(descs).get_document(DOCUMENT_NAME)


class TestConflictingActions:
    """Test conflicts between actions sharing a path and method."""

    def test_conflict_without_resolver_names_every_action(self):
        descs = [
            describe(http_method="GET", display_name="ItemsController.list"),
            describe(http_method="GET", display_name="LegacyController.list"),
        ]

        with pytest.raises(ConflictingActionsError) as exc_info:
            make_generator(descs).get_document(DOCUMENT_NAME)

        message = str(exc_info.value)
        assert "GET" in message
        assert "items" in message
        assert "ItemsController.list,LegacyController.list" in message

    def test_resolver_picks_the_description_to_use(self):
        first = describe(http_method="GET", route_name="list_items")
        second = describe(http_method="GET", route_name="list_legacy_items")
        seen = []

        def resolver(group):
            seen.append(list(group))
            return group[-1]

        document = generate([first, second], conflicting_actions_resolver=resolver)

        assert seen == [[first, second]]
        assert document["paths"]["/items"]["get"]["operationId"] == "list_legacy_items"

    def test_resolver_is_not_called_without_a_conflict(self):
        calls = []

        generate(
            [describe(http_method="GET"), describe(http_method="POST")],
            conflicting_actions_resolver=lambda group: calls.append(group) or group[0],
        )

        assert calls == []


class TestOperationFields:

    def test_tags_and_operation_id_use_default_selectors(self):
        api_desc = describe(controller="Items", route_name="get_items")

        operation = generate([api_desc])["paths"]["/items"]["get"]

        assert operation["tags"] == ["Items"]
        assert operation["operationId"] == "get_items"

    def test_no_controller_means_no_tags(self):
        operation = generate([describe(controller=None)])["paths"]["/items"]["get"]

        assert operation["tags"] == []
        assert "operationId" not in operation

    def test_custom_selectors(self):
        api_desc = describe(controller="Items")

        operation = generate(
            [api_desc],
            tags_selector=lambda d: ["inventory", "public"],
            operation_id_selector=lambda d: d.action_descriptor.display_name,
        )["paths"]["/items"]["get"]

        assert operation["tags"] == ["inventory", "public"]
        assert operation["operationId"] == api_desc.action_descriptor.display_name

    def test_obsolete_action_is_deprecated(self):
        document = generate([
            describe(relative_path="old", controller_attributes=[Obsolete("use /items")]),
            describe(relative_path="items"),
        ])

        assert document["paths"]["/old"]["get"]["deprecated"] is True
        assert document["paths"]["/items"]["get"]["deprecated"] is False


class TestResponses:
    """Test responses built from supported response types."""

    def test_default_is_a_single_success_response(self):
        responses = generate([describe()])["paths"]["/items"]["get"]["responses"]

        assert responses == {"200": {"description": "Success"}}

    def test_typed_response_references_its_schema(self):
        api_desc = describe(
            response_types=[
                ApiResponseType(
                    status_code=200,
                    type=Item,
                    api_response_formats=[ApiResponseFormat("application/json")],
                ),
                ApiResponseType(status_code=404),
            ]
        )

        responses = generate([api_desc])["paths"]["/items"]["get"]["responses"]

        assert responses["200"]["content"] == {
            "application/json": {"schema": {"$ref": "#/components/schemas/Item"}}
        }
        assert responses["404"] == {"description": "Not Found"}

    def test_typed_response_without_formats_defaults_to_json(self):
        api_desc = describe(response_types=[ApiResponseType(status_code=201, type=Item)])

        responses = generate([api_desc])["paths"]["/items"]["get"]["responses"]

        assert list(responses["201"]["content"]) == ["application/json"]

    @pytest.mark.parametrize(
        "status_code,description",
        [
            (101, "Information"),
            (204, "Success"),
            (302, "Redirect"),
            (409, "Conflict"),
            (422, "Client Error"),
            (503, "Server Error"),
            (600, "Response"),
        ],
    )
    def test_response_descriptions(self, status_code, description):
        api_desc = describe(response_types=[ApiResponseType(status_code=status_code)])

        responses = generate([api_desc])["paths"]["/items"]["get"]["responses"]

        assert responses[str(status_code)]["description"] == description

    def test_default_response_key(self):
        api_desc = describe(response_types=[ApiResponseType(status_code=0, is_default_response=True)])

        responses = generate([api_desc])["paths"]["/items"]["get"]["responses"]

        assert responses == {"default": {"description": "Default Response"}}


class TestOperationFilters:

    def test_filters_run_in_order_with_context(self):
        contexts = []

        def add_summary(operation, context):
            contexts.append(context)
            operation.summary = "List items"

        def append_summary(operation, context):
            operation.summary += "!"

        api_desc = describe()

        document = generate([api_desc], operation_filters=[add_summary, append_summary])

        assert document["paths"]["/items"]["get"]["summary"] == "List items!"
        assert isinstance(contexts[0], OperationFilterContext)
        assert contexts[0].api_description is api_desc
        assert contexts[0].handler_info is api_desc.action_descriptor.handler

    def test_docstring_filter(self):
        def list_items():
            """List items.

            Returns every item in the inventory.
            """

        api_desc = describe(handler=list_items)

        operation = generate([api_desc], operation_filters=[docstring_operation_filter])["paths"]["/items"]["get"]

        assert operation["summary"] == "List items."
        assert operation["description"] == "Returns every item in the inventory."

    def test_docstring_filter_falls_back_to_handler_name(self):
        def list_items():
            pass

        api_desc = describe(handler=list_items)

        operation = generate([api_desc], operation_filters=[docstring_operation_filter])["paths"]["/items"]["get"]

        assert operation["summary"] == "List Items"
        assert "description" not in operation

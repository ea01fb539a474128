"""
Configuration for document generation.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .filters import DocumentFilter, OperationFilter, ParameterFilter
from .models import ApiDescription
from .openapi import Info, SecurityScheme


def default_doc_inclusion_predicate(document_name: str, api_description: ApiDescription) -> bool:
    """Include ungrouped descriptions everywhere, grouped ones only in their own document."""
    return api_description.group_name is None or api_description.group_name == document_name


def default_sort_key_selector(api_description: ApiDescription) -> str:
    return api_description.action_descriptor.route_values.get("controller") or ""


def default_tags_selector(api_description: ApiDescription) -> List[str]:
    controller = api_description.action_descriptor.route_values.get("controller")
    return [controller] if controller else []


def default_operation_id_selector(api_description: ApiDescription) -> Optional[str]:
    return api_description.action_descriptor.route_name


@dataclass
class GeneratorOptions:
    """Configuration for the document generator.

    Attributes:
        documents: Named documents that can be generated, mapping the document
                   name to its info block. Plain dicts are accepted and
                   converted to ``Info``.

        doc_inclusion_predicate: Decides whether an ApiDescription belongs to
                   a document, called as ``predicate(document_name, api_description)``.
                   Defaults to including ungrouped descriptions and those whose
                   group name matches the document name.

        ignore_obsolete_actions: Leave actions marked ``Obsolete`` out of the
                   document entirely instead of flagging them as deprecated.

        sort_key_selector: Key applied before grouping into paths and methods.
                   Controls path order in the document and which candidate is
                   "first" in error messages. Defaults to the controller name.

        tags_selector: Returns the tag names for an operation. Defaults to the
                   controller name.

        operation_id_selector: Returns the operationId for an operation.
                   Defaults to the action's route name.

        conflicting_actions_resolver: Picks one ApiDescription when several
                   share a path and HTTP method. Without it, such conflicts
                   raise ``ConflictingActionsError``.

        describe_all_parameters_in_camel_case: Lower-case the first character
                   of every parameter and form property name.

        document_filters, operation_filters, parameter_filters: Filters run
                   in order on every document, operation and parameter.

        security_schemes: Entries for ``components.securitySchemes``.

        security_requirements: Document-wide ``security`` requirements.

    Examples:
        # Minimal
        GeneratorOptions(documents={"v1": {"title": "My API", "version": "1.0"}})

        # Two documents split by group name, newest handler wins conflicts
        GeneratorOptions(
            documents={
                "v1": Info(title="My API", version="1.0"),
                "v2": Info(title="My API", version="2.0"),
            },
            conflicting_actions_resolver=lambda group: group[-1],
            describe_all_parameters_in_camel_case=True,
        )
    """

    documents: Dict[str, Union[Info, Dict[str, Any]]] = field(default_factory=dict)
    doc_inclusion_predicate: Callable[[str, ApiDescription], bool] = default_doc_inclusion_predicate
    ignore_obsolete_actions: bool = False
    sort_key_selector: Callable[[ApiDescription], Any] = default_sort_key_selector
    tags_selector: Callable[[ApiDescription], List[str]] = default_tags_selector
    operation_id_selector: Callable[[ApiDescription], Optional[str]] = default_operation_id_selector
    conflicting_actions_resolver: Optional[Callable[[List[ApiDescription]], ApiDescription]] = None
    describe_all_parameters_in_camel_case: bool = False
    document_filters: List[DocumentFilter] = field(default_factory=list)
    operation_filters: List[OperationFilter] = field(default_factory=list)
    parameter_filters: List[ParameterFilter] = field(default_factory=list)
    security_schemes: Dict[str, Union[SecurityScheme, Dict[str, Any]]] = field(default_factory=dict)
    security_requirements: List[Dict[str, List[str]]] = field(default_factory=list)

    def __post_init__(self):
        self.documents = {
            name: info if isinstance(info, Info) else Info.model_validate(info)
            for name, info in self.documents.items()
        }
        self.security_schemes = {
            name: scheme if isinstance(scheme, SecurityScheme) else SecurityScheme.model_validate(scheme)
            for name, scheme in self.security_schemes.items()
        }

    def document_filter(self, func: DocumentFilter) -> DocumentFilter:
        """Register a document filter.

        Example:
            @options.document_filter
            def add_tag_descriptions(document, context):
                ...
        """
        self.document_filters.append(func)
        return func

    def operation_filter(self, func: OperationFilter) -> OperationFilter:
        """Register an operation filter."""
        self.operation_filters.append(func)
        return func

    def parameter_filter(self, func: ParameterFilter) -> ParameterFilter:
        """Register a parameter filter."""
        self.parameter_filters.append(func)
        return func

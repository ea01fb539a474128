"""
Custom exceptions for the document generator.
"""
from typing import Iterable, Optional


class SpecMachineError(Exception):
    """Base exception for document generation errors."""

    pass


class UnknownDocumentError(SpecMachineError):
    """Raised when a document name has no matching configuration entry."""

    def __init__(self, document_name: str):
        self.document_name = document_name
        super().__init__(f"Unknown document - {document_name}")


class AmbiguousMethodError(SpecMachineError):
    """Raised when an action has no HTTP method binding."""

    def __init__(self, display_name: Optional[str]):
        self.display_name = display_name
        super().__init__(
            f"Ambiguous HTTP method for action - {display_name}. "
            "Actions require an explicit HTTP method binding"
        )


class ConflictingActionsError(SpecMachineError):
    """Raised when several actions share a method/path and no resolver is configured."""

    def __init__(self, http_method: str, path: str, display_names: Iterable[Optional[str]]):
        self.http_method = http_method
        self.path = path
        self.display_names = list(display_names)
        super().__init__(
            f'HTTP method "{http_method}" & path "{path}" overloaded by actions - '
            f"{','.join(str(name) for name in self.display_names)}. "
            "Actions require unique method/path combination. "
            "Use conflicting_actions_resolver as a workaround"
        )


class UnsupportedMethodError(SpecMachineError):
    """Raised when an action's HTTP method has no OpenAPI operation type."""

    def __init__(self, http_method: str, display_name: Optional[str] = None):
        self.http_method = http_method
        self.display_name = display_name
        super().__init__(f'Unsupported HTTP method "{http_method}" for action - {display_name}')


class InvariantViolationError(SpecMachineError):
    """Raised when request body inference and construction disagree."""

    pass


class SchemaIdConflictError(SpecMachineError):
    """Raised when two distinct types map to the same schema id."""

    def __init__(self, schema_id: str, existing_type, new_type):
        self.schema_id = schema_id
        self.existing_type = existing_type
        self.new_type = new_type
        super().__init__(
            f'Conflicting schema ids: "{schema_id}" is used by both {existing_type!r} and {new_type!r}. '
            "Configure a custom schema_id_selector to disambiguate"
        )

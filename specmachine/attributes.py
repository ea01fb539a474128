"""
Marker attributes for handlers, controller classes and parameters.

Attributes are plain objects attached to handlers and classes by decorators, or
to parameters via ``typing.Annotated``. The generator only ever asks "is there
an attribute of this kind", so any object can be used as an attribute.

Example::

    @consumes("application/json")
    class ItemsController:

        @obsolete("use v2")
        def list_items(self, tag: Annotated[str, Required()]):
            ...
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Type, Union

ATTRIBUTES_KEY = "__specmachine_attributes__"


@dataclass(frozen=True)
class Required:
    """Marks a parameter or property as required."""


@dataclass(frozen=True)
class BindRequired:
    """Marks a parameter as required for model binding."""


@dataclass(frozen=True)
class Obsolete:
    """Marks a handler or controller as obsolete (deprecated)."""

    message: Optional[str] = None


@dataclass(frozen=True)
class Consumes:
    """Declares the request content types a handler accepts."""

    content_types: Tuple[str, ...] = field(default_factory=tuple)

    def __init__(self, *content_types: str):
        object.__setattr__(self, "content_types", tuple(content_types))


REQUIRED_ATTRIBUTE_TYPES: Tuple[Type, ...] = (BindRequired, Required)


@dataclass(frozen=True)
class BindingMarker:
    """Base for ``Annotated`` markers that pick a parameter's binding source."""

    name: Optional[str] = None


class FromPath(BindingMarker):
    pass


class FromQuery(BindingMarker):
    pass


class FromHeader(BindingMarker):
    pass


class FromForm(BindingMarker):
    pass


class FromBody(BindingMarker):
    pass


class UploadFile:
    """Type annotation for an uploaded file bound from a multipart form."""

    def __init__(self, filename: str = "", content_type: str = "application/octet-stream", data: bytes = b""):
        self.filename = filename
        self.content_type = content_type
        self.data = data


def add_attribute(target: Any, attribute: Any) -> Any:
    """Attach an attribute to a function or class and return the target."""
    own = target.__dict__.get(ATTRIBUTES_KEY) if hasattr(target, "__dict__") else None
    if own is None:
        own = []
        setattr(target, ATTRIBUTES_KEY, own)
    own.append(attribute)
    return target


def get_attributes(target: Any) -> List[Any]:
    """Return the attributes declared on a function or class.

    For classes, attributes declared on base classes are included after the
    class's own attributes.
    """
    if target is None:
        return []
    if inspect.isclass(target):
        attributes: List[Any] = []
        for klass in target.__mro__:
            attributes.extend(klass.__dict__.get(ATTRIBUTES_KEY, []))
        return attributes
    func = getattr(target, "__func__", target)
    return list(getattr(func, ATTRIBUTES_KEY, []))


def obsolete(target: Union[Callable, str, None] = None):
    """Mark a handler or controller class as obsolete.

    Usable bare (``@obsolete``) or with a message (``@obsolete("use v2")``).
    """
    if callable(target):
        return add_attribute(target, Obsolete())

    def decorator(func):
        return add_attribute(func, Obsolete(target))

    return decorator


def consumes(*content_types: str):
    """Declare the request content types accepted by a handler or controller."""

    def decorator(func):
        return add_attribute(func, Consumes(*content_types))

    return decorator

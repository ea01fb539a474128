"""
API description providers.

A provider surfaces the ApiDescriptions a document is built from. The
generator only reads ``api_description_groups``; how descriptions are
discovered is up to the provider (see ``Router`` for a decorator-based one).
"""

from typing import Iterable, Optional, Protocol

from .models import ApiDescription, ApiDescriptionGroup, ApiDescriptionGroupCollection


class ApiDescriptionProvider(Protocol):
    @property
    def api_description_groups(self) -> ApiDescriptionGroupCollection:
        ...


class StaticApiDescriptionProvider:
    """Provider over a fixed, in-memory set of ApiDescriptions.

    Example::

        provider = StaticApiDescriptionProvider([
            ApiDescription(relative_path="items", http_method="GET"),
        ])
    """

    def __init__(
        self,
        api_descriptions: Optional[Iterable[ApiDescription]] = None,
        groups: Optional[Iterable[ApiDescriptionGroup]] = None,
    ):
        items = list(groups or [])
        if api_descriptions is not None:
            items.insert(0, ApiDescriptionGroup(group_name=None, items=list(api_descriptions)))
        self._groups = ApiDescriptionGroupCollection(items=items)

    @property
    def api_description_groups(self) -> ApiDescriptionGroupCollection:
        return self._groups

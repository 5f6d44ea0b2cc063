"""
Admin Context for formgate.

The context describes the admin page being built for the current
request: which record is bound to the form, which HTTP request is in
flight and which CRUD page is rendering.

The context is created by the HTTP layer at request start and handed
to the resolver, the value lookup and the rehydration pipeline through
an AdminContextProvider.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

PAGE_INDEX = "index"
PAGE_DETAIL = "detail"
PAGE_EDIT = "edit"
PAGE_NEW = "new"


@dataclass(frozen=True, slots=True)
class EntityDto:
    """
    The record bound to the form.

    Attributes:
        name: Logical entity name, also the form namespace (e.g. "Product")
        instance: The persisted record, or None on "new" pages
        primary_key: Identifier of the record, if persisted
    """

    name: str
    instance: Any = None
    primary_key: Any = None


@dataclass(frozen=True, slots=True)
class RequestData:
    """
    The HTTP request as seen by the resolver.

    Submitted form values are namespaced by form name, mirroring
    HTML field names like ``Product[category]``.
    """

    method: str = "GET"
    url: str = ""
    form: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def is_method(self, method: str) -> bool:
        return self.method.upper() == method.upper()

    def all(self, namespace: str) -> dict[str, Any]:
        """Submitted values under one form namespace (empty if absent)."""
        return dict(self.form.get(namespace) or {})


@dataclass(frozen=True, slots=True)
class AdminContext:
    """Request-scoped admin page context."""

    entity: EntityDto
    request: RequestData = field(default_factory=RequestData)
    page_name: str = PAGE_EDIT

    @property
    def form_name(self) -> str:
        return self.entity.name

    def submitted_data(self) -> dict[str, Any]:
        return self.request.all(self.entity.name)


@runtime_checkable
class AdminContextProvider(Protocol):
    """Gives access to the context of the current request, if any."""

    def get_context(self) -> AdminContext | None:
        ...


class StaticContextProvider:
    """Provider returning a fixed context (or None outside admin pages)."""

    def __init__(self, context: AdminContext | None = None) -> None:
        self._context = context

    def get_context(self) -> AdminContext | None:
        return self._context


_current_context: ContextVar[AdminContext | None] = ContextVar(
    "formgate_admin_context", default=None
)


class ContextVarProvider:
    """
    Provider backed by a ContextVar, for contexts bound per request task.

    Example:
        provider = ContextVarProvider()
        with provider.bind(context):
            resolver.resolve_fields()
    """

    def get_context(self) -> AdminContext | None:
        return _current_context.get()

    @contextmanager
    def bind(self, context: AdminContext) -> Iterator[AdminContext]:
        token = _current_context.set(context)
        try:
            yield context
        finally:
            _current_context.reset(token)

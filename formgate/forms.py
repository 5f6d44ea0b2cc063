"""
Runtime form model for formgate.

A Form is what the admin page renders: an ordered set of FormFields,
each pairing a FieldDescriptor (its configuration) with its current
data. Forms are built from the resolver's output, seeded from the bound
record, then possibly rehydrated from bridge data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from .accessor import PropertyAccessError, PropertyAccessor
from .fields import WIDGET_HIDDEN, FieldDescriptor

logger = logging.getLogger(__name__)


class FormField:
    """One field of a built form: configuration plus current data."""

    def __init__(self, descriptor: FieldDescriptor, data: Any = None) -> None:
        self.descriptor = descriptor
        self.data = data

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def config(self) -> FieldDescriptor:
        return self.descriptor

    def set_data(self, data: Any) -> None:
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        rendered = self.descriptor.to_dict()
        rendered["data"] = self._render_data()
        return rendered

    def _render_data(self) -> Any:
        relation = self.descriptor.relation
        if relation is None:
            return self.data
        if isinstance(self.data, list):
            return [relation.identify(r) for r in self.data]
        if self.data is None:
            return None
        return relation.identify(self.data)

    def __repr__(self) -> str:
        return f"FormField(name='{self.name}', data={self.data!r})"


class Form:
    """
    Ordered collection of form fields under one namespace.

    Example:
        form = Form.from_descriptors("Product", resolver.resolve_fields(), product)
        form.get("category").data
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._fields: dict[str, FormField] = {}

    @classmethod
    def from_descriptors(
        cls,
        name: str,
        descriptors: Iterable[FieldDescriptor],
        instance: Any = None,
        *,
        accessor: PropertyAccessor | None = None,
    ) -> Form:
        """
        Build a form and seed each field from the bound record.

        Unmapped fields take their data from the "data" option; mapped
        fields read the same-named property of ``instance`` when it is
        readable.
        """
        accessor = accessor or PropertyAccessor()
        form = cls(name)
        for descriptor in descriptors:
            form.add(descriptor, form._initial_data(descriptor, instance, accessor))
        return form

    def _initial_data(
        self,
        descriptor: FieldDescriptor,
        instance: Any,
        accessor: PropertyAccessor,
    ) -> Any:
        if "data" in descriptor.options or not descriptor.mapped:
            return descriptor.option("data")
        if instance is None:
            return None
        try:
            return accessor.get_value(instance, descriptor.name)
        except PropertyAccessError:
            logger.debug(f"[forms] No readable '{descriptor.name}' on {type(instance).__name__}")
            return None

    def has(self, name: str) -> bool:
        return name in self._fields

    def get(self, name: str) -> FormField:
        try:
            return self._fields[name]
        except KeyError:
            raise KeyError(f"Form '{self.name}' has no field '{name}'") from None

    def add(self, descriptor: FieldDescriptor, data: Any = None) -> FormField:
        """
        Add a field, or replace the configuration of an existing one.

        Replacing keeps the field's position and, unless ``data`` is
        given, its current data.
        """
        existing = self._fields.get(descriptor.name)
        if existing is not None:
            existing.descriptor = descriptor
            if data is not None:
                existing.data = data
            return existing

        form_field = FormField(descriptor, data)
        self._fields[descriptor.name] = form_field
        return form_field

    def remove(self, name: str) -> None:
        self._fields.pop(name, None)

    @property
    def names(self) -> list[str]:
        return list(self._fields)

    @property
    def data(self) -> dict[str, Any]:
        """Current data of mapped fields."""
        return {f.name: f.data for f in self if f.descriptor.mapped}

    def visible_fields(self) -> list[FormField]:
        return [f for f in self if f.descriptor.widget != WIDGET_HIDDEN]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "fields": [f.to_dict() for f in self],
        }

    def __iter__(self) -> Iterator[FormField]:
        return iter(list(self._fields.values()))

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __repr__(self) -> str:
        return f"Form(name='{self.name}', fields={self.names})"

"""
Relation stores and relation value normalization.

Relation-typed fields (record choosers) submit raw identifiers. After a
redirect those identifiers have to be turned back into records before
they can be written onto the form; normalize_relation_value() does that
against the field's RelationStore.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

logger = logging.getLogger(__name__)

# Values of these types are identifiers, never records
_SCALAR_TYPES = (str, bytes, int, float, bool, Decimal, UUID, date, datetime)


@runtime_checkable
class RelationStore(Protocol):
    """Backing store of a relation field."""

    def find_by(self, field: str, values: Iterable[Any]) -> list[Any]:
        """Return every record whose ``field`` is in ``values``."""
        ...


@dataclass(frozen=True, slots=True)
class RelationConfig:
    """
    Relation settings carried by a relation field descriptor.

    Attributes:
        store: Where records are looked up
        id_field: Identifier property matched against raw values
        label_field: Property used to label choices when rendering
    """

    store: RelationStore
    id_field: str = "id"
    label_field: str | None = None

    def identify(self, record: Any) -> Any:
        if not is_record(record):
            return record
        if isinstance(record, Mapping):
            return record.get(self.id_field)
        return getattr(record, self.id_field, None)

    def label(self, record: Any) -> str:
        if self.label_field is None:
            return str(record)
        if isinstance(record, Mapping):
            return str(record.get(self.label_field, ""))
        return str(getattr(record, self.label_field, ""))


def is_record(value: Any) -> bool:
    """Whether a value is an already-resolved record rather than an identifier."""
    return value is not None and not isinstance(value, _SCALAR_TYPES)


def _identifier_key(value: Any) -> str:
    return str(value)


class InMemoryRelationStore:
    """
    List-backed relation store.

    Identifiers are compared in string form so a raw submitted "7"
    matches a record whose id is the integer 7.

    Example:
        categories = InMemoryRelationStore([Category(id=1, name="Books")])
        categories.find_by("id", ["1"])  # -> [Category(id=1, ...)]
    """

    def __init__(self, records: Iterable[Any] = (), *, id_field: str = "id") -> None:
        self._records: list[Any] = list(records)
        self._id_field = id_field

    @property
    def id_field(self) -> str:
        return self._id_field

    def _read(self, record: Any, field: str) -> Any:
        if isinstance(record, Mapping):
            return record.get(field)
        return getattr(record, field, None)

    def find_by(self, field: str, values: Iterable[Any]) -> list[Any]:
        wanted = {_identifier_key(v) for v in values if v is not None}
        return [r for r in self._records if _identifier_key(self._read(r, field)) in wanted]

    def get(self, identifier: Any) -> Any | None:
        matches = self.find_by(self._id_field, [identifier])
        return matches[0] if matches else None

    def all(self) -> list[Any]:
        return list(self._records)

    def add(self, record: Any) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)


def normalize_relation_value(value: Any, config: RelationConfig) -> list[Any]:
    """
    Turn a recovered raw value into a list of records.

    - None or "" -> []
    - a record -> [record]
    - an iterable whose first element is a record -> list(value)
    - identifier(s) -> batch lookup on config.store by config.id_field

    Identifiers without a matching record are dropped, so a malformed
    value resolves to an empty list rather than an error.
    """
    if value is None or value == "":
        return []

    if is_record(value) and not _is_collection(value):
        return [value]

    if _is_collection(value):
        items = list(value)
        if items and is_record(items[0]):
            return items
        identifiers = items
    else:
        identifiers = [value]

    identifiers = [i for i in identifiers if i is not None and i != ""]
    if not identifiers:
        return []

    records = config.store.find_by(config.id_field, identifiers)
    if len(records) < len(identifiers):
        logger.debug(
            f"[relations] {len(identifiers) - len(records)} identifier(s) "
            f"without a matching record on '{config.id_field}'"
        )
    return list(records)


def _is_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping))

"""
Property accessor for persisted records.

Reads and writes properties by name on arbitrary record objects:
dataclasses, plain objects, pydantic models and mappings. Dotted paths
("owner.name") traverse nested records; numeric segments index sequences.

Failures raise PropertyAccessError so callers can tell a missing or
unreadable property apart from "there is no record at all".
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any

from .errors import FormgateError


class PropertyAccessError(FormgateError):
    """Raised when a property cannot be read or written."""

    def __init__(self, message: str, *, path: str, target: Any = None):
        super().__init__(message)
        self.path = path
        self.target_type = type(target).__name__ if target is not None else None


class PropertyAccessor:
    """
    Generic property-by-name reader and writer.

    Example:
        accessor = PropertyAccessor()
        accessor.get_value(product, "category.name")
        accessor.set_value(product, "price", 10)
    """

    def get_value(self, target: Any, path: str) -> Any:
        """
        Read a property.

        Raises:
            PropertyAccessError: If target is None or any segment is missing
        """
        if target is None:
            raise PropertyAccessError(
                f"Cannot read '{path}' from None", path=path
            )

        current = target
        for segment in path.split("."):
            current = self._read_segment(current, segment, path)
        return current

    def set_value(self, target: Any, path: str, value: Any) -> None:
        """
        Write a property, creating nothing along the way.

        Raises:
            PropertyAccessError: If the parent path is unreadable or the
                property cannot be assigned
        """
        head, _, last = path.rpartition(".")
        parent = self.get_value(target, head) if head else target

        if isinstance(parent, MutableMapping):
            parent[last] = value
            return

        try:
            setattr(parent, last, value)
        except (AttributeError, TypeError) as e:
            raise PropertyAccessError(
                f"Cannot write '{path}' on {type(parent).__name__}: {e}",
                path=path,
                target=parent,
            ) from e

    def is_readable(self, target: Any, path: str) -> bool:
        try:
            self.get_value(target, path)
        except PropertyAccessError:
            return False
        return True

    def _read_segment(self, current: Any, segment: str, path: str) -> Any:
        if isinstance(current, Mapping):
            if segment in current:
                return current[segment]
            raise PropertyAccessError(
                f"Key '{segment}' not found while reading '{path}'",
                path=path,
                target=current,
            )

        if (
            segment.isdigit()
            and isinstance(current, Sequence)
            and not isinstance(current, (str, bytes))
        ):
            try:
                return current[int(segment)]
            except IndexError as e:
                raise PropertyAccessError(
                    f"Index {segment} out of range while reading '{path}'",
                    path=path,
                    target=current,
                ) from e

        if segment.startswith("_"):
            raise PropertyAccessError(
                f"Property '{segment}' is not publicly readable",
                path=path,
                target=current,
            )

        try:
            return getattr(current, segment)
        except AttributeError as e:
            raise PropertyAccessError(
                f"Property '{segment}' not found on {type(current).__name__}",
                path=path,
                target=current,
            ) from e

"""
Dependency rules.

A rule ties a producer function to the parent fields it needs. The
producer is only called once every parent has a usable value.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from formgate.errors import FormgateError
from formgate.fields import FieldDescriptor

Producer = Callable[[dict[str, Any]], Any]


class DependencyConfigurationError(FormgateError):
    """Raised when a dependency rule is declared incorrectly."""

    pass


def is_satisfied(value: Any) -> bool:
    """
    Whether a parent value unlocks its dependent fields.

    None and the empty string are unsatisfied; everything else,
    including 0, False and empty lists, is satisfied.
    """
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def normalize_parents(parents: str | Iterable[str]) -> tuple[str, ...]:
    """
    Normalize a parent declaration into an ordered, duplicate-free tuple.

    Raises:
        DependencyConfigurationError: If no parent is given or a parent
            name is not a non-empty string
    """
    if isinstance(parents, str):
        parents = [parents]

    normalized: dict[str, None] = {}
    for parent in parents:
        if not isinstance(parent, str) or not parent:
            raise DependencyConfigurationError(
                f"Parent field names must be non-empty strings, got {parent!r}"
            )
        normalized[parent] = None

    if not normalized:
        raise DependencyConfigurationError("A dependency rule needs at least one parent field")
    return tuple(normalized)


def normalize_output(output: Any) -> list[Any]:
    """Normalize producer output to a list of descriptors."""
    if output is None:
        return []
    if isinstance(output, FieldDescriptor):
        return [output]
    return list(output)


@dataclass(frozen=True, slots=True)
class DependencyRule:
    """
    Parents plus the producer of the fields they unlock.

    Attributes:
        parents: Ordered, non-empty parent field names
        producer: Called with {parent: value} once all parents are satisfied
    """

    parents: tuple[str, ...]
    producer: Producer

    @classmethod
    def create(cls, parents: str | Iterable[str], producer: Producer) -> DependencyRule:
        """
        Validate and build a rule.

        Raises:
            DependencyConfigurationError: On empty parents or a
                non-callable producer
        """
        if not callable(producer):
            raise DependencyConfigurationError(
                f"Dependency producer must be callable, got {type(producer).__name__}"
            )
        return cls(parents=normalize_parents(parents), producer=producer)

    def produce(self, values: dict[str, Any]) -> list[Any]:
        return normalize_output(self.producer(values))

    def __repr__(self) -> str:
        name = getattr(self.producer, "__qualname__", type(self.producer).__name__)
        return f"DependencyRule(parents={list(self.parents)}, producer={name})"

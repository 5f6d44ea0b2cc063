"""
Field Descriptors for formgate.

A descriptor is the immutable configuration of one form field: its
name, label, widget type, widget options and, for record choosers, its
relation settings.

Design Principles:
- Truly immutable (frozen dataclass); derive() creates modified copies
- Relation-backed fields carry an explicit FieldKind instead of being
  recognised by their widget class
- The resolver yields descriptors as opaque values and never mutates them
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from .relations import RelationConfig

D = TypeVar("D", bound="FieldDescriptor")

WIDGET_TEXT = "text"
WIDGET_CHOICE = "choice"
WIDGET_HIDDEN = "hidden"
WIDGET_RELATION = "relation"

# Options that make a relation widget fetch its choices lazily
LAZY_CHOICE_OPTIONS = frozenset({"query", "loader", "autocomplete", "choice_loader"})


class FieldKind(Enum):
    """Capability tag read by the rehydration pipeline."""

    SCALAR = "scalar"
    RELATION_SINGLE = "relation-single"
    RELATION_MULTI = "relation-multi"

    @property
    def is_relation(self) -> bool:
        return self is not FieldKind.SCALAR


def _freeze(options: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(options or {}))


@dataclass(frozen=True, kw_only=True, slots=True)
class FieldDescriptor:
    """
    Immutable configuration of a single form field.

    Example:
        name = FieldDescriptor.text("name", label="Name", required=True)
        category = FieldDescriptor.for_relation("category", categories)
        tags = FieldDescriptor.for_relation("tags", tag_store, multiple=True)
    """

    name: str
    label: str | None = None
    widget: str = WIDGET_TEXT
    kind: FieldKind = FieldKind.SCALAR
    options: Mapping[str, Any] = field(default_factory=dict)
    relation: RelationConfig | None = None
    required: bool = False
    mapped: bool = True
    only_on_forms: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("FieldDescriptor requires a non-empty name")
        if self.kind.is_relation and self.relation is None:
            raise ValueError(f"Relation field '{self.name}' requires a RelationConfig")
        object.__setattr__(self, "options", _freeze(self.options))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def text(cls, name: str, *, label: str | None = None, **kwargs: Any) -> FieldDescriptor:
        return cls(name=name, label=label, widget=WIDGET_TEXT, **kwargs)

    @classmethod
    def choice(
        cls,
        name: str,
        choices: Mapping[str, Any] | list[Any],
        *,
        label: str | None = None,
        multiple: bool = False,
        **kwargs: Any,
    ) -> FieldDescriptor:
        options = {**kwargs.pop("options", {}), "choices": choices, "multiple": multiple}
        return cls(name=name, label=label, widget=WIDGET_CHOICE, options=options, **kwargs)

    @classmethod
    def hidden(cls, name: str, *, data: Any = None, mapped: bool = True) -> FieldDescriptor:
        return cls(
            name=name,
            widget=WIDGET_HIDDEN,
            options={"data": data},
            mapped=mapped,
            only_on_forms=True,
        )

    @classmethod
    def for_relation(
        cls,
        name: str,
        config: RelationConfig | Any,
        *,
        label: str | None = None,
        multiple: bool = False,
        **kwargs: Any,
    ) -> FieldDescriptor:
        """
        Build a record chooser.

        ``config`` may be a RelationConfig or a bare RelationStore, in
        which case records are matched on "id".
        """
        from .relations import RelationConfig

        if not isinstance(config, RelationConfig):
            config = RelationConfig(store=config)
        options = {**kwargs.pop("options", {}), "multiple": multiple}
        return cls(
            name=name,
            label=label,
            widget=WIDGET_RELATION,
            kind=FieldKind.RELATION_MULTI if multiple else FieldKind.RELATION_SINGLE,
            options=options,
            relation=config,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    @property
    def is_relation(self) -> bool:
        return self.kind.is_relation

    @property
    def multiple(self) -> bool:
        if self.kind is FieldKind.RELATION_MULTI:
            return True
        return bool(self.options.get("multiple", False))

    @property
    def display_label(self) -> str:
        return self.label or self.name.replace("_", " ").capitalize()

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def derive(self: D, **changes: Any) -> D:
        """Create a copy with field overrides."""
        return replace(self, **changes)

    def with_options(self: D, **options: Any) -> D:
        """Create a copy with additional widget options."""
        return self.derive(options={**self.options, **options})

    def without_options(self: D, *keys: str) -> D:
        return self.derive(options={k: v for k, v in self.options.items() if k not in keys})

    def with_choices(self: D, choices: list[Any]) -> D:
        """
        Create a copy whose choice set is fixed to ``choices``.

        Lazy-loading options are dropped since the choices are now explicit.
        """
        options = {k: v for k, v in self.options.items() if k not in LAZY_CHOICE_OPTIONS}
        options["choices"] = list(choices)
        return self.derive(options=options)

    def to_dict(self) -> dict[str, Any]:
        """Serialize descriptor for rendering/logging."""
        options = {k: v for k, v in self.options.items() if not callable(v)}
        if self.relation is not None and "choices" in options:
            options["choices"] = [
                {"value": self.relation.identify(r), "label": self.relation.label(r)}
                for r in options["choices"]
            ]
        return {
            "name": self.name,
            "label": self.display_label,
            "widget": self.widget,
            "kind": self.kind.value,
            "required": self.required,
            "mapped": self.mapped,
            "options": options,
        }

    def __repr__(self) -> str:
        return f"FieldDescriptor(name='{self.name}', widget='{self.widget}', kind={self.kind.value})"

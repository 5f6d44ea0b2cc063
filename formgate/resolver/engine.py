"""
Dependency Field Resolver.

Builds the field list of an admin record form where some fields only
make sense once one or more parent fields have a value.

Resolution order:
    1. Independent fields, as configured
    2. Each dependency rule, in declaration order, whose parents are all
       satisfied (not None, not ""): the producer's fields
    3. One hidden state snapshot field holding every monitored parent's
       current value

Rules are flat: a rule whose parent is produced by another rule is not
re-evaluated after that rule fires, and no topological ordering happens.
Declare such chains at your own risk; they are unsupported.

A resolver instance belongs to one form-build pass. Build a new one per
request; nothing is cached between resolve() calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from formgate.accessor import PropertyAccessor
from formgate.config import FormgateSettings
from formgate.events import DataDto, EventBus, FieldsResolvedEvent, PreCreateStateEvent
from formgate.fields import FieldDescriptor
from formgate.observability import ResolutionLogger

from .changes import changed_parents, encode_state
from .lookup import ValueLookup
from .rules import DependencyRule, Producer, is_satisfied

if TYPE_CHECKING:
    from formgate.bridge import ResolverDataBridge
    from formgate.context import AdminContextProvider

logger = logging.getLogger(__name__)


class DependencyFieldResolver:
    """
    Resolves the fields of a dependency-aware admin form.

    Example:
        resolver = (
            DependencyFieldResolver(bridge, contexts)
            .configure_fields(lambda: [
                FieldDescriptor.text("name"),
                FieldDescriptor.for_relation("category", categories),
            ])
            .depends_on("category", lambda values: FieldDescriptor.for_relation(
                "subcategory",
                InMemoryRelationStore(subcategories_of(values["category"])),
            ))
        )

        fields = resolver.resolve_fields()
    """

    def __init__(
        self,
        bridge: ResolverDataBridge,
        contexts: AdminContextProvider,
        *,
        accessor: PropertyAccessor | None = None,
        events: EventBus | None = None,
        settings: FormgateSettings | None = None,
    ) -> None:
        self._bridge = bridge
        self._contexts = contexts
        self._events = events
        self._settings = settings or FormgateSettings()
        self._lookup = ValueLookup(bridge, contexts, accessor)

        self._independent_fields: list[FieldDescriptor] = []
        self._rules: list[DependencyRule] = []
        self._monitored_parents: dict[str, None] = {}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure_fields(
        self,
        producer: Callable[[], Iterable[FieldDescriptor]],
    ) -> DependencyFieldResolver:
        """Replace the independent fields with the result of ``producer()``."""
        self._independent_fields = list(producer())
        return self

    def depends_on(
        self,
        parents: str | Iterable[str],
        producer: Producer,
    ) -> DependencyFieldResolver:
        """
        Register fields that need ``parents`` to have a value.

        Args:
            parents: One parent name or an ordered collection of names
            producer: Called with {parent: value}; returns a descriptor,
                an iterable of descriptors, or None

        Raises:
            DependencyConfigurationError: On empty parents or a
                non-callable producer
        """
        rule = DependencyRule.create(parents, producer)
        self._rules.append(rule)
        for parent in rule.parents:
            self._monitored_parents.setdefault(parent, None)
        return self

    @property
    def independent_fields(self) -> list[FieldDescriptor]:
        return list(self._independent_fields)

    @property
    def rules(self) -> list[DependencyRule]:
        return list(self._rules)

    @property
    def monitored_parents(self) -> list[str]:
        return list(self._monitored_parents)

    @property
    def state_field_name(self) -> str:
        return self._settings.state_field_name

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self) -> Iterator[FieldDescriptor]:
        """
        Lazily yield independent fields, unlocked dependent fields and
        the state snapshot field, in that order.

        Producer exceptions propagate and abort the pass.
        """
        log = self._resolution_logger()
        log.resolution_started(
            independent_count=len(self._independent_fields),
            rule_count=len(self._rules),
        )
        produced_names: list[str] = []

        for field in self._independent_fields:
            produced_names.append(field.name)
            yield field

        for rule in self._rules:
            values = self._parent_values(rule, log)
            if values is None:
                continue

            fields = rule.produce(values)
            log.rule_fired(
                parents=list(rule.parents),
                produced=[getattr(f, "name", repr(f)) for f in fields],
            )
            for field in fields:
                produced_names.append(getattr(field, "name", repr(field)))
                yield field

        state_field = self.create_state_field()
        produced_names.append(state_field.name)
        log.resolution_completed(field_names=produced_names)
        yield state_field

    def resolve_fields(self) -> list[FieldDescriptor]:
        """
        Resolve eagerly and let FieldsResolvedEvent handlers adjust the list.

        Only FieldDescriptor entries of the final list are returned.
        """
        fields = tuple(self.resolve())
        event = FieldsResolvedEvent(fields=fields)
        if self._events is not None:
            event = self._events.dispatch(event)
        return event.descriptors

    def _parent_values(
        self,
        rule: DependencyRule,
        log: ResolutionLogger,
    ) -> dict[str, Any] | None:
        values: dict[str, Any] = {}
        for parent in rule.parents:
            value = self.get_value(parent)
            if not is_satisfied(value):
                log.rule_skipped(parents=list(rule.parents), missing=parent)
                return None
            values[parent] = value
        return values

    def get_value(self, name: str, default: Any = None) -> Any:
        """Current value of a field: bridge, then submission, then record."""
        return self._lookup.get_value(name, default)

    def is_form_page(self, page_name: str) -> bool:
        return page_name in self._settings.form_pages

    # ------------------------------------------------------------------
    # State snapshot
    # ------------------------------------------------------------------

    def current_state(self) -> dict[str, Any]:
        """Current value of every monitored parent, as stored in the snapshot."""
        return {
            parent: self._state_value(parent, self.get_value(parent))
            for parent in self._monitored_parents
        }

    def create_state_field(self) -> FieldDescriptor:
        state = DataDto(self.current_state())
        if self._events is not None:
            state = self._events.dispatch(PreCreateStateEvent(state=state)).state

        return FieldDescriptor.hidden(
            self.state_field_name,
            data=encode_state(state.all()),
            mapped=False,
        )

    def _state_value(self, name: str, value: Any) -> Any:
        # Relation parents are stored by identifier, not by record
        descriptor = self._find_independent(name)
        if descriptor is None or descriptor.relation is None:
            return value
        if isinstance(value, (list, tuple)):
            return [descriptor.relation.identify(v) for v in value]
        return descriptor.relation.identify(value)

    def _find_independent(self, name: str) -> FieldDescriptor | None:
        for field in self._independent_fields:
            if getattr(field, "name", None) == name:
                return field
        return None

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    def detect_changes(self, submitted: Mapping[str, Any]) -> list[str]:
        """
        Parents whose submitted value differs from the embedded snapshot.

        ``submitted`` is the form's namespaced submission, including the
        state snapshot field.
        """
        return changed_parents(
            submitted,
            self._monitored_parents,
            submitted.get(self.state_field_name),
        )

    def _resolution_logger(self) -> ResolutionLogger:
        context = self._contexts.get_context()
        return ResolutionLogger(form_name=context.form_name if context else "")

    def __repr__(self) -> str:
        return (
            f"DependencyFieldResolver(independent={len(self._independent_fields)}, "
            f"rules={len(self._rules)}, parents={self.monitored_parents})"
        )

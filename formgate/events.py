"""
Resolver events for formgate.

Events are immutable notification records dispatched synchronously, in
registration order, to the handlers subscribed on an EventBus.

A handler that wants to change what the caller sees returns a new event
of the same type (built with the event's with_*() helpers); that event
replaces the original for the remaining handlers and for the caller.
A handler returning None leaves the event untouched.

Dispatched events:
- DataRecoveredEvent: bridge data is about to be written back onto a form
- FieldRehydrateEvent: one field is about to receive its recovered value
- FieldsResolvedEvent: the resolver produced its final field list
- PreCreateStateEvent: the state snapshot is about to be serialized
- DependencyChangedEvent: a submission changed a parent field
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, TypeVar

from .fields import FieldDescriptor

if TYPE_CHECKING:
    from .context import AdminContext
    from .forms import Form, FormField

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

EventHandler = Callable[[Any], "Event | None"]


# =============================================================================
# Data DTO
# =============================================================================


class DataDto:
    """
    Mutable bag of name -> value pairs carried by events.

    Example:
        dto = DataDto({"category": "3"})
        dto.set("name", "Draft").remove("category")
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> DataDto:
        self._data[key] = value
        return self

    def has(self, key: str) -> bool:
        return key in self._data

    def all(self) -> dict[str, Any]:
        return dict(self._data)

    def remove(self, key: str) -> DataDto:
        self._data.pop(key, None)
        return self

    def copy(self) -> DataDto:
        return DataDto(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DataDto):
            return self._data == other._data
        return NotImplemented

    def __repr__(self) -> str:
        return f"DataDto({self._data!r})"


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True)
class Event:
    """Base class for all resolver events."""

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def derive(self: E, **changes: Any) -> E:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type}


@dataclass(frozen=True, kw_only=True, slots=True)
class DataRecoveredEvent(Event):
    """
    Bridge data was recovered after a redirect.

    Handlers may return with_post_data() to add or drop recovered
    entries before they are written onto the form.
    """

    context: AdminContext | None
    form: Form
    post_data: DataDto

    def with_post_data(self, post_data: DataDto | dict[str, Any]) -> DataRecoveredEvent:
        if not isinstance(post_data, DataDto):
            post_data = DataDto(post_data)
        return self.derive(post_data=post_data)

    def to_dict(self) -> dict[str, Any]:
        base = Event.to_dict(self)
        base["fields"] = list(self.post_data.all())
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class FieldRehydrateEvent(Event):
    """
    A recovered value is about to be written onto a form field.

    The value of the event returned by the bus is authoritative.
    """

    context: AdminContext | None
    field: FormField
    name: str
    value: Any = None

    def with_value(self, value: Any) -> FieldRehydrateEvent:
        return self.derive(value=value)

    def to_dict(self) -> dict[str, Any]:
        base = Event.to_dict(self)
        base["name"] = self.name
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class FieldsResolvedEvent(Event):
    """The resolver produced its field list; handlers may replace it."""

    fields: tuple[Any, ...] = ()

    def with_fields(
        self,
        fields: Iterable[Any] | Callable[[], Iterable[Any]],
    ) -> FieldsResolvedEvent:
        if callable(fields):
            fields = fields()
        return self.derive(fields=tuple(fields))

    @property
    def descriptors(self) -> list[FieldDescriptor]:
        """Only the FieldDescriptor entries of the field list."""
        return [f for f in self.fields if isinstance(f, FieldDescriptor)]

    def to_dict(self) -> dict[str, Any]:
        base = Event.to_dict(self)
        base["fields"] = [f.name for f in self.descriptors]
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class PreCreateStateEvent(Event):
    """The state snapshot is about to be serialized."""

    state: DataDto = field(default_factory=DataDto)

    def with_state(self, state: DataDto | dict[str, Any]) -> PreCreateStateEvent:
        if not isinstance(state, DataDto):
            state = DataDto(state)
        return self.derive(state=state)


@dataclass(frozen=True, kw_only=True, slots=True)
class DependencyChangedEvent(Event):
    """
    A submission changed one or more parent fields.

    The submitted data has been persisted on the bridge; ``response`` is
    the redirect the HTTP layer is about to send. Handlers may swap it.
    """

    context: AdminContext | None
    post_data: DataDto
    response: Any = None
    changed: tuple[str, ...] = ()

    def with_response(self, response: Any) -> DependencyChangedEvent:
        return self.derive(response=response)

    def to_dict(self) -> dict[str, Any]:
        base = Event.to_dict(self)
        base["changed"] = list(self.changed)
        return base


# =============================================================================
# Event Bus
# =============================================================================


class EventBus:
    """
    Synchronous, ordered event dispatcher.

    Example:
        bus = EventBus()

        def upper_name(event: FieldRehydrateEvent):
            if event.name == "name":
                return event.with_value(event.value.upper())

        bus.subscribe(FieldRehydrateEvent, upper_name)
        event = bus.dispatch(FieldRehydrateEvent(...))
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[EventHandler]] = {}

    def subscribe(self, event_type: type[Event], handler: EventHandler) -> None:
        if not callable(handler):
            raise TypeError(f"Event handler must be callable, got {type(handler).__name__}")
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"[events] Subscribed {_handler_name(handler)} to {event_type.__name__}")

    def unsubscribe(self, event_type: type[Event], handler: EventHandler) -> bool:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def handlers_for(self, event_type: type[Event]) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def has_handlers(self, event_type: type[Event]) -> bool:
        return bool(self._handlers.get(event_type))

    def dispatch(self, event: E) -> E:
        """
        Deliver an event to its handlers in registration order.

        Returns:
            The event as left by the last handler that replaced it

        Raises:
            TypeError: If a handler returns something other than None or
                an event of the same type
            Exception: Handler exceptions propagate unchanged
        """
        for handler in self.handlers_for(type(event)):
            result = handler(event)
            if result is None:
                continue
            if not isinstance(result, type(event)):
                raise TypeError(
                    f"Handler {_handler_name(handler)} returned "
                    f"{type(result).__name__}, expected {event.event_type} or None"
                )
            event = result
        return event

    def clear(self) -> None:
        self._handlers.clear()


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", repr(handler))

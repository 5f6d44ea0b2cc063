"""
Observability for formgate.

Structured logging for dependency resolution so that "why did this
field not show up?" can be answered from the logs.

Every resolution event is written as one JSON object per line through
the standard logging module, so handlers, levels and formatters
configured by the host application apply. Nothing is serialized when
the "formgate.resolution" logger is not enabled for the level.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

RESOLUTION_LOGGER = "formgate.resolution"


class StructuredLogger(Protocol):
    """Logger taking key-value context instead of preformatted strings."""

    def debug(self, message: str, **context: Any) -> None:
        ...

    def info(self, message: str, **context: Any) -> None:
        ...


@dataclass
class JSONLogger:
    """
    Structured logger writing JSON lines onto a stdlib logger.

    Example output:
        {"timestamp": "2026-10-18T10:30:00+00:00", "level": "info",
         "message": "Resolution completed", "form": "Product",
         "field_count": 4}
    """

    name: str = RESOLUTION_LOGGER
    context: dict[str, Any] = field(default_factory=dict)

    def render(self, level: int, message: str, fields: dict[str, Any]) -> str:
        return json.dumps(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "message": message,
                **self.context,
                **fields,
            },
            default=str,
        )

    def _emit(self, level: int, message: str, fields: dict[str, Any]) -> None:
        target = logging.getLogger(self.name)
        if target.isEnabledFor(level):
            target.log(level, self.render(level, message, fields))

    def debug(self, message: str, **context: Any) -> None:
        self._emit(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._emit(logging.INFO, message, context)


@dataclass
class ResolutionLogger:
    """
    Named log events of dependency resolution.

    Example:
        log = ResolutionLogger(form_name="Product")
        log.resolution_started(independent_count=2, rule_count=1)
        log.rule_skipped(parents=["category"], missing="category")
        log.resolution_completed(field_names=["name", "category", "__resolver_state"])
    """

    form_name: str = ""
    inner: StructuredLogger | None = None

    def __post_init__(self) -> None:
        if self.inner is None:
            self.inner = JSONLogger(context={"form": self.form_name} if self.form_name else {})

    # Resolver
    def resolution_started(self, independent_count: int, rule_count: int) -> None:
        self.inner.debug(
            "Resolution started",
            independent_count=independent_count,
            rule_count=rule_count,
        )

    def rule_skipped(self, parents: list[str], missing: str) -> None:
        self.inner.debug("Dependency rule skipped", parents=parents, missing=missing)

    def rule_fired(self, parents: list[str], produced: list[str]) -> None:
        self.inner.debug(
            "Dependency rule fired",
            parents=parents,
            produced=produced,
            produced_count=len(produced),
        )

    def resolution_completed(self, field_names: list[str]) -> None:
        self.inner.info(
            "Resolution completed",
            fields=field_names,
            field_count=len(field_names),
        )

    # Bridge
    def bridge_persisted(self, field_names: list[str]) -> None:
        self.inner.info("Bridge payload persisted", fields=field_names)

    def dependency_changed(self, changed: list[str], redirect_to: str) -> None:
        self.inner.info(
            "Dependency changed, redirecting",
            changed=changed,
            redirect_to=redirect_to,
        )

    # Rehydration
    def rehydration_started(self, field_names: list[str]) -> None:
        self.inner.info("Rehydrating form from bridge", fields=field_names)

    def field_rehydrated(self, name: str, is_relation: bool, replaced: bool) -> None:
        self.inner.debug(
            "Field rehydrated",
            field=name,
            is_relation=is_relation,
            replaced_by_handler=replaced,
        )

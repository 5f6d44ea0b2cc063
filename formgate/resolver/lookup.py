"""
Layered value lookup for parent fields.

Sources, first hit wins:
    1. Data bridge (redirect snapshot). Once the bridge holds any data it
       is authoritative: a missing key yields the default and lower
       sources are not consulted.
    2. Live submission under the form's namespace.
    3. The persisted record bound to the admin context.

Without an admin context the lookup returns the default. Property access
failures on the record degrade to the default as well.
"""

from __future__ import annotations

import logging
from typing import Any

from formgate.accessor import PropertyAccessError, PropertyAccessor
from formgate.bridge import ResolverDataBridge
from formgate.context import AdminContextProvider

logger = logging.getLogger(__name__)


class ValueLookup:
    """
    Resolves the current value of a named field.

    Example:
        lookup = ValueLookup(bridge, StaticContextProvider(context))
        lookup.get_value("category")
    """

    def __init__(
        self,
        bridge: ResolverDataBridge,
        contexts: AdminContextProvider,
        accessor: PropertyAccessor | None = None,
    ) -> None:
        self._bridge = bridge
        self._contexts = contexts
        self._accessor = accessor or PropertyAccessor()

    def get_value(self, name: str, default: Any = None) -> Any:
        if self._bridge.has_data():
            return self._bridge.get(name, default)

        context = self._contexts.get_context()
        if context is None:
            return default

        submitted = context.submitted_data()
        if submitted.get(name) is not None:
            return submitted[name]

        try:
            value = self._accessor.get_value(context.entity.instance, name)
        except PropertyAccessError as e:
            logger.debug(f"[lookup] '{name}' not readable on record: {e}")
            return default
        except Exception as e:
            # Getter raised while reading the record
            logger.debug(f"[lookup] Reading '{name}' from record failed: {e}")
            return default
        return default if value is None else value

"""
Rehydration Pipeline for formgate.

After a dependency-triggered redirect, the GET that rebuilds the form
finds the submitted values on the data bridge. This pipeline writes
them back onto the freshly built form.

Flow (only on GET-style requests with bridge data):
    1. DataRecoveredEvent (once, handlers may edit the payload)
    2. For each recovered value whose field is on the form:
       a. Relation fields: raw identifiers -> records; the field's choice
          set is fixed to those records
       b. FieldRehydrateEvent (handlers may replace the value)
       c. The final value is written onto the field
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .config import FormgateSettings
from .events import DataDto, DataRecoveredEvent, EventBus, FieldRehydrateEvent
from .observability import ResolutionLogger
from .relations import normalize_relation_value

if TYPE_CHECKING:
    from .bridge import ResolverDataBridge
    from .context import AdminContext, AdminContextProvider
    from .forms import Form, FormField

logger = logging.getLogger(__name__)


class RehydrationPipeline:
    """
    Post-build form hook restoring bridge data.

    Example:
        form = Form.from_descriptors("Product", resolver.resolve_fields(), product)
        RehydrationPipeline(bridge, contexts, events).apply(form)
    """

    def __init__(
        self,
        bridge: ResolverDataBridge,
        contexts: AdminContextProvider,
        events: EventBus | None = None,
        *,
        settings: FormgateSettings | None = None,
    ) -> None:
        self._bridge = bridge
        self._contexts = contexts
        self._events = events or EventBus()
        self._settings = settings or FormgateSettings()

    def should_apply(self, context: AdminContext | None) -> bool:
        if context is None:
            return False
        method = context.request.method.upper()
        if method not in self._settings.rehydrate_methods:
            return False
        return self._bridge.has_data()

    def apply(self, form: Form) -> list[str]:
        """
        Write recovered bridge values onto ``form``.

        Returns:
            Names of the fields that received a recovered value (empty
            when the pipeline did not run)
        """
        context = self._contexts.get_context()
        if not self.should_apply(context):
            return []

        log = ResolutionLogger(form_name=form.name)

        recovered = self._events.dispatch(
            DataRecoveredEvent(
                context=context,
                form=form,
                post_data=DataDto(self._bridge.get_data()),
            )
        )
        payload = recovered.post_data.all()
        log.rehydration_started(field_names=list(payload))

        rehydrated: list[str] = []
        for name, value in payload.items():
            if not form.has(name):
                continue

            form_field = form.get(name)
            resolved = value
            if form_field.descriptor.is_relation:
                resolved = self._rehydrate_relation(form, form_field, value)

            event = self._events.dispatch(
                FieldRehydrateEvent(
                    context=context,
                    field=form.get(name),
                    name=name,
                    value=resolved,
                )
            )

            form.get(name).set_data(event.value)
            rehydrated.append(name)
            log.field_rehydrated(
                name=name,
                is_relation=form_field.descriptor.is_relation,
                replaced=event.value is not resolved,
            )

        return rehydrated

    def _rehydrate_relation(self, form: Form, form_field: FormField, value: Any) -> Any:
        descriptor = form_field.descriptor
        records = normalize_relation_value(value, descriptor.relation)

        # Choices are explicit now, lazy loaders no longer apply
        form.add(descriptor.with_choices(records))

        if descriptor.multiple:
            return records
        return records[0] if records else None

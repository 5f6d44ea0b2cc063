"""
Admin form endpoints for formgate.

Serves dependency-aware edit/new forms for the entities registered in
the CrudRegistry, rendered as JSON.

Request cycle:
    GET  /admin/{entity}/{pk}/edit
        Resolve fields (bridge > record), build the form, rehydrate it
        from the bridge if a redirect carried data.
    POST /admin/{entity}/{pk}/edit
        Compare submitted parents with the embedded snapshot.
        - changed: persist the submission on the bridge and redirect
          (303) back to the edit page, which rebuilds the form
        - unchanged: validate and save onto the record
"""
from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from formgate.accessor import PropertyAccessor
from formgate.bridge import ResolverDataBridge
from formgate.config import FormgateSettings
from formgate.context import (
    PAGE_EDIT,
    PAGE_NEW,
    AdminContext,
    EntityDto,
    RequestData,
    StaticContextProvider,
)
from formgate.events import DataDto, DependencyChangedEvent, EventBus
from formgate.fields import WIDGET_HIDDEN, FieldDescriptor
from formgate.forms import Form
from formgate.observability import ResolutionLogger
from formgate.rehydration import RehydrationPipeline
from formgate.relations import normalize_relation_value
from formgate.resolver import DependencyFieldResolver, is_satisfied

from ..crud import CrudController, CrudRegistry
from ..dependencies import get_bridge, get_event_bus, get_registry, get_settings
from ..formdata import parse_namespaced_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

Settings = Annotated[FormgateSettings, Depends(get_settings)]
Events = Annotated[EventBus, Depends(get_event_bus)]
Registry = Annotated[CrudRegistry, Depends(get_registry)]
Bridge = Annotated[ResolverDataBridge, Depends(get_bridge)]


# =============================================================================
# Helpers
# =============================================================================


class _FormBuild:
    """Per-request objects of one form-build pass."""

    def __init__(
        self,
        controller: CrudController,
        context: AdminContext,
        bridge: ResolverDataBridge,
        events: EventBus,
        settings: FormgateSettings,
    ) -> None:
        self.controller = controller
        self.context = context
        self.contexts = StaticContextProvider(context)
        self.bridge = bridge
        self.events = events
        self.settings = settings
        self.resolver = DependencyFieldResolver(
            bridge,
            self.contexts,
            events=events,
            settings=settings,
        )
        controller.configure(self.resolver)

    def build_form(self) -> Form:
        return Form.from_descriptors(
            self.controller.entity_name,
            self.resolver.resolve_fields(),
            self.context.entity.instance,
        )

    def rehydrate(self, form: Form) -> list[str]:
        pipeline = RehydrationPipeline(
            self.bridge,
            self.contexts,
            self.events,
            settings=self.settings,
        )
        return pipeline.apply(form)


def _controller(registry: CrudRegistry, entity: str) -> CrudController:
    controller = registry.get(entity)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Unknown entity '{entity}'")
    return controller


def _record(controller: CrudController, pk: str) -> Any:
    record = controller.find(pk)
    if record is None:
        raise HTTPException(
            status_code=404,
            detail=f"{controller.entity_name} '{pk}' not found",
        )
    return record


def _context(
    request: Request,
    controller: CrudController,
    instance: Any,
    pk: Any,
    page_name: str,
    submitted: dict[str, Any] | None = None,
) -> AdminContext:
    return AdminContext(
        entity=EntityDto(name=controller.entity_name, instance=instance, primary_key=pk),
        request=RequestData(
            method=request.method,
            url=str(request.url),
            form={controller.entity_name: submitted or {}},
        ),
        page_name=page_name,
    )


async def _submitted(request: Request, namespace: str) -> dict[str, Any]:
    form_data = await request.form()
    return parse_namespaced_form(form_data.multi_items(), namespace)


def _render(build: _FormBuild, form: Form, **extra: Any) -> dict[str, Any]:
    return {
        "entity": build.controller.entity_name,
        "page": build.context.page_name,
        "form": form.to_dict(),
        **extra,
    }


def _redirect_on_change(
    build: _FormBuild,
    submitted: dict[str, Any],
    redirect_to: str,
) -> Any | None:
    """Persist the submission and redirect if a parent field changed."""
    changed = build.resolver.detect_changes(submitted)
    if not changed:
        return None

    payload = {k: v for k, v in submitted.items() if k != build.resolver.state_field_name}
    build.bridge.persist(payload)

    log = ResolutionLogger(form_name=build.controller.entity_name)
    log.bridge_persisted(field_names=list(payload))
    log.dependency_changed(changed=changed, redirect_to=redirect_to)

    event = build.events.dispatch(
        DependencyChangedEvent(
            context=build.context,
            post_data=DataDto(payload),
            response=RedirectResponse(
                redirect_to,
                status_code=build.settings.redirect_status_code,
            ),
            changed=tuple(changed),
        )
    )
    return event.response


def _complete_submission(build: _FormBuild, submitted: dict[str, Any]) -> dict[str, Any]:
    """
    Add the multi-valued fields the browser left out of the post.

    A multi-select with nothing selected posts no ``ns[field][]`` pair at
    all; such fields are submitted as an empty list.
    """
    completed = dict(submitted)
    for descriptor in build.resolver.resolve():
        if not isinstance(descriptor, FieldDescriptor) or not descriptor.mapped:
            continue
        if descriptor.multiple and descriptor.name not in completed:
            completed[descriptor.name] = []
    return completed


def _submission_build(
    request: Request,
    controller: CrudController,
    instance: Any,
    pk: Any,
    page_name: str,
    submitted: dict[str, Any],
    bridge: ResolverDataBridge,
    events: EventBus,
    settings: FormgateSettings,
) -> tuple[_FormBuild, dict[str, Any]]:
    """Form build over the submission, completed with its omitted fields."""

    def build_for(data: dict[str, Any]) -> _FormBuild:
        context = _context(request, controller, instance, pk, page_name, data)
        return _FormBuild(controller, context, bridge, events, settings)

    completed = _complete_submission(build_for(submitted), submitted)
    return build_for(completed), completed


def _submitted_value(descriptor: FieldDescriptor, value: Any) -> Any:
    if descriptor.relation is None:
        return value
    records = normalize_relation_value(value, descriptor.relation)
    if descriptor.multiple:
        return records
    return records[0] if records else None


def _apply_submission(
    form: Form,
    submitted: dict[str, Any],
    instance: Any,
    accessor: PropertyAccessor,
) -> None:
    """
    Validate the submission and write mapped fields onto ``instance``.

    Relation values are resolved to records before the required check, so
    an identifier without a matching record counts as missing.

    Raises:
        HTTPException: 422 with the list of missing required fields
    """
    errors = []
    values: dict[str, Any] = {}
    for form_field in form:
        descriptor = form_field.descriptor
        if not descriptor.mapped:
            continue

        value = _submitted_value(descriptor, submitted.get(descriptor.name))
        if descriptor.required and descriptor.widget != WIDGET_HIDDEN:
            if not is_satisfied(value) or value == []:
                errors.append({"field": descriptor.name, "error": "This value is required"})
                continue
        if descriptor.name in submitted:
            values[descriptor.name] = value

    if errors:
        raise HTTPException(status_code=422, detail=errors)

    for name, value in values.items():
        accessor.set_value(instance, name, value)
        form.get(name).set_data(value)


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/{entity}/{pk}/edit", name="edit_record")
async def edit_form(
    request: Request,
    entity: str,
    pk: str,
    settings: Settings,
    events: Events,
    registry: Registry,
    bridge: Bridge,
) -> dict[str, Any]:
    """Render the edit form, rehydrated from the bridge after a redirect."""
    controller = _controller(registry, entity)
    record = _record(controller, pk)

    build = _FormBuild(
        controller,
        _context(request, controller, record, pk, PAGE_EDIT),
        bridge,
        events,
        settings,
    )
    form = build.build_form()
    rehydrated = build.rehydrate(form)
    return _render(build, form, rehydrated=rehydrated)


@router.post("/{entity}/{pk}/edit")
async def submit_edit_form(
    request: Request,
    entity: str,
    pk: str,
    settings: Settings,
    events: Events,
    registry: Registry,
    bridge: Bridge,
) -> Any:
    """Redirect on parent change, otherwise save the submission."""
    controller = _controller(registry, entity)
    record = _record(controller, pk)
    submitted = await _submitted(request, controller.entity_name)

    build, submitted = _submission_build(
        request, controller, record, pk, PAGE_EDIT, submitted, bridge, events, settings
    )

    redirect_to = str(request.url_for("edit_record", entity=entity, pk=pk))
    response = _redirect_on_change(build, submitted, redirect_to)
    if response is not None:
        return response

    form = build.build_form()
    _apply_submission(form, submitted, record, PropertyAccessor())
    logger.info(f"[admin] Saved {controller.entity_name} '{pk}'")
    return _render(build, form, saved=True)


@router.get("/{entity}/new", name="new_record")
async def new_form(
    request: Request,
    entity: str,
    settings: Settings,
    events: Events,
    registry: Registry,
    bridge: Bridge,
) -> dict[str, Any]:
    """Render an empty form, rehydrated from the bridge after a redirect."""
    controller = _controller(registry, entity)

    build = _FormBuild(
        controller,
        _context(request, controller, None, None, PAGE_NEW),
        bridge,
        events,
        settings,
    )
    form = build.build_form()
    rehydrated = build.rehydrate(form)
    return _render(build, form, rehydrated=rehydrated)


@router.post("/{entity}/new")
async def submit_new_form(
    request: Request,
    entity: str,
    settings: Settings,
    events: Events,
    registry: Registry,
    bridge: Bridge,
) -> Any:
    """Redirect on parent change, otherwise create the record."""
    controller = _controller(registry, entity)
    if controller.factory is None:
        raise HTTPException(
            status_code=405,
            detail=f"{controller.entity_name} records cannot be created here",
        )
    submitted = await _submitted(request, controller.entity_name)

    build, submitted = _submission_build(
        request, controller, None, None, PAGE_NEW, submitted, bridge, events, settings
    )

    redirect_to = str(request.url_for("new_record", entity=entity))
    response = _redirect_on_change(build, submitted, redirect_to)
    if response is not None:
        return response

    record = controller.factory()
    accessor = PropertyAccessor()
    form = build.build_form()
    _apply_submission(form, submitted, record, accessor)

    pk = controller.next_identifier()
    accessor.set_value(record, controller.id_field, pk)
    controller.records.add(record)
    logger.info(f"[admin] Created {controller.entity_name} '{pk}'")
    return _render(build, form, saved=True, id=pk)

"""
Dependency Injection for the formgate HTTP layer.

Provides the process-wide singletons (settings, event bus, CRUD
registry) and the per-request objects (data bridge, admin context)
that the admin router hands to the resolver.

Per-request objects are never shared: the bridge consumes its session
payload once, and a resolver belongs to a single form-build pass.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Request

from formgate.bridge import ResolverDataBridge
from formgate.config import FormgateSettings
from formgate.events import EventBus
from formgate.session import StarletteSessionProvider

from .crud import CrudRegistry

logger = logging.getLogger(__name__)


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@lru_cache()
def get_settings() -> FormgateSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return FormgateSettings(
        # Service
        service_name=os.getenv("FORMGATE_SERVICE_NAME", "formgate"),
        environment=os.getenv("FORMGATE_ENVIRONMENT", "development"),
        debug=os.getenv("FORMGATE_DEBUG", "false").lower() == "true",
        log_level=os.getenv("FORMGATE_LOG_LEVEL", "INFO"),
        # Resolver
        session_key=os.getenv("FORMGATE_SESSION_KEY", "formgate_resolver_data"),
        state_field_name=os.getenv("FORMGATE_STATE_FIELD_NAME", "__resolver_state"),
        form_pages=_env_list("FORMGATE_FORM_PAGES", "edit,new"),
        rehydrate_methods=_env_list("FORMGATE_REHYDRATE_METHODS", "GET"),
        # HTTP
        redirect_status_code=int(os.getenv("FORMGATE_REDIRECT_STATUS_CODE", "303")),
        session_secret=os.getenv("FORMGATE_SESSION_SECRET", "change-me"),
        session_cookie=os.getenv("FORMGATE_SESSION_COOKIE", "formgate_session"),
    )


# Global instances (initialized on first access)
_event_bus: Optional[EventBus] = None
_registry: Optional[CrudRegistry] = None


def get_event_bus() -> EventBus:
    """
    Get the application event bus.

    Handlers subscribed at startup receive the events of every request.
    """
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def get_registry() -> CrudRegistry:
    """Get the registry of CRUD controllers served by the admin router."""
    global _registry
    if _registry is None:
        _registry = CrudRegistry()
    return _registry


def reset_dependencies() -> None:
    """Drop the global instances (for tests)."""
    global _event_bus, _registry
    _event_bus = None
    _registry = None
    get_settings.cache_clear()


def get_bridge(
    request: Request,
    settings: Annotated[FormgateSettings, Depends(get_settings)],
) -> ResolverDataBridge:
    """Per-request data bridge over the Starlette session."""
    return ResolverDataBridge(
        StarletteSessionProvider(request),
        session_key=settings.session_key,
    )

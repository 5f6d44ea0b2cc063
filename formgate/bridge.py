"""
Resolver Data Bridge for formgate.

Carries a snapshot of submitted field values across one HTTP redirect.

Lifecycle:
    1. The POST handler detects a dependency change and calls persist()
    2. The browser follows the redirect
    3. The GET handler's bridge lazily loads the payload and deletes it
       from the session (read-and-clear)
    4. Any later request sees an empty bridge

At most one unconsumed payload exists per session; persist() overwrites.
Two concurrent requests in the same session racing to consume the payload
is an accepted limitation for single-user admin sessions.
"""

from __future__ import annotations

import logging
from typing import Any

from .session import SessionProvider

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "formgate_resolver_data"


class ResolverDataBridge:
    """
    Request-scoped bridge over a session-backed payload.

    Create one instance per request. The payload is loaded at most once
    per instance; the cached copy survives for the instance lifetime.

    Example:
        bridge = ResolverDataBridge(StarletteSessionProvider(request))

        # POST: dependency changed
        bridge.persist({"category": "3", "name": "Draft"})

        # Following GET (new bridge instance)
        if bridge.has_data():
            category = bridge.get("category")
    """

    def __init__(
        self,
        sessions: SessionProvider,
        *,
        session_key: str = DEFAULT_SESSION_KEY,
    ) -> None:
        self._sessions = sessions
        self._session_key = session_key
        self._data: dict[str, Any] | None = None

    @property
    def session_key(self) -> str:
        return self._session_key

    @property
    def is_loaded(self) -> bool:
        """Whether the lazy load has already run for this instance."""
        return self._data is not None

    def _load_data(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        try:
            session = self._sessions.get_session()
            if session.has(self._session_key):
                stored = session.get(self._session_key)
                session.remove(self._session_key)
                self._data = dict(stored or {})
                logger.debug(
                    f"[bridge] Consumed payload from session: keys={list(self._data)}"
                )
                return self._data
        except Exception as e:
            # No session (CLI, background job, missing middleware)
            logger.debug(f"[bridge] Session unavailable, bridge is empty: {e}")

        self._data = {}
        return self._data

    def get_data(self) -> dict[str, Any]:
        """Return a copy of the full loaded payload (may be empty)."""
        return dict(self._load_data())

    def has_data(self) -> bool:
        return bool(self._load_data())

    def get(self, key: str, default: Any = None) -> Any:
        value = self._load_data().get(key)
        return default if value is None else value

    def persist(self, data: dict[str, Any]) -> None:
        """
        Store a payload for the next request, overwriting any unconsumed one.

        Raises:
            SessionUnavailableError: If there is no active session
        """
        self._sessions.get_session().set(self._session_key, dict(data))
        logger.debug(f"[bridge] Persisted payload: keys={list(data)}")

    def __repr__(self) -> str:
        state = "loaded" if self.is_loaded else "pending"
        return f"ResolverDataBridge(session_key='{self._session_key}', {state})"

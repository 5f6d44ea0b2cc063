"""
Session Store Protocol for formgate.

Defines the minimal key/value interface the data bridge needs from an
HTTP session, plus the provider that hands out the session for the
current request.

Obtaining a session can fail (no HTTP request, session middleware not
installed, CLI invocation). Providers signal that with
SessionUnavailableError so the bridge can treat it as "no data".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .errors import FormgateError

if TYPE_CHECKING:
    from starlette.requests import Request


class SessionUnavailableError(FormgateError):
    """Raised when there is no active session for the current request."""

    pass


@runtime_checkable
class SessionStore(Protocol):
    """
    Key/value session storage.

    Example implementations:
    - InMemorySession (tests, CLI)
    - StarletteSession (cookie-backed request.session)
    """

    def has(self, key: str) -> bool:
        ...

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> Any:
        ...


@runtime_checkable
class SessionProvider(Protocol):
    """
    Hands out the session bound to the current request.

    Raises:
        SessionUnavailableError: If no session can be obtained
    """

    def get_session(self) -> SessionStore:
        ...


class InMemorySession:
    """Dictionary-backed session, shared by reference between requests."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data if data is not None else {}

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> Any:
        return self._data.pop(key, None)

    def all(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"InMemorySession(keys={list(self._data)})"


class StarletteSession:
    """
    Adapter over Starlette's request.session mapping.

    Values must be JSON-serializable since SessionMiddleware stores the
    session in a signed cookie.
    """

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> Any:
        return self._data.pop(key, None)


class StaticSessionProvider:
    """
    Provider returning a fixed session, or failing when none is given.

    StaticSessionProvider(None) models a non-HTTP invocation context.
    """

    def __init__(self, session: SessionStore | None) -> None:
        self._session = session

    def get_session(self) -> SessionStore:
        if self._session is None:
            raise SessionUnavailableError("No session available in this context")
        return self._session


class StarletteSessionProvider:
    """Provider reading the session from a Starlette request."""

    def __init__(self, request: Request) -> None:
        self._request = request

    def get_session(self) -> SessionStore:
        # request.session asserts when SessionMiddleware is not installed
        if "session" not in self._request.scope:
            raise SessionUnavailableError(
                "SessionMiddleware must be installed to use the data bridge"
            )
        return StarletteSession(self._request.session)

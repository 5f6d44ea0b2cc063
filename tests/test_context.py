"""
Tests for admin contexts and session providers.
"""
from unittest.mock import MagicMock

import pytest

from formgate import (
    AdminContext,
    ContextVarProvider,
    EntityDto,
    InMemorySession,
    RequestData,
    SessionStore,
    SessionUnavailableError,
    StaticSessionProvider,
)
from formgate.session import StarletteSession, StarletteSessionProvider


class TestAdminContext:
    def test_submitted_data_uses_form_namespace(self):
        context = AdminContext(
            entity=EntityDto(name="Product"),
            request=RequestData(
                method="post",
                form={"Product": {"name": "Pen"}, "Other": {"name": "x"}},
            ),
        )

        assert context.form_name == "Product"
        assert context.submitted_data() == {"name": "Pen"}
        assert context.request.is_method("POST") is True

    def test_missing_namespace_is_empty(self):
        assert RequestData().all("Product") == {}


class TestContextVarProvider:
    def test_bound_only_inside_block(self, make_context):
        provider = ContextVarProvider()
        context = make_context()

        assert provider.get_context() is None
        with provider.bind(context) as bound:
            assert bound is context
            assert provider.get_context() is context
        assert provider.get_context() is None

    def test_nested_binding_restored(self, make_context):
        provider = ContextVarProvider()
        outer, inner = make_context(name="Outer"), make_context(name="Inner")

        with provider.bind(outer):
            with provider.bind(inner):
                assert provider.get_context().form_name == "Inner"
            assert provider.get_context().form_name == "Outer"


class TestSessions:
    def test_in_memory_session(self):
        session = InMemorySession()
        session.set("a", 1)

        assert isinstance(session, SessionStore)
        assert session.has("a") is True
        assert session.remove("a") == 1
        assert session.remove("a") is None
        assert session.get("a", "d") == "d"

    def test_static_provider_without_session(self):
        with pytest.raises(SessionUnavailableError):
            StaticSessionProvider(None).get_session()

    def test_starlette_provider_requires_middleware(self):
        request = MagicMock()
        request.scope = {}

        with pytest.raises(SessionUnavailableError):
            StarletteSessionProvider(request).get_session()

    def test_starlette_provider_wraps_request_session(self):
        data = {}
        request = MagicMock()
        request.scope = {"session": data}
        request.session = data

        session = StarletteSessionProvider(request).get_session()
        session.set("k", "v")

        assert isinstance(session, StarletteSession)
        assert data == {"k": "v"}

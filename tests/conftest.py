"""
Pytest configuration and fixtures for formgate tests.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Add the repository root to path for imports
# This allows `from formgate import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from formgate import (  # noqa: E402
    AdminContext,
    EntityDto,
    EventBus,
    InMemoryRelationStore,
    InMemorySession,
    RequestData,
    ResolverDataBridge,
    StaticContextProvider,
    StaticSessionProvider,
)


@dataclass
class Category:
    id: int
    name: str


@dataclass
class Tag:
    id: int
    label: str


@dataclass
class Product:
    id: int | None = None
    name: str = ""
    category: Any = None
    subcategory: Any = None
    tags: list[Any] = field(default_factory=list)


@pytest.fixture
def session():
    """Session shared between the 'requests' of one test."""
    return InMemorySession()


@pytest.fixture
def make_bridge(session):
    """Factory for request-scoped bridges over the shared session."""

    def _make() -> ResolverDataBridge:
        return ResolverDataBridge(StaticSessionProvider(session))

    return _make


@pytest.fixture
def bridge(make_bridge):
    return make_bridge()


@pytest.fixture
def categories():
    return InMemoryRelationStore([
        Category(1, "Books"),
        Category(2, "Music"),
        Category(7, "Games"),
    ])


@pytest.fixture
def tags():
    return InMemoryRelationStore([
        Tag(1, "new"),
        Tag(2, "sale"),
        Tag(3, "rare"),
    ])


@pytest.fixture
def product(categories):
    return Product(id=1, name="Chess set", category=categories.get(7))


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def make_context():
    """Factory for admin contexts with an optional live submission."""

    def _make(
        instance: Any = None,
        submitted: dict[str, Any] | None = None,
        method: str = "GET",
        name: str = "Product",
        page_name: str = "edit",
    ) -> AdminContext:
        return AdminContext(
            entity=EntityDto(name=name, instance=instance),
            request=RequestData(method=method, form={name: submitted or {}}),
            page_name=page_name,
        )

    return _make


@pytest.fixture
def contexts(make_context, product):
    """Provider for an edit page of ``product`` without submission."""
    return StaticContextProvider(make_context(instance=product))

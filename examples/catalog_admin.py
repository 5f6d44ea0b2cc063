"""
Catalog Admin Example

A product edit form where the subcategory chooser only appears once a
category is picked, and only offers that category's subcategories.

Changing the category and submitting redirects back to the edit page,
which rebuilds the form with the new subcategory choices and the values
the user had typed.

Run: uvicorn examples.catalog_admin:app --reload
Then: GET http://localhost:8000/admin/Product/1/edit
"""

from dataclasses import dataclass, field
from typing import Any

from formgate import (
    DependencyFieldResolver,
    FieldDescriptor,
    FieldRehydrateEvent,
    InMemoryRelationStore,
    RelationConfig,
)
from formgate.app import CrudController
from formgate.app.dependencies import get_event_bus, get_registry
from formgate.app.main import create_app

# =============================================================================
# Records
# =============================================================================


@dataclass
class Category:
    id: int
    name: str


@dataclass
class Subcategory:
    id: int
    name: str
    category_id: int


@dataclass
class Product:
    id: int | None = None
    name: str = ""
    category: Category | None = None
    subcategory: Subcategory | None = None
    tags: list[Any] = field(default_factory=list)


categories = InMemoryRelationStore([
    Category(1, "Books"),
    Category(2, "Music"),
])

subcategories = InMemoryRelationStore([
    Subcategory(10, "Fiction", 1),
    Subcategory(11, "Poetry", 1),
    Subcategory(20, "Jazz", 2),
])

products = InMemoryRelationStore([
    Product(1, "Kind of Blue", categories.get(2), subcategories.get(20)),
    Product(2, "Untitled draft"),
])


# =============================================================================
# Form configuration
# =============================================================================


def subcategory_field(values: dict[str, Any]) -> FieldDescriptor:
    category = values["category"]
    category_id = getattr(category, "id", category)
    choices = subcategories.find_by("category_id", [category_id])
    return FieldDescriptor.for_relation(
        "subcategory",
        RelationConfig(store=InMemoryRelationStore(choices), label_field="name"),
        label="Subcategory",
        options={"choices": choices},
    )


def configure_product(resolver: DependencyFieldResolver) -> None:
    resolver.configure_fields(lambda: [
        FieldDescriptor.text("name", label="Name", required=True),
        FieldDescriptor.for_relation(
            "category",
            RelationConfig(store=categories, label_field="name"),
            label="Category",
            options={"choices": categories.all()},
        ),
    ]).depends_on("category", subcategory_field)


def strip_name(event: FieldRehydrateEvent) -> FieldRehydrateEvent | None:
    if event.name == "name" and isinstance(event.value, str):
        return event.with_value(event.value.strip())
    return None


get_registry().register(CrudController(
    entity_name="Product",
    records=products,
    configure=configure_product,
    factory=Product,
))
get_event_bus().subscribe(FieldRehydrateEvent, strip_name)

app = create_app()

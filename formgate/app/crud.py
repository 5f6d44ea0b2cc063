"""
CRUD controllers served by the admin router.

A controller names an entity, says where its records live and how its
form resolver is configured. The router builds a fresh resolver per
request and passes it to ``configure``.

Example:
    def configure_product(resolver: DependencyFieldResolver) -> None:
        resolver.configure_fields(lambda: [
            FieldDescriptor.text("name", required=True),
            FieldDescriptor.for_relation("category", categories),
        ]).depends_on("category", subcategory_field)

    registry.register(CrudController(
        entity_name="Product",
        records=products,
        configure=configure_product,
        factory=Product,
    ))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from formgate.errors import FormgateError

if TYPE_CHECKING:
    from formgate.relations import InMemoryRelationStore
    from formgate.resolver import DependencyFieldResolver

logger = logging.getLogger(__name__)


class CrudRegistryError(FormgateError):
    """Error in CRUD registry operations."""

    pass


@dataclass(frozen=True, slots=True)
class CrudController:
    """
    Admin configuration of one entity.

    Attributes:
        entity_name: Form namespace and URL segment (e.g. "Product")
        records: Store holding the entity's records
        configure: Declares the resolver's fields and rules
        factory: Builds an empty record for "new" pages
        id_field: Identifier property of the records
    """

    entity_name: str
    records: InMemoryRelationStore
    configure: Callable[[DependencyFieldResolver], Any]
    factory: Callable[[], Any] | None = None
    id_field: str = "id"

    def find(self, identifier: Any) -> Any | None:
        return self.records.get(identifier)

    def next_identifier(self) -> int:
        ids = [getattr(r, self.id_field, None) for r in self.records.all()]
        numeric = [i for i in ids if isinstance(i, int)]
        return max(numeric, default=0) + 1


class CrudRegistry:
    """Registry of CRUD controllers, keyed by entity name."""

    def __init__(self) -> None:
        self._controllers: dict[str, CrudController] = {}

    def register(self, controller: CrudController) -> None:
        """
        Register a controller.

        Raises:
            CrudRegistryError: If the entity name is already registered
        """
        if controller.entity_name in self._controllers:
            raise CrudRegistryError(
                f"Entity '{controller.entity_name}' already registered"
            )
        self._controllers[controller.entity_name] = controller
        logger.info(f"[crud_registry] Registered entity: {controller.entity_name}")

    def get(self, entity_name: str) -> CrudController | None:
        return self._controllers.get(entity_name)

    def list_entities(self) -> list[str]:
        return list(self._controllers)

    def __contains__(self, entity_name: object) -> bool:
        return entity_name in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)

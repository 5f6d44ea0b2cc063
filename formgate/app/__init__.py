"""
formgate HTTP layer.

FastAPI adapter serving dependency-aware admin forms:
- create_app(): application factory with session support
- CrudController / CrudRegistry: which entities are served and how
  their resolvers are configured
- parse_namespaced_form(): ``Product[field]`` form posts to mappings
"""

from .crud import CrudController, CrudRegistry, CrudRegistryError
from .formdata import namespaced_items, parse_namespaced_form

__all__ = [
    "CrudController",
    "CrudRegistry",
    "CrudRegistryError",
    "parse_namespaced_form",
    "namespaced_items",
]

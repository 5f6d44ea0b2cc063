"""
formgate Configuration

Typed settings shared by the resolver and the HTTP adapter.
"""

from .schemas import DEFAULT_STATE_FIELD, FormgateSettings

__all__ = [
    "DEFAULT_STATE_FIELD",
    "FormgateSettings",
]

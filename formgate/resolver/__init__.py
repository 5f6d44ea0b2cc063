"""
Dependency resolution engine.

- DependencyFieldResolver: independent fields, gated dependent fields,
  state snapshot
- ValueLookup: bridge -> submission -> record value resolution
- DependencyRule: parents + producer records
- changed_parents: compares a submission with its embedded snapshot
"""

from .changes import changed_parents, decode_state, encode_state
from .engine import DependencyFieldResolver
from .lookup import ValueLookup
from .rules import DependencyConfigurationError, DependencyRule, is_satisfied

__all__ = [
    "DependencyFieldResolver",
    "ValueLookup",
    "DependencyRule",
    "DependencyConfigurationError",
    "is_satisfied",
    "changed_parents",
    "decode_state",
    "encode_state",
]

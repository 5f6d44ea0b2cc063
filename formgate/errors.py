"""
Exception hierarchy for formgate.

Module-specific exceptions (session, property access, rule configuration)
subclass FormgateError so callers can catch everything from one root.
"""

from __future__ import annotations


class FormgateError(Exception):
    """Base exception for formgate errors."""

    pass

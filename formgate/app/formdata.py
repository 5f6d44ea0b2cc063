"""
Namespaced form data parsing.

Admin forms post their fields as ``Product[name]=...`` and multi-valued
fields as ``Product[tags][]=1&Product[tags][]=2``. This module turns
those flat pairs back into {field: value} for one form namespace.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

_KEY_PATTERN = re.compile(r"^(?P<namespace>[^\[\]]+)\[(?P<field>[^\[\]]+)\](?P<multi>\[\])?$")


def parse_namespaced_form(
    items: Iterable[tuple[str, Any]],
    namespace: str,
) -> dict[str, Any]:
    """
    Collect the values posted under ``namespace``.

    Keys outside the namespace, or not in ``ns[field]`` form, are ignored.
    A key ending in ``[]`` always yields a list, even for a single value.

    Example:
        >>> parse_namespaced_form(
        ...     [("Product[name]", "Pen"), ("Product[tags][]", "1"), ("q", "x")],
        ...     "Product",
        ... )
        {'name': 'Pen', 'tags': ['1']}
    """
    parsed: dict[str, Any] = {}
    for key, value in items:
        match = _KEY_PATTERN.match(key)
        if match is None or match.group("namespace") != namespace:
            continue

        field = match.group("field")
        if match.group("multi"):
            parsed.setdefault(field, []).append(value)
        else:
            parsed[field] = value
    return parsed


def namespaced_items(data: dict[str, Any], namespace: str) -> list[tuple[str, Any]]:
    """Inverse of parse_namespaced_form, for building form posts."""
    items: list[tuple[str, Any]] = []
    for field, value in data.items():
        if isinstance(value, (list, tuple)):
            items.extend((f"{namespace}[{field}][]", v) for v in value)
        else:
            items.append((f"{namespace}[{field}]", value))
    return items

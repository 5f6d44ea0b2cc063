"""
Dependency change detection.

Every resolved form embeds a snapshot of its parent values. When the
form comes back as a submission, comparing the submitted parent values
with that snapshot tells whether the user changed a parent, in which
case the form has to be rebuilt (redirect + rehydrate) instead of saved.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

logger = logging.getLogger(__name__)


def encode_state(state: Mapping[str, Any]) -> str:
    """Serialize a state snapshot as compact JSON."""
    return json.dumps(dict(state), default=str, separators=(",", ":"))


def decode_state(raw: Any) -> dict[str, Any] | None:
    """
    Decode an embedded snapshot.

    Returns:
        The snapshot mapping, or None if it is missing or unreadable
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        state = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"[changes] Unreadable resolver state: {e}")
        return None
    if not isinstance(state, dict):
        logger.warning(f"[changes] Resolver state is not a mapping: {type(state).__name__}")
        return None
    return state


def _comparable(value: Any) -> Any:
    # Submitted values are strings; snapshot values may be ints or lists
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, (list, tuple, set)):
        return sorted(_comparable(v) for v in value)
    return str(value)


def changed_parents(
    submitted: Mapping[str, Any],
    parents: Iterable[str],
    previous_state: Any,
) -> list[str]:
    """
    List the parents whose submitted value differs from the snapshot.

    Parents absent from the submission are left out (the field was not
    rendered, so it cannot have changed). An unreadable snapshot means
    nothing changed.
    """
    state = decode_state(previous_state)
    if state is None:
        return []

    changed = []
    for parent in parents:
        if parent not in submitted:
            continue
        if _comparable(submitted[parent]) != _comparable(state.get(parent)):
            changed.append(parent)
    return changed

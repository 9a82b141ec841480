"""JSON format adapter."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, cast

from astid.registry import IdentityRegistry

if TYPE_CHECKING:
    from astid.persistence import RegistryState


def to_json(
    obj: IdentityRegistry | RegistryState,
    *,
    indent: int | None = 2,
) -> str:
    """Serialize a registry's durable state to a JSON string.

    Args:
        obj: A registry, or state already exported from one
        indent: JSON indentation level (default 2, None for compact)

    Returns:
        JSON string representation

    """
    state = obj.export_state() if isinstance(obj, IdentityRegistry) else obj
    return json.dumps(state, indent=indent)


def from_json(s: str) -> RegistryState:
    """Deserialize a JSON string to registry state.

    The result is not validated; ``IdentityRegistry.load_state`` skips
    malformed entries.

    Args:
        s: JSON string to deserialize

    Returns:
        Registry state ready for ``IdentityRegistry.load_state``

    Raises:
        json.JSONDecodeError: If the string is not valid JSON
        ValueError: If the JSON document is not an object

    """
    data: Any = json.loads(s)
    if not isinstance(data, dict):
        msg = "Expected JSON object with 'idMap' and 'fingerprints' fields"
        raise ValueError(msg)
    return cast("RegistryState", data)

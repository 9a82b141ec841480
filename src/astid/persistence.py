"""Conversion of registry state to and from JSON-compatible builtins.

The persisted shape is shared with diagram layout files:

    {"idMap": {"<fingerprintKey>": "<identity>"},
     "fingerprints": {"<identity>": {"astType": ..., "containmentProperty": ...,
                                      "siblingIndex": 0, "parentUuid": ...,
                                      "name": ..., "lastOffset": 0}}}

``name`` and ``lastOffset`` are omitted when unknown.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict

from astid.errors import FingerprintError
from astid.fingerprint import StructuralFingerprint

logger = logging.getLogger(__name__)


class SerializedFingerprint(TypedDict):
    """Serialized structural fingerprint."""

    astType: str
    containmentProperty: str
    siblingIndex: int
    parentUuid: str
    name: NotRequired[str]
    lastOffset: NotRequired[int]


class RegistryState(TypedDict):
    """Serialized durable registry state."""

    idMap: dict[str, str]
    fingerprints: dict[str, SerializedFingerprint]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def fingerprint_to_dict(fp: StructuralFingerprint) -> SerializedFingerprint:
    """Serialize a fingerprint."""
    result: SerializedFingerprint = {
        "astType": fp.node_type,
        "containmentProperty": fp.containing_field,
        "siblingIndex": fp.sibling_index,
        "parentUuid": fp.parent_identity,
    }
    if fp.name is not None:
        result["name"] = fp.name
    if fp.source_offset is not None:
        result["lastOffset"] = fp.source_offset
    return result


def fingerprint_from_dict(data: Any) -> StructuralFingerprint:
    """Deserialize a fingerprint.

    Args:
        data: Mapping in the ``SerializedFingerprint`` shape

    Returns:
        The fingerprint

    Raises:
        FingerprintError: If a required field is missing or has the wrong type

    """
    if not isinstance(data, Mapping):
        msg = f"Expected fingerprint mapping, got {type(data).__name__}"
        raise FingerprintError(msg)

    for key in ("astType", "containmentProperty", "parentUuid"):
        if not isinstance(data.get(key), str):
            msg = f"Fingerprint field '{key}' must be a string, got {data.get(key)!r}"
            raise FingerprintError(msg)

    sibling_index = data.get("siblingIndex")
    if not _is_int(sibling_index) or sibling_index < 0:
        msg = f"Fingerprint field 'siblingIndex' must be a non-negative int, got {sibling_index!r}"
        raise FingerprintError(msg)

    name = data.get("name")
    offset = data.get("lastOffset")
    return StructuralFingerprint(
        node_type=data["astType"],
        containing_field=data["containmentProperty"],
        sibling_index=sibling_index,
        parent_identity=data["parentUuid"],
        name=name if isinstance(name, str) else None,
        source_offset=offset if _is_int(offset) else None,
    )


def dump_state(
    fingerprints: Mapping[str, StructuralFingerprint],
    index: Mapping[str, str],
) -> RegistryState:
    """Serialize durable state; the result shares no objects with the inputs."""
    return {
        "idMap": dict(index),
        "fingerprints": {
            identity: fingerprint_to_dict(fp) for identity, fp in fingerprints.items()
        },
    }


@dataclass
class LoadedState:
    """Durable state parsed from persisted data."""

    fingerprints: dict[str, StructuralFingerprint] = field(default_factory=dict)
    index: dict[str, str] = field(default_factory=dict)
    skipped: int = 0


def parse_state(data: Any) -> LoadedState:
    """Parse persisted registry state, skipping entries that cannot be read.

    A missing or non-mapping section counts as empty. Entries with a
    non-string key or identity, or an unreadable fingerprint, are dropped
    and counted in ``skipped``. Nothing is raised for malformed content.
    """
    loaded = LoadedState()
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning(
                "Ignoring registry state of type %s", type(data).__name__
            )
        return loaded

    raw_fingerprints = data.get("fingerprints")
    if isinstance(raw_fingerprints, Mapping):
        for identity, raw in raw_fingerprints.items():
            if not isinstance(identity, str):
                loaded.skipped += 1
                continue
            try:
                loaded.fingerprints[identity] = fingerprint_from_dict(raw)
            except FingerprintError as e:
                logger.debug("Skipping fingerprint for %s: %s", identity, e)
                loaded.skipped += 1
    elif raw_fingerprints is not None:
        loaded.skipped += 1

    raw_index = data.get("idMap")
    if isinstance(raw_index, Mapping):
        for key, identity in raw_index.items():
            if isinstance(key, str) and isinstance(identity, str):
                loaded.index[key] = identity
            else:
                loaded.skipped += 1
    elif raw_index is not None:
        loaded.skipped += 1

    return loaded

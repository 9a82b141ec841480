"""Upgrading externally persisted data to stable identities.

Diagram layouts used to key element positions by identifiers derived from
the node's path or name. Those identifiers change on rename and reorder.
``IdentityRegistry.build_legacy_id_mapping`` yields a mapping from such a
legacy identifier to the node's stable identity; the helpers here apply it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from astid.errors import LayoutVersionError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from astid.persistence import RegistryState

logger = logging.getLogger(__name__)

CURRENT_LAYOUT_VERSION = 3

V = TypeVar("V")


def rekey(
    data: Mapping[str, V],
    mapping: Mapping[str, str],
    *,
    keep_unmapped: bool = False,
) -> dict[str, V]:
    """Rewrite the keys of ``data`` through ``mapping``.

    Args:
        data: Values keyed by legacy identifier
        mapping: Legacy identifier to stable identity
        keep_unmapped: Keep entries without a mapping under their old key
            instead of dropping them

    Returns:
        Values keyed by stable identity

    """
    result: dict[str, V] = {}
    for legacy_id, value in data.items():
        identity = mapping.get(legacy_id)
        if identity is not None:
            result[identity] = value
        elif keep_unmapped:
            result.setdefault(legacy_id, value)
    return result


def migrate_layout(
    layout: Mapping[str, Any],
    mapping: Mapping[str, str] | None = None,
    state: RegistryState | None = None,
) -> dict[str, Any]:
    """Upgrade a diagram layout document to the current version.

    Version 1 keyed ``elements`` by legacy identifiers; when ``mapping`` is
    given they are rekeyed to stable identities and unmapped elements are
    dropped. Version 2 added ``idMap`` and ``fingerprints`` (taken from
    ``state`` when upgrading from version 1). Version 3 added ``viewState``.

    Args:
        layout: Layout document of any supported version
        mapping: Legacy identifier to stable identity, for version 1 layouts
        state: Registry state to embed when the layout has none

    Returns:
        A new version 3 layout document

    Raises:
        LayoutVersionError: If the version is missing, below 1 or newer than
            the current version

    """
    version = layout.get("version")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        msg = f"Unsupported layout version {version!r}"
        raise LayoutVersionError(msg)
    if version > CURRENT_LAYOUT_VERSION:
        msg = (
            f"Layout version {version} is newer than supported "
            f"version {CURRENT_LAYOUT_VERSION}"
        )
        raise LayoutVersionError(msg)

    migrated = dict(layout)
    elements = dict(layout.get("elements") or {})
    if version == 1 and mapping is not None:
        elements = rekey(elements, mapping)
    migrated["elements"] = elements

    if version < 2 or "idMap" not in migrated:
        migrated["idMap"] = dict(state["idMap"]) if state is not None else None
        migrated["fingerprints"] = (
            dict(state["fingerprints"]) if state is not None else None
        )
    if version < 3:
        migrated["viewState"] = None

    migrated["version"] = CURRENT_LAYOUT_VERSION
    if version != CURRENT_LAYOUT_VERSION:
        logger.info(
            "Migrated layout from v%d to v%d", version, CURRENT_LAYOUT_VERSION
        )
    return migrated

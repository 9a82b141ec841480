"""Structural fingerprints and the exact-match key."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from astid.adapters import walk

if TYPE_CHECKING:
    from astid.adapters import TreeAdapter

ROOT_PARENT = "root"
UNKNOWN_PARENT = "unknown"


@dataclass(frozen=True)
class StructuralFingerprint:
    """Position of a node within its tree.

    Only ``node_type``, ``containing_field``, ``sibling_index`` and
    ``parent_identity`` take part in exact matching. ``name`` is a fuzzy
    matching hint and ``source_offset`` is informational.
    """

    node_type: str
    containing_field: str
    sibling_index: int
    parent_identity: str
    name: str | None = None
    source_offset: int | None = None

    @property
    def key(self) -> str:
        """Exact-match key of this fingerprint."""
        return fingerprint_key(self)

    @property
    def is_root(self) -> bool:
        """Whether this fingerprint describes a tree root."""
        return self.parent_identity == ROOT_PARENT and self.containing_field == ""


def fingerprint_key(fp: StructuralFingerprint) -> str:
    """Build the deterministic exact-match key of a fingerprint.

    Format: ``"{parent_identity}/{containing_field}/{sibling_index}/{node_type}"``
    """
    return f"{fp.parent_identity}/{fp.containing_field}/{fp.sibling_index}/{fp.node_type}"


def root_fingerprint(
    node_type: str,
    name: str | None = None,
    source_offset: int | None = None,
) -> StructuralFingerprint:
    """Return the fingerprint of a tree root of the given type."""
    return StructuralFingerprint(
        node_type=node_type,
        containing_field="",
        sibling_index=0,
        parent_identity=ROOT_PARENT,
        name=name,
        source_offset=source_offset,
    )


@dataclass(frozen=True)
class NodeSite:
    """Identity-independent facts about one node of a parsed tree.

    Everything in a fingerprint except the parent identity can be derived
    from the tree alone; a site holds those facts so that the parent
    identity can be filled in once it has been resolved.
    """

    node: Any
    parent: int | None  # position of the parent site, None for the root
    node_type: str
    containing_field: str
    sibling_index: int
    name: str | None
    source_offset: int | None

    def fingerprint(self, parent_identity: str | None) -> StructuralFingerprint:
        """Complete the fingerprint with the parent's resolved identity.

        The root always gets the sentinel parent. A child whose parent
        identity is missing gets ``UNKNOWN_PARENT``.
        """
        if self.parent is None:
            parent_identity = ROOT_PARENT
        elif parent_identity is None:
            parent_identity = UNKNOWN_PARENT
        return StructuralFingerprint(
            node_type=self.node_type,
            containing_field=self.containing_field,
            sibling_index=self.sibling_index,
            parent_identity=parent_identity,
            name=self.name,
            source_offset=self.source_offset,
        )


class FingerprintExtractor:
    """Derives node sites and fingerprints through a ``TreeAdapter``."""

    def __init__(self, adapter: TreeAdapter) -> None:
        """Initialize the extractor with the adapter for the tree's node kind."""
        self.adapter = adapter

    def sites(self, root: Any) -> list[NodeSite]:
        """Return the sites of every node under ``root`` in pre-order.

        The root is at position 0. ``sibling_index`` counts earlier children
        of the same type in the same field of the same parent, so it shifts
        when such siblings are inserted or removed.
        """
        adapter = self.adapter
        sites: list[NodeSite] = []
        position: dict[int, int] = {}
        counters: dict[int, Counter[tuple[str, str]]] = {}

        for parent, field_name, node in walk(root, adapter):
            node_type = adapter.node_type(node)
            if parent is None:
                parent_pos = None
                sibling_index = 0
            else:
                parent_pos = position[id(parent)]
                seen = counters.setdefault(parent_pos, Counter())
                sibling_index = seen[field_name, node_type]
                seen[field_name, node_type] += 1

            position[id(node)] = len(sites)
            sites.append(
                NodeSite(
                    node=node,
                    parent=parent_pos,
                    node_type=node_type,
                    containing_field=field_name,
                    sibling_index=sibling_index,
                    name=adapter.name(node),
                    source_offset=adapter.offset(node),
                ),
            )
        return sites

    def count_children(self, parent: Any, containing_field: str, node_type: str) -> int:
        """Count the children of ``parent`` in a field that have a given type."""
        return sum(
            1
            for field_name, child in self.adapter.children(parent)
            if field_name == containing_field
            and self.adapter.node_type(child) == node_type
        )

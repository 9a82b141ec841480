"""Identity registry assigning stable identities to repeatedly reparsed trees."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias, cast

from astid.adapters import NodeAdapter, walk
from astid.config import DEFAULT_POLICY, MatchPolicy
from astid.errors import IdentityCollisionError, UnknownIdentityError, UnknownNodeError
from astid.fingerprint import FingerprintExtractor, StructuralFingerprint
from astid.matching import best_match, names_conflict
from astid.persistence import RegistryState, dump_state, parse_state

if TYPE_CHECKING:
    from astid.adapters import TreeAdapter

logger = logging.getLogger(__name__)

IdFactory: TypeAlias = Callable[[], str]
LegacyIdFn: TypeAlias = Callable[[Any], str]

_MAX_MINT_ATTEMPTS = 100
_MAX_IDS_IN_ERROR = 10  # Maximum number of identities to show in error messages


def _uuid4() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ReconcileResult:
    """Summary of one reconciliation pass."""

    root_identity: str
    total: int  # nodes below the root
    exact: int
    fuzzy: int
    fresh: int
    dropped: int  # stored identities no node claimed
    registry_size: int
    rounds: int


class IdentityRegistry:
    """Assigns persistent identities to the nodes of a rebuilt tree.

    Each call to ``reconcile`` matches the nodes of a freshly parsed tree
    against the fingerprints stored by the previous call:

      1. Exact fingerprint key match: reuse the stored identity
      2. Fuzzy match (type, parent, field, name, index scoring): reuse
      3. Unmatched nodes: mint a new identity

    Parents must be resolved before their children can be fingerprinted.
    Nodes below a parent that missed the exact phase wait for a later round:
    only such parents go through the fuzzy and fresh phases early, and all
    other nodes that missed are matched once nothing is waiting, so they
    cannot take identities a waiting node would match exactly.

    Afterwards the stored fingerprints are replaced by those of the current
    tree, which drops the identities of deleted nodes.

    One registry serves one document and is not safe for concurrent
    reconciliation.
    """

    def __init__(
        self,
        adapter: TreeAdapter | None = None,
        *,
        policy: MatchPolicy = DEFAULT_POLICY,
        id_factory: IdFactory | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            adapter: Node access for the tree kind (defaults to ``NodeAdapter``)
            policy: Fuzzy matching weights and threshold
            id_factory: Callable minting new identities (defaults to UUID4)

        """
        self.adapter = adapter if adapter is not None else NodeAdapter()
        self.policy = policy
        self._id_factory = id_factory if id_factory is not None else _uuid4
        self._extractor = FingerprintExtractor(self.adapter)

        # Durable state: identity -> fingerprint and fingerprint key -> identity
        self._fingerprints: dict[str, StructuralFingerprint] = {}
        self._index: dict[str, str] = {}

        # Current generation, keyed by node object identity
        self._identity_by_node: dict[int, str] = {}
        self._node_by_identity: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_identity(self, node: Any) -> str | None:
        """Return the identity of a node of the current generation."""
        identity = self._identity_by_node.get(id(node))
        if identity is None or self._node_by_identity.get(identity) is not node:
            return None
        return identity

    def get_node(self, identity: str) -> Any | None:
        """Return the current-generation node holding ``identity``."""
        return self._node_by_identity.get(identity)

    def resolve(self, identity: str) -> Any:
        """Return the node holding ``identity``.

        Raises:
            UnknownIdentityError: If no node of the current generation holds it

        """
        if identity not in self._node_by_identity:
            available = list(self._node_by_identity)[:_MAX_IDS_IN_ERROR]
            suffix = "..." if len(self._node_by_identity) > _MAX_IDS_IN_ERROR else ""
            msg = (
                f"Identity '{identity}' not found in current generation. "
                f"Available identities: {available}{suffix}"
            )
            raise UnknownIdentityError(msg)
        return self._node_by_identity[identity]

    def identities(self) -> list[str]:
        """Identities of the current generation in pre-order."""
        return list(self._node_by_identity)

    def fingerprint_of(self, identity: str) -> StructuralFingerprint | None:
        """Return the stored fingerprint of an identity."""
        return self._fingerprints.get(identity)

    def __len__(self) -> int:
        return len(self._node_by_identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._node_by_identity

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(self, root: Any) -> ReconcileResult:
        """Assign identities to every node of a freshly parsed tree.

        Args:
            root: Root node of the parse result

        Returns:
            Counts of how each node was resolved

        """
        stored = self._fingerprints
        index = self._index
        policy = self.policy

        sites = self._extractor.sites(root)
        identities: list[str | None] = [None] * len(sites)
        fingerprints: list[StructuralFingerprint | None] = [None] * len(sites)
        claimed: set[str] = set()

        root_identity = self._resolve_root_identity()
        identities[0] = root_identity
        fingerprints[0] = sites[0].fingerprint(None)
        claimed.add(root_identity)

        # Unclaimed stored fingerprints grouped by node type, in stored order
        pool: dict[str, dict[str, StructuralFingerprint]] = {}
        for identity, fp in stored.items():
            if identity not in claimed:
                pool.setdefault(fp.node_type, {})[identity] = fp

        def claim(pos: int, identity: str) -> None:
            identities[pos] = identity
            claimed.add(identity)
            fp = stored.get(identity)
            if fp is not None:
                pool.get(fp.node_type, {}).pop(identity, None)

        exact = fuzzy = fresh = rounds = 0
        pending = list(range(1, len(sites)))
        deferred: list[int] = []

        while pending or deferred:
            rounds += 1
            waiting: list[int] = []

            # Phase 1: exact key match, pre-order so parents resolve first
            for pos in pending:
                site = sites[pos]
                parent_identity = identities[site.parent]  # type: ignore[index]
                if parent_identity is None:
                    waiting.append(pos)
                    continue
                fp = site.fingerprint(parent_identity)
                fingerprints[pos] = fp
                hit = index.get(fp.key)
                if hit is None or hit in claimed:
                    deferred.append(pos)
                elif (previous := stored.get(hit)) is not None and names_conflict(
                    fp,
                    previous,
                ):
                    # Same position, different name: let the fuzzy phase see
                    # whether the name moved to another stored slot.
                    deferred.append(pos)
                else:
                    claim(pos, hit)
                    exact += 1

            # Only parents of waiting nodes are resolved before the next exact
            # scan; other deferred nodes must not take identities the waiting
            # nodes can still reach by exact match.
            if waiting:
                blocking = {sites[pos].parent for pos in waiting}
                batch = sorted(pos for pos in deferred if pos in blocking)
                deferred = [pos for pos in deferred if pos not in blocking]
            else:
                batch = sorted(deferred)
                deferred = []

            # Phase 2: fuzzy match against unclaimed stored fingerprints
            unmatched: list[int] = []
            for pos in batch:
                fp = cast("StructuralFingerprint", fingerprints[pos])
                match = best_match(fp, pool.get(fp.node_type, {}), policy)
                if match is None:
                    unmatched.append(pos)
                    continue
                claim(pos, match.identity)
                fuzzy += 1
                logger.debug(
                    "Fuzzy matched %s '%s' to %s (score %d)",
                    fp.node_type,
                    fp.name,
                    match.identity,
                    match.score,
                )

            # Phase 3: fresh identities
            for pos in unmatched:
                claim(pos, self._mint(claimed))
                fresh += 1

            logger.debug(
                "Reconcile round %d: %d resolved without exact match, %d fresh, "
                "%d still deferred, %d waiting",
                rounds,
                len(batch),
                len(unmatched),
                len(deferred),
                len(waiting),
            )
            pending = waiting

        dropped = sum(1 for identity in stored if identity not in claimed)

        # Rebuild durable state from this pass only, in pre-order
        new_fingerprints: dict[str, StructuralFingerprint] = {}
        new_index: dict[str, str] = {}
        identity_by_node: dict[int, str] = {}
        node_by_identity: dict[str, Any] = {}
        for site, maybe_identity, maybe_fp in zip(
            sites,
            identities,
            fingerprints,
            strict=True,
        ):
            identity = cast("str", maybe_identity)
            fp = cast("StructuralFingerprint", maybe_fp)
            new_fingerprints[identity] = fp
            new_index[fp.key] = identity
            identity_by_node[id(site.node)] = identity
            node_by_identity[identity] = site.node

        self._fingerprints = new_fingerprints
        self._index = new_index
        self._identity_by_node = identity_by_node
        self._node_by_identity = node_by_identity

        result = ReconcileResult(
            root_identity=root_identity,
            total=len(sites) - 1,
            exact=exact,
            fuzzy=fuzzy,
            fresh=fresh,
            dropped=dropped,
            registry_size=len(new_fingerprints),
            rounds=rounds,
        )
        logger.info(
            "Identity reconciliation complete: %d nodes, %d exact, %d fuzzy, "
            "%d new, %d dropped, registry size %d",
            result.total,
            result.exact,
            result.fuzzy,
            result.fresh,
            result.dropped,
            result.registry_size,
        )
        return result

    def _resolve_root_identity(self) -> str:
        """Reuse the stored root identity, or mint one."""
        for identity, fp in self._fingerprints.items():
            if fp.is_root:
                return identity
        return self._mint(set())

    def _mint(self, claimed: set[str]) -> str:
        """Mint an identity not claimed in this pass and not stored."""
        for _ in range(_MAX_MINT_ATTEMPTS):
            identity = self._id_factory()
            if identity not in claimed and identity not in self._fingerprints:
                return identity
        msg = (
            f"Identity factory returned only identities already in use "
            f"after {_MAX_MINT_ATTEMPTS} attempts"
        )
        raise IdentityCollisionError(msg)

    # ------------------------------------------------------------------
    # Pre-registration
    # ------------------------------------------------------------------

    def new_identity(self) -> str:
        """Mint an identity not used by the registry."""
        return self._mint(set(self._node_by_identity))

    def register_new_identity(
        self,
        identity: str,
        fingerprint: StructuralFingerprint,
    ) -> None:
        """Pre-register ``identity`` for the node expected at ``fingerprint``.

        Used by element creation: the next reconciliation after the reparse
        then finds the new node by exact key instead of minting an unrelated
        identity. An entry already stored under the same key is overwritten
        in the exact index; its fingerprint stays available to fuzzy
        matching. If ``identity`` was indexed under another key before, that
        key is removed so the identity is reachable from one key only.
        """
        previous = self._fingerprints.get(identity)
        if previous is not None and self._index.get(previous.key) == identity:
            del self._index[previous.key]
        self._fingerprints[identity] = fingerprint
        self._index[fingerprint.key] = identity
        logger.debug("Pre-registered %s at %s", identity, fingerprint.key)

    def expected_child_fingerprint(
        self,
        parent: Any,
        containing_field: str,
        node_type: str,
        *,
        name: str | None = None,
        sibling_index: int | None = None,
    ) -> StructuralFingerprint:
        """Fingerprint a node will have once created under ``parent``.

        Args:
            parent: Node of the current generation receiving the child
            containing_field: Field of ``parent`` the child is added to
            node_type: Type tag of the child
            name: Name the child will carry
            sibling_index: Position among same-type siblings in the field;
                defaults to appending after the existing ones

        Raises:
            UnknownNodeError: If ``parent`` is not in the current generation

        """
        parent_identity = self.get_identity(parent)
        if parent_identity is None:
            msg = f"Parent {type(parent).__name__} is not part of the current generation"
            raise UnknownNodeError(msg)
        if sibling_index is None:
            sibling_index = self._extractor.count_children(
                parent,
                containing_field,
                node_type,
            )
        return StructuralFingerprint(
            node_type=node_type,
            containing_field=containing_field,
            sibling_index=sibling_index,
            parent_identity=parent_identity,
            name=name,
        )

    def pre_register_child(
        self,
        parent: Any,
        containing_field: str,
        node_type: str,
        *,
        name: str | None = None,
        sibling_index: int | None = None,
        identity: str | None = None,
    ) -> str:
        """Pre-register the identity of a child about to be created.

        Returns:
            The registered identity (``identity`` or a freshly minted one)

        """
        fingerprint = self.expected_child_fingerprint(
            parent,
            containing_field,
            node_type,
            name=name,
            sibling_index=sibling_index,
        )
        if identity is None:
            identity = self.new_identity()
        self.register_new_identity(identity, fingerprint)
        return identity

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_state(self) -> RegistryState:
        """Export the durable state in its persisted shape."""
        return dump_state(self._fingerprints, self._index)

    def load_state(self, data: Any) -> None:
        """Replace the durable state with persisted data.

        Malformed entries are skipped rather than failing the load. The
        current generation is cleared, so call this before the first
        ``reconcile`` of a session.
        """
        loaded = parse_state(data)
        self._fingerprints = loaded.fingerprints
        self._index = loaded.index
        self._identity_by_node = {}
        self._node_by_identity = {}
        if loaded.skipped:
            logger.warning(
                "Skipped %d malformed entries while loading registry state",
                loaded.skipped,
            )
        logger.debug(
            "Loaded registry state: %d fingerprints, %d index entries",
            len(self._fingerprints),
            len(self._index),
        )

    def clear(self) -> None:
        """Drop all durable and current-generation state."""
        self._fingerprints = {}
        self._index = {}
        self._identity_by_node = {}
        self._node_by_identity = {}

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    def build_legacy_id_mapping(
        self,
        root: Any,
        legacy_id_fn: LegacyIdFn,
    ) -> dict[str, str]:
        """Map identifiers of a previous scheme to current identities.

        Walks ``root`` (which must be the tree last reconciled) and calls
        ``legacy_id_fn`` for every node holding an identity.

        Returns:
            Mapping from legacy identifier to stable identity

        """
        mapping: dict[str, str] = {}
        for _, _, node in walk(root, self.adapter):
            identity = self.get_identity(node)
            if identity is not None:
                mapping[legacy_id_fn(node)] = identity
        return mapping

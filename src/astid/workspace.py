"""Per-document registry ownership."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from astid.config import DEFAULT_POLICY, MatchPolicy
from astid.errors import DocumentAlreadyOpenError, DocumentNotOpenError
from astid.registry import IdentityRegistry, ReconcileResult

if TYPE_CHECKING:
    from collections.abc import Iterator

    from astid.adapters import TreeAdapter
    from astid.persistence import RegistryState
    from astid.registry import IdFactory

logger = logging.getLogger(__name__)


class IdentityWorkspace:
    """Owns one ``IdentityRegistry`` per open document.

    A registry is created when its document opens, reconciled after every
    reparse of that document and exported then dropped when it closes.
    Registries are never shared between documents.

    Usage:
        workspace = IdentityWorkspace(PythonASTAdapter())
        workspace.open("file:///a.py", state=saved_state)
        workspace.reconcile("file:///a.py", tree)
        saved_state = workspace.close("file:///a.py")
    """

    def __init__(
        self,
        adapter: TreeAdapter | None = None,
        *,
        policy: MatchPolicy = DEFAULT_POLICY,
        id_factory: IdFactory | None = None,
    ) -> None:
        """Initialize a workspace whose registries share adapter and policy."""
        self.adapter = adapter
        self.policy = policy
        self._id_factory = id_factory
        self._registries: dict[str, IdentityRegistry] = {}

    def open(self, uri: str, state: RegistryState | None = None) -> IdentityRegistry:
        """Create the registry of a document, loading persisted state if given.

        Raises:
            DocumentAlreadyOpenError: If the document already has a registry

        """
        if uri in self._registries:
            msg = f"Document '{uri}' is already open"
            raise DocumentAlreadyOpenError(msg)
        registry = IdentityRegistry(
            self.adapter,
            policy=self.policy,
            id_factory=self._id_factory,
        )
        if state is not None:
            registry.load_state(state)
        self._registries[uri] = registry
        logger.debug("Opened identity registry for %s", uri)
        return registry

    def get(self, uri: str) -> IdentityRegistry:
        """Return the registry of an open document.

        Raises:
            DocumentNotOpenError: If the document is not open

        """
        registry = self._registries.get(uri)
        if registry is None:
            open_uris = list(self._registries)
            msg = f"Document '{uri}' is not open. Open documents: {open_uris}"
            raise DocumentNotOpenError(msg)
        return registry

    def reconcile(self, uri: str, root: Any) -> ReconcileResult:
        """Reconcile the freshly parsed tree of an open document."""
        return self.get(uri).reconcile(root)

    def close(self, uri: str) -> RegistryState:
        """Export the document's state and drop its registry.

        Raises:
            DocumentNotOpenError: If the document is not open

        """
        registry = self.get(uri)
        state = registry.export_state()
        registry.clear()
        del self._registries[uri]
        logger.debug("Closed identity registry for %s", uri)
        return state

    def __contains__(self, uri: object) -> bool:
        return uri in self._registries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._registries))

    def __len__(self) -> int:
        return len(self._registries)

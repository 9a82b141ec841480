"""Tests for astid.workspace module."""

import pytest
from trees import Item, Root, counter_ids

from astid.errors import DocumentAlreadyOpenError, DocumentNotOpenError
from astid.workspace import IdentityWorkspace

URI_A = "file:///model/a.dsl"
URI_B = "file:///model/b.dsl"


@pytest.fixture
def workspace() -> IdentityWorkspace:
    """Workspace over Node trees with predictable identities."""
    return IdentityWorkspace(id_factory=counter_ids())


class TestIdentityWorkspace:
    """Test per-document registries."""

    def test_open_and_get(self, workspace: IdentityWorkspace) -> None:
        """Test that an opened document has a registry."""
        registry = workspace.open(URI_A)

        assert workspace.get(URI_A) is registry
        assert URI_A in workspace
        assert list(workspace) == [URI_A]
        assert len(workspace) == 1

    def test_documents_do_not_share_registries(
        self,
        workspace: IdentityWorkspace,
    ) -> None:
        """Test that each document reconciles independently."""
        workspace.open(URI_A)
        workspace.open(URI_B)
        tree_a = Root(items=[Item("x")])
        tree_b = Root(items=[Item("x")])

        workspace.reconcile(URI_A, tree_a)
        workspace.reconcile(URI_B, tree_b)

        assert workspace.get(URI_A).get_identity(tree_b) is None
        assert workspace.get(URI_B).get_identity(tree_a) is None
        assert workspace.get(URI_A).get_identity(tree_a) is not None

    def test_open_twice_raises(self, workspace: IdentityWorkspace) -> None:
        """Test that a document cannot be opened twice."""
        workspace.open(URI_A)

        with pytest.raises(DocumentAlreadyOpenError, match="already open"):
            workspace.open(URI_A)

    def test_get_unknown_raises(self, workspace: IdentityWorkspace) -> None:
        """Test that unknown documents are reported with the open ones."""
        workspace.open(URI_A)

        with pytest.raises(DocumentNotOpenError, match="is not open"):
            workspace.get(URI_B)
        with pytest.raises(KeyError):
            workspace.reconcile(URI_B, Root())

    def test_close_returns_state(self, workspace: IdentityWorkspace) -> None:
        """Test that closing exports state and drops the registry."""
        workspace.open(URI_A)
        tree = Root(items=[Item("x")])
        workspace.reconcile(URI_A, tree)
        expected = workspace.get(URI_A).export_state()

        state = workspace.close(URI_A)

        assert state == expected
        assert URI_A not in workspace
        with pytest.raises(DocumentNotOpenError):
            workspace.close(URI_A)

    def test_reopen_with_state(self, workspace: IdentityWorkspace) -> None:
        """Test that identities survive a close and reopen."""
        workspace.open(URI_A)
        tree = Root(items=[Item("x")])
        workspace.reconcile(URI_A, tree)
        before = workspace.get(URI_A).identities()
        state = workspace.close(URI_A)

        workspace.open(URI_A, state=state)
        workspace.reconcile(URI_A, Root(items=[Item("x")]))

        assert workspace.get(URI_A).identities() == before

"""Integration tests reconciling reparsed Python source."""

import ast

from trees import counter_ids

from astid import IdentityWorkspace, PythonASTAdapter, from_json, to_json
from astid.registry import IdentityRegistry

SOURCE_V1 = """\
def load(path):
    return open(path)


def save(path, data):
    pass
"""

SOURCE_RENAMED = """\
def read(path):
    return open(path)


def save(path, data):
    pass
"""

SOURCE_DELETED = """\
def save(path, data):
    pass
"""

SOURCE_APPENDED = """\
def save(path, data):
    pass


def close():
    pass
"""


def functions(tree: ast.Module) -> list[ast.FunctionDef]:
    return [node for node in tree.body if isinstance(node, ast.FunctionDef)]


def reconcile(registry: IdentityRegistry, source: str) -> ast.Module:
    tree = ast.parse(source)
    registry.reconcile(tree)
    return tree


class TestPythonSource:
    """Test identities of Python definitions across edits."""

    def test_edit_sequence(self) -> None:
        """Test rename, delete and append of top-level functions."""
        registry = IdentityRegistry(PythonASTAdapter(), id_factory=counter_ids())

        tree = reconcile(registry, SOURCE_V1)
        load, save = functions(tree)
        load_id = registry.get_identity(load)
        save_id = registry.get_identity(save)
        assert load_id is not None
        assert save_id is not None

        tree = reconcile(registry, SOURCE_RENAMED)
        read, save = functions(tree)
        assert registry.get_identity(read) == load_id
        assert registry.get_identity(save) == save_id

        tree = reconcile(registry, SOURCE_DELETED)
        (save,) = functions(tree)
        assert registry.get_identity(save) == save_id
        assert registry.get_node(load_id) is None

        tree = reconcile(registry, SOURCE_APPENDED)
        save, close = functions(tree)
        assert registry.get_identity(save) == save_id
        assert registry.get_identity(close) not in {load_id, save_id}

    def test_offsets_are_persisted(self) -> None:
        """Test that source offsets are stored as lastOffset."""
        registry = IdentityRegistry(
            PythonASTAdapter(SOURCE_V1),
            id_factory=counter_ids(),
        )
        tree = ast.parse(SOURCE_V1)
        registry.reconcile(tree)

        _, save = functions(tree)
        save_id = registry.get_identity(save)
        assert save_id is not None
        stored = registry.export_state()["fingerprints"][save_id]
        assert stored["lastOffset"] == SOURCE_V1.index("def save")
        assert stored["name"] == "save"


class TestWorkspaceSession:
    """Test a document session persisted to JSON between runs."""

    def test_identities_survive_restart(self) -> None:
        """Test that identities come back after saving state as JSON."""
        workspace = IdentityWorkspace(PythonASTAdapter(), id_factory=counter_ids("a"))
        workspace.open("file:///io.py")
        tree = ast.parse(SOURCE_V1)
        workspace.reconcile("file:///io.py", tree)
        before = workspace.get("file:///io.py").identities()
        saved = to_json(workspace.close("file:///io.py"))

        restarted = IdentityWorkspace(PythonASTAdapter(), id_factory=counter_ids("b"))
        restarted.open("file:///io.py", state=from_json(saved))
        result = restarted.reconcile("file:///io.py", ast.parse(SOURCE_V1))

        assert restarted.get("file:///io.py").identities() == before
        assert result.fresh == 0

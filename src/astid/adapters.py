"""Tree adapters exposing parser-specific nodes to the registry."""

from __future__ import annotations

import ast
from abc import ABC, abstractmethod
from dataclasses import fields
from typing import TYPE_CHECKING, Any

from astid.nodes import Node

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class TreeAdapter(ABC):
    """Base class for tree-specific node access.

    The registry never inspects nodes directly. An adapter supplies the
    type tag, the containment children and the optional name and offset
    hints of a node, which keeps parser types out of the core.
    """

    @abstractmethod
    def node_type(self, node: Any) -> str:
        """Return the type tag of a node."""
        ...

    @abstractmethod
    def children(self, node: Any) -> Iterable[tuple[str, Any]]:
        """Yield ``(containing_field, child)`` pairs in document order."""
        ...

    def name(self, node: Any) -> str | None:
        """Return the human-readable label of a node, if it has one."""
        value = getattr(node, "name", None)
        return value if isinstance(value, str) else None

    def offset(self, node: Any) -> int | None:  # noqa: ARG002
        """Return the source offset of a node, if known."""
        return None


class NodeAdapter(TreeAdapter):
    """Adapter for trees built from ``astid.nodes.Node`` subclasses."""

    def node_type(self, node: Any) -> str:
        """Return the class tag."""
        return type(node).tag

    def children(self, node: Any) -> Iterator[tuple[str, Any]]:
        """Yield nodes stored directly in fields or inside list/tuple fields."""
        for field in fields(node):
            if field.name.startswith("_"):
                continue
            value = getattr(node, field.name)
            if isinstance(value, Node):
                yield field.name, value
            elif isinstance(value, list | tuple):
                for item in value:
                    if isinstance(item, Node):
                        yield field.name, item

    def offset(self, node: Any) -> int | None:
        """Return the ``offset`` field when the node declares one."""
        value = getattr(node, "offset", None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None


# CPython shares one instance of these across a whole parse result.
_SHARED_AST_TYPES = (ast.expr_context, ast.boolop, ast.operator, ast.unaryop, ast.cmpop)
_AST_NAME_ATTRS = ("name", "id", "arg", "attr", "module")


class PythonASTAdapter(TreeAdapter):
    """Adapter for the standard library ``ast`` module.

    Operator and expression-context nodes are skipped because CPython
    reuses a single instance of each, so they cannot carry an identity.

    Args:
        source: Text the tree was parsed from. When given, offsets are
            computed from ``lineno``/``col_offset``; otherwise they are None.

    """

    def __init__(self, source: str | None = None) -> None:
        """Initialize the adapter, indexing line starts of ``source``."""
        self._line_starts: list[int] | None = None
        if source is not None:
            starts = [0]
            for i, char in enumerate(source):
                if char == "\n":
                    starts.append(i + 1)
            self._line_starts = starts

    def node_type(self, node: Any) -> str:
        """Return the AST class name."""
        return type(node).__name__

    def children(self, node: Any) -> Iterator[tuple[str, Any]]:
        """Yield AST children from ``ast.iter_fields``."""
        for field_name, value in ast.iter_fields(node):
            if isinstance(value, ast.AST):
                if not isinstance(value, _SHARED_AST_TYPES):
                    yield field_name, value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, ast.AST) and not isinstance(
                        item,
                        _SHARED_AST_TYPES,
                    ):
                        yield field_name, item

    def name(self, node: Any) -> str | None:
        """Return the first string among ``name``, ``id``, ``arg``, ``attr``, ``module``."""
        for attr in _AST_NAME_ATTRS:
            value = getattr(node, attr, None)
            if isinstance(value, str):
                return value
        return None

    def offset(self, node: Any) -> int | None:
        """Return the character offset of the node start, if computable."""
        if self._line_starts is None:
            return None
        lineno = getattr(node, "lineno", None)
        col = getattr(node, "col_offset", None)
        if lineno is None or col is None or not 0 < lineno <= len(self._line_starts):
            return None
        return self._line_starts[lineno - 1] + col


def walk(root: Any, adapter: TreeAdapter) -> Iterator[tuple[Any | None, str, Any]]:
    """Yield ``(parent, containing_field, node)`` in pre-order.

    The root comes first with ``parent=None`` and an empty field. Every
    parent is yielded before its children. A node object reachable through
    more than one path is yielded only at its first occurrence, together
    with its subtree.
    """
    seen: set[int] = set()
    stack: list[tuple[Any | None, str, Any]] = [(None, "", root)]
    while stack:
        parent, field_name, node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield parent, field_name, node
        kids = [(node, f, child) for f, child in adapter.children(node)]
        stack.extend(reversed(kids))

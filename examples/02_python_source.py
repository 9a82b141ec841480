"""
Identities for Python Source
============================

Tracks the functions of a Python module across edits using the standard
library ``ast`` module. The same pattern applies to any existing parser:
write a ``TreeAdapter`` for its node type.
"""

import ast
import logging

from astid import IdentityRegistry, PythonASTAdapter

BEFORE = """\
def load(path):
    return open(path).read()


def dump(path, text):
    open(path, "w").write(text)
"""

AFTER = """\
import os


def read(path):
    return open(path).read()


def dump(path, text):
    open(path, "w").write(text)
"""


def describe(registry: IdentityRegistry, tree: ast.Module) -> None:
    for node in tree.body:
        label = getattr(node, "name", type(node).__name__)
        print(f"  {label:<8} {registry.get_identity(node)}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    registry = IdentityRegistry(PythonASTAdapter())

    print("Before:")
    tree = ast.parse(BEFORE)
    registry.reconcile(tree)
    describe(registry, tree)
    print()

    # An import is added and load() is renamed to read(). Sibling indexes
    # count per node type, so the import does not shift the functions.
    print("After:")
    tree = ast.parse(AFTER)
    registry.reconcile(tree)
    describe(registry, tree)


if __name__ == "__main__":
    main()

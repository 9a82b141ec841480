"""Tests for astid.fingerprint module."""

import pytest
from trees import Group, Item, Part, Root

from astid.adapters import NodeAdapter
from astid.fingerprint import (
    ROOT_PARENT,
    UNKNOWN_PARENT,
    FingerprintExtractor,
    StructuralFingerprint,
    fingerprint_key,
    root_fingerprint,
)
from astid.nodes import Node


@pytest.fixture
def extractor() -> FingerprintExtractor:
    """Extractor over Node trees."""
    return FingerprintExtractor(NodeAdapter())


class TestFingerprintKey:
    """Test the exact-match key."""

    def test_key_format(self) -> None:
        """Test that the key joins parent, field, index and type."""
        fp = StructuralFingerprint("Entity", "entities", 2, "u-parent")

        assert fingerprint_key(fp) == "u-parent/entities/2/Entity"
        assert fp.key == "u-parent/entities/2/Entity"

    def test_name_and_offset_not_in_key(self) -> None:
        """Test that hints do not change the key."""
        plain = StructuralFingerprint("Entity", "entities", 0, "p")
        hinted = StructuralFingerprint("Entity", "entities", 0, "p", "Customer", 120)

        assert plain.key == hinted.key
        assert plain != hinted

    def test_root_fingerprint(self) -> None:
        """Test the fixed position of a root."""
        fp = root_fingerprint("Model", name="shop")

        assert fp.key == f"{ROOT_PARENT}//0/Model"
        assert fp.is_root
        assert fp.name == "shop"

    def test_child_is_not_root(self) -> None:
        """Test that a child of the root is not a root."""
        assert not StructuralFingerprint("X", "items", 0, ROOT_PARENT).is_root


class TestExtractorSites:
    """Test FingerprintExtractor.sites()."""

    def test_root_site(self, extractor: FingerprintExtractor) -> None:
        """Test that the root comes first and has no parent."""
        tree = Root()
        sites = extractor.sites(tree)

        assert len(sites) == 1
        assert sites[0].node is tree
        assert sites[0].parent is None
        assert sites[0].fingerprint(None) == root_fingerprint("R")

    def test_sibling_index_counts_same_type_in_field(
        self,
        extractor: FingerprintExtractor,
    ) -> None:
        """Test that sibling indexes count per field and per type."""
        tree = Root(items=[Item("a"), Item("b")], archive=[Item("c")])
        sites = extractor.sites(tree)

        indexes = [(s.containing_field, s.sibling_index) for s in sites[1:]]
        assert indexes == [("items", 0), ("items", 1), ("archive", 0)]

    def test_sibling_index_ignores_other_types(
        self,
        extractor: FingerprintExtractor,
    ) -> None:
        """Test that nodes of another type in the same field are not counted."""

        class Bag(Node, tag="Bag"):
            contents: list[Node]

        tree = Bag([Item("a"), Part("p"), Item("b"), Part("q")])
        sites = extractor.sites(tree)

        assert [(s.node_type, s.sibling_index) for s in sites[1:]] == [
            ("X", 0),
            ("Part", 0),
            ("X", 1),
            ("Part", 1),
        ]

    def test_parent_positions(self, extractor: FingerprintExtractor) -> None:
        """Test that sites point at the position of their parent."""
        tree = Root(groups=[Group("g", members=[Item("m", parts=[Part("p")])])])
        sites = extractor.sites(tree)

        assert [s.parent for s in sites] == [None, 0, 1, 2]
        assert [s.name for s in sites] == [None, "g", "m", "p"]

    def test_fingerprint_of_child(self, extractor: FingerprintExtractor) -> None:
        """Test that a child's fingerprint takes its parent identity."""
        sites = extractor.sites(Root(items=[Item("a")]))

        fp = sites[1].fingerprint("u-root")
        assert fp == StructuralFingerprint("X", "items", 0, "u-root", "a")

    def test_unresolved_parent(self, extractor: FingerprintExtractor) -> None:
        """Test that a child without a parent identity gets the fallback."""
        sites = extractor.sites(Root(items=[Item("a")]))

        assert sites[1].fingerprint(None).parent_identity == UNKNOWN_PARENT


class TestCountChildren:
    """Test FingerprintExtractor.count_children()."""

    def test_count(self, extractor: FingerprintExtractor) -> None:
        """Test counting same-type children of one field."""
        tree = Root(items=[Item("a"), Item("b")], archive=[Item("c")])

        assert extractor.count_children(tree, "items", "X") == 2
        assert extractor.count_children(tree, "archive", "X") == 1
        assert extractor.count_children(tree, "groups", "Group") == 0

"""Frozen dataclass base for DSL tree nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, dataclass_transform


@dataclass(frozen=True)
@dataclass_transform(frozen_default=True)
class Node:
    """Base for tree nodes handed to the identity registry.

    Subclasses become frozen dataclasses. Fields holding a ``Node`` or a
    list/tuple of ``Node`` are containments; everything else is data.

        class Entity(Node, tag="entity"):
            name: str
            attributes: list[Attribute]
    """

    tag: ClassVar[str]

    def __init_subclass__(cls, tag: str | None = None) -> None:
        """Turn the subclass into a frozen dataclass and derive its tag."""
        dataclass(frozen=True)(cls)
        cls.tag = tag if tag is not None else cls.__name__

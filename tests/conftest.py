"""Shared fixtures for astid tests."""

import pytest
from trees import counter_ids

from astid.registry import IdentityRegistry


@pytest.fixture
def registry() -> IdentityRegistry:
    """Registry over ``Node`` trees with predictable identities."""
    return IdentityRegistry(id_factory=counter_ids())

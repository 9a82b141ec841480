"""Text formats for persisted registry state.

Each format module provides to_<format> and from_<format> functions
that work on the builtins produced by ``IdentityRegistry.export_state``.
"""

from astid.formats.json import from_json, to_json

__all__ = ["from_json", "to_json"]

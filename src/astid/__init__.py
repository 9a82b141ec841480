"""astid - Stable identities for repeatedly reparsed trees."""

from astid.adapters import (
    NodeAdapter,
    PythonASTAdapter,
    TreeAdapter,
    walk,
)
from astid.config import (
    DEFAULT_POLICY,
    MatchPolicy,
)
from astid.errors import (
    AstidError,
    DocumentAlreadyOpenError,
    DocumentNotOpenError,
    FingerprintError,
    IdentityCollisionError,
    LayoutVersionError,
    UnknownIdentityError,
    UnknownNodeError,
)
from astid.fingerprint import (
    ROOT_PARENT,
    UNKNOWN_PARENT,
    FingerprintExtractor,
    StructuralFingerprint,
    fingerprint_key,
    root_fingerprint,
)
from astid.formats.json import (
    from_json,
    to_json,
)
from astid.matching import (
    FuzzyMatch,
    best_match,
    fuzzy_score,
)
from astid.migration import (
    CURRENT_LAYOUT_VERSION,
    migrate_layout,
    rekey,
)
from astid.nodes import Node
from astid.persistence import (
    RegistryState,
    SerializedFingerprint,
    fingerprint_from_dict,
    fingerprint_to_dict,
)
from astid.registry import (
    IdentityRegistry,
    ReconcileResult,
)
from astid.workspace import IdentityWorkspace

__all__ = [
    "CURRENT_LAYOUT_VERSION",
    "DEFAULT_POLICY",
    "ROOT_PARENT",
    "UNKNOWN_PARENT",
    # Errors
    "AstidError",
    "DocumentAlreadyOpenError",
    "DocumentNotOpenError",
    "FingerprintError",
    # Fingerprints
    "FingerprintExtractor",
    # Matching
    "FuzzyMatch",
    "IdentityCollisionError",
    # Registry
    "IdentityRegistry",
    "IdentityWorkspace",
    "LayoutVersionError",
    "MatchPolicy",
    # Trees
    "Node",
    "NodeAdapter",
    "PythonASTAdapter",
    "ReconcileResult",
    # Persistence
    "RegistryState",
    "SerializedFingerprint",
    "StructuralFingerprint",
    "TreeAdapter",
    "UnknownIdentityError",
    "UnknownNodeError",
    "best_match",
    "fingerprint_from_dict",
    "fingerprint_key",
    "fingerprint_to_dict",
    "from_json",
    "fuzzy_score",
    # Migration
    "migrate_layout",
    "rekey",
    "root_fingerprint",
    "to_json",
    "walk",
]

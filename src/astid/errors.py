"""Exception types raised by astid."""

from __future__ import annotations


class AstidError(Exception):
    """Base class for astid errors."""


class FingerprintError(AstidError, ValueError):
    """Serialized fingerprint data is malformed."""


class UnknownIdentityError(AstidError, KeyError):
    """Identity is not part of the current generation."""


class UnknownNodeError(AstidError, KeyError):
    """Node is not part of the current generation."""


class IdentityCollisionError(AstidError):
    """The identity factory keeps returning identities already in use."""


class LayoutVersionError(AstidError, ValueError):
    """Diagram layout document has an unsupported version."""


class DocumentAlreadyOpenError(AstidError):
    """A registry is already open for the document."""


class DocumentNotOpenError(AstidError, KeyError):
    """No registry is open for the document."""

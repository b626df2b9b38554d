"""
Custom exceptions for the stitchgraph system.

Composition-time errors (subclasses of CompositionError) abort startup.
Request-time errors (TransportError, UpstreamGraphError) are raised inside
resolvers and reported per field by the execution engine.
"""

from __future__ import annotations

from typing import Any, Optional


class StitchError(Exception):
    """Base exception for all stitchgraph errors."""
    pass


# =============================================================================
# Composition-time errors
# =============================================================================


class CompositionError(StitchError):
    """Raised when the composed schema cannot be built."""
    pass


class GraphConfigError(CompositionError):
    """Raised when static gateway configuration is invalid."""
    pass


class IntrospectionError(CompositionError):
    """Raised when an origin schema could not be fetched or parsed."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"Introspection of '{service}' failed: {message}")


class SchemaCollisionError(CompositionError):
    """Raised when two types or fields share a name after renaming."""

    def __init__(self, name: str, owners: list[str], kind: str = "type"):
        self.name = name
        self.owners = owners
        self.kind = kind
        super().__init__(f"{kind.capitalize()} '{name}' is defined more than once: {', '.join(owners)}")


class UnresolvedTypeError(CompositionError):
    """Raised when link definitions reference an unknown type."""

    def __init__(self, type_name: str, referenced_by: str):
        self.type_name = type_name
        self.referenced_by = referenced_by
        super().__init__(f"Unknown type '{type_name}' referenced by {referenced_by}")


class MissingResolverError(CompositionError):
    """Raised when a link field has no resolver."""

    def __init__(self, type_name: str, field_name: str):
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(f"Link field '{type_name}.{field_name}' has no resolver")


# =============================================================================
# Request-time errors
# =============================================================================


class TransportError(StitchError):
    """Raised when an origin service cannot be reached or answers garbage."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        self.extensions: dict[str, Any] = {"code": "TRANSPORT_ERROR", "service": service}
        if status_code is not None:
            self.extensions["status"] = status_code
        super().__init__(f"Service '{service}' unavailable: {message}")


class UpstreamGraphError(StitchError):
    """Raised when an origin service returns a well-formed error payload."""

    def __init__(self, service: str, errors: list[Any]):
        self.service = service
        self.errors = errors
        self.extensions: dict[str, Any] = {
            "code": "UPSTREAM_ERROR",
            "service": service,
            "upstream": [e.to_dict() if hasattr(e, "to_dict") else e for e in errors],
        }
        messages = [getattr(e, "message", None) or str(e) for e in errors]
        super().__init__("; ".join(messages) or f"Service '{service}' returned an error")

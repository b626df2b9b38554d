"""
Core module - definitions, errors, result types and type-tree operations.
"""

from __future__ import annotations

from .defs import Delegate, ForwardArgument, RenameRule, ServiceDef, namespace_rules
from .errors import (
    CompositionError,
    GraphConfigError,
    IntrospectionError,
    MissingResolverError,
    SchemaCollisionError,
    StitchError,
    TransportError,
    UnresolvedTypeError,
    UpstreamGraphError,
)
from .query_types import GraphErrorRecord, GraphQLRequest, GraphResult, RemoteError, RemoteResponse

__all__ = [
    # Definitions
    "ServiceDef",
    "RenameRule",
    "namespace_rules",
    "Delegate",
    "ForwardArgument",
    # Errors
    "StitchError",
    "CompositionError",
    "GraphConfigError",
    "IntrospectionError",
    "SchemaCollisionError",
    "UnresolvedTypeError",
    "MissingResolverError",
    "TransportError",
    "UpstreamGraphError",
    # Query types
    "GraphQLRequest",
    "RemoteError",
    "RemoteResponse",
    "GraphErrorRecord",
    "GraphResult",
]

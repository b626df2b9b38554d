"""
Stitchgraph - GraphQL schema stitching gateway.

Composes several independently-owned GraphQL services into one schema:
- Introspects every origin and binds it to a remote executor
- Renames types and root fields per service namespace
- Links types across services with delegating resolvers

Usage:
    from stitchgraph import Gateway, ServiceDef

    gateway = Gateway(
        services=[
            ServiceDef("catalog", "http://catalog:4000/graphql", namespace="Catalog"),
            ServiceDef("order", "http://order:4000/graphql", namespace="Order"),
        ],
    )
    app = gateway.app
"""

from __future__ import annotations

from .api import mount_graphql, router
from .core import (
    CompositionError,
    Delegate,
    ForwardArgument,
    GraphConfigError,
    GraphErrorRecord,
    GraphQLRequest,
    GraphResult,
    IntrospectionError,
    MissingResolverError,
    RenameRule,
    SchemaCollisionError,
    ServiceDef,
    StitchError,
    TransportError,
    UnresolvedTypeError,
    UpstreamGraphError,
    namespace_rules,
)
from .gateway import Gateway, build_schema
from .runtime import (
    ComposedSchema,
    DelegationResolver,
    Executor,
    LocalExecutor,
    RemoteExecutor,
    RequestContext,
    SchemaHandle,
    TransformedSchema,
    compose_schemas,
    delegate_to_schema,
    introspect_schema,
    transform_schema,
)

__version__ = "0.1.0"

__all__ = [
    # API
    "router",
    "mount_graphql",
    # Core definitions
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
    "GraphErrorRecord",
    "GraphResult",
    # Runtime
    "Executor",
    "RemoteExecutor",
    "LocalExecutor",
    "RequestContext",
    "SchemaHandle",
    "introspect_schema",
    "TransformedSchema",
    "transform_schema",
    "ComposedSchema",
    "compose_schemas",
    "delegate_to_schema",
    "DelegationResolver",
    # Gateway
    "Gateway",
    "build_schema",
]

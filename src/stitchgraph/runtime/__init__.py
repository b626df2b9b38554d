"""
Runtime module - schema acquisition, transformation, composition and delegation.
"""

from __future__ import annotations

from .composer import ComposedSchema, compose_schemas
from .context import RequestContext
from .delegation import (
    DelegationResolver,
    ForwardArgumentResolver,
    RootFieldDelegate,
    delegate_to_schema,
    resolve_proxied_field,
)
from .executors import Executor, LocalExecutor, RemoteExecutor
from .schema_handle import SchemaHandle, introspect_schema
from .transformer import TransformedSchema, transform_schema

__all__ = [
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
    "resolve_proxied_field",
    "RootFieldDelegate",
    "DelegationResolver",
    "ForwardArgumentResolver",
]

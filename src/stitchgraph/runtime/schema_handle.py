"""
Schema handles and the remote schema acquirer.

A SchemaHandle is an introspected type system bound to the executor that can
answer queries against it. It is independently executable: it never needs the
composed schema to answer a query.

Usage:
    executor = RemoteExecutor("http://catalog:4000/graphql", name="catalog")
    handle = await introspect_schema(executor, name="catalog")
    result = await handle.execute(parse("{ customer(id: 1) { name } }"))
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from graphql import DocumentNode, GraphQLError, GraphQLSchema, build_client_schema, get_introspection_query, parse

from ..core.errors import IntrospectionError, TransportError
from ..core.query_types import GraphResult
from .executors import Executor

logger = logging.getLogger(__name__)


INTROSPECTION_DOCUMENT = parse(get_introspection_query(descriptions=True))


class SchemaHandle:
    """
    Introspected schema bound to an executor.

    Attributes:
        name: Constituent name (used in logs, errors and delegate lookups)
        tree: The introspection "__schema" object
        schema: graphql-core schema built from the tree (no resolvers)
        executor: Executor answering queries for this schema
    """

    def __init__(self, name: str, tree: dict[str, Any], executor: Executor):
        self.name = name
        self.tree = tree
        self.executor = executor
        self.schema: GraphQLSchema = build_client_schema({"__schema": tree})

    async def execute(
        self,
        document: DocumentNode,
        variables: Optional[dict[str, Any]] = None,
        context: Any = None,
    ) -> GraphResult:
        """Run a document through this handle's executor."""
        return await self.executor(document, variables, context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


async def introspect_schema(executor: Executor, name: str = "remote") -> SchemaHandle:
    """
    Introspect an origin and bind its schema to the executor.

    Args:
        executor: Executor for the origin
        name: Constituent name

    Returns:
        SchemaHandle valid at acquisition time

    Raises:
        IntrospectionError: If the query fails or the result is incomplete
    """
    try:
        result = await executor(INTROSPECTION_DOCUMENT)
    except TransportError as e:
        raise IntrospectionError(name, str(e)) from e

    if result.errors:
        raise IntrospectionError(name, "; ".join(e.message for e in result.errors))

    tree = (result.data or {}).get("__schema")
    if not isinstance(tree, dict):
        raise IntrospectionError(name, "response has no __schema")
    if not (tree.get("queryType") or {}).get("name"):
        raise IntrospectionError(name, "schema has no query root type")
    if not isinstance(tree.get("types"), list):
        raise IntrospectionError(name, "schema has no types")

    try:
        handle = SchemaHandle(name, tree, executor)
    except (TypeError, KeyError, GraphQLError) as e:
        raise IntrospectionError(name, str(e)) from e

    logger.info(f"Acquired schema '{name}': {len(tree['types'])} types")
    return handle

"""
Schema composer - merges constituent schemas and link definitions.

Composition:
1. Merge constituent introspection trees (collisions are fatal)
2. Validate link type definitions against the merged type names
3. Check every link field has a resolver (and every resolver a link field)
4. Build the composed graphql-core schema and install resolvers

Usage:
    composed = compose_schemas(
        [catalog, orders],
        type_defs='''
            extend type Query { customer(id: ID!): Customer }
            type Customer { catalog: CatalogCustomer  order: OrderCustomer }
        ''',
        resolvers={
            "Query": {"customer": ForwardArgument("id")},
            "Customer": {
                "catalog": Delegate("catalog", "CatalogCustomer"),
                "order": Delegate("order", "OrderCustomer"),
            },
        },
    )
    result = await composed.execute(parse(query), variables, context)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from inspect import isawaitable
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from graphql import (
    DocumentNode,
    GraphQLError,
    GraphQLObjectType,
    GraphQLSchema,
    OperationType,
    build_client_schema,
    execute,
    extend_schema,
    get_operation_ast,
    parse,
    print_schema,
    validate,
)

from ..core.defs import Delegate, ForwardArgument
from ..core.errors import GraphConfigError, MissingResolverError, SchemaCollisionError, UnresolvedTypeError
from ..core.query_types import GraphErrorRecord, GraphResult
from ..core.type_tree import (
    COMPOSED_ROOT_NAMES,
    declared_fields,
    defined_types,
    extended_types,
    find_type,
    is_builtin_type,
    merge_trees,
    referenced_types,
)
from .delegation import (
    DelegationResolver,
    ForwardArgumentResolver,
    RootFieldDelegate,
    resolve_proxied_field,
)
from .schema_handle import SchemaHandle

logger = logging.getLogger(__name__)


Resolver = Union[Callable[..., Any], Delegate, ForwardArgument]
LinkResolverMap = Mapping[str, Mapping[str, Resolver]]


@dataclass(frozen=True)
class ComposedSchema:
    """
    Composed schema, built once and never modified.

    Attributes:
        schema: Executable graphql-core schema
        subschemas: Constituent handles, in composition order
        link_fields: (type, field) pairs introduced by link definitions
    """
    schema: GraphQLSchema
    subschemas: tuple[SchemaHandle, ...]
    link_fields: tuple[tuple[str, str], ...] = ()

    def get_subschema(self, name: str) -> Optional[SchemaHandle]:
        """Get a constituent by name."""
        return next((s for s in self.subschemas if s.name == name), None)

    def print_sdl(self) -> str:
        """Render the composed schema as SDL."""
        return print_schema(self.schema)

    async def execute(
        self,
        document: DocumentNode,
        variables: Optional[dict[str, Any]] = None,
        context: Any = None,
        operation_name: Optional[str] = None,
    ) -> GraphResult:
        """
        Validate and execute a document against the composed schema.

        Returns:
            GraphResult with partial data and per-field errors
        """
        validation_errors = validate(self.schema, document)
        if validation_errors:
            return GraphResult(
                data=None,
                errors=[GraphErrorRecord.from_graphql_error(e) for e in validation_errors],
            )

        operation = get_operation_ast(document, operation_name)
        if operation is not None and operation.operation == OperationType.SUBSCRIPTION:
            return GraphResult(errors=[GraphErrorRecord(message="Subscriptions are not supported")])

        result = execute(
            self.schema,
            document,
            context_value=context,
            variable_values=variables,
            operation_name=operation_name,
        )
        if isawaitable(result):
            result = await result
        return GraphResult.from_execution_result(result)


# =============================================================================
# Validation of link definitions
# =============================================================================


def _check_link_definitions(document: DocumentNode, merged_tree: dict[str, Any]) -> None:
    known = {t["name"] for t in merged_tree["types"]}
    defined = defined_types(document)

    for name in defined:
        if name in known or is_builtin_type(name):
            raise SchemaCollisionError(name, ["constituent schemas", "link definitions"])
    if len(set(defined)) != len(defined):
        duplicate = next(n for n in defined if defined.count(n) > 1)
        raise SchemaCollisionError(duplicate, ["link definitions", "link definitions"])

    available = known | set(defined)
    for name in extended_types(document):
        if name not in available:
            raise UnresolvedTypeError(name, f"extend type {name}")
    for name, owner in referenced_types(document):
        if name not in available and not is_builtin_type(name):
            raise UnresolvedTypeError(name, owner)

    for type_name, field_name in declared_fields(document):
        type_def = find_type(merged_tree, type_name)
        existing = {f["name"] for f in (type_def or {}).get("fields") or []}
        if field_name in existing:
            raise SchemaCollisionError(
                f"{type_name}.{field_name}", ["constituent schemas", "link definitions"], kind="field"
            )


def _check_resolvers(
    link_fields: Sequence[tuple[str, str]],
    resolvers: LinkResolverMap,
) -> None:
    declared = set(link_fields)
    for type_name, field_name in link_fields:
        if field_name not in resolvers.get(type_name, {}):
            raise MissingResolverError(type_name, field_name)
    for type_name, fields in resolvers.items():
        for field_name in fields:
            if (type_name, field_name) not in declared:
                raise GraphConfigError(
                    f"Resolver '{type_name}.{field_name}' has no matching link field"
                )


def _bind_resolver(
    resolver: Resolver,
    subschemas: Mapping[str, SchemaHandle],
    required_fields: Mapping[str, Sequence[str]],
) -> Callable[..., Any]:
    """Turn a resolver descriptor into a callable via the constituent lookup table."""
    if isinstance(resolver, Delegate):
        target = subschemas.get(resolver.service)
        if target is None:
            raise GraphConfigError(f"Delegate targets unknown schema '{resolver.service}'")
        root_type = target.schema.mutation_type if resolver.operation == "mutation" else target.schema.query_type
        if root_type is None or resolver.field_name not in root_type.fields:
            raise GraphConfigError(
                f"Delegate targets unknown field '{resolver.field_name}' on '{resolver.service}'"
            )
        if resolver.argument not in root_type.fields[resolver.field_name].args:
            raise GraphConfigError(
                f"Delegate targets unknown argument '{resolver.argument}' "
                f"of '{resolver.service}.{resolver.field_name}'"
            )
        return DelegationResolver(resolver, target, required_fields)
    if isinstance(resolver, ForwardArgument):
        return ForwardArgumentResolver(resolver.name)
    if callable(resolver):
        return resolver
    raise GraphConfigError(f"Invalid resolver: {resolver!r}")


# =============================================================================
# Composition
# =============================================================================


def compose_schemas(
    subschemas: Sequence[SchemaHandle],
    type_defs: str = "",
    resolvers: Optional[LinkResolverMap] = None,
) -> ComposedSchema:
    """
    Merge constituent schemas plus link definitions into one schema.

    Args:
        subschemas: Transformed, collision-free constituent handles
        type_defs: Link type definitions (SDL)
        resolvers: {type: {field: resolver}} for exactly the link fields

    Returns:
        Immutable ComposedSchema

    Raises:
        SchemaCollisionError: If a type or root field is defined twice
        UnresolvedTypeError: If link definitions reference an unknown type
        MissingResolverError: If a link field has no resolver
        GraphConfigError: If a resolver is invalid or matches no link field
    """
    resolvers = resolvers or {}
    table: dict[str, SchemaHandle] = {}
    for subschema in subschemas:
        if subschema.name in table:
            raise GraphConfigError(f"Duplicate schema name '{subschema.name}'")
        table[subschema.name] = subschema

    merged_tree, root_owners = merge_trees([(s.name, s.tree) for s in subschemas])

    link_document: Optional[DocumentNode] = None
    link_fields: list[tuple[str, str]] = []
    if type_defs.strip():
        try:
            link_document = parse(type_defs)
        except GraphQLError as e:
            raise GraphConfigError(f"Invalid link type definitions: {e.message}") from e
        _check_link_definitions(link_document, merged_tree)
        link_fields = declared_fields(link_document)
    _check_resolvers(link_fields, resolvers)

    # Keys link resolvers read from parents of constituent types
    required_fields: dict[str, tuple[str, ...]] = {}
    for type_name, fields in resolvers.items():
        for resolver in fields.values():
            if isinstance(resolver, Delegate) and resolver.source:
                required_fields[type_name] = (*required_fields.get(type_name, ()), resolver.source)

    bound = {
        (type_name, field_name): _bind_resolver(resolver, table, required_fields)
        for type_name, fields in resolvers.items()
        for field_name, resolver in fields.items()
    }

    schema = build_client_schema({"__schema": merged_tree})
    if link_document is not None:
        try:
            schema = extend_schema(schema, link_document)
        except (TypeError, GraphQLError) as e:
            raise GraphConfigError(f"Invalid link type definitions: {e}") from e

    _install_resolvers(schema, root_owners, table, bound, required_fields)

    logger.info(
        f"Composed schema from {len(subschemas)} schemas: "
        f"{sum(len(f) for f in root_owners.values())} root fields, {len(link_fields)} link fields"
    )
    return ComposedSchema(schema=schema, subschemas=tuple(subschemas), link_fields=tuple(link_fields))


def _install_resolvers(
    schema: GraphQLSchema,
    root_owners: Mapping[str, Mapping[str, str]],
    table: Mapping[str, SchemaHandle],
    bound: Mapping[tuple[str, str], Callable[..., Any]],
    required_fields: Mapping[str, Sequence[str]],
) -> None:
    root_types = {
        operation: schema.get_type(name) for operation, name in COMPOSED_ROOT_NAMES.items()
    }

    for type_name, named_type in schema.type_map.items():
        if is_builtin_type(type_name) or not isinstance(named_type, GraphQLObjectType):
            continue
        operation = next((op for op, t in root_types.items() if t is named_type), None)
        for field_name, field in named_type.fields.items():
            if (type_name, field_name) in bound:
                field.resolve = bound[(type_name, field_name)]
            elif operation is not None:
                owner = root_owners[operation].get(field_name)
                if owner is not None:
                    field.resolve = RootFieldDelegate(table[owner], operation, required_fields)
            else:
                field.resolve = resolve_proxied_field

"""
Delegation - resolve a field by re-executing its sub-selection on a
constituent schema.

Handles:
- Building a document scoped to the current field's selection set
- Filtering out link fields the constituent does not know
- Carrying fragments and outer variables the selection set uses
- Placing upstream errors at their position in the outer result
- Reading proxied values by response key (aliases)

Delegation always targets a constituent handle, never the composed schema.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from graphql import (
    REMOVE,
    ArgumentNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    GraphQLObjectType,
    GraphQLResolveInfo,
    GraphQLSchema,
    NameNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    TypeInfo,
    TypeInfoVisitor,
    VariableDefinitionNode,
    VariableNode,
    Visitor,
    default_field_resolver,
    parse_type,
    visit,
)

from ..core.defs import Delegate
from ..core.errors import UpstreamGraphError
from ..core.query_types import GraphErrorRecord, GraphResult
from .schema_handle import SchemaHandle

logger = logging.getLogger(__name__)


OPERATION_TYPES = {
    "query": OperationType.QUERY,
    "mutation": OperationType.MUTATION,
}


def _field(name: str) -> FieldNode:
    return FieldNode(name=NameNode(value=name), arguments=(), directives=())


def _selects(selection_set: SelectionSetNode, name: str) -> bool:
    return any(
        isinstance(s, FieldNode) and s.alias is None and s.name.value == name
        for s in selection_set.selections
    )


# =============================================================================
# Document building
# =============================================================================


class _UsageCollector(Visitor):
    """Collects fragment spreads and variables used below a node."""

    def __init__(self):
        super().__init__()
        self.fragments: list[str] = []
        self.variables: list[str] = []

    def enter_fragment_spread(self, node, *_args):
        if node.name.value not in self.fragments:
            self.fragments.append(node.name.value)

    def enter_variable(self, node, *_args):
        if node.name.value not in self.variables:
            self.variables.append(node.name.value)


class _FilterToSchema(Visitor):
    """
    Fits a document to the target schema.

    Removes fields and fragments the target does not define (link fields),
    and adds __typename plus the keys link resolvers read from parents to
    every selection set.
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        type_info: TypeInfo,
        dropped_fragments: set[str],
        required_fields: Mapping[str, Sequence[str]],
    ):
        super().__init__()
        self.type_info = type_info
        self.dropped_fragments = dropped_fragments
        self.required_fields = required_fields
        self.root_types = (schema.query_type, schema.mutation_type)

    def enter_field(self, node, *_args):
        if self.type_info.get_field_def() is None:
            return REMOVE
        return None

    def enter_inline_fragment(self, node, *_args):
        if node.type_condition and self.type_info.get_type() is None:
            return REMOVE
        return None

    def enter_fragment_spread(self, node, *_args):
        if node.name.value in self.dropped_fragments:
            return REMOVE
        return None

    def leave_selection_set(self, node, *_args):
        parent = self.type_info.get_parent_type()
        if parent is None or parent in self.root_types:
            return None
        wanted = ["__typename"]
        if isinstance(parent, GraphQLObjectType):
            wanted += [f for f in self.required_fields.get(parent.name, ()) if f in parent.fields]
        missing = [name for name in wanted if not _selects(node, name)]
        if not missing:
            return None
        return SelectionSetNode(selections=(*node.selections, *(_field(n) for n in missing)))


def _collect_fragments(
    selection_set: Optional[SelectionSetNode],
    fragments: Mapping[str, FragmentDefinitionNode],
) -> list[FragmentDefinitionNode]:
    """Fragment definitions referenced by a selection set, transitively."""
    if selection_set is None:
        return []
    usage = _UsageCollector()
    visit(selection_set, usage)
    collected: list[FragmentDefinitionNode] = []
    index = 0
    while index < len(usage.fragments):
        fragment = fragments.get(usage.fragments[index])
        index += 1
        if fragment is not None:
            collected.append(fragment)
            visit(fragment.selection_set, usage)
    return collected


def _unique_variable(name: str, taken: set[str]) -> str:
    candidate = f"_{name}"
    index = 1
    while candidate in taken:
        candidate = f"_{name}{index}"
        index += 1
    taken.add(candidate)
    return candidate


def _inject_arguments(
    schema: SchemaHandle,
    operation: str,
    field_name: str,
    args: Mapping[str, Any],
    taken: set[str],
) -> tuple[list[ArgumentNode], dict[str, Any], list[VariableDefinitionNode]]:
    root_type = schema.schema.get_root_type(OPERATION_TYPES[operation])
    field_def = root_type.fields.get(field_name) if root_type else None
    if field_def is None:
        raise UpstreamGraphError(
            schema.name,
            [GraphErrorRecord(message=f"Unknown root field '{field_name}' on '{schema.name}'")],
        )

    arguments: list[ArgumentNode] = []
    values: dict[str, Any] = {}
    definitions: list[VariableDefinitionNode] = []
    for arg_name, value in args.items():
        arg_def = field_def.args.get(arg_name)
        if arg_def is None:
            raise UpstreamGraphError(
                schema.name,
                [GraphErrorRecord(message=f"Unknown argument '{arg_name}' on '{field_name}'")],
            )
        variable = VariableNode(name=NameNode(value=_unique_variable(arg_name, taken)))
        arguments.append(ArgumentNode(name=NameNode(value=arg_name), value=variable))
        definitions.append(
            VariableDefinitionNode(variable=variable, type=parse_type(str(arg_def.type)), directives=())
        )
        values[variable.name.value] = value
    return arguments, values, definitions


def build_delegation_document(
    schema: SchemaHandle,
    operation: str,
    field_name: str,
    args: Optional[Mapping[str, Any]],
    info: GraphQLResolveInfo,
    required_fields: Optional[Mapping[str, Sequence[str]]] = None,
) -> tuple[DocumentNode, dict[str, Any]]:
    """
    Build the document and variables for one delegated call.

    Args:
        schema: Target constituent
        operation: "query" or "mutation"
        field_name: Root field of the target to call
        args: Argument values to inject; None forwards the outer field's arguments
        info: Resolve info of the field being resolved
        required_fields: Type name -> fields link resolvers read from parents

    Returns:
        (document, variables)
    """
    selections = [
        selection
        for field_node in info.field_nodes
        if field_node.selection_set
        for selection in field_node.selection_set.selections
    ]
    selection_set = SelectionSetNode(selections=tuple(selections)) if selections else None
    fragments = _collect_fragments(selection_set, info.fragments)

    outer_definitions = {
        d.variable.name.value: d for d in info.operation.variable_definitions or ()
    }
    if args is None:
        arguments = list(info.field_nodes[0].arguments or ())
        injected: dict[str, Any] = {}
        injected_definitions: list[VariableDefinitionNode] = []
    else:
        arguments, injected, injected_definitions = _inject_arguments(
            schema, operation, field_name, args, set(outer_definitions)
        )

    root_field = FieldNode(
        name=NameNode(value=field_name),
        arguments=tuple(arguments),
        directives=(),
        selection_set=selection_set,
    )
    document = DocumentNode(definitions=(
        OperationDefinitionNode(
            operation=OPERATION_TYPES[operation],
            name=info.operation.name,
            variable_definitions=tuple(injected_definitions),
            directives=(),
            selection_set=SelectionSetNode(selections=(root_field,)),
        ),
        *fragments,
    ))

    dropped = {
        f.name.value for f in fragments if schema.schema.get_type(f.type_condition.name.value) is None
    }
    type_info = TypeInfo(schema.schema)
    schema_filter = _FilterToSchema(schema.schema, type_info, dropped, required_fields or {})
    document = visit(document, TypeInfoVisitor(type_info, schema_filter))

    # Keep only what the filtered operation still uses
    operation_node = document.definitions[0]
    kept_fragments = _collect_fragments(operation_node.selection_set, {
        d.name.value: d
        for d in document.definitions
        if isinstance(d, FragmentDefinitionNode) and d.name.value not in dropped
    })
    usage = _UsageCollector()
    visit(DocumentNode(definitions=(operation_node, *kept_fragments)), usage)

    used_outer = [name for name in usage.variables if name in outer_definitions and name not in injected]
    variables = {name: info.variable_values[name] for name in used_outer if name in info.variable_values}
    variables.update(injected)

    operation_node = OperationDefinitionNode(
        operation=operation_node.operation,
        name=operation_node.name,
        variable_definitions=(
            *(outer_definitions[name] for name in used_outer),
            *injected_definitions,
        ),
        directives=(),
        selection_set=operation_node.selection_set,
    )
    return DocumentNode(definitions=(operation_node, *kept_fragments)), variables


# =============================================================================
# Result handling
# =============================================================================


def _place_error(value: Any, path: Sequence[Any], error: UpstreamGraphError) -> bool:
    """
    Replace the null at `path` inside `value` with an error marker.

    Walks as far as the path exists; the first null on the way is where the
    error bubbled to. Returns False when there is no null to replace.
    """
    container = value
    for segment in path:
        try:
            child = container[segment]
        except (KeyError, IndexError, TypeError):
            return False
        if child is None:
            container[segment] = error
            return True
        container = child
    return False


def unpack_result(schema: SchemaHandle, field_name: str, result: GraphResult) -> Any:
    """
    Extract the delegated field value and place upstream errors in it.

    Errors whose path ends at a null inside the value become error markers at
    that position. Errors with no such position fail the delegated field.

    Raises:
        UpstreamGraphError: If the field value is null and errors were reported,
            or if an error cannot be placed in the value
    """
    value = (result.data or {}).get(field_name)
    if not result.errors:
        return value

    if value is None:
        raise UpstreamGraphError(schema.name, result.errors)

    unplaced = []
    for error in result.errors:
        path = error.path or []
        placed = (
            len(path) > 1
            and path[0] == field_name
            and _place_error(value, path[1:], UpstreamGraphError(schema.name, [error]))
        )
        if not placed:
            unplaced.append(error)
    if unplaced:
        raise UpstreamGraphError(schema.name, unplaced)
    return value


async def delegate_to_schema(
    schema: SchemaHandle,
    operation: str,
    field_name: str,
    args: Optional[Mapping[str, Any]],
    context: Any,
    info: GraphQLResolveInfo,
    required_fields: Optional[Mapping[str, Sequence[str]]] = None,
) -> Any:
    """
    Resolve the current field by calling `field_name` on a constituent.

    Args:
        schema: Target constituent handle
        operation: "query" or "mutation"
        field_name: Root field of the target
        args: Argument values to inject (None forwards the outer arguments)
        context: Request context, forwarded to the executor
        info: Resolve info of the current field
        required_fields: Type name -> fields link resolvers read from parents

    Returns:
        The delegated field value

    Raises:
        TransportError: If the origin cannot be reached
        UpstreamGraphError: If the origin reports errors for a null value
    """
    document, variables = build_delegation_document(
        schema, operation, field_name, args, info, required_fields
    )
    logger.debug(f"Delegating {info.parent_type.name}.{info.field_name} -> {schema.name}.{field_name}")
    result = await schema.execute(document, variables, context)
    return unpack_result(schema, field_name, result)


# =============================================================================
# Resolvers
# =============================================================================


def resolve_proxied_field(parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
    """
    Default resolver for fields of constituent types.

    Delegated payloads are keyed by response key (alias or name). Error
    markers placed by unpack_result are returned as is and reported by the
    execution engine at this position.
    """
    if isinstance(parent, dict):
        return parent.get(info.path.key)
    return default_field_resolver(parent, info, **args)


class RootFieldDelegate:
    """Passthrough resolver for a constituent root field in the composed schema."""

    def __init__(
        self,
        schema: SchemaHandle,
        operation: str,
        required_fields: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self.schema = schema
        self.operation = operation
        self.required_fields = required_fields or {}

    async def __call__(self, parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        return await delegate_to_schema(
            self.schema,
            self.operation,
            info.field_name,
            None,
            info.context,
            info,
            self.required_fields,
        )


class DelegationResolver:
    """
    Link resolver bound to a Delegate descriptor and its resolved target.

    Usage:
        resolver = DelegationResolver(Delegate("catalog", "CatalogCustomer"), catalog)
        value = await resolver(parent, info)
    """

    def __init__(
        self,
        delegate: Delegate,
        schema: SchemaHandle,
        required_fields: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self.delegate = delegate
        self.schema = schema
        self.required_fields = required_fields or {}

    def lookup_value(self, parent: Any) -> Any:
        """Argument value carried by the parent."""
        if self.delegate.source is None:
            return parent
        if isinstance(parent, dict):
            return parent.get(self.delegate.source)
        return getattr(parent, self.delegate.source, None)

    async def __call__(self, parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        value = self.lookup_value(parent)
        if value is None:
            return None
        return await delegate_to_schema(
            self.schema,
            self.delegate.operation,
            self.delegate.field_name,
            {self.delegate.argument: value},
            info.context,
            info,
            self.required_fields,
        )


class ForwardArgumentResolver:
    """Link resolver returning one of the field's arguments."""

    def __init__(self, name: str):
        self.name = name

    def __call__(self, parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        return args.get(self.name)

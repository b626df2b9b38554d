"""
Schema transformer - renames types and root fields of a schema handle.

The transformed handle exposes the renamed surface and stays independently
executable: incoming documents are rewritten back to the original names
before they reach the wrapped handle, and __typename values in results are
rewritten forward.

Usage:
    catalog = await introspect_schema(RemoteExecutor(url), name="catalog")
    renamed = transform_schema(catalog, namespace_rules("Catalog"))
    # type Customer      -> CatalogCustomer
    # Query.customer(id) -> Query.CatalogCustomer(id)
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from graphql import (
    DocumentNode,
    FieldNode,
    NameNode,
    NamedTypeNode,
    TypeInfo,
    TypeInfoVisitor,
    Visitor,
    visit,
)

from ..core.defs import RenameRule
from ..core.query_types import GraphResult
from ..core.type_tree import (
    check_unique,
    find_type,
    is_builtin_type,
    rename_fields,
    rename_types,
    root_type_names,
)
from ..core.utils import map_typenames
from .schema_handle import SchemaHandle

logger = logging.getLogger(__name__)


def _first_match(rules: Sequence[RenameRule], name: str) -> str:
    for rule in rules:
        renamed = rule.apply(name)
        if renamed is not None:
            return renamed
    return name


class _RestoreOriginalNames(Visitor):
    """Rewrites a document written against renamed names to original names."""

    def __init__(self, type_info: TypeInfo, transformed: "TransformedSchema"):
        super().__init__()
        self.type_info = type_info
        self.transformed = transformed

    def leave_named_type(self, node, *_args):
        original = self.transformed.original_type_names.get(node.name.value)
        if original is None:
            return None
        return NamedTypeNode(name=NameNode(value=original))

    def leave_field(self, node, *_args):
        parent = self.type_info.get_parent_type()
        operation = self.transformed.root_operations.get(parent.name) if parent else None
        if operation is None:
            return None
        original = self.transformed.original_root_fields.get(operation, {}).get(node.name.value)
        if original is None:
            return None
        # Keep the renamed response key so the result shape is unchanged.
        return FieldNode(
            alias=node.alias or NameNode(value=node.name.value),
            name=NameNode(value=original),
            arguments=node.arguments,
            directives=node.directives,
            selection_set=node.selection_set,
        )


class _TypenameKeys(Visitor):
    """Collects the response keys of __typename selections, aliases included."""

    def __init__(self):
        super().__init__()
        self.keys = {"__typename"}

    def enter_field(self, node, *_args):
        if node.name.value == "__typename" and node.alias:
            self.keys.add(node.alias.value)


def typename_keys(document: DocumentNode) -> frozenset[str]:
    """Response keys under which a document selects __typename."""
    collector = _TypenameKeys()
    visit(document, collector)
    return frozenset(collector.keys)


class TransformedSchema(SchemaHandle):
    """
    Schema handle with a renamed public surface.

    Attributes:
        inner: The wrapped handle (original names)
        type_names: original type name -> renamed type name
        original_type_names: renamed -> original
        root_fields: operation -> {original root field -> renamed}
        original_root_fields: operation -> {renamed -> original}
        root_operations: root type name -> operation
    """

    def __init__(self, inner: SchemaHandle, rules: Sequence[RenameRule]):
        self.inner = inner
        self.rules = tuple(rules)

        type_rules = [r for r in self.rules if r.target == "type"]
        field_rules = [r for r in self.rules if r.target == "root_field"]

        tree = inner.tree
        roots = root_type_names(tree)
        root_names = set(roots.values())

        # Types
        all_types = {
            t["name"]: t["name"] if is_builtin_type(t["name"]) or t["name"] in root_names
            else _first_match(type_rules, t["name"])
            for t in tree.get("types", [])
        }
        check_unique(all_types, "type", inner.name)
        self.type_names = {k: v for k, v in all_types.items() if k != v}
        self.original_type_names = {v: k for k, v in self.type_names.items()}
        tree = rename_types(tree, self.type_names)

        # Root fields
        self.root_fields: dict[str, dict[str, str]] = {}
        for operation, root_name in roots.items():
            root = find_type(tree, root_name)
            names = [f["name"] for f in (root or {}).get("fields") or []]
            mapping = {n: _first_match(field_rules, n) for n in names}
            check_unique(mapping, "field", f"{inner.name}.{root_name}")
            changed = {k: v for k, v in mapping.items() if k != v}
            if changed:
                tree = rename_fields(tree, root_name, changed)
                self.root_fields[operation] = changed
        self.original_root_fields = {
            op: {v: k for k, v in fields.items()} for op, fields in self.root_fields.items()
        }
        self.root_operations = {name: op for op, name in roots.items()}

        super().__init__(inner.name, tree, self._execute_renamed)

        logger.debug(
            f"Transformed schema '{self.name}': {len(self.type_names)} types, "
            f"{sum(len(f) for f in self.root_fields.values())} root fields renamed"
        )

    def restore_document(self, document: DocumentNode) -> DocumentNode:
        """Rewrite a document from renamed names back to original names."""
        type_info = TypeInfo(self.schema)
        return visit(document, TypeInfoVisitor(type_info, _RestoreOriginalNames(type_info, self)))

    def forward_result(
        self,
        result: GraphResult,
        keys: frozenset[str] = frozenset({"__typename"}),
    ) -> GraphResult:
        """Rewrite __typename values (stored under `keys`) of a result to renamed names."""
        if not self.type_names or result.data is None:
            return result
        data = map_typenames(result.data, lambda name: self.type_names.get(name, name), keys)
        return GraphResult(data=data, errors=result.errors)

    async def _execute_renamed(
        self,
        document: DocumentNode,
        variables: Optional[dict[str, Any]] = None,
        context: Any = None,
    ) -> GraphResult:
        result = await self.inner.execute(self.restore_document(document), variables, context)
        return self.forward_result(result, typename_keys(document))


def transform_schema(handle: SchemaHandle, rules: Sequence[RenameRule]) -> TransformedSchema:
    """
    Apply rename rules to a schema handle.

    First matching rule wins; unmatched names are unchanged. Built-in scalars,
    introspection types and root operation types are never renamed.

    Raises:
        SchemaCollisionError: If two names end up with the same new name
    """
    return TransformedSchema(handle, rules)

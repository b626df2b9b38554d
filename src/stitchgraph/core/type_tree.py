"""
Pure operations over type-system trees.

Two tree shapes are handled here:

1. Introspection trees - the "__schema" object of an introspection result.
   Every type node and every type reference is tagged with "kind"
   (OBJECT, SCALAR, ENUM, LIST, NON_NULL, INTERFACE, UNION, INPUT_OBJECT),
   so renaming and merging are plain tree rewrites.

2. Link definition documents - SDL parsed by graphql-core, inspected for the
   type names they reference and the fields they declare.

Nothing here mutates its input.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional, Sequence

from graphql import (
    DocumentNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    TypeDefinitionNode,
    TypeExtensionNode,
    Visitor,
    visit,
)

from .errors import SchemaCollisionError


BUILTIN_SCALARS = frozenset({"String", "Int", "Float", "Boolean", "ID"})

OPERATION_KEYS = {
    "query": "queryType",
    "mutation": "mutationType",
    "subscription": "subscriptionType",
}

# Composed schemas expose plain root names; subscriptions are not composed.
COMPOSED_ROOT_NAMES = {"query": "Query", "mutation": "Mutation"}


def is_builtin_type(name: str) -> bool:
    """Built-in scalars and introspection types are never renamed or merged."""
    return name in BUILTIN_SCALARS or name.startswith("__")


def root_type_names(tree: Mapping[str, Any]) -> dict[str, str]:
    """Map operation ("query", "mutation", "subscription") to root type name."""
    roots = {}
    for operation, key in OPERATION_KEYS.items():
        ref = tree.get(key)
        if ref and ref.get("name"):
            roots[operation] = ref["name"]
    return roots


def find_type(tree: Mapping[str, Any], name: str) -> Optional[dict[str, Any]]:
    """Return the type node called `name`, if any."""
    return next((t for t in tree.get("types", []) if t.get("name") == name), None)


# =============================================================================
# Renaming
# =============================================================================


def _rename_tagged(node: Any, type_map: Mapping[str, str]) -> Any:
    if isinstance(node, dict):
        renamed = {k: _rename_tagged(v, type_map) for k, v in node.items()}
        name = node.get("name")
        if "kind" in node and isinstance(name, str):
            renamed["name"] = type_map.get(name, name)
        return renamed
    if isinstance(node, list):
        return [_rename_tagged(item, type_map) for item in node]
    return node


def rename_types(tree: Mapping[str, Any], type_map: Mapping[str, str]) -> dict[str, Any]:
    """
    Rename types and every reference to them.

    Args:
        tree: Introspection "__schema" object
        type_map: original name -> new name (missing names are kept)

    Returns:
        New tree with renamed type nodes, type references and root refs
    """
    renamed = _rename_tagged(tree, type_map)
    for key in OPERATION_KEYS.values():
        ref = renamed.get(key)
        if ref and ref.get("name") in type_map:
            renamed[key] = {**ref, "name": type_map[ref["name"]]}
    return renamed


def rename_fields(
    tree: Mapping[str, Any],
    type_name: str,
    field_map: Mapping[str, str],
) -> dict[str, Any]:
    """Rename fields of one type; other types are copied unchanged."""
    types = []
    for type_def in tree.get("types", []):
        if type_def.get("name") == type_name and type_def.get("fields"):
            type_def = {
                **type_def,
                "fields": [
                    {**f, "name": field_map.get(f["name"], f["name"])}
                    for f in type_def["fields"]
                ],
            }
        types.append(type_def)
    return {**tree, "types": types}


def check_unique(mapping: Mapping[str, str], kind: str, owner: str) -> None:
    """
    Fail if two original names map to the same new name.

    Raises:
        SchemaCollisionError: naming both originals
    """
    seen: dict[str, str] = {}
    for original, new in mapping.items():
        if new in seen:
            raise SchemaCollisionError(new, [f"{owner}:{seen[new]}", f"{owner}:{original}"], kind=kind)
        seen[new] = original


# =============================================================================
# Merging
# =============================================================================


def _root_type_node(name: str, fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "kind": "OBJECT",
        "name": name,
        "description": None,
        "fields": fields,
        "inputFields": None,
        "interfaces": [],
        "enumValues": None,
        "possibleTypes": None,
    }


def merge_trees(
    trees: Sequence[tuple[str, Mapping[str, Any]]],
) -> tuple[dict[str, Any], dict[str, dict[str, str]]]:
    """
    Merge introspection trees of several constituents.

    Root types are unified as Query / Mutation. Subscription roots are dropped.
    Built-in types are shared; any other type, and any root field, must come
    from exactly one constituent.

    Args:
        trees: (owner name, "__schema" object) pairs in composition order

    Returns:
        (merged tree, {operation: {root field name: owner name}})

    Raises:
        SchemaCollisionError: on a duplicated type or root field
    """
    types: dict[str, dict[str, Any]] = {}
    type_owners: dict[str, str] = {}
    root_fields: dict[str, list[dict[str, Any]]] = {op: [] for op in COMPOSED_ROOT_NAMES}
    field_owners: dict[str, dict[str, str]] = {op: {} for op in COMPOSED_ROOT_NAMES}
    directives: dict[str, dict[str, Any]] = {}

    for owner, tree in trees:
        roots = root_type_names(tree)
        retarget = {
            name: COMPOSED_ROOT_NAMES[op]
            for op, name in roots.items()
            if op in COMPOSED_ROOT_NAMES
        }
        tree = rename_types(tree, retarget)
        operation_of = {COMPOSED_ROOT_NAMES[op]: op for op in roots if op in COMPOSED_ROOT_NAMES}
        subscription_root = roots.get("subscription")

        for type_def in tree.get("types", []):
            name = type_def["name"]
            if name == subscription_root:
                continue
            if name in operation_of:
                operation = operation_of[name]
                for field_def in type_def.get("fields") or []:
                    field_name = field_def["name"]
                    if field_name in field_owners[operation]:
                        raise SchemaCollisionError(
                            f"{name}.{field_name}",
                            [field_owners[operation][field_name], owner],
                            kind="field",
                        )
                    field_owners[operation][field_name] = owner
                    root_fields[operation].append(field_def)
                continue
            if is_builtin_type(name):
                types.setdefault(name, type_def)
                continue
            if name in types:
                raise SchemaCollisionError(name, [type_owners[name], owner])
            types[name] = type_def
            type_owners[name] = owner

        for directive in tree.get("directives") or []:
            directives.setdefault(directive["name"], directive)

    merged_types = [_root_type_node("Query", root_fields["query"])]
    if root_fields["mutation"]:
        merged_types.append(_root_type_node("Mutation", root_fields["mutation"]))
    merged_types.extend(types.values())

    merged = {
        "queryType": {"name": "Query"},
        "mutationType": {"name": "Mutation"} if root_fields["mutation"] else None,
        "subscriptionType": None,
        "types": merged_types,
        "directives": list(directives.values()),
    }
    return merged, field_owners


# =============================================================================
# Link definitions
# =============================================================================


class _NamedTypeCollector(Visitor):
    """Collects every named type reference below a node."""

    def __init__(self):
        super().__init__()
        self.names: list[str] = []

    def enter_named_type(self, node, *_args):
        self.names.append(node.name.value)


def referenced_types(document: DocumentNode) -> Iterator[tuple[str, str]]:
    """Yield (referenced type name, referring definition name) pairs."""
    for definition in document.definitions:
        owner = definition.name.value if getattr(definition, "name", None) else "schema"
        collector = _NamedTypeCollector()
        visit(definition, collector)
        for name in collector.names:
            yield name, owner


def defined_types(document: DocumentNode) -> list[str]:
    """Names of types defined (not extended) by the document."""
    return [d.name.value for d in document.definitions if isinstance(d, TypeDefinitionNode)]


def extended_types(document: DocumentNode) -> list[str]:
    """Names of types extended by the document."""
    return [d.name.value for d in document.definitions if isinstance(d, TypeExtensionNode)]


def declared_fields(document: DocumentNode) -> list[tuple[str, str]]:
    """(type name, field name) of every object field the document declares."""
    fields = []
    for definition in document.definitions:
        if isinstance(definition, (ObjectTypeDefinitionNode, ObjectTypeExtensionNode)):
            for field_node in definition.fields or ():
                fields.append((definition.name.value, field_node.name.value))
    return fields

"""
Core dataclass definitions for stitchgraph.

These describe the static inputs of composition: origin services, rename
rules, and link resolver descriptors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Union

from .utils import to_pascal_case


@dataclass(frozen=True)
class ServiceDef:
    """
    Definition of an origin service.

    Example:
        ServiceDef(name="catalog", url="http://localhost:4000", namespace="Catalog")
    """
    name: str
    url: str
    namespace: Optional[str] = None
    rename_types: Optional[tuple[str, ...]] = None  # None = every type
    rename_root_fields: Optional[tuple[str, ...]] = None  # None = every root field
    headers: dict[str, str] = field(default_factory=dict)
    forward_headers: tuple[str, ...] = ()
    timeout: Optional[float] = 30.0

    def rename_rules(self) -> list["RenameRule"]:
        """Rules derived from the namespace (empty without a namespace)."""
        if not self.namespace:
            return []
        return namespace_rules(
            self.namespace,
            types=self.rename_types if self.rename_types is not None else "*",
            root_fields=self.rename_root_fields if self.rename_root_fields is not None else "*",
        )


@dataclass(frozen=True)
class RenameRule:
    """
    Pure name -> name mapping used by the schema transformer.

    `pattern` must match the whole original name; `template` is formatted
    with `name` (original) and `Name` (original in PascalCase).

    Examples:
        RenameRule("type", "Customer", "Catalog{name}").apply("Customer")
            -> "CatalogCustomer"
        RenameRule("root_field", "customer", "Catalog{Name}").apply("customer")
            -> "CatalogCustomer"
        RenameRule("type", "Customer", "Catalog{name}").apply("Order")
            -> None
    """
    target: Literal["type", "root_field"]
    pattern: str
    template: str

    def __post_init__(self):
        if self.target not in ("type", "root_field"):
            raise ValueError(f"Invalid rename target '{self.target}'")

    def apply(self, name: str) -> Optional[str]:
        """Return the new name, or None if the rule does not match."""
        if not re.fullmatch(self.pattern, name):
            return None
        return self.template.format(name=name, Name=to_pascal_case(name))


def namespace_rules(
    namespace: str,
    types: Union[str, Sequence[str]] = "*",
    root_fields: Union[str, Sequence[str]] = "*",
) -> list[RenameRule]:
    """
    Build rename rules that prefix names with a service namespace.

    Args:
        namespace: Prefix, e.g. "Catalog"
        types: Type names to rename, or "*" for all of them
        root_fields: Root field names to rename, or "*" for all of them

    Returns:
        Rules turning `Customer` into `CatalogCustomer` and the root field
        `customer` into `CatalogCustomer`.
    """
    def patterns(names: Union[str, Sequence[str]]) -> list[str]:
        if names == "*":
            return [r".*"]
        return [re.escape(n) for n in names]

    rules = [RenameRule("type", p, namespace + "{name}") for p in patterns(types)]
    rules += [RenameRule("root_field", p, namespace + "{Name}") for p in patterns(root_fields)]
    return rules


# =============================================================================
# Link resolver descriptors
# =============================================================================


@dataclass(frozen=True)
class Delegate:
    """
    Link resolver that delegates to a root field of one constituent schema.

    The target is referenced by constituent name and resolved through the
    composer's lookup table, never chosen from the query.

    Example:
        Customer:
            catalog: Delegate("catalog", "CatalogCustomer", argument="id")

    With `source=None` the parent value itself is passed as the argument;
    otherwise `parent[source]` is used.
    """
    service: str
    field_name: str
    argument: str = "id"
    source: Optional[str] = None
    operation: Literal["query", "mutation"] = "query"


@dataclass(frozen=True)
class ForwardArgument:
    """
    Link resolver returning one of the field's own arguments.

    Typical for an entry point that only carries an entity key down to the
    link type:  Query.customer(id: ID!) -> ForwardArgument("id")
    """
    name: str

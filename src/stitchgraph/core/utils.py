"""
Utility functions for stitchgraph.

Includes:
- Case conversion (snake_case / camelCase -> PascalCase)
- Deep rewriting of __typename values in result payloads
"""

from __future__ import annotations

import re
from typing import Any, Callable, Collection


# =============================================================================
# Case conversion utilities
# =============================================================================

_SNAKE_TO_CAMEL_PATTERN = re.compile(r'_([a-z])')


def to_camel_case(name: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        customer_by_id -> customerById
        customer -> customer
    """
    def replace_underscore(match):
        return match.group(1).upper()

    return _SNAKE_TO_CAMEL_PATTERN.sub(replace_underscore, name)


def to_pascal_case(name: str) -> str:
    """
    Convert snake_case or camelCase to PascalCase.

    Examples:
        customer -> Customer
        customerById -> CustomerById
        order_items -> OrderItems
    """
    camel = to_camel_case(name)
    return camel[0].upper() + camel[1:] if camel else camel


# =============================================================================
# Deep conversion utilities
# =============================================================================


def map_typenames(
    data: Any,
    rename: Callable[[str], str],
    keys: Collection[str] = ("__typename",),
) -> Any:
    """
    Recursively rewrite every "__typename" value in a result payload.

    Works with nested dicts and lists; other values are returned as is.
    `keys` lists the response keys holding type names (aliased __typename).

    Example:
        {"customer": {"__typename": "Customer", "id": "1"}}
        ->
        {"customer": {"__typename": "CatalogCustomer", "id": "1"}}
    """
    if isinstance(data, dict):
        return {
            k: rename(v) if k in keys and isinstance(v, str) else map_typenames(v, rename, keys)
            for k, v in data.items()
        }
    elif isinstance(data, list):
        return [map_typenames(item, rename, keys) for item in data]
    else:
        return data

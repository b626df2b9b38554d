"""Tests for introspection tree operations."""

import pytest
from graphql import build_schema, get_introspection_query, graphql_sync, parse

from stitchgraph.core.errors import SchemaCollisionError
from stitchgraph.core.type_tree import (
    check_unique,
    declared_fields,
    defined_types,
    extended_types,
    find_type,
    merge_trees,
    referenced_types,
    rename_fields,
    rename_types,
    root_type_names,
)


def introspect(sdl):
    result = graphql_sync(build_schema(sdl), get_introspection_query(descriptions=True))
    assert not result.errors
    return result.data["__schema"]


SHOP = introspect("""
type Customer { id: ID!  orders: [Order!]! }
type Order { id: ID! }
type Query { customer(id: ID!): Customer }
""")

BLOG = introspect("""
type Post { id: ID!  title: String }
type RootQuery { post(id: ID!): Post }
type RootMutation { publish(id: ID!): Post }
schema { query: RootQuery  mutation: RootMutation }
""")


def test_rename_types_rewrites_references():
    tree = rename_types(SHOP, {"Order": "ShopOrder"})

    assert find_type(tree, "Order") is None
    customer = find_type(tree, "Customer")
    orders = next(f for f in customer["fields"] if f["name"] == "orders")
    # [Order!]! -> NON_NULL(LIST(NON_NULL(ShopOrder)))
    assert orders["type"]["ofType"]["ofType"]["ofType"]["name"] == "ShopOrder"
    # input is untouched
    assert find_type(SHOP, "Order") is not None


def test_rename_types_rewrites_root_references():
    tree = rename_types(BLOG, {"RootQuery": "Query"})
    assert root_type_names(tree)["query"] == "Query"


def test_rename_fields_only_touches_one_type():
    tree = rename_fields(SHOP, "Query", {"customer": "ShopCustomer"})
    assert [f["name"] for f in find_type(tree, "Query")["fields"]] == ["ShopCustomer"]
    assert "id" in [f["name"] for f in find_type(tree, "Customer")["fields"]]


def test_check_unique_reports_both_originals():
    with pytest.raises(SchemaCollisionError) as exc_info:
        check_unique({"Customer": "Same", "Order": "Same"}, "type", "shop")
    assert exc_info.value.name == "Same"
    assert exc_info.value.owners == ["shop:Customer", "shop:Order"]


def test_merge_trees_unifies_root_types():
    merged, owners = merge_trees([("shop", SHOP), ("blog", BLOG)])

    assert merged["queryType"] == {"name": "Query"}
    assert merged["mutationType"] == {"name": "Mutation"}
    assert find_type(merged, "RootQuery") is None
    assert [f["name"] for f in find_type(merged, "Query")["fields"]] == ["customer", "post"]
    assert owners["query"] == {"customer": "shop", "post": "blog"}
    assert owners["mutation"] == {"publish": "blog"}


def test_merge_trees_type_collision():
    with pytest.raises(SchemaCollisionError) as exc_info:
        merge_trees([("shop", SHOP), ("copy", SHOP)])
    assert exc_info.value.owners == ["shop", "copy"]


def test_merge_trees_root_field_collision():
    other = introspect("type Thing { id: ID }  type Query { customer: Thing }")
    with pytest.raises(SchemaCollisionError) as exc_info:
        merge_trees([("shop", SHOP), ("other", other)])
    assert exc_info.value.kind == "field"
    assert exc_info.value.name == "Query.customer"


def test_link_document_helpers():
    document = parse("""
        extend type Query { customer(id: ID!): Customer }
        type Customer { shop: ShopCustomer  rating: Int }
    """)

    assert defined_types(document) == ["Customer"]
    assert extended_types(document) == ["Query"]
    assert declared_fields(document) == [
        ("Query", "customer"),
        ("Customer", "shop"),
        ("Customer", "rating"),
    ]
    assert set(referenced_types(document)) == {
        ("ID", "Query"),
        ("Customer", "Query"),
        ("ShopCustomer", "Customer"),
        ("Int", "Customer"),
    }

"""Tests for schema composition."""

import pytest

from stitchgraph.core.defs import Delegate, ForwardArgument
from stitchgraph.core.errors import (
    GraphConfigError,
    MissingResolverError,
    SchemaCollisionError,
    UnresolvedTypeError,
)
from stitchgraph.runtime.composer import compose_schemas
from stitchgraph.runtime.schema_handle import introspect_schema

from conftest import LINK_RESOLVERS, LINK_TYPE_DEFS


@pytest.mark.asyncio
async def test_disjoint_schemas_union_root_fields(catalog_schema, order_schema):
    composed = compose_schemas([catalog_schema, order_schema])
    schema = composed.schema

    assert set(schema.query_type.fields) == {
        "CatalogCustomer",
        "CatalogCustomers",
        "OrderCustomer",
        "OrderOrder",
    }
    assert set(schema.mutation_type.fields) == {"CatalogRenameCustomer"}
    for name in ("CatalogCustomer", "CatalogAddress", "OrderCustomer", "OrderOrder"):
        assert schema.get_type(name) is not None
    assert composed.link_fields == ()


@pytest.mark.asyncio
async def test_link_definitions(composed):
    schema = composed.schema

    assert "customer" in schema.query_type.fields
    customer = schema.get_type("Customer")
    assert set(customer.fields) == {"catalog", "order"}
    assert str(customer.fields["catalog"].type) == "CatalogCustomer"
    assert composed.link_fields == (
        ("Query", "customer"),
        ("Customer", "catalog"),
        ("Customer", "order"),
    )
    assert "type Customer" in composed.print_sdl()


@pytest.mark.asyncio
async def test_get_subschema(composed, catalog_schema):
    assert composed.get_subschema("catalog") is catalog_schema
    assert composed.get_subschema("missing") is None


@pytest.mark.asyncio
async def test_type_collision_without_renames(catalog_executor, order_executor):
    catalog = await introspect_schema(catalog_executor, name="catalog")
    order = await introspect_schema(order_executor, name="order")

    with pytest.raises(SchemaCollisionError) as exc_info:
        compose_schemas([catalog, order])
    assert exc_info.value.owners == ["catalog", "order"]


@pytest.mark.asyncio
async def test_duplicate_schema_name(catalog_schema):
    with pytest.raises(GraphConfigError):
        compose_schemas([catalog_schema, catalog_schema])


@pytest.mark.asyncio
async def test_unresolved_link_type(catalog_schema, order_schema):
    with pytest.raises(UnresolvedTypeError) as exc_info:
        compose_schemas(
            [catalog_schema, order_schema],
            type_defs="extend type Query { invoice(id: ID!): Invoice }",
            resolvers={"Query": {"invoice": ForwardArgument("id")}},
        )
    assert exc_info.value.type_name == "Invoice"


@pytest.mark.asyncio
async def test_link_type_collides_with_constituent_type(catalog_schema, order_schema):
    with pytest.raises(SchemaCollisionError):
        compose_schemas(
            [catalog_schema, order_schema],
            type_defs="type CatalogCustomer { extra: String }",
            resolvers={"CatalogCustomer": {"extra": lambda parent, info: "x"}},
        )


@pytest.mark.asyncio
async def test_link_field_collides_with_constituent_field(catalog_schema, order_schema):
    with pytest.raises(SchemaCollisionError) as exc_info:
        compose_schemas(
            [catalog_schema, order_schema],
            type_defs="extend type CatalogCustomer { name: String }",
            resolvers={"CatalogCustomer": {"name": lambda parent, info: "x"}},
        )
    assert exc_info.value.kind == "field"


@pytest.mark.asyncio
async def test_missing_resolver(catalog_schema, order_schema):
    resolvers = {"Query": LINK_RESOLVERS["Query"], "Customer": {"catalog": LINK_RESOLVERS["Customer"]["catalog"]}}

    with pytest.raises(MissingResolverError) as exc_info:
        compose_schemas([catalog_schema, order_schema], type_defs=LINK_TYPE_DEFS, resolvers=resolvers)
    assert (exc_info.value.type_name, exc_info.value.field_name) == ("Customer", "order")


@pytest.mark.asyncio
async def test_resolver_without_link_field(catalog_schema, order_schema):
    resolvers = {**LINK_RESOLVERS, "Customer": {**LINK_RESOLVERS["Customer"], "extra": ForwardArgument("id")}}

    with pytest.raises(GraphConfigError, match="Customer.extra"):
        compose_schemas([catalog_schema, order_schema], type_defs=LINK_TYPE_DEFS, resolvers=resolvers)


@pytest.mark.asyncio
@pytest.mark.parametrize("delegate, message", [
    (Delegate("billing", "CatalogCustomer"), "unknown schema"),
    (Delegate("catalog", "customer"), "unknown field"),
    (Delegate("catalog", "CatalogCustomer", argument="key"), "unknown argument"),
    (Delegate("catalog", "CatalogCustomer", operation="mutation"), "unknown field"),
])
async def test_invalid_delegate(catalog_schema, order_schema, delegate, message):
    resolvers = {**LINK_RESOLVERS, "Customer": {**LINK_RESOLVERS["Customer"], "catalog": delegate}}

    with pytest.raises(GraphConfigError, match=message):
        compose_schemas([catalog_schema, order_schema], type_defs=LINK_TYPE_DEFS, resolvers=resolvers)


@pytest.mark.asyncio
async def test_invalid_link_sdl(catalog_schema):
    with pytest.raises(GraphConfigError):
        compose_schemas([catalog_schema], type_defs="type {", resolvers={})

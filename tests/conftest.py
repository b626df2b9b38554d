"""
Shared fixtures: two in-process origin services.

- catalog: customers with name / email / address
- order:   orders per customer

Each origin can be reached through LocalExecutor or through RemoteExecutor
over httpx.MockTransport (so the HTTP path is exercised without a network).
"""

import json

import httpx
import pytest
import pytest_asyncio
from graphql import build_schema, graphql_sync, print_ast

from stitchgraph import (
    Delegate,
    ForwardArgument,
    LocalExecutor,
    RemoteExecutor,
    compose_schemas,
    introspect_schema,
    namespace_rules,
    transform_schema,
)


CATALOG_SDL = """
type Address {
  city: String
}

type Customer {
  id: ID!
  name: String
  email: String
  address: Address
}

type Query {
  customer(id: ID!): Customer
  customers: [Customer!]!
}

type Mutation {
  renameCustomer(id: ID!, name: String!): Customer
}
"""

ORDER_SDL = """
type Order {
  id: ID!
  total: Float
  status: String
}

type Customer {
  id: ID!
  orders: [Order!]!
}

type Query {
  customer(id: ID!): Customer
  order(id: ID!): Order
}
"""

LINK_TYPE_DEFS = """
extend type Query {
  customer(id: ID!): Customer
}

type Customer {
  catalog: CatalogCustomer
  order: OrderCustomer
}
"""

LINK_RESOLVERS = {
    "Query": {"customer": ForwardArgument("id")},
    "Customer": {
        "catalog": Delegate("catalog", "CatalogCustomer"),
        "order": Delegate("order", "OrderCustomer"),
    },
}


def _hidden_email(info):
    raise ValueError("Email is hidden")


CUSTOMERS = {
    "1": {"id": "1", "name": "Ada", "email": "ada@example.com", "address": {"city": "London"}},
    "2": {"id": "2", "name": "Bob", "email": _hidden_email, "address": None},
}

ORDERS = {
    "o1": {"id": "o1", "total": 10.5, "status": "PAID"},
    "o2": {"id": "o2", "total": 99.0, "status": "SHIPPED"},
}

CUSTOMER_ORDERS = {"1": ["o1", "o2"], "2": []}


def _rename_customer(info, id, name):
    if id not in CUSTOMERS:
        return None
    return {**CUSTOMERS[id], "name": name}


def _order(info, id):
    if id not in ORDERS:
        raise ValueError(f"Order {id} not found")
    return ORDERS[id]


def catalog_root():
    return {
        "customer": lambda info, id: CUSTOMERS.get(id),
        "customers": lambda info: list(CUSTOMERS.values()),
        "renameCustomer": _rename_customer,
    }


def order_root():
    return {
        "customer": lambda info, id: {
            "id": id,
            "orders": [ORDERS[o] for o in CUSTOMER_ORDERS.get(id, [])],
        },
        "order": _order,
    }


class FakeOrigin:
    """In-process GraphQL origin answering HTTP requests via httpx.MockTransport."""

    def __init__(self, name, sdl, root_value):
        self.name = name
        self.schema = build_schema(sdl)
        self.root_value = root_value
        self.available = True
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if not self.available:
            raise httpx.ConnectError("Connection refused", request=request)
        body = json.loads(request.content)
        self.requests.append({"body": body, "headers": dict(request.headers)})
        result = graphql_sync(
            self.schema,
            body["query"],
            root_value=self.root_value,
            variable_values=body.get("variables"),
            operation_name=body.get("operationName"),
        )
        payload = {"data": result.data}
        if result.errors:
            payload["errors"] = [e.formatted for e in result.errors]
        return httpx.Response(200, json=payload)

    def remote_executor(self, **kwargs) -> RemoteExecutor:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return RemoteExecutor(f"http://{self.name}.test/graphql", name=self.name, client=client, **kwargs)

    def local_executor(self) -> LocalExecutor:
        return LocalExecutor(self.schema, name=self.name, root_value=self.root_value)


class RecordingExecutor:
    """Executor wrapper recording every call."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    async def __call__(self, document, variables=None, context=None):
        self.calls.append({"query": print_ast(document), "variables": variables, "context": context})
        return await self.inner(document, variables, context)


@pytest.fixture
def catalog_origin():
    return FakeOrigin("catalog", CATALOG_SDL, catalog_root())


@pytest.fixture
def order_origin():
    return FakeOrigin("order", ORDER_SDL, order_root())


@pytest.fixture
def catalog_executor(catalog_origin):
    return RecordingExecutor(catalog_origin.local_executor())


@pytest.fixture
def order_executor(order_origin):
    return RecordingExecutor(order_origin.remote_executor())


@pytest_asyncio.fixture
async def catalog_schema(catalog_executor):
    handle = await introspect_schema(catalog_executor, name="catalog")
    return transform_schema(handle, namespace_rules("Catalog"))


@pytest_asyncio.fixture
async def order_schema(order_executor):
    handle = await introspect_schema(order_executor, name="order")
    return transform_schema(handle, namespace_rules("Order"))


@pytest.fixture
def composed(catalog_schema, order_schema, catalog_executor, order_executor):
    schema = compose_schemas(
        [catalog_schema, order_schema],
        type_defs=LINK_TYPE_DEFS,
        resolvers=LINK_RESOLVERS,
    )
    # Only count request-time calls
    catalog_executor.calls.clear()
    order_executor.calls.clear()
    return schema

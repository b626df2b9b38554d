"""
Gateway example - two origin services linked through a Customer type.

Usage:
    uvicorn main:app --port 4001

    curl -X POST localhost:4001/graphql -H 'Content-Type: application/json' \
        -d '{"query": "{ customer(id: 1) { catalog { name } order { orders { total } } } }"}'
"""

from stitchgraph import Delegate, ForwardArgument, Gateway, ServiceDef

gateway = Gateway(
    services=[
        ServiceDef("catalog", "http://catalog:4000/graphql", namespace="Catalog",
                   forward_headers=("authorization",)),
        ServiceDef("order", "http://order:4000/graphql", namespace="Order"),
    ],
    type_defs="""
        extend type Query {
            customer(id: ID!): Customer
        }

        type Customer {
            catalog: CatalogCustomer
            order: OrderCustomer
        }
    """,
    resolvers={
        "Query": {"customer": ForwardArgument("id")},
        "Customer": {
            "catalog": Delegate("catalog", "CatalogCustomer"),
            "order": Delegate("order", "OrderCustomer"),
        },
    },
)

app = gateway.app

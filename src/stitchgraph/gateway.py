"""
Stitchgraph Gateway - main entry point for creating a gateway application.

Usage:
    from stitchgraph import Delegate, ForwardArgument, Gateway, ServiceDef

    gateway = Gateway(
        services=[
            ServiceDef("catalog", "http://catalog:4000", namespace="Catalog"),
            ServiceDef("order", "http://order:4000", namespace="Order"),
        ],
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

    app = gateway.app
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import List, Mapping, Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import mount_graphql
from .core.defs import ServiceDef
from .runtime.composer import ComposedSchema, LinkResolverMap, compose_schemas
from .runtime.executors import Executor, RemoteExecutor
from .runtime.schema_handle import SchemaHandle, introspect_schema
from .runtime.transformer import transform_schema

logger = logging.getLogger(__name__)


class HealthcheckLogFilter(logging.Filter):
    """Filter out noisy healthcheck and schema endpoint logs."""

    FILTERED_PATHS = ("/__schema.graphql", "/health")

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for path in self.FILTERED_PATHS:
            if f'"{path}' in message or f" {path} " in message:
                return False
        return True


def setup_logging_filter() -> None:
    """Add filter to uvicorn access logger to suppress healthcheck logs."""
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.addFilter(HealthcheckLogFilter())


def executor_for(service: ServiceDef) -> RemoteExecutor:
    """Remote executor configured from a service definition."""
    return RemoteExecutor(
        service.url,
        name=service.name,
        headers=service.headers,
        forward_headers=service.forward_headers,
        timeout=service.timeout,
    )


async def build_schema(
    services: Sequence[ServiceDef],
    type_defs: str = "",
    resolvers: Optional[LinkResolverMap] = None,
    executors: Optional[Mapping[str, Executor]] = None,
) -> ComposedSchema:
    """
    Introspect, transform and compose all services.

    Args:
        services: Ordered service definitions
        type_defs: Link type definitions (SDL)
        resolvers: Link resolvers
        executors: Optional executor per service name (default: RemoteExecutor)

    Returns:
        Composed schema

    Raises:
        CompositionError: If any service cannot be introspected or composed
    """
    executors = executors or {}
    handles = await asyncio.gather(*[
        introspect_schema(executors.get(s.name) or executor_for(s), name=s.name)
        for s in services
    ])

    subschemas: List[SchemaHandle] = []
    for service, handle in zip(services, handles):
        rules = service.rename_rules()
        subschemas.append(transform_schema(handle, rules) if rules else handle)

    return compose_schemas(subschemas, type_defs=type_defs, resolvers=resolvers)


class Gateway:
    """
    Stitchgraph Gateway that composes origin schemas at startup.

    Features:
    - Introspects all services concurrently at startup
    - Applies namespace renames and link definitions
    - Provides FastAPI app with the GraphQL endpoint and composed SDL

    The composed schema is built once; composition errors propagate.
    """

    def __init__(
        self,
        services: Sequence[ServiceDef],
        *,
        type_defs: str = "",
        resolvers: Optional[LinkResolverMap] = None,
        executors: Optional[Mapping[str, Executor]] = None,
        title: str = "Stitchgraph Gateway",
        cors_origins: Optional[List[str]] = None,
    ):
        """
        Initialize gateway.

        Args:
            services: Ordered service definitions
            type_defs: Link type definitions (SDL)
            resolvers: Link resolvers ({type: {field: resolver}})
            executors: Executor overrides per service name (in-process origins)
            title: FastAPI app title
            cors_origins: CORS allowed origins (default: localhost:3000)
        """
        self.services = list(services)
        self.type_defs = type_defs
        self.resolvers = resolvers or {}
        self.executors = dict(executors or {})
        self.title = title
        self.cors_origins = cors_origins or ["http://localhost:3000", "http://127.0.0.1:3000"]

        # Build composed schema
        self.schema = self._build_schema_sync()

        # Create FastAPI app
        self.app = self._create_app()
        self.app.state.gateway = self

    def _build_schema_sync(self) -> ComposedSchema:
        """Synchronous wrapper for schema composition."""
        coroutine = build_schema(self.services, self.type_defs, self.resolvers, self.executors)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coroutine)
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coroutine).result()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        app = FastAPI(
            title=self.title,
            description="Stitchgraph Gateway - composed GraphQL schema",
            version="1.0.0",
        )

        # CORS
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        mount_graphql(app, self.schema)

        # Health check
        @app.get("/health")
        async def health():
            return {"status": "ok"}

        # Composed schema status
        @app.get("/__status")
        async def schema_status():
            return {
                "services": [s.name for s in self.schema.subschemas],
                "types": len(self.schema.schema.type_map),
                "link_fields": [f"{t}.{f}" for t, f in self.schema.link_fields],
            }

        logger.info(f"Gateway ready: {len(self.services)} services composed")
        return app


"""
FastAPI router for the composed GraphQL schema.

Endpoints:
- POST /graphql - Executes a GraphQL request against the composed schema
- GET /__schema.graphql - Returns the composed schema as SDL

Request format:
    {"query": "...", "variables": {...}, "operationName": "..."}

Response format:
    {"data": {...}, "errors": [...]}

Errors of individual fields never fail the whole request: the response holds
partial data plus one error per failed field. Only unparsable documents are
rejected with HTTP 400.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from graphql import GraphQLSyntaxError, parse

from ..core.query_types import GraphErrorRecord, GraphQLRequest, GraphResult
from ..runtime.composer import ComposedSchema
from ..runtime.context import RequestContext

logger = logging.getLogger(__name__)


# Create router
router = APIRouter()


def get_schema(request: Request) -> ComposedSchema:
    """Get the composed schema of the serving app."""
    schema = getattr(request.app.state, "composed_schema", None)
    if schema is None:
        raise RuntimeError("Composed schema not initialized. Call mount_graphql() first.")
    return schema


@router.post("/graphql")
async def graphql_endpoint(
    body: GraphQLRequest,
    request: Request,
    schema: ComposedSchema = Depends(get_schema),
) -> JSONResponse:
    """
    Execute a GraphQL request.

    Example:
        POST /graphql
        {"query": "{ customer(id: 1) { catalog { name } } }"}
    """
    try:
        document = parse(body.query)
    except GraphQLSyntaxError as e:
        result = GraphResult(errors=[GraphErrorRecord.from_graphql_error(e)])
        return JSONResponse(status_code=400, content=result.to_dict())

    context = RequestContext.from_headers(request.headers)
    result = await schema.execute(document, body.variables, context, body.operation_name)
    if result.errors:
        logger.debug(f"Request finished with {len(result.errors)} errors")
    return JSONResponse(content=result.to_dict())


@router.get("/__schema.graphql", response_class=PlainTextResponse)
async def schema_sdl(schema: ComposedSchema = Depends(get_schema)) -> str:
    """
    Return the composed schema as SDL.

    Usage:
        curl http://localhost:4001/__schema.graphql > schema.graphql
    """
    return schema.print_sdl()


def mount_graphql(app: FastAPI, schema: ComposedSchema) -> None:
    """
    Serve a composed schema from a FastAPI app.

    Args:
        app: Application to mount on
        schema: Composed schema answering requests
    """
    app.state.composed_schema = schema
    app.include_router(router)

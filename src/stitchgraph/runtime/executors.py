"""
Executors - run a query document against one origin.

An executor is any async callable:

    await executor(document, variables=None, context=None) -> GraphResult

RemoteExecutor ships the document over HTTP; LocalExecutor runs it against an
in-process graphql-core schema.
"""

from __future__ import annotations

import logging
from inspect import isawaitable
from typing import Any, Awaitable, Optional, Protocol, Sequence

import httpx
from graphql import DocumentNode, GraphQLSchema, OperationDefinitionNode, execute, print_ast
from pydantic import ValidationError

from ..core.errors import TransportError
from ..core.query_types import GraphResult, RemoteResponse

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Callable capable of running a document against one origin."""

    def __call__(
        self,
        document: DocumentNode,
        variables: Optional[dict[str, Any]] = None,
        context: Any = None,
    ) -> Awaitable[GraphResult]:
        ...


def _operation_name(document: DocumentNode) -> Optional[str]:
    for definition in document.definitions:
        if isinstance(definition, OperationDefinitionNode) and definition.name:
            return definition.name.value
    return None


class RemoteExecutor:
    """
    HTTP executor for one origin service.

    Usage:
        executor = RemoteExecutor("http://catalog:4000/graphql")
        result = await executor(parse("{ customer(id: 1) { name } }"))

    The executor keeps no state between calls. Pass a shared
    httpx.AsyncClient to reuse connections; otherwise a client is opened per
    call. There are no retries; timeouts are enforced by httpx.
    """

    def __init__(
        self,
        url: str,
        *,
        name: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
        forward_headers: Sequence[str] = (),
        timeout: Optional[float] = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize remote executor.

        Args:
            url: GraphQL endpoint of the origin
            name: Service name used in errors and logs (default: url)
            headers: Static headers sent with every request
            forward_headers: Header names copied from the request context
            timeout: HTTP timeout in seconds
            client: Optional shared HTTP client
        """
        self.url = url
        self.name = name or url
        self.headers = dict(headers or {})
        self.forward_headers = tuple(h.lower() for h in forward_headers)
        self.timeout = timeout
        self.client = client

    def _request_headers(self, context: Any) -> dict[str, str]:
        headers = {"Content-Type": "application/json", **self.headers}
        incoming = getattr(context, "headers", None) or {}
        for name, value in incoming.items():
            if name.lower() in self.forward_headers:
                headers[name] = value
        return headers

    async def __call__(
        self,
        document: DocumentNode,
        variables: Optional[dict[str, Any]] = None,
        context: Any = None,
    ) -> GraphResult:
        """
        Execute a document on the origin.

        Returns:
            GraphResult with the origin's data and errors

        Raises:
            TransportError: If the request fails or the body is not a GraphQL response
        """
        payload: dict[str, Any] = {"query": print_ast(document), "variables": variables or {}}
        operation_name = _operation_name(document)
        if operation_name:
            payload["operationName"] = operation_name

        logger.debug(f"POST {self.url} ({self.name}) operation={operation_name}")

        try:
            if self.client is not None:
                response = await self.client.post(
                    self.url, json=payload, headers=self._request_headers(context)
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.url, json=payload, headers=self._request_headers(context)
                    )
        except httpx.HTTPError as e:
            raise TransportError(self.name, str(e) or type(e).__name__) from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                self.name,
                f"invalid JSON body (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict) or ("data" not in body and "errors" not in body):
            raise TransportError(
                self.name,
                f"not a GraphQL response (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            parsed = RemoteResponse.model_validate(body)
        except ValidationError as e:
            raise TransportError(self.name, f"malformed response: {e}", status_code=response.status_code) from e

        return GraphResult.from_remote(parsed)


class LocalExecutor:
    """
    Executor for an in-process graphql-core schema.

    Usage:
        executor = LocalExecutor(build_schema(sdl))
        result = await executor(parse("{ customer(id: 1) { name } }"))
    """

    def __init__(self, schema: GraphQLSchema, *, name: str = "local", root_value: Any = None):
        self.schema = schema
        self.name = name
        self.root_value = root_value

    async def __call__(
        self,
        document: DocumentNode,
        variables: Optional[dict[str, Any]] = None,
        context: Any = None,
    ) -> GraphResult:
        result = execute(
            self.schema,
            document,
            root_value=self.root_value,
            context_value=context,
            variable_values=variables,
        )
        if isawaitable(result):
            result = await result
        return GraphResult.from_execution_result(result)

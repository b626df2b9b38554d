"""
Result and wire types.

GraphResult is the explicit partial-success result: optional data plus an
ordered list of error records. It is what every executor returns and what the
composed schema hands back to the serving layer.

The pydantic models validate JSON crossing the wire:
- GraphQLRequest: body accepted by the gateway endpoint
- RemoteResponse: body returned by an origin service
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from graphql import ExecutionResult, GraphQLError
from pydantic import BaseModel, ConfigDict, Field


PathSegment = Union[str, int]


# --- Wire models ---

class GraphQLRequest(BaseModel):
    """
    Incoming GraphQL request.

    Example:
    {
        "query": "query($id: ID!) { customer(id: $id) { catalog { name } } }",
        "variables": {"id": "42"},
        "operationName": null
    }
    """
    model_config = ConfigDict(populate_by_name=True)

    query: str
    variables: Optional[dict[str, Any]] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")


class RemoteError(BaseModel):
    """Single error entry as returned by an origin service."""
    model_config = ConfigDict(extra="allow")

    message: str
    path: Optional[list[PathSegment]] = None
    locations: Optional[list[dict[str, int]]] = None
    extensions: Optional[dict[str, Any]] = None


class RemoteResponse(BaseModel):
    """Response body of an origin service: {data?, errors?}."""
    data: Optional[dict[str, Any]] = None
    errors: Optional[list[RemoteError]] = None


# --- Results ---

@dataclass
class GraphErrorRecord:
    """One (path, message) error record."""
    message: str
    path: Optional[list[PathSegment]] = None
    locations: Optional[list[dict[str, int]]] = None
    extensions: Optional[dict[str, Any]] = None

    @classmethod
    def from_remote(cls, error: RemoteError) -> "GraphErrorRecord":
        return cls(
            message=error.message,
            path=list(error.path) if error.path is not None else None,
            locations=error.locations,
            extensions=error.extensions,
        )

    @classmethod
    def from_graphql_error(cls, error: GraphQLError) -> "GraphErrorRecord":
        formatted = error.formatted
        return cls(
            message=formatted["message"],
            path=formatted.get("path"),
            locations=formatted.get("locations"),
            extensions=formatted.get("extensions"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": self.message}
        if self.locations is not None:
            result["locations"] = self.locations
        if self.path is not None:
            result["path"] = self.path
        if self.extensions:
            result["extensions"] = self.extensions
        return result


@dataclass
class GraphResult:
    """
    Result of executing a document: optional data plus ordered errors.

    Usage:
        result = await executor(document, variables)
        if result.errors:
            ...
        payload = result.to_dict()
    """
    data: Optional[dict[str, Any]] = None
    errors: list[GraphErrorRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def from_remote(cls, response: RemoteResponse) -> "GraphResult":
        return cls(
            data=response.data,
            errors=[GraphErrorRecord.from_remote(e) for e in response.errors or []],
        )

    @classmethod
    def from_execution_result(cls, result: ExecutionResult) -> "GraphResult":
        return cls(
            data=result.data,
            errors=[GraphErrorRecord.from_graphql_error(e) for e in result.errors or []],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize as a GraphQL response body."""
        result: dict[str, Any] = {"data": self.data}
        if self.errors:
            result["errors"] = [e.to_dict() for e in self.errors]
        return result

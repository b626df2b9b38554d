"""
Request context for query processing.

Handed in by the serving layer with every request and forwarded unchanged to
each delegated execution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class RequestContext:
    """
    Represents the caller of one request.

    Contains:
    - headers: Incoming request headers (lower-cased names)
    - extra: Free-form values for custom link resolvers
    """
    headers: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_headers(cls, headers: Any, **extra: Any) -> "RequestContext":
        """Build a context from any header mapping."""
        return cls(headers={k.lower(): v for k, v in dict(headers).items()}, extra=extra)

    def get_header(self, name: str) -> Optional[str]:
        """Get a header by case-insensitive name."""
        return self.headers.get(name.lower())

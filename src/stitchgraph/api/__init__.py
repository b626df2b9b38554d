"""
API module - FastAPI endpoints.
"""

from __future__ import annotations

from .router import get_schema, mount_graphql, router

__all__ = [
    "router",
    "get_schema",
    "mount_graphql",
]

"""
Stitchgraph CLI - Command line tools for running a gateway.
"""

from __future__ import annotations

from .main import app, main

__all__ = ["main", "app"]

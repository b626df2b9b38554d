#!/usr/bin/env python3
"""
Stitchgraph CLI - Main entry point.

Usage:
    stitchgraph init                      # Write a starter stitchgraph.yaml
    stitchgraph schema                    # Compose and print the schema (SDL)
    stitchgraph schema -o schema.graphql  # Compose and save the schema
    stitchgraph serve                     # Run the gateway
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..core.errors import StitchError
from ..gateway import Gateway, setup_logging_filter
from .config import StitchConfig, load_config

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = '''# Stitchgraph Configuration
version: 1

gateway:
  host: 0.0.0.0
  port: 4001
  log_level: INFO

services:
  catalog:
    url: http://localhost:4000/graphql
    namespace: Catalog
    forward_headers: [authorization]
  order:
    url: http://localhost:4002/graphql
    namespace: Order

links:
  type_defs: |
    extend type Query {
      customer(id: ID!): Customer
    }
    type Customer {
      catalog: CatalogCustomer
      order: OrderCustomer
    }
  resolvers:
    Query:
      customer: {argument: id}
    Customer:
      catalog: {service: catalog, field: CatalogCustomer, argument: id}
      order: {service: order, field: OrderCustomer, argument: id}
'''


def configure_logging(level: str) -> None:
    """Configure root logging for the gateway process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_gateway(config: StitchConfig) -> Gateway:
    """Build a gateway from configuration."""
    return Gateway(
        config.service_defs(),
        type_defs=config.links.type_defs,
        resolvers=config.links.build_resolvers(),
        cors_origins=config.gateway.cors_origins or None,
    )


def _load(args: argparse.Namespace) -> Optional[StitchConfig]:
    try:
        config = load_config(args.config)
    except StitchError as e:
        print(f"Error: {e}")
        return None
    if not config:
        print(f"Error: {args.config} not found. Run 'stitchgraph init' first.")
        return None
    return config


def cmd_init(args: argparse.Namespace) -> int:
    """Write a starter configuration."""
    config_path = Path(args.config)

    if config_path.exists() and not args.force:
        print(f"Error: {config_path} already exists. Use --force to overwrite.")
        return 1

    config_path.write_text(DEFAULT_CONFIG)
    print(f"Created {config_path}")
    print("Next steps:")
    print("  stitchgraph schema   # Check that the services compose")
    print("  stitchgraph serve    # Run the gateway")
    return 0


def cmd_schema(args: argparse.Namespace) -> int:
    """Compose the configured services and print the schema."""
    config = _load(args)
    if not config:
        return 1

    configure_logging(config.gateway.log_level)
    try:
        gateway = create_gateway(config)
    except StitchError as e:
        print(f"Error composing schema: {e}")
        return 1

    sdl = gateway.schema.print_sdl()
    if args.output:
        Path(args.output).write_text(sdl + "\n")
        print(f"Schema saved: {args.output}")
    else:
        print(sdl)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Compose the configured services and run the gateway."""
    import uvicorn

    config = _load(args)
    if not config:
        return 1

    configure_logging(config.gateway.log_level)
    try:
        gateway = create_gateway(config)
    except StitchError as e:
        print(f"Error composing schema: {e}")
        return 1

    host = args.host or config.gateway.host
    port = args.port or config.gateway.port
    setup_logging_filter()
    logger.info(f"Serving gateway on {host}:{port}")
    uvicorn.run(gateway.app, host=host, port=port, log_level=config.gateway.log_level.lower())
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="stitchgraph",
        description="Stitchgraph - compose GraphQL services into one schema"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument("--config", "-c", default="stitchgraph.yaml", help="Config file path")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init
    init_parser = subparsers.add_parser("init", help="Write a starter config")
    init_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing config")

    # schema
    schema_parser = subparsers.add_parser("schema", help="Compose and print the schema")
    schema_parser.add_argument("--output", "-o", help="Write SDL to this file")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the gateway")
    serve_parser.add_argument("--host", help="Bind host (overrides config)")
    serve_parser.add_argument("--port", "-p", type=int, help="Bind port (overrides config)")

    return parser


def app(args: Optional[List[str]] = None) -> int:
    """Main CLI application."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "schema": cmd_schema,
        "serve": cmd_serve,
    }

    handler = commands.get(parsed.command)
    if handler:
        return handler(parsed)

    parser.print_help()
    return 1


def main() -> None:
    """Entry point for CLI."""
    sys.exit(app())


if __name__ == "__main__":
    main()

"""
Configuration loading and validation for stitchgraph gateways.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from ..core.defs import Delegate, ForwardArgument, ServiceDef
from ..core.errors import GraphConfigError
from ..runtime.composer import Resolver


@dataclass
class GatewayConfig:
    """Configuration for the gateway server."""
    host: str = "0.0.0.0"
    port: int = 4001
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=list)


@dataclass
class ServiceConfig:
    """Configuration for a single origin service."""
    name: str
    url: str
    namespace: Optional[str] = None
    rename_types: Optional[list[str]] = None
    rename_root_fields: Optional[list[str]] = None
    headers: dict[str, str] = field(default_factory=dict)
    forward_headers: list[str] = field(default_factory=list)
    timeout: float = 30.0

    def to_service_def(self) -> ServiceDef:
        return ServiceDef(
            name=self.name,
            url=self.url,
            namespace=self.namespace,
            rename_types=tuple(self.rename_types) if self.rename_types is not None else None,
            rename_root_fields=(
                tuple(self.rename_root_fields) if self.rename_root_fields is not None else None
            ),
            headers=dict(self.headers),
            forward_headers=tuple(self.forward_headers),
            timeout=self.timeout,
        )


@dataclass
class LinkConfig:
    """
    Link type definitions and resolver descriptors.

    Resolver entries:
        {argument: id}                                   -> ForwardArgument("id")
        {service: catalog, field: CatalogCustomer,
         argument: id, source: customerId}               -> Delegate(...)
    """
    type_defs: str = ""
    resolvers: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    def build_resolvers(self) -> dict[str, dict[str, Resolver]]:
        """Turn resolver entries into Delegate / ForwardArgument descriptors."""
        built: dict[str, dict[str, Resolver]] = {}
        for type_name, fields in self.resolvers.items():
            if not isinstance(fields, dict):
                raise GraphConfigError(f"Resolvers of '{type_name}' must be a mapping")
            built[type_name] = {
                field_name: _build_resolver(f"{type_name}.{field_name}", entry)
                for field_name, entry in fields.items()
            }
        return built


def _build_resolver(where: str, entry: Any) -> Resolver:
    if not isinstance(entry, dict):
        raise GraphConfigError(f"Resolver '{where}' must be a mapping")

    if "service" in entry:
        if "field" not in entry:
            raise GraphConfigError(f"Resolver '{where}' needs a 'field'")
        operation = entry.get("operation", "query")
        if operation not in ("query", "mutation"):
            raise GraphConfigError(f"Resolver '{where}' has invalid operation '{operation}'")
        return Delegate(
            service=entry["service"],
            field_name=entry["field"],
            argument=entry.get("argument", "id"),
            source=entry.get("source"),
            operation=operation,
        )

    if set(entry) == {"argument"}:
        return ForwardArgument(entry["argument"])

    raise GraphConfigError(f"Resolver '{where}' must name a 'service' or only an 'argument'")


@dataclass
class StitchConfig:
    """Main stitchgraph configuration."""
    version: int
    gateway: GatewayConfig
    services: dict[str, ServiceConfig]
    links: LinkConfig

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "StitchConfig":
        """Create config from dictionary."""
        data = data or {}

        gateway_data = data.get("gateway") or {}
        gateway = GatewayConfig(
            host=gateway_data.get("host", "0.0.0.0"),
            port=gateway_data.get("port", 4001),
            log_level=str(gateway_data.get("log_level", "INFO")).upper(),
            cors_origins=list(gateway_data.get("cors_origins") or []),
        )

        services = {}
        for name, svc_data in (data.get("services") or {}).items():
            svc_data = svc_data or {}
            if not svc_data.get("url"):
                raise GraphConfigError(f"Service '{name}' has no url")
            services[name] = ServiceConfig(
                name=name,
                url=svc_data["url"],
                namespace=svc_data.get("namespace"),
                rename_types=svc_data.get("rename_types"),
                rename_root_fields=svc_data.get("rename_root_fields"),
                headers=dict(svc_data.get("headers") or {}),
                forward_headers=list(svc_data.get("forward_headers") or []),
                timeout=float(svc_data.get("timeout", 30.0)),
            )

        links_data = data.get("links") or {}
        links = LinkConfig(
            type_defs=links_data.get("type_defs") or "",
            resolvers=dict(links_data.get("resolvers") or {}),
        )

        return cls(
            version=data.get("version", 1),
            gateway=gateway,
            services=services,
            links=links,
        )

    def service_defs(self) -> list[ServiceDef]:
        """Service definitions in configuration order."""
        return [svc.to_service_def() for svc in self.services.values()]

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for YAML serialization."""
        services = {}
        for name, svc in self.services.items():
            svc_data: dict[str, Any] = {"url": svc.url}
            if svc.namespace:
                svc_data["namespace"] = svc.namespace
            if svc.rename_types is not None:
                svc_data["rename_types"] = svc.rename_types
            if svc.rename_root_fields is not None:
                svc_data["rename_root_fields"] = svc.rename_root_fields
            if svc.headers:
                svc_data["headers"] = svc.headers
            if svc.forward_headers:
                svc_data["forward_headers"] = svc.forward_headers
            svc_data["timeout"] = svc.timeout
            services[name] = svc_data

        return {
            "version": self.version,
            "gateway": {
                "host": self.gateway.host,
                "port": self.gateway.port,
                "log_level": self.gateway.log_level,
                "cors_origins": self.gateway.cors_origins,
            },
            "services": services,
            "links": {
                "type_defs": self.links.type_defs,
                "resolvers": self.links.resolvers,
            },
        }

    def save(self, path: Path | str = "stitchgraph.yaml") -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        content = yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        path.write_text(content)


def load_config(path: Path | str = "stitchgraph.yaml") -> StitchConfig | None:
    """Load configuration from YAML file."""
    path = Path(path)
    if not path.exists():
        return None

    data = yaml.safe_load(path.read_text())
    return StitchConfig.from_dict(data)

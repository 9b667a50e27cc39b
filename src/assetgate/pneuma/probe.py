"""
Diagnostic Probe - Inspect the containers backing a local ledger network.

Used after a failed submit to check whether the ordering service (or any
other backing service matched by keyword) is running, and how it is wired.
Talks to the Docker Engine API read-only: ``GET /containers/json``.

The engine is reached through ``DOCKER_HOST`` when set (``unix://`` or
``tcp://``), otherwise through the default unix socket.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..errors import DiagnosticError

DEFAULT_DOCKER_SOCKET = "/var/run/docker.sock"
DEFAULT_KEYWORD = "orderer"
PROBE_TIMEOUT = 10.0


@dataclass(frozen=True)
class ContainerInfo:
    name: str
    image: str
    id: str
    networks: dict[str, str] = field(default_factory=dict)
    ports: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, entry: dict[str, Any]) -> "ContainerInfo":
        names = entry.get("Names") or []
        networks = (entry.get("NetworkSettings") or {}).get("Networks") or {}
        return cls(
            name=names[0].lstrip("/") if names else "",
            image=entry.get("Image", ""),
            id=entry.get("Id", ""),
            networks={net: (cfg or {}).get("IPAddress", "") for net, cfg in networks.items()},
            ports=tuple(_format_port(p) for p in entry.get("Ports") or []),
        )

    def describe(self) -> list[str]:
        lines = [
            f"Name:     {self.name}",
            f"Image:    {self.image}",
            f"ID:       {self.id[:12]}",
        ]
        if self.networks:
            for net, ip in sorted(self.networks.items()):
                lines.append(f"Network:  {net} ({ip or 'no address'})")
        else:
            lines.append("Network:  (none)")
        lines.append(f"Ports:    {', '.join(self.ports) if self.ports else '(none)'}")
        return lines


@dataclass(frozen=True)
class ProbeReport:
    keyword: str
    matches: tuple[ContainerInfo, ...]
    scanned: int


def _format_port(port: dict[str, Any]) -> str:
    private = f"{port.get('PrivatePort', '?')}/{port.get('Type', 'tcp')}"
    if port.get("PublicPort"):
        return f"{port.get('IP') or '0.0.0.0'}:{port['PublicPort']}->{private}"
    return private


def _engine_client(docker_host: Optional[str], transport: Optional[httpx.BaseTransport]) -> httpx.Client:
    host = docker_host or os.environ.get("DOCKER_HOST") or f"unix://{DEFAULT_DOCKER_SOCKET}"
    if transport is not None:
        return httpx.Client(transport=transport, base_url="http://docker", timeout=PROBE_TIMEOUT)
    if host.startswith("unix://"):
        return httpx.Client(
            transport=httpx.HTTPTransport(uds=host[len("unix://"):]),
            base_url="http://docker",
            timeout=PROBE_TIMEOUT,
        )
    if host.startswith("tcp://"):
        return httpx.Client(base_url="http://" + host[len("tcp://"):], timeout=PROBE_TIMEOUT)
    if host.startswith(("http://", "https://")):
        return httpx.Client(base_url=host, timeout=PROBE_TIMEOUT)
    raise DiagnosticError(f"Unsupported DOCKER_HOST: {host}")


def probe_containers(
    keyword: str = DEFAULT_KEYWORD,
    docker_host: Optional[str] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ProbeReport:
    """
    List running containers whose image contains ``keyword``.

    Args:
        keyword: Case-insensitive image substring (default: "orderer")
        docker_host: Engine address; falls back to DOCKER_HOST, then the unix socket
        transport: Custom httpx transport (tests)

    Returns:
        ProbeReport with the matching containers

    Raises:
        DiagnosticError: If the engine can't be reached or answers badly
    """
    with _engine_client(docker_host, transport) as client:
        try:
            response = client.get("/containers/json")
            response.raise_for_status()
            entries = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DiagnosticError(f"Failed to list containers: {exc}") from exc

    if not isinstance(entries, list):
        raise DiagnosticError("Container listing is not a list")

    needle = keyword.lower()
    matches = tuple(
        ContainerInfo.from_api(entry)
        for entry in entries
        if isinstance(entry, dict) and needle in str(entry.get("Image", "")).lower()
    )
    return ProbeReport(keyword=keyword, matches=matches, scanned=len(entries))

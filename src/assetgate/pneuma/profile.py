"""
Connection Profile - Load the gateway endpoints and trust roots.

Profiles are YAML (or JSON, which YAML also accepts) in the common
connection-profile shape:

    name: test-network-org1
    client:
      organization: Org1
      connection:
        timeout:
          peer:
            endorser: '300'
    organizations:
      Org1:
        mspid: Org1MSP
        peers: [peer0.org1.example.com]
    peers:
      peer0.org1.example.com:
        url: https://localhost:7051
        tlsCACerts:
          path: ../tlsca/tlsca.org1.example.com-cert.pem
    orderers:
      orderer.example.com:
        url: https://localhost:7050
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

import yaml

from ..errors import ConfigurationError
from ..spec.schemas import SchemaValidationError, validate

DEFAULT_ENDORSER_TIMEOUT = 300.0


@dataclass(frozen=True)
class Endpoint:
    name: str
    url: str
    tls_ca_pem: Optional[bytes] = None

    def as_localhost(self) -> "Endpoint":
        """Return a copy whose host is ``localhost``, keeping scheme and port."""
        parts = urlsplit(self.url)
        netloc = "localhost" if parts.port is None else f"localhost:{parts.port}"
        return Endpoint(
            name=self.name,
            url=urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)),
            tls_ca_pem=self.tls_ca_pem,
        )


@dataclass(frozen=True)
class ConnectionProfile:
    name: str
    organization: str
    msp_id: str
    peers: dict[str, Endpoint]
    orderers: dict[str, Endpoint] = field(default_factory=dict)
    org_peers: tuple[str, ...] = ()
    endorser_timeout: float = DEFAULT_ENDORSER_TIMEOUT

    def gateway_peer(self) -> Endpoint:
        """The peer the session handshake goes to: the organisation's first peer."""
        for name in self.org_peers:
            if name in self.peers:
                return self.peers[name]
        return next(iter(self.peers.values()))

    def trust_roots(self) -> list[bytes]:
        roots = [ep.tls_ca_pem for ep in (*self.peers.values(), *self.orderers.values())]
        return [pem for pem in roots if pem]


def _read_tls_ca(entry: dict[str, Any], base_dir: Path) -> Optional[bytes]:
    tls = entry.get("tlsCACerts") or {}
    if tls.get("pem"):
        return tls["pem"].encode("utf-8")
    if tls.get("path"):
        path = Path(tls["path"]).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read TLS CA certificate {path}: {exc}") from exc
    return None


def _endpoints(section: dict[str, Any], base_dir: Path) -> dict[str, Endpoint]:
    return {
        name: Endpoint(name=name, url=entry["url"], tls_ca_pem=_read_tls_ca(entry, base_dir))
        for name, entry in section.items()
    }


def parse_profile(raw: dict[str, Any], base_dir: Path) -> ConnectionProfile:
    """Build a ConnectionProfile from an already-loaded mapping."""
    try:
        validate(raw, "connection-profile")
    except SchemaValidationError as exc:
        raise ConfigurationError(f"Invalid connection profile: {exc}") from exc

    org_name = raw["client"]["organization"]
    org = raw["organizations"].get(org_name)
    if org is None:
        raise ConfigurationError(
            f"Client organization {org_name!r} is not listed under 'organizations'"
        )

    timeout = (
        raw["client"].get("connection", {}).get("timeout", {}).get("peer", {}).get("endorser")
    )
    try:
        endorser_timeout = float(timeout) if timeout is not None else DEFAULT_ENDORSER_TIMEOUT
    except ValueError as exc:
        raise ConfigurationError(f"Invalid endorser timeout: {timeout!r}") from exc

    return ConnectionProfile(
        name=raw["name"],
        organization=org_name,
        msp_id=org["mspid"],
        peers=_endpoints(raw["peers"], base_dir),
        orderers=_endpoints(raw.get("orderers") or {}, base_dir),
        org_peers=tuple(org.get("peers") or ()),
        endorser_timeout=endorser_timeout,
    )


def load_profile(path: Path) -> ConnectionProfile:
    """
    Load a connection profile from a YAML or JSON file.

    Raises:
        ConfigurationError: Missing, unparsable, or invalid profile
    """
    path = path.expanduser()
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read connection profile {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse connection profile {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Connection profile {path} must be a mapping")

    return parse_profile(raw, path.resolve().parent)

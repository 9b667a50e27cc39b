"""
Gateway Session - Connect to the ledger network as a wallet identity.

    with connect(profile, wallet, "appUser", timeout=100) as gateway:
        network = gateway.get_network("mychannel")
        contract = network.get_contract("basic")

``connect`` performs a signed discovery handshake against the organisation's
gateway peer and learns, per channel, which peers and orderers to use.
With ``discovery_as_localhost`` every discovered host is rewritten to
``localhost``: a local test network advertises container-internal names
that the client cannot resolve.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..errors import GatewayConnectionError, NetworkNotFound
from ..sigil.credentials import Identity
from ..sigil.wallet import Wallet
from ..spec.schemas import SchemaValidationError, validate
from ..utils import utc_now_rfc3339
from .profile import ConnectionProfile, Endpoint
from .rpc import RemoteCallError, call_with_deadline, creator, post_signed
from .tx import Contract

DEFAULT_CONNECT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Network:
    gateway: "Gateway"
    name: str
    peers: tuple[Endpoint, ...]
    orderers: tuple[Endpoint, ...]

    def get_contract(self, name: str) -> Contract:
        # Binding is local; a missing chaincode only surfaces on the first call.
        return Contract(network=self, name=name)


class Gateway:
    """A live session to one ledger network, scoped to one identity."""

    def __init__(
        self,
        client: httpx.Client,
        identity: Identity,
        label: str,
        profile: ConnectionProfile,
        channels: dict[str, dict[str, tuple[Endpoint, ...]]],
        discovery_as_localhost: bool = False,
    ) -> None:
        self.client = client
        self.identity = identity
        self.label = label
        self.profile = profile
        self.channels = channels
        self.discovery_as_localhost = discovery_as_localhost
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get_network(self, name: str) -> Network:
        channel = self.channels.get(name)
        if channel is None:
            known = ", ".join(sorted(self.channels)) or "none"
            raise NetworkNotFound(f"Channel {name!r} not available to {self.label} (discovered: {known})")
        return Network(gateway=self, name=name, peers=channel["peers"], orderers=channel["orderers"])

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.client.close()

    def __enter__(self) -> "Gateway":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _ssl_context(profile: ConnectionProfile) -> ssl.SSLContext | bool:
    roots = profile.trust_roots()
    if not roots:
        return True
    cadata = "\n".join(pem.decode("utf-8") for pem in roots)
    try:
        return ssl.create_default_context(cadata=cadata)
    except (ssl.SSLError, ValueError) as exc:
        raise GatewayConnectionError(f"Invalid TLS CA certificates in profile: {exc}") from exc


def _parse_discovery(data: dict[str, Any], as_localhost: bool) -> dict[str, dict[str, tuple[Endpoint, ...]]]:
    validate(data, "discovery")
    channels: dict[str, dict[str, tuple[Endpoint, ...]]] = {}
    for channel, members in data["channels"].items():
        entry = {}
        for role in ("peers", "orderers"):
            endpoints = [Endpoint(name=m["name"], url=m["url"]) for m in members[role]]
            if as_localhost:
                endpoints = [ep.as_localhost() for ep in endpoints]
            entry[role] = tuple(endpoints)
        channels[channel] = entry
    return channels


def connect(
    profile: ConnectionProfile,
    wallet: Wallet,
    label: str,
    timeout: Optional[float] = None,
    *,
    discovery_as_localhost: bool = False,
    transport: Optional[httpx.BaseTransport] = None,
) -> Gateway:
    """
    Establish a session to the network described by ``profile``.

    Args:
        profile: Parsed connection profile
        wallet: Wallet holding the identity
        label: Wallet label of the identity to connect as
        timeout: Bound on the whole handshake, in seconds
            (default: DEFAULT_CONNECT_TIMEOUT)
        discovery_as_localhost: Rewrite discovered hosts to ``localhost``
        transport: Custom httpx transport (tests, proxies)

    Returns:
        Gateway session; close it (or use it as a context manager)

    Raises:
        IdentityNotFound: Label not in wallet
        GatewayConnectionError: Handshake, TLS, or discovery failure
    """
    identity = wallet.get(label)
    deadline = timeout if timeout is not None else DEFAULT_CONNECT_TIMEOUT
    handshake_timeout = httpx.Timeout(deadline)

    client_kwargs: dict[str, Any] = {"timeout": httpx.Timeout(profile.endorser_timeout)}
    if transport is not None:
        client_kwargs["transport"] = transport
    else:
        client_kwargs["verify"] = _ssl_context(profile)
    client = httpx.Client(**client_kwargs)

    peer = profile.gateway_peer()
    if discovery_as_localhost:
        peer = peer.as_localhost()

    payload = {
        "type": "discovery",
        "creator": creator(identity),
        "timestamp": utc_now_rfc3339(),
    }

    def handshake() -> dict[str, dict[str, tuple[Endpoint, ...]]]:
        data = post_signed(client, f"{peer.url}/v1/discovery", payload, identity, timeout=handshake_timeout)
        return _parse_discovery(data, discovery_as_localhost)

    try:
        channels = call_with_deadline(handshake, deadline, f"Handshake with {peer.url}")
    except (RemoteCallError, SchemaValidationError) as exc:
        client.close()
        raise GatewayConnectionError(f"Failed to connect to gateway {peer.url}: {exc}") from exc

    return Gateway(
        client=client,
        identity=identity,
        label=label,
        profile=profile,
        channels=channels,
        discovery_as_localhost=discovery_as_localhost,
    )

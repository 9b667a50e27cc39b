"""
Shared fixtures: generated credentials, a temp wallet, a connection profile,
and an in-memory asset transfer ledger served through httpx.MockTransport.
"""

from __future__ import annotations

import datetime
import json
import re
import textwrap
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from assetgate.sigil.credentials import Identity
from assetgate.sigil.crypto import verify_payload
from assetgate.sigil.wallet import Wallet
from assetgate.utils import b64encode


# ============ Credentials ============


def make_identity_material(common_name: str = "User1@org1.example.com") -> tuple[bytes, bytes]:
    """Generate (certificate_pem, private_key_pem) for a P-256 identity."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "org1.example.com"),
    ])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return cert_pem, key_pem


@pytest.fixture(scope="session")
def identity_material() -> tuple[bytes, bytes]:
    return make_identity_material()


@pytest.fixture()
def identity(identity_material: tuple[bytes, bytes]) -> Identity:
    cert_pem, key_pem = identity_material
    return Identity(msp_id="Org1MSP", certificate=cert_pem, private_key=key_pem)


@pytest.fixture()
def cred_dir(tmp_path: Path, identity_material: tuple[bytes, bytes]) -> Path:
    """MSP directory laid out like the test network's User1 credentials."""
    cert_pem, key_pem = identity_material
    msp = tmp_path / "users" / "User1@org1.example.com" / "msp"
    (msp / "signcerts").mkdir(parents=True)
    (msp / "keystore").mkdir()
    (msp / "signcerts" / "cert.pem").write_bytes(cert_pem)
    (msp / "keystore" / "3f1c9e0a_sk").write_bytes(key_pem)
    return msp


@pytest.fixture()
def wallet(tmp_path: Path) -> Wallet:
    return Wallet(tmp_path / "wallet")


@pytest.fixture()
def enrolled_wallet(wallet: Wallet, identity: Identity) -> Wallet:
    wallet.put("appUser", identity)
    return wallet


# ============ Connection profile ============

PROFILE_YAML = textwrap.dedent("""\
    name: test-network-org1
    version: 1.0.0
    client:
      organization: Org1
      connection:
        timeout:
          peer:
            endorser: '300'
    organizations:
      Org1:
        mspid: Org1MSP
        peers:
          - peer0.org1.example.com
    peers:
      peer0.org1.example.com:
        url: http://peer0.org1.example.com:7051
    orderers:
      orderer.example.com:
        url: http://orderer.example.com:7050
""")


@pytest.fixture()
def profile_path(tmp_path: Path) -> Path:
    path = tmp_path / "connection-org1.yaml"
    path.write_text(PROFILE_YAML, encoding="utf-8")
    return path


# ============ Fake ledger ============

SEED_ASSETS = [
    {"ID": "asset1", "Color": "blue", "Size": 5, "Owner": "Tomoko", "AppraisedValue": 300},
    {"ID": "asset2", "Color": "red", "Size": 5, "Owner": "Brad", "AppraisedValue": 400},
    {"ID": "asset3", "Color": "green", "Size": 10, "Owner": "Jin Soo", "AppraisedValue": 500},
    {"ID": "asset4", "Color": "yellow", "Size": 10, "Owner": "Max", "AppraisedValue": 600},
    {"ID": "asset5", "Color": "black", "Size": 15, "Owner": "Adriana", "AppraisedValue": 700},
    {"ID": "asset6", "Color": "white", "Size": 15, "Owner": "Michel", "AppraisedValue": 800},
]


class ChaincodeError(Exception):
    pass


class FakeLedger:
    """
    In-memory stand-in for a gateway peer + orderer running the basic
    asset transfer chaincode.

    Writes from an endorsement are applied only when the envelope reaches
    the orderer, mirroring endorse → order → commit.
    """

    _chaincode_path = re.compile(r"^/v1/channels/(?P<ch>[^/]+)/chaincodes/(?P<cc>[^/]+)/(?P<op>evaluate|endorse)$")
    _status_path = re.compile(r"^/v1/channels/(?P<ch>[^/]+)/transactions/(?P<tx>[0-9a-f]+)$")

    def __init__(self, channels: tuple[str, ...] = ("mychannel",), chaincode: str = "basic") -> None:
        self.channels = channels
        self.chaincode = chaincode
        self.state: dict[str, dict[str, Any]] = {}
        self.pending: dict[str, dict[str, Any]] = {}
        self.status: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.hosts: list[str] = []
        self.orderer_down = False
        self.discovery_down = False
        self.invalidate_next: Optional[str] = None
        self.pending_polls = 0
        self.unknown_polls = 0

    # ---- helpers ----

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _verify(self, request: httpx.Request) -> dict[str, Any]:
        body = json.loads(request.content)
        payload = body["payload"]
        verify_payload(payload, body["signature"], payload["creator"]["certificate"].encode("utf-8"))
        return payload

    @staticmethod
    def _result(value: Any) -> dict[str, Any]:
        if value is None:
            return {}
        raw = value if isinstance(value, bytes) else json.dumps(value).encode("utf-8")
        return {"result": b64encode(raw)}

    # ---- chaincode ----

    def _invoke(self, function: str, args: list[str], writes: dict[str, Any]) -> Any:
        view = {**self.state, **writes}
        if function == "InitLedger":
            for asset in SEED_ASSETS:
                writes[asset["ID"]] = dict(asset)
            return None
        if function == "CreateAsset":
            asset_id, color, size, owner, value = args
            if asset_id in view:
                raise ChaincodeError(f"the asset {asset_id} already exists")
            writes[asset_id] = {
                "ID": asset_id,
                "Color": color,
                "Size": int(size),
                "Owner": owner,
                "AppraisedValue": int(value),
            }
            return None
        if function == "ReadAsset":
            (asset_id,) = args
            if asset_id not in view:
                raise ChaincodeError(f"the asset {asset_id} does not exist")
            return view[asset_id]
        if function == "AssetExists":
            (asset_id,) = args
            return asset_id in view
        if function == "TransferAsset":
            asset_id, new_owner = args
            if asset_id not in view:
                raise ChaincodeError(f"the asset {asset_id} does not exist")
            writes[asset_id] = {**view[asset_id], "Owner": new_owner}
            return None
        if function == "GetAllAssets":
            return [view[key] for key in sorted(view)]
        raise ChaincodeError(f"Function {function} not found in contract {self.chaincode}")

    # ---- routing ----

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.hosts.append(request.url.host)
        path = request.url.path

        if path == "/v1/discovery":
            if self.discovery_down:
                raise httpx.ConnectError("connection refused", request=request)
            self._verify(request)
            return httpx.Response(200, json={"channels": {
                ch: {
                    "peers": [{"name": "peer0.org1.example.com", "url": "http://peer0.org1.example.com:7051"}],
                    "orderers": [{"name": "orderer.example.com", "url": "http://orderer.example.com:7050"}],
                }
                for ch in self.channels
            }})

        match = self._chaincode_path.match(path)
        if match:
            payload = self._verify(request)
            op = match["op"]
            self.calls.append((op, payload["function"]))
            if match["cc"] != self.chaincode:
                return httpx.Response(500, json={"error": f"chaincode {match['cc']} not found"})
            writes: dict[str, Any] = {}
            try:
                value = self._invoke(payload["function"], payload["args"], writes)
            except ChaincodeError as exc:
                return httpx.Response(500, json={"error": str(exc)})
            if op == "endorse":
                self.pending[payload["txId"]] = writes
                return httpx.Response(200, json={
                    **self._result(value),
                    "endorsements": [{"endorser": "peer0.org1.example.com", "signature": "c2ln"}],
                })
            return httpx.Response(200, json=self._result(value))

        if path == "/v1/broadcast":
            if self.orderer_down:
                raise httpx.ConnectError("orderer.example.com:7050: connection refused", request=request)
            payload = self._verify(request)
            tx_id = payload["txId"]
            self.calls.append(("broadcast", payload["proposal"]["function"]))
            writes = self.pending.pop(tx_id, {})
            if self.invalidate_next:
                self.status[tx_id] = self.invalidate_next
                self.invalidate_next = None
            else:
                self.state.update(writes)
                self.status[tx_id] = "VALID"
            return httpx.Response(200, json={"status": "SUCCESS"})

        match = self._status_path.match(path)
        if match and request.method == "GET":
            if self.unknown_polls > 0:
                self.unknown_polls -= 1
                return httpx.Response(404, json={"error": "unknown transaction"})
            if self.pending_polls > 0:
                self.pending_polls -= 1
                return httpx.Response(200, json={"status": "PENDING"})
            status = self.status.get(match["tx"])
            if status is None:
                return httpx.Response(404, json={"error": "unknown transaction"})
            return httpx.Response(200, json={"status": status})

        return httpx.Response(404, json={"error": f"no route for {path}"})


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


# ============ Fake container engine ============

ORDERER_CONTAINER = {
    "Id": "9c2f0d1e8b7a6c5d4e3f2a1b0c9d8e7f6a5b4c3d2e1f0a9b8c7d6e5f4a3b2c1d",
    "Names": ["/orderer.example.com"],
    "Image": "hyperledger/fabric-orderer:latest",
    "State": "running",
    "Ports": [
        {"IP": "0.0.0.0", "PrivatePort": 7050, "PublicPort": 7050, "Type": "tcp"},
        {"PrivatePort": 9443, "Type": "tcp"},
    ],
    "NetworkSettings": {"Networks": {"fabric_test": {"IPAddress": "172.18.0.3"}}},
}

PEER_CONTAINER = {
    "Id": "1a2b3c4d5e6f7a8b9c0d1e2f3a4b5c6d7e8f9a0b1c2d3e4f5a6b7c8d9e0f1a2b",
    "Names": ["/peer0.org1.example.com"],
    "Image": "hyperledger/fabric-peer:latest",
    "State": "running",
    "Ports": [{"IP": "0.0.0.0", "PrivatePort": 7051, "PublicPort": 7051, "Type": "tcp"}],
    "NetworkSettings": {"Networks": {"fabric_test": {"IPAddress": "172.18.0.4"}}},
}


def docker_transport(containers: list[dict[str, Any]], status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/containers/json" and request.method == "GET":
            return httpx.Response(status_code, json=containers)
        return httpx.Response(404, json={"message": "page not found"})

    return httpx.MockTransport(handler)

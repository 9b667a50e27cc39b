"""
Request signing for the ledger gateway.

- RFC 8785 JSON Canonicalization for deterministic signing payloads
- ECDSA/SHA-256 signatures with the identity's private key (DER, low-S)
- Transaction ID derivation from nonce and creator certificate
"""

from __future__ import annotations

import copy
import secrets
from typing import Any

import rfc8785
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from ..utils import b64decode, b64encode, sha256_hex

NONCE_SIZE = 24

# Group orders of the NIST curves identities are issued on.
_CURVE_ORDERS = {
    "secp256r1": 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    "secp384r1": int(
        "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFC7634D81F4372DDF"
        "581A0DB248B0A77AECEC196ACCC52973",
        16,
    ),
}


class CryptoError(ValueError):
    pass


class SignatureError(CryptoError):
    pass


def canonicalize(payload: dict[str, Any]) -> bytes:
    """Canonicalize a payload (without signature) using RFC 8785 JCS."""
    body = copy.deepcopy(payload)
    body.pop("signature", None)
    return rfc8785.dumps(body)


def _load_key(private_key_pem: bytes) -> ec.EllipticCurvePrivateKey:
    try:
        key = serialization.load_pem_private_key(private_key_pem, password=None)
    except (ValueError, TypeError) as exc:
        raise CryptoError(f"Unreadable private key: {exc}") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise CryptoError("Identity private key must be an EC key.")
    return key


def _to_low_s(signature: bytes, curve_name: str) -> bytes:
    order = _CURVE_ORDERS.get(curve_name)
    if order is None:
        return signature
    r, s = decode_dss_signature(signature)
    if s > order // 2:
        s = order - s
    return encode_dss_signature(r, s)


def sign_payload(payload: dict[str, Any], private_key_pem: bytes) -> str:
    """Sign the canonical form of ``payload``.

    Args:
        payload: JSON-compatible request payload.
        private_key_pem: PEM-encoded EC private key.

    Returns:
        Base64 DER signature with S normalised to the lower half of the curve
        order (the gateway rejects high-S signatures).
    """
    key = _load_key(private_key_pem)
    der = key.sign(canonicalize(payload), ec.ECDSA(hashes.SHA256()))
    return b64encode(_to_low_s(der, key.curve.name))


def verify_payload(payload: dict[str, Any], signature_b64: str, certificate_pem: bytes) -> None:
    """Verify a payload signature against the signer's certificate.

    Raises:
        SignatureError: If verification fails.
    """
    try:
        cert = x509.load_pem_x509_certificate(certificate_pem)
        public_key = cert.public_key()
        signature = b64decode(signature_b64)
    except ValueError as exc:
        raise SignatureError(f"Cannot verify signature: {exc}") from exc
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise SignatureError("Signer certificate does not carry an EC key.")
    try:
        public_key.verify(signature, canonicalize(payload), ec.ECDSA(hashes.SHA256()))
    except InvalidSignature as exc:
        raise SignatureError("Invalid payload signature.") from exc


def new_nonce() -> bytes:
    return secrets.token_bytes(NONCE_SIZE)


def transaction_id(nonce: bytes, certificate_pem: bytes) -> str:
    """Transaction ID: hex SHA-256 over nonce followed by the creator's certificate."""
    return sha256_hex(nonce + certificate_pem)

"""
Credential Loader - Read an X.509 signing identity from an MSP directory.

Expected layout (as produced by the ledger network's certificate authority):

    <cred_path>/signcerts/cert.pem     signing certificate
    <cred_path>/keystore/<one file>    matching private key

Both files must be PEM text; nothing here parses them further.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError, CredentialNotFound, KeystoreAmbiguous, KeystoreUnreadable

IDENTITY_TYPE = "X.509"
IDENTITY_VERSION = 1


@dataclass(frozen=True)
class Identity:
    """
    A signing identity.

    Attributes:
        msp_id: Membership service provider ID of the issuing organisation
        certificate: PEM-encoded signing certificate
        private_key: PEM-encoded private key
    """
    msp_id: str
    certificate: bytes
    private_key: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": IDENTITY_VERSION,
            "mspId": self.msp_id,
            "type": IDENTITY_TYPE,
            "credentials": {
                "certificate": self.certificate.decode("utf-8"),
                "privateKey": self.private_key.decode("utf-8"),
            },
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Identity":
        credentials = payload["credentials"]
        return cls(
            msp_id=payload["mspId"],
            certificate=credentials["certificate"].encode("utf-8"),
            private_key=credentials["privateKey"].encode("utf-8"),
        )


def _require_pem(data: bytes, path: Path, error: type[ConfigurationError]) -> None:
    # Wallet documents hold credentials as text.
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise error(f"{path} is not a PEM (text) file: {exc}") from exc


def load_credentials(cred_path: Path, msp_id: str, cert_name: str = "cert.pem") -> Identity:
    """
    Assemble an identity from a credential directory.

    Args:
        cred_path: MSP directory holding ``signcerts/`` and ``keystore/``
        msp_id: Organisation MSP ID to stamp on the identity
        cert_name: Certificate filename inside ``signcerts/``

    Returns:
        Identity built from the certificate and the sole keystore file

    Raises:
        CredentialNotFound: Certificate missing, unreadable, or not PEM text
        KeystoreAmbiguous: Keystore holds zero or several entries
        KeystoreUnreadable: Keystore missing, or the key file is unreadable or not PEM text
    """
    cert_path = cred_path / "signcerts" / cert_name
    try:
        certificate = cert_path.read_bytes()
    except OSError as exc:
        raise CredentialNotFound(f"Cannot read certificate {cert_path}: {exc}") from exc
    _require_pem(certificate, cert_path, CredentialNotFound)

    key_dir = cred_path / "keystore"
    try:
        entries = sorted(key_dir.iterdir())
    except OSError as exc:
        raise KeystoreUnreadable(f"Cannot list keystore {key_dir}: {exc}") from exc

    # One private key per identity; anything else is a misconfigured MSP dir.
    if len(entries) != 1:
        raise KeystoreAmbiguous(
            f"Keystore {key_dir} should contain exactly one file, found {len(entries)}"
        )

    try:
        private_key = entries[0].read_bytes()
    except OSError as exc:
        raise KeystoreUnreadable(f"Cannot read private key {entries[0]}: {exc}") from exc
    _require_pem(private_key, entries[0], KeystoreUnreadable)

    return Identity(msp_id=msp_id, certificate=certificate, private_key=private_key)

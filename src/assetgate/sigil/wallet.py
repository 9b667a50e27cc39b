"""
File-system wallet - Persistent store of signing identities keyed by label.

Each identity lives in ``<root>/<label>.id`` as a JSON document:

    {"version": 1, "mspId": "Org1MSP", "type": "X.509",
     "credentials": {"certificate": "-----BEGIN ...", "privateKey": "..."}}

The directory is created on first ``put``.  Files are written atomically and,
on POSIX, readable by the owner only.

``put`` takes no lock.  Two processes provisioning the same label at once
can both see ``exists() == False``; callers that run concurrently must
serialise provisioning themselves.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from ..errors import IdentityNotFound, StorageError
from ..spec.schemas import validate
from ..utils import atomic_write
from .credentials import Identity, load_credentials

ID_SUFFIX = ".id"


@dataclass(frozen=True)
class Wallet:
    root: Path

    def _path(self, label: str) -> Path:
        if not label or "/" in label or "\\" in label or label in (".", ".."):
            raise StorageError(f"Invalid wallet label: {label!r}")
        return self.root / f"{label}{ID_SUFFIX}"

    def exists(self, label: str) -> bool:
        try:
            return self._path(label).is_file()
        except StorageError:
            return False

    def put(self, label: str, identity: Identity) -> None:
        path = self._path(label)
        try:
            payload = json.dumps(identity.to_dict(), indent=2, sort_keys=True) + "\n"
        except UnicodeDecodeError as exc:
            raise StorageError(f"Identity {label!r} credentials are not PEM text: {exc}") from exc
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            atomic_write(path, payload.encode("utf-8"))
        except OSError as exc:
            raise StorageError(f"Failed to store identity {label!r} in {self.root}: {exc}") from exc

    def get(self, label: str) -> Identity:
        path = self._path(label)
        if not path.is_file():
            raise IdentityNotFound(f"Identity {label!r} not found in wallet {self.root}")
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            validate(payload, "identity")
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError and SchemaValidationError are both ValueErrors
            raise StorageError(f"Corrupt identity {label!r} in {path}: {exc}") from exc
        return Identity.from_dict(payload)

    def list(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name[: -len(ID_SUFFIX)] for p in self.root.glob(f"*{ID_SUFFIX}") if p.is_file())


def provision(wallet: Wallet, label: str, cred_path: Path, msp_id: str) -> bool:
    """
    Ensure ``label`` exists in the wallet, loading credentials only if it doesn't.

    Args:
        wallet: Target wallet
        label: User label (e.g. "appUser")
        cred_path: MSP directory to load from when the label is missing
        msp_id: Organisation MSP ID

    Returns:
        True if a new identity was stored, False if it was already present
    """
    if wallet.exists(label):
        return False
    identity = load_credentials(cred_path, msp_id)
    wallet.put(label, identity)
    return True


__all__ = ["Wallet", "provision"]

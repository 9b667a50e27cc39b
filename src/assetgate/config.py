"""
Settings for the assetgate CLI.

Resolution order, highest first:
  1. command-line options (applied by the CLI)
  2. process environment
  3. ~/.assetgate/.env
  4. built-in defaults (bundled localhost gateway profile, Org1 credentials
     from the fabric-samples test network layout)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from dotenv import dotenv_values

from .errors import ConfigurationError

ASSETGATE_DIR = Path.home() / ".assetgate"
ASSETGATE_ENV = ASSETGATE_DIR / ".env"

_ORG1_BASE = Path("..", "..", "test-network", "organizations", "peerOrganizations", "org1.example.com")

# Profiles must list http(s):// gateway endpoints; this one targets localhost.
DEFAULT_PROFILE = Path(__file__).parent / "spec" / "profiles" / "local-org1.yaml"

_DEFAULTS: dict[str, str] = {
    "ASSETGATE_PROFILE": str(DEFAULT_PROFILE),
    "ASSETGATE_CREDENTIALS": str(_ORG1_BASE / "users" / "User1@org1.example.com" / "msp"),
    "ASSETGATE_WALLET": "wallet",
    "ASSETGATE_MSPID": "Org1MSP",
    "ASSETGATE_USER": "appUser",
    "ASSETGATE_CHANNEL": "mychannel",
    "ASSETGATE_CHAINCODE": "basic",
    "ASSETGATE_TIMEOUT": "100",
    "DISCOVERY_AS_LOCALHOST": "true",
    "ASSETGATE_PROBE_KEYWORD": "orderer",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _as_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class Settings:
    profile_path: Path
    credentials_path: Path
    wallet_path: Path
    msp_id: str
    user: str
    channel: str
    chaincode: str
    timeout: float
    discovery_as_localhost: bool
    probe_keyword: str
    docker_host: Optional[str] = None

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment and the .env file.

    Args:
        env_path: Path to .env file (default: ~/.assetgate/.env)

    Raises:
        ConfigurationError: If a value can't be parsed
    """
    env_path = env_path or ASSETGATE_ENV

    values: dict[str, str] = dict(_DEFAULTS)
    if env_path.exists():
        values.update({k: v for k, v in dotenv_values(env_path).items() if v is not None})
    for key in (*_DEFAULTS, "DOCKER_HOST"):
        if key in os.environ:
            values[key] = os.environ[key]

    try:
        timeout = float(values["ASSETGATE_TIMEOUT"])
    except ValueError as exc:
        raise ConfigurationError(
            f"ASSETGATE_TIMEOUT must be a number, got {values['ASSETGATE_TIMEOUT']!r}"
        ) from exc

    return Settings(
        profile_path=Path(values["ASSETGATE_PROFILE"]).expanduser(),
        credentials_path=Path(values["ASSETGATE_CREDENTIALS"]).expanduser(),
        wallet_path=Path(values["ASSETGATE_WALLET"]).expanduser(),
        msp_id=values["ASSETGATE_MSPID"],
        user=values["ASSETGATE_USER"],
        channel=values["ASSETGATE_CHANNEL"],
        chaincode=values["ASSETGATE_CHAINCODE"],
        timeout=timeout,
        discovery_as_localhost=_as_bool("DISCOVERY_AS_LOCALHOST", values["DISCOVERY_AS_LOCALHOST"]),
        probe_keyword=values["ASSETGATE_PROBE_KEYWORD"],
        docker_host=values.get("DOCKER_HOST") or None,
    )

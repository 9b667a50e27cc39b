"""Tests for settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from assetgate.config import _DEFAULTS, load_settings
from assetgate.errors import ConfigurationError
from assetgate.pneuma.profile import load_profile


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (*_DEFAULTS, "DOCKER_HOST"):
        monkeypatch.delenv(key, raising=False)


class TestLoadSettings:
    def test_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "missing.env")
        assert settings.channel == "mychannel"
        assert settings.chaincode == "basic"
        assert settings.msp_id == "Org1MSP"
        assert settings.user == "appUser"
        assert settings.timeout == 100.0
        assert settings.discovery_as_localhost is True
        assert settings.wallet_path == Path("wallet")
        assert settings.profile_path.name == "local-org1.yaml"
        assert settings.profile_path.is_file()
        assert settings.credentials_path.parts[-2:] == ("User1@org1.example.com", "msp")
        assert settings.docker_host is None

    def test_env_file(self, tmp_path: Path) -> None:
        env = tmp_path / ".env"
        env.write_text("ASSETGATE_CHANNEL=assets\nDISCOVERY_AS_LOCALHOST=false\nASSETGATE_TIMEOUT=5\n", encoding="utf-8")
        settings = load_settings(env)
        assert settings.channel == "assets"
        assert settings.discovery_as_localhost is False
        assert settings.timeout == 5.0

    def test_environment_beats_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env = tmp_path / ".env"
        env.write_text("ASSETGATE_CHANNEL=assets\n", encoding="utf-8")
        monkeypatch.setenv("ASSETGATE_CHANNEL", "other")
        monkeypatch.setenv("DOCKER_HOST", "tcp://127.0.0.1:2375")
        settings = load_settings(env)
        assert settings.channel == "other"
        assert settings.docker_host == "tcp://127.0.0.1:2375"

    def test_bad_bool(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DISCOVERY_AS_LOCALHOST", "maybe")
        with pytest.raises(ConfigurationError, match="DISCOVERY_AS_LOCALHOST"):
            load_settings(tmp_path / "missing.env")

    def test_bad_timeout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASSETGATE_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="ASSETGATE_TIMEOUT"):
            load_settings(tmp_path / "missing.env")

    def test_with_overrides_skips_none(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "missing.env")
        updated = settings.with_overrides(channel="assets", chaincode=None, discovery_as_localhost=False)
        assert updated.channel == "assets"
        assert updated.chaincode == "basic"
        assert updated.discovery_as_localhost is False

    def test_default_profile_is_loadable(self, tmp_path: Path) -> None:
        profile = load_profile(load_settings(tmp_path / "missing.env").profile_path)
        assert profile.msp_id == "Org1MSP"
        assert profile.gateway_peer().url == "http://localhost:7051"
        assert [o.url for o in profile.orderers.values()] == ["http://localhost:7050"]

"""
Tests for TransferConfig
========================
"""

import pytest

from scplink.config import TransferConfig
from scplink.errors import ArgumentError


class TestTransferConfig:
    """Tests for defaults, environment overrides and validation."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in (
            "SCPLINK_HOST", "SCPLINK_PORT", "SCPLINK_USER", "SCPLINK_PASSWORD",
            "SCPLINK_KEY_FILE", "SCPLINK_TIMEOUT", "SCPLINK_RECEIVE_SIZE",
            "SCPLINK_SCP_COMMAND", "SCPLINK_ACCEPT_UNKNOWN_HOSTS",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        """Verify default values."""
        config = TransferConfig()
        assert config.host is None
        assert config.port == 22
        assert config.timeout == 30.0
        assert config.receive_size == 32768
        assert config.scp_command == "scp"
        assert config.accept_unknown_hosts is False

    def test_from_env_empty(self):
        """No variables means defaults."""
        assert TransferConfig.from_env() == TransferConfig()

    def test_from_env(self, monkeypatch):
        """Every variable is read."""
        monkeypatch.setenv("SCPLINK_HOST", "example.org")
        monkeypatch.setenv("SCPLINK_PORT", "2222")
        monkeypatch.setenv("SCPLINK_USER", "alice")
        monkeypatch.setenv("SCPLINK_PASSWORD", "secret")
        monkeypatch.setenv("SCPLINK_KEY_FILE", "/keys/id_ed25519")
        monkeypatch.setenv("SCPLINK_TIMEOUT", "12.5")
        monkeypatch.setenv("SCPLINK_RECEIVE_SIZE", "8192")
        monkeypatch.setenv("SCPLINK_SCP_COMMAND", "/usr/bin/scp")
        monkeypatch.setenv("SCPLINK_ACCEPT_UNKNOWN_HOSTS", "yes")

        config = TransferConfig.from_env()
        assert config.host == "example.org"
        assert config.port == 2222
        assert config.username == "alice"
        assert config.password == "secret"
        assert config.key_filename == "/keys/id_ed25519"
        assert config.timeout == 12.5
        assert config.receive_size == 8192
        assert config.scp_command == "/usr/bin/scp"
        assert config.accept_unknown_hosts is True

    def test_from_env_invalid_numbers_ignored(self, monkeypatch):
        """Invalid numeric values keep the defaults."""
        monkeypatch.setenv("SCPLINK_PORT", "ssh")
        monkeypatch.setenv("SCPLINK_TIMEOUT", "soon")
        monkeypatch.setenv("SCPLINK_RECEIVE_SIZE", "lots")
        config = TransferConfig.from_env()
        assert config.port == 22
        assert config.timeout == 30.0
        assert config.receive_size == 32768

    def test_from_env_accept_false(self, monkeypatch):
        """Anything but a true value leaves host checking on."""
        monkeypatch.setenv("SCPLINK_ACCEPT_UNKNOWN_HOSTS", "0")
        assert TransferConfig.from_env().accept_unknown_hosts is False

    def test_validate_ok(self):
        """Defaults are valid."""
        TransferConfig(host="h").validate()

    @pytest.mark.parametrize("changes", [
        {"port": 0},
        {"port": 70000},
        {"timeout": 0},
        {"receive_size": -1},
        {"scp_command": ""},
    ])
    def test_validate_rejects(self, changes):
        """Out-of-range values raise ArgumentError."""
        with pytest.raises(ArgumentError):
            TransferConfig(host="h", **changes).validate()

"""
Tests for the SSH Connection Helpers
====================================
"""

from unittest.mock import patch

import paramiko
import pytest

from scplink.config import TransferConfig
from scplink.errors import ArgumentError, ChannelError
from scplink.scp.ssh import close_ssh_client, open_ssh_client


@pytest.fixture
def ssh_client():
    """Patch paramiko.SSHClient and yield the mock instance."""
    with patch("scplink.scp.ssh.paramiko.SSHClient") as client_class:
        yield client_class.return_value


class TestOpenSSHClient:
    """Tests for open_ssh_client()."""

    def test_connect(self, ssh_client):
        """Configuration values are passed to connect()."""
        config = TransferConfig(
            host="example.org", port=2222, username="alice",
            key_filename="/keys/id", timeout=7.0,
        )
        assert open_ssh_client(config) is ssh_client

        ssh_client.load_system_host_keys.assert_called_once()
        kwargs = ssh_client.connect.call_args.kwargs
        assert kwargs["hostname"] == "example.org"
        assert kwargs["port"] == 2222
        assert kwargs["username"] == "alice"
        assert kwargs["key_filename"] == "/keys/id"
        assert kwargs["timeout"] == 7.0

    def test_rejects_unknown_hosts_by_default(self, ssh_client):
        """Unknown host keys are refused unless asked otherwise."""
        open_ssh_client(TransferConfig(host="h"))
        policy = ssh_client.set_missing_host_key_policy.call_args.args[0]
        assert isinstance(policy, paramiko.RejectPolicy)

    def test_accept_unknown_hosts(self, ssh_client):
        """accept_unknown_hosts installs AutoAddPolicy."""
        open_ssh_client(TransferConfig(host="h", accept_unknown_hosts=True))
        policy = ssh_client.set_missing_host_key_policy.call_args.args[0]
        assert isinstance(policy, paramiko.AutoAddPolicy)

    def test_no_host(self, ssh_client):
        """A host is required."""
        with pytest.raises(ArgumentError, match="host"):
            open_ssh_client(TransferConfig())
        ssh_client.connect.assert_not_called()

    def test_invalid_config(self, ssh_client):
        """Out-of-range values are rejected before connecting."""
        with pytest.raises(ArgumentError, match="port"):
            open_ssh_client(TransferConfig(host="h", port=0))

    def test_authentication_failure(self, ssh_client):
        """Authentication errors become ChannelError."""
        ssh_client.connect.side_effect = paramiko.AuthenticationException("denied")
        with pytest.raises(ChannelError, match="Authentication failed"):
            open_ssh_client(TransferConfig(host="h"))
        ssh_client.close.assert_called_once()

    def test_unknown_host(self, ssh_client):
        """Unknown hosts give a hint about the option."""
        ssh_client.connect.side_effect = paramiko.SSHException(
            "Server 'h' not found in known_hosts"
        )
        with pytest.raises(ChannelError, match="accept-unknown-hosts"):
            open_ssh_client(TransferConfig(host="h"))

    def test_network_error(self, ssh_client):
        """Socket errors become ChannelError."""
        ssh_client.connect.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(ChannelError, match="Cannot connect"):
            open_ssh_client(TransferConfig(host="h"))


class TestCloseSSHClient:
    """Tests for close_ssh_client()."""

    def test_close(self, ssh_client):
        """The client is closed."""
        close_ssh_client(ssh_client)
        ssh_client.close.assert_called_once()

    def test_close_none(self):
        """None is ignored."""
        close_ssh_client(None)

    def test_close_error_ignored(self, ssh_client):
        """Errors during close are logged, not raised."""
        ssh_client.close.side_effect = OSError("already gone")
        close_ssh_client(ssh_client)

"""
scplink Configuration
=====================

Connection and transfer settings shared by the SSH helpers and the CLI.
Configuration can come from:
- Default values (defined here)
- Environment variables (SCPLINK_*)
- Command-line options, which override both

Environment Variables
---------------------
    SCPLINK_HOST                  Remote host name or address
    SCPLINK_PORT                  SSH port (integer)
    SCPLINK_USER                  Login name
    SCPLINK_PASSWORD              Password (prefer keys or an agent)
    SCPLINK_KEY_FILE              Private key file
    SCPLINK_TIMEOUT               Socket timeout in seconds (float)
    SCPLINK_RECEIVE_SIZE          Bytes requested per channel read (integer)
    SCPLINK_SCP_COMMAND           Remote scp binary
    SCPLINK_ACCEPT_UNKNOWN_HOSTS  1/true/yes to trust unknown host keys
"""

from dataclasses import dataclass
from typing import Optional
import os

from scplink.errors import ArgumentError

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class TransferConfig:
    """
    Settings for one SSH connection and the transfers run over it.

    Attributes:
        host: Remote host (required before connecting)
        port: SSH port (default: 22)
        username: Login name, None for the local user
        password: Password, None to rely on keys or an agent
        key_filename: Private key file, None for default keys
        timeout: Connect and socket timeout in seconds (default: 30.0)
        receive_size: Bytes requested per channel read (default: 32768)
        scp_command: Remote scp binary (default: "scp")
        accept_unknown_hosts: Trust host keys missing from known_hosts
    """

    host: Optional[str] = None
    port: int = 22
    username: Optional[str] = None
    password: Optional[str] = None
    key_filename: Optional[str] = None
    timeout: float = 30.0
    receive_size: int = 32768
    scp_command: str = "scp"
    accept_unknown_hosts: bool = False

    @classmethod
    def from_env(cls) -> "TransferConfig":
        """
        Create TransferConfig from environment variables.

        Unset variables keep their defaults. Invalid numeric values are
        ignored.

        Returns:
            TransferConfig with values from environment variables
        """
        config = cls()

        if host := os.environ.get("SCPLINK_HOST"):
            config.host = host

        if port := os.environ.get("SCPLINK_PORT"):
            try:
                config.port = int(port)
            except ValueError:
                pass  # Ignore invalid values

        if user := os.environ.get("SCPLINK_USER"):
            config.username = user

        if password := os.environ.get("SCPLINK_PASSWORD"):
            config.password = password

        if key_file := os.environ.get("SCPLINK_KEY_FILE"):
            config.key_filename = key_file

        if timeout := os.environ.get("SCPLINK_TIMEOUT"):
            try:
                config.timeout = float(timeout)
            except ValueError:
                pass

        if receive_size := os.environ.get("SCPLINK_RECEIVE_SIZE"):
            try:
                config.receive_size = int(receive_size)
            except ValueError:
                pass

        if scp_command := os.environ.get("SCPLINK_SCP_COMMAND"):
            config.scp_command = scp_command

        if accept := os.environ.get("SCPLINK_ACCEPT_UNKNOWN_HOSTS"):
            config.accept_unknown_hosts = accept.strip().lower() in _TRUE_VALUES

        return config

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ArgumentError: If port, timeout or receive size is out of range.
        """
        if not 0 < self.port < 65536:
            raise ArgumentError(f"Invalid port: {self.port}")
        if self.timeout <= 0:
            raise ArgumentError(f"Timeout must be positive, got {self.timeout}")
        if self.receive_size <= 0:
            raise ArgumentError(
                f"Receive size must be positive, got {self.receive_size}"
            )
        if not self.scp_command:
            raise ArgumentError("scp command must not be empty")

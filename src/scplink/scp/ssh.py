"""
SSH Connection Helpers
======================

Open and close the paramiko SSH client that carries SCP transfers.

Authentication is delegated to paramiko: an explicit password, a key
file, keys from ~/.ssh and a running agent are all tried by
`SSHClient.connect`. Host keys are checked against the system and user
known_hosts files; unknown hosts are rejected unless
`TransferConfig.accept_unknown_hosts` is set.
"""

import logging
import socket

import paramiko

from scplink.config import TransferConfig
from scplink.errors import ArgumentError, ChannelError

# Configure module logger
logger = logging.getLogger(__name__)


def open_ssh_client(config: TransferConfig) -> paramiko.SSHClient:
    """
    Connect and authenticate an SSH client.

    Args:
        config: Connection settings. `host` is required.

    Returns:
        Connected paramiko.SSHClient.

    Raises:
        ArgumentError: If the configuration is incomplete or out of range.
        ChannelError: If the connection or authentication fails.

    Note:
        The caller is responsible for closing the client with
        close_ssh_client().
    """
    if not config.host:
        raise ArgumentError("No remote host given")
    config.validate()

    client = paramiko.SSHClient()
    client.load_system_host_keys()
    if config.accept_unknown_hosts:
        logger.warning("Accepting unknown host keys for %s", config.host)
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    else:
        client.set_missing_host_key_policy(paramiko.RejectPolicy())

    logger.info(
        "Connecting to %s@%s:%d",
        config.username or "(default user)", config.host, config.port
    )

    try:
        client.connect(
            hostname=config.host,
            port=config.port,
            username=config.username,
            password=config.password,
            key_filename=config.key_filename,
            timeout=config.timeout,
            banner_timeout=config.timeout,
            auth_timeout=config.timeout,
        )
    except paramiko.AuthenticationException as e:
        client.close()
        raise ChannelError(f"Authentication failed for {config.host}: {e}") from e
    except paramiko.BadHostKeyException as e:
        client.close()
        raise ChannelError(f"Host key mismatch for {config.host}: {e}") from e
    except paramiko.SSHException as e:
        client.close()
        if "not found in known_hosts" in str(e):
            raise ChannelError(
                f"Unknown host {config.host}. "
                "Add it to known_hosts or use --accept-unknown-hosts."
            ) from e
        raise ChannelError(f"SSH error connecting to {config.host}: {e}") from e
    except socket.timeout as e:
        client.close()
        raise ChannelError(f"Timed out connecting to {config.host}") from e
    except OSError as e:
        client.close()
        raise ChannelError(f"Cannot connect to {config.host}: {e}") from e

    logger.debug("SSH connection established")
    return client


def close_ssh_client(client: paramiko.SSHClient) -> None:
    """
    Safely close an SSH client, ignoring errors during close.

    Args:
        client: Client to close, or None.
    """
    if client is None:
        return

    try:
        client.close()
        logger.debug("SSH connection closed")
    except Exception as e:
        logger.warning("Error closing SSH connection: %s", e)

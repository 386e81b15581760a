"""
Exec Channel Abstraction
========================

The SCP engine never talks to a transport directly. It drives a narrow
Channel capability: open one remote command, send and receive opaque
frames, close. Anything providing these five members can carry a
transfer, which keeps the engine independent of the SSH library and
makes it testable with in-memory peers.

Channel Contract
----------------
- `open_exec(command)` starts the remote command; False means refused.
- `send(data)` writes one frame; the whole frame is written or
  ChannelError is raised.
- `receive()` returns the next frame, or None once the peer has closed
  its side (EOF). An empty bytes object is treated as EOF as well.
- `close()` releases the channel. It is called exactly once per
  successful `open_exec`.
- `packet_size` is the peer's maximum packet size for this channel,
  valid after `open_exec` returned True.

Paramiko Adapter
----------------
ParamikoChannel implements the contract on top of a connected
`paramiko.Transport`. One adapter carries one transfer: a fresh session
channel is opened in `open_exec` and closed in `close`.

    transport = client.get_transport()
    channel = ParamikoChannel(transport, timeout=30.0)
    if channel.open_exec("scp -f /etc/hostname"):
        ...
"""

import logging
import socket
from typing import Final, Optional, Protocol, runtime_checkable

import paramiko

from scplink.errors import ChannelError

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Bytes requested per recv() call
DEFAULT_RECEIVE_SIZE: Final[int] = 32768


# =============================================================================
# Channel Protocol
# =============================================================================

@runtime_checkable
class Channel(Protocol):
    """Capability the SCP engine needs from a command-execution channel."""

    @property
    def packet_size(self) -> int:
        ...

    def open_exec(self, command: str) -> bool:
        ...

    def send(self, data: bytes) -> None:
        ...

    def receive(self) -> Optional[bytes]:
        ...

    def close(self) -> None:
        ...


# =============================================================================
# Paramiko Adapter
# =============================================================================

class ParamikoChannel:
    """
    Channel implementation backed by a paramiko session channel.

    Attributes:
        transport: Connected paramiko Transport
        receive_size: Maximum bytes returned by one receive() call
        timeout: Socket timeout in seconds, or None to block forever

    Paramiko and socket failures are reported as ChannelError.
    """

    def __init__(
        self,
        transport: paramiko.Transport,
        receive_size: int = DEFAULT_RECEIVE_SIZE,
        timeout: Optional[float] = None,
    ):
        if receive_size <= 0:
            raise ValueError(f"receive_size must be positive, got {receive_size}")
        self.transport = transport
        self.receive_size = receive_size
        self.timeout = timeout
        self._channel: Optional[paramiko.Channel] = None

    @property
    def packet_size(self) -> int:
        """Peer's maximum packet size for the open session."""
        if self._channel is None:
            raise ChannelError("Channel is not open")
        return self._channel.out_max_packet_size

    @property
    def is_open(self) -> bool:
        """Check if a session channel is currently open."""
        return self._channel is not None

    def open_exec(self, command: str) -> bool:
        """
        Open a session channel and execute a command on it.

        Args:
            command: Remote command line.

        Returns:
            True if the command was started, False if the server refused
            the session or the exec request.

        Raises:
            ChannelError: If the channel is already open or the
                transport failed.
        """
        if self._channel is not None:
            raise ChannelError("Channel is already open")

        logger.debug("Opening exec channel: %s", command)

        try:
            channel = self.transport.open_session()
        except paramiko.ChannelException as e:
            logger.warning("Server refused session channel: %s", e)
            return False
        except (paramiko.SSHException, OSError) as e:
            raise ChannelError(f"Cannot open session channel: {e}") from e

        try:
            if self.timeout is not None:
                channel.settimeout(self.timeout)
            channel.exec_command(command)
        except paramiko.SSHException as e:
            logger.warning("Server refused exec request: %s", e)
            channel.close()
            return False
        except OSError as e:
            channel.close()
            raise ChannelError(f"Cannot execute remote command: {e}") from e

        self._channel = channel
        return True

    def send(self, data: bytes) -> None:
        """Write one frame to the channel."""
        channel = self._require_open()
        try:
            channel.sendall(data)
        except socket.timeout as e:
            raise ChannelError("Timed out sending to channel") from e
        except (paramiko.SSHException, OSError) as e:
            raise ChannelError(f"Send failed: {e}") from e

    def receive(self) -> Optional[bytes]:
        """Read the next frame, or None at end of stream."""
        channel = self._require_open()
        try:
            data = channel.recv(self.receive_size)
        except socket.timeout as e:
            raise ChannelError("Timed out waiting for remote data") from e
        except (paramiko.SSHException, OSError) as e:
            raise ChannelError(f"Receive failed: {e}") from e
        return data or None

    def close(self) -> None:
        """Close the session channel. Closing twice is a no-op."""
        if self._channel is None:
            return
        channel, self._channel = self._channel, None
        try:
            channel.close()
        except (paramiko.SSHException, OSError) as e:
            raise ChannelError(f"Close failed: {e}") from e
        logger.debug("Exec channel closed")

    def _require_open(self) -> paramiko.Channel:
        if self._channel is None:
            raise ChannelError("Channel is not open")
        return self._channel

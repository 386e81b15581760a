"""
SCP Transfer Engine
===================

This module drives the SCP control protocol for one regular file in
either direction over an exec channel.

Protocol Flow: Put (local → remote, remote runs `scp -t`)
--------------------------------------------------------
```
LOCAL                               REMOTE (scp -t)
    |                                    |
    | ←──────────── 0x00 ─────────────  |  ready
    |                                    |
    | ── "C0644 <size> <name>\\n" ─────→ |  header
    |                                    |
    | ←──────────── 0x00 ─────────────  |  header accepted
    |                                    |
    | ── payload chunk ────────────────→ |  packet_size - 4 bytes each,
    | ── payload chunk ────────────────→ |  no acknowledgment in between
    |          ...                       |
    | ── close ────────────────────────→ |
```

Protocol Flow: Get (remote → local, remote runs `scp -f`)
--------------------------------------------------------
```
LOCAL                               REMOTE (scp -f)
    |                                    |
    | ── 0x00 ─────────────────────────→ |  ready
    |                                    |
    | ←── "C0644 <size> <name>\\n" ─────  |  header
    |                                    |
    | ── 0x00 ─────────────────────────→ |  header accepted
    |                                    |
    | ←──────── payload frames ───────  |  exactly <size> bytes,
    | ←──────────── 0x00 ─────────────  |  then one status byte
    |                                    |
    | ── close ────────────────────────→ |
```

The trailing status byte may arrive in the same frame as the last
payload bytes or in a frame of its own. Only the first `size` bytes are
ever written to the sink.

At any handshake point the peer may answer 0x01 (warning) or 0x02
(error) followed by a message line. Both end the transfer.

Failure Reporting
-----------------
`put()` and `get()` return False on failure and append exactly one
record to the engine's ErrorLog. The log is never cleared:

    transfer = SCPTransfer.from_client(client)
    if not transfer.put("/srv/data.bin", b"payload"):
        print(transfer.last_error())

Thread Safety
-------------
This class is NOT thread-safe. Each call opens its own channel from the
factory, but the ErrorLog is shared. Use one engine per thread.
"""

import logging
from typing import Callable, Final, Optional, Union

import paramiko

from scplink.errors import (
    ArgumentError,
    ChannelError,
    ErrorLog,
    ProtocolError,
    RemoteError,
    RemoteStatusError,
    RemoteWarning,
    ScpError,
)
from scplink.scp.channel import DEFAULT_RECEIVE_SIZE, Channel, ParamikoChannel
from scplink.scp.header import (
    ACK,
    MAX_HEADER_SIZE,
    Direction,
    HeaderLine,
    StatusCode,
    build_command,
    decode_message,
    remote_basename,
    split_status,
    validate_remote_path,
)
from scplink.scp.local import (
    ByteSink,
    ByteSource,
    SourceMode,
    open_sink,
    open_source,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Type alias for progress callbacks
ProgressCallback = Callable[[int, int], None]  # (bytes_done, total_bytes)

# Type alias for channel factories
ChannelFactory = Callable[[], Channel]


# =============================================================================
# Constants
# =============================================================================

# SSH_MSG_CHANNEL_DATA length field, subtracted from the peer's packet size
CHANNEL_DATA_OVERHEAD: Final[int] = 4


# =============================================================================
# Transfer Engine
# =============================================================================

class SCPTransfer:
    """
    Single-file SCP client.

    Attributes:
        scp_command: Remote scp binary used in the exec command line

    Example:
        transfer = SCPTransfer(lambda: ParamikoChannel(transport))

        # Upload bytes
        transfer.put("/tmp/hello.txt", b"Hello, world\\n")

        # Upload a local file with progress
        transfer.put("/tmp/big.bin", "big.bin", mode=SourceMode.LOCAL_FILE,
                     progress=lambda done, total: print(done, total))

        # Download into memory, or into a local file
        data = transfer.get("/etc/hostname")
        transfer.get("/var/log/syslog", "syslog.txt")
    """

    def __init__(self, channel_factory: ChannelFactory, scp_command: str = "scp"):
        """
        Initialize the engine.

        Args:
            channel_factory: Callable returning a new, unopened Channel.
                It is called once per transfer.
            scp_command: Remote scp binary.
        """
        self._channel_factory = channel_factory
        self.scp_command = scp_command
        self._errors = ErrorLog()

    @classmethod
    def from_transport(
        cls,
        transport: paramiko.Transport,
        receive_size: int = DEFAULT_RECEIVE_SIZE,
        timeout: Optional[float] = None,
        scp_command: str = "scp",
    ) -> "SCPTransfer":
        """Create an engine that opens session channels on a paramiko Transport."""
        def factory() -> Channel:
            return ParamikoChannel(transport, receive_size=receive_size, timeout=timeout)

        return cls(factory, scp_command=scp_command)

    @classmethod
    def from_client(
        cls,
        client: paramiko.SSHClient,
        receive_size: int = DEFAULT_RECEIVE_SIZE,
        timeout: Optional[float] = None,
        scp_command: str = "scp",
    ) -> "SCPTransfer":
        """
        Create an engine on the transport of a connected SSHClient.

        Raises:
            ChannelError: If the client is not connected.
        """
        transport = client.get_transport()
        if transport is None or not transport.is_active():
            raise ChannelError("SSH client is not connected")
        return cls.from_transport(
            transport,
            receive_size=receive_size,
            timeout=timeout,
            scp_command=scp_command,
        )

    # =========================================================================
    # Error Log
    # =========================================================================

    @property
    def errors(self) -> ErrorLog:
        """The engine's error log."""
        return self._errors

    def last_error(self) -> str:
        """Return the most recent error message, or an empty string."""
        return self._errors.last_error()

    def all_errors(self) -> tuple[str, ...]:
        """Return every error message recorded so far, oldest first."""
        return self._errors.all_errors()

    # =========================================================================
    # Put
    # =========================================================================

    def put(
        self,
        remote_path: str,
        source: object,
        mode: SourceMode = SourceMode.STRING,
        progress: Optional[ProgressCallback] = None,
    ) -> bool:
        """
        Upload one file to the remote host.

        Args:
            remote_path: Destination path on the remote host. Its last
                component is sent as the file name.
            source: Payload. With SourceMode.STRING: bytes, bytearray,
                memoryview, str (UTF-8) or a readable binary file object.
                With SourceMode.LOCAL_FILE: a local path.
            mode: How `source` is interpreted.
            progress: Optional callback(bytes_sent, total_bytes), called
                after every chunk.

        Returns:
            True if every byte was handed to the channel, False otherwise.
            The failure reason is available from last_error().

        Raises:
            FileNotFoundError: If mode is LOCAL_FILE and `source` is not
                a regular file. No channel is opened.
        """
        try:
            validate_remote_path(remote_path)
            byte_source = open_source(source, mode)
        except FileNotFoundError:
            raise
        except (ArgumentError, OSError) as e:
            self._record_failure(Direction.PUT, remote_path, e)
            return False

        try:
            return self._run(
                Direction.PUT,
                remote_path,
                lambda channel: self._send_file(channel, remote_path, byte_source, progress),
            )
        finally:
            self._release(byte_source, "source")

    def _send_file(
        self,
        channel: Channel,
        remote_path: str,
        source: ByteSource,
        progress: Optional[ProgressCallback],
    ) -> bool:
        self._read_status(channel, "initial acknowledgment")

        header = HeaderLine(size=source.size, name=remote_basename(remote_path))
        data = header.to_bytes()
        channel.send(data)
        logger.debug("TX: header %r", data)

        self._read_status(channel, "header acknowledgment")

        chunk_size = channel.packet_size - CHANNEL_DATA_OVERHEAD
        if chunk_size <= 0:
            raise ChannelError(
                f"Channel packet size too small: {channel.packet_size}"
            )

        total = source.size
        sent = 0
        while sent < total:
            chunk = source.read(min(chunk_size, total - sent))
            if not chunk:
                raise ProtocolError(
                    f"Source ended after {sent} of {total} bytes"
                )
            channel.send(chunk)
            sent += len(chunk)
            logger.debug("TX: DATA len=%d (total: %d/%d)", len(chunk), sent, total)

            if progress:
                progress(sent, total)

        logger.info("Put complete: %s (%d bytes)", remote_path, total)
        return True

    # =========================================================================
    # Get
    # =========================================================================

    def get(
        self,
        remote_path: str,
        sink: object = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Union[bytes, bool]:
        """
        Download one file from the remote host.

        Args:
            remote_path: Source path on the remote host.
            sink: None to return the payload as bytes, a local path to
                write it to (opened after the header is accepted, closed
                here), or a writable binary file object (left open).
            progress: Optional callback(bytes_received, total_bytes),
                called after every frame that carried payload.

        Returns:
            The payload when `sink` is None, otherwise True. False on
            failure; the reason is available from last_error().
        """
        try:
            validate_remote_path(remote_path)
            byte_sink = open_sink(sink)
        except ArgumentError as e:
            self._record_failure(Direction.GET, remote_path, e)
            return False

        if not self._run(
            Direction.GET,
            remote_path,
            lambda channel: self._receive_file(channel, remote_path, byte_sink, progress),
        ):
            return False
        return byte_sink.result()

    def _receive_file(
        self,
        channel: Channel,
        remote_path: str,
        sink: ByteSink,
        progress: Optional[ProgressCallback],
    ) -> bool:
        try:
            channel.send(ACK)
            header, pending = self._read_header(channel)

            channel.send(ACK)
            sink.open()

            self._receive_payload(channel, header.size, pending, sink, progress)
        except BaseException:
            self._release(sink, "sink")
            raise

        sink.close()
        logger.info("Get complete: %s (%d bytes)", remote_path, header.size)
        return True

    def _read_header(self, channel: Channel) -> tuple[HeaderLine, bytes]:
        """
        Read the header line, joining frames until a newline arrives.

        Returns:
            Tuple of (header, bytes received after the newline).
        """
        buffer = bytearray()
        while b"\n" not in buffer:
            frame = channel.receive()
            if not frame:
                status, rest = split_status(bytes(buffer))
                if status in (StatusCode.WARNING, StatusCode.ERROR):
                    self._raise_remote(status, rest)
                raise ProtocolError("Connection closed before the file header")
            buffer += frame
            if b"\n" not in buffer and len(buffer) > MAX_HEADER_SIZE:
                raise ProtocolError(
                    f"Header exceeds {MAX_HEADER_SIZE} bytes without a newline"
                )

        line, _, pending = bytes(buffer).partition(b"\n")
        logger.debug("RX: header %r", line)

        status, rest = split_status(line)
        if status in (StatusCode.WARNING, StatusCode.ERROR):
            self._raise_remote(status, rest)
        if status is StatusCode.OK:
            line = rest

        return HeaderLine.from_bytes(line), pending

    def _receive_payload(
        self,
        channel: Channel,
        size: int,
        pending: bytes,
        sink: ByteSink,
        progress: Optional[ProgressCallback],
    ) -> None:
        received = 0

        while True:
            if pending:
                frame, pending = pending, b""
            else:
                frame = channel.receive()

            if received == size:
                # Payload complete on a frame boundary, frame holds the status
                if not frame:
                    logger.debug("RX: EOF in place of trailing status")
                    return
                self._check_trailing_status(frame)
                return

            if not frame:
                raise ProtocolError(
                    f"Connection closed after {received} of {size} bytes"
                )

            remaining = size - received
            payload, trailer = frame[:remaining], frame[remaining:]
            if trailer:
                self._check_trailing_status(trailer)

            sink.write(payload)
            received += len(payload)
            logger.debug("RX: DATA len=%d (total: %d/%d)", len(payload), received, size)

            if progress:
                progress(received, size)

            if trailer:
                return

    def _check_trailing_status(self, data: bytes) -> None:
        status, rest = split_status(data)
        if status is None:
            raise ProtocolError(f"Unknown trailing status byte: 0x{data[0]:02X}")
        if status is not StatusCode.OK:
            self._raise_remote(status, rest)
        logger.debug("RX: trailing status OK")

    # =========================================================================
    # Shared Helpers
    # =========================================================================

    def _run(
        self,
        direction: Direction,
        remote_path: str,
        body: Callable[[Channel], bool],
    ) -> bool:
        """Open a channel, run the transfer body, always close."""
        command = build_command(direction, remote_path, self.scp_command)
        logger.info("Starting %s: %s", direction.name.lower(), command)

        try:
            channel = self._channel_factory()
            if not channel.open_exec(command):
                raise ChannelError(f"Remote command refused: {command}")
        except (ScpError, OSError) as e:
            self._record_failure(direction, remote_path, e)
            return False

        try:
            return body(channel)
        except (ScpError, OSError) as e:
            self._record_failure(direction, remote_path, e)
            return False
        finally:
            self._release(channel, "channel")

    def _read_status(self, channel: Channel, stage: str) -> None:
        """Read one status frame; anything but OK ends the transfer."""
        frame = channel.receive()
        if not frame:
            raise ProtocolError(f"Connection closed while waiting for {stage}")

        status, rest = split_status(frame)
        if status is None:
            raise ProtocolError(
                f"Unexpected byte 0x{frame[0]:02X} while waiting for {stage}"
            )
        if status is not StatusCode.OK:
            self._raise_remote(status, rest)
        logger.debug("RX: %s OK", stage)

    @staticmethod
    def _raise_remote(status: StatusCode, data: bytes) -> None:
        message = decode_message(data)
        if status is StatusCode.WARNING:
            raise RemoteWarning(message)
        raise RemoteError(message)

    def _record_failure(
        self,
        direction: Direction,
        remote_path: object,
        error: BaseException,
    ) -> None:
        record = self._errors.add_exception(error)
        if isinstance(error, RemoteStatusError):
            logger.warning("%s %s: remote %s", direction.name.lower(), remote_path, record)
        else:
            logger.warning(
                "%s %s failed: %s", direction.name.lower(), remote_path, record.message
            )

    @staticmethod
    def _release(resource: object, name: str) -> None:
        """Close a channel, source or sink, logging but never raising."""
        try:
            resource.close()
        except Exception as e:
            logger.warning("Error closing %s: %s", name, e)

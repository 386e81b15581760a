"""
SCP Header Codec
================

This module implements the textual part of the SCP control protocol:

- The file header line exchanged before any payload byte
- Status bytes (OK / warning / error) and their trailing messages
- The remote command line that starts the peer's scp process

Protocol Overview
-----------------
SCP was never standardised. The grammar below is what OpenSSH and
BSD rcp put on the wire for a single regular file:

    C<mode> SP <size> SP <name> LF

    ┌──────┬──────────┬───┬──────────┬───┬──────────┬────┐
    │  C   │  0644    │ ' │  10000   │ ' │ data.bin │ \\n │
    │ type │ 4 octal  │   │ decimal  │   │ basename │    │
    └──────┴──────────┴───┴──────────┴───┴──────────┴────┘

The mode is informational here: uploads always declare 0644 and the
mode received on download is not applied to the local sink.

Every handshake point is answered with a single status byte:

    0x00  OK, continue
    0x01  warning, message text follows up to LF
    0x02  error, message text follows up to LF

Remote Commands
---------------
The peer runs `scp -t <path>` to receive a file (we "put") and
`scp -f <path>` to send one (we "get"). The path is shell-quoted
because the remote side runs the command through the user's shell.
"""

import logging
import posixpath
import re
import shlex
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Final, Optional, Tuple

from scplink.errors import ArgumentError, ProtocolError

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Protocol Constants
# =============================================================================

# Mode declared for every uploaded file
DEFAULT_PERMISSIONS: Final[str] = "0644"

# Record type letters
FILE_RECORD: Final[bytes] = b"C"
DIRECTORY_RECORD: Final[bytes] = b"D"

# Single zero byte used both as "ready" and as acknowledgment
ACK: Final[bytes] = b"\x00"

# Header lines longer than this without a newline are rejected
MAX_HEADER_SIZE: Final[int] = 4096

# <perm> <size> <name>, perm and name informational
_HEADER_PATTERN: Final[re.Pattern] = re.compile(
    rb"(?P<perms>[^ ]+) (?P<size>\d+) (?P<name>.+)", re.DOTALL
)


# =============================================================================
# Enumerations
# =============================================================================

class StatusCode(IntEnum):
    """
    SCP status byte values.

    The byte is sent at each handshake point and once more after the
    payload by the side that sent the file.
    """

    OK = 0x00       # Success, continue
    WARNING = 0x01  # Soft error, message follows
    ERROR = 0x02    # Hard error, message follows


class Direction(Enum):
    """
    Transfer direction, named from the local side.

    The value is the flag passed to the remote scp process.
    """

    PUT = "-t"   # remote scp runs "to" mode and receives
    GET = "-f"   # remote scp runs "from" mode and sends


# =============================================================================
# Header Line
# =============================================================================

@dataclass(frozen=True)
class HeaderLine:
    """
    The file header line exchanged at transfer start.

    Attributes:
        permissions: 4-digit octal mode string (informational)
        size: Declared payload length in bytes
        name: File name without directory components (informational)

    Example:
        header = HeaderLine(size=1000, name="data.bin")
        header.to_bytes()   # b'C0644 1000 data.bin\\n'

        HeaderLine.from_bytes(b'C0600 12 notes.txt\\n')
        # HeaderLine(permissions='0600', size=12, name='notes.txt')
    """

    permissions: str = DEFAULT_PERMISSIONS
    size: int = 0
    name: str = ""

    def __post_init__(self) -> None:
        """Validate header fields after initialization."""
        if self.size < 0:
            raise ValueError(f"Size must be non-negative, got {self.size}")
        if "\n" in self.name:
            raise ValueError(f"Name must not contain a newline: {self.name!r}")

    def to_bytes(self) -> bytes:
        """
        Serialize the header for transmission.

        Returns:
            The complete header line, including the C record type and
            the terminating newline.
        """
        line = f"{FILE_RECORD.decode()}{self.permissions} {self.size} {self.name}\n"
        return line.encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "HeaderLine":
        """
        Parse a header line received from the peer.

        Trailing whitespace (the newline) is ignored. A leading C record
        type on the permission field is accepted and dropped.

        Args:
            data: Header line bytes, with or without its newline.

        Returns:
            Parsed HeaderLine.

        Raises:
            ProtocolError: If the line is a directory record or does not
                match the `<perm> <size> <name>` grammar.
        """
        line = data.rstrip()

        if line.startswith(DIRECTORY_RECORD):
            raise ProtocolError(
                f"Directory transfer not supported: {line[:80]!r}"
            )

        match = _HEADER_PATTERN.fullmatch(line)
        if match is None:
            raise ProtocolError(f"Malformed header line: {line[:80]!r}")

        perms = match.group("perms")
        if perms.startswith(FILE_RECORD):
            perms = perms[1:]

        header = cls(
            permissions=perms.decode("ascii", errors="replace"),
            size=int(match.group("size")),
            name=match.group("name").decode("utf-8", errors="replace"),
        )
        logger.debug("Parsed header: %r", header)
        return header


# =============================================================================
# Status Bytes
# =============================================================================

def split_status(frame: bytes) -> Tuple[Optional[StatusCode], bytes]:
    """
    Split a frame into its leading status byte and the remainder.

    Args:
        frame: Bytes received from the peer.

    Returns:
        Tuple of (status, remainder). Status is None when the frame is
        empty or its first byte is not a status code; the remainder is
        then the whole frame.
    """
    if not frame:
        return None, b""
    try:
        return StatusCode(frame[0]), frame[1:]
    except ValueError:
        return None, frame


def decode_message(data: bytes) -> str:
    """
    Decode the message text that follows a warning or error status.

    The text runs to the end of the line; anything after the first
    newline is dropped.
    """
    text = data.split(b"\n", 1)[0]
    return text.decode("utf-8", errors="replace").strip()


# =============================================================================
# Remote Command Line
# =============================================================================

def validate_remote_path(remote_path: str) -> str:
    """
    Check that a remote path can be used for a single-file transfer.

    Args:
        remote_path: Path on the remote host.

    Returns:
        The path unchanged.

    Raises:
        ArgumentError: If the path is empty, contains a newline, or has
            no file name component.
    """
    if not isinstance(remote_path, str) or not remote_path:
        raise ArgumentError("Remote path must be a non-empty string")
    if "\n" in remote_path:
        raise ArgumentError(f"Remote path contains a newline: {remote_path!r}")
    if not remote_basename(remote_path):
        raise ArgumentError(f"Remote path has no file name: {remote_path!r}")
    return remote_path


def remote_basename(remote_path: str) -> str:
    """Return the file name component of a POSIX remote path."""
    return posixpath.basename(remote_path.rstrip("/"))


def build_command(direction: Direction, remote_path: str, scp_command: str = "scp") -> str:
    """
    Build the command line executed on the remote host.

    Args:
        direction: PUT runs the peer in receive mode (-t), GET in
            send mode (-f).
        remote_path: Path on the remote host, shell-quoted here.
        scp_command: Name or path of the remote scp binary.

    Returns:
        Command line such as "scp -t '/tmp/my file'".
    """
    return f"{scp_command} {direction.value} {shlex.quote(remote_path)}"

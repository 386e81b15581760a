"""
scplink Error Hierarchy
=======================

This module defines the exception hierarchy for scplink, plus the
append-only error log that every transfer engine keeps.

All exceptions inherit from ScpError, allowing callers to catch every
scplink failure with a single except clause if desired.

Exception Hierarchy
-------------------
ScpError (base)
├── ArgumentError - invalid remote path or source mode
├── ChannelError - exec channel could not be opened, written or read
├── ProtocolError - malformed header, unknown status byte, early EOF
└── RemoteStatusError - status signalled by the remote scp process
    ├── RemoteWarning - status byte 1
    └── RemoteError - status byte 2

Failure Reporting
-----------------
The engine raises these internally, but `SCPTransfer.put()` and
`SCPTransfer.get()` do not let them escape. Each failed call appends
exactly one ErrorRecord to the engine's ErrorLog and returns False.
The log keeps every record for the lifetime of the engine:

    transfer.put("/tmp/a", b"data")
    if not transfer.put("/root/locked", b"data"):
        print(transfer.last_error())   # "scp: /root/locked: Permission denied"
    print(transfer.all_errors())       # every message so far, oldest first
"""

from dataclasses import dataclass
from enum import IntEnum


# =============================================================================
# Severity
# =============================================================================

class Severity(IntEnum):
    """
    Severity of a logged error.

    The values match the SCP wire status bytes so a status byte can be
    turned into a severity with Severity(code).
    """

    WARNING = 1
    ERROR = 2


# =============================================================================
# Base Exception Class
# =============================================================================

class ScpError(Exception):
    """
    Base exception for all scplink errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch all scplink errors with a single except clause:

        try:
            channel.send(b"\\x00")
        except ScpError as e:
            print(f"Error: {e}")
    """
    pass


class ArgumentError(ScpError):
    """
    Invalid arguments passed to a transfer.

    Raised when:
    - The remote path is empty or contains a newline
    - The remote path has no file name component
    - The source mode is not a SourceMode value
    - Configuration values are out of range
    """
    pass


class ChannelError(ScpError):
    """
    Failure at the exec channel boundary.

    Raised when the channel cannot be opened, or when sending or
    receiving fails (socket error, timeout, closed transport). These
    failures are not recoverable inside the engine.
    """
    pass


class ProtocolError(ScpError):
    """
    SCP control protocol violation.

    Raised when the peer sends a malformed header line, an unknown status
    byte, or ends the stream before the declared payload size was reached.
    """
    pass


class RemoteStatusError(ScpError):
    """
    Status reported by the remote scp process.

    The remote side signals problems with a status byte followed by a
    human-readable message running to the end of the line. Both the
    warning and the error status end the transfer.

    Attributes:
        message: Message text sent by the peer (without trailing newline)
    """

    severity = Severity.ERROR

    def __init__(self, message: str = ""):
        self.message = message
        if not message:
            message = self._default_message()
        super().__init__(message)

    def _default_message(self) -> str:
        return f"Remote {self.severity.name.lower()} (no message)"


class RemoteWarning(RemoteStatusError):
    """Peer sent status byte 1."""

    severity = Severity.WARNING


class RemoteError(RemoteStatusError):
    """Peer sent status byte 2."""

    severity = Severity.ERROR


# =============================================================================
# Error Log
# =============================================================================

@dataclass(frozen=True)
class ErrorRecord:
    """
    A single entry in the error log.

    Attributes:
        severity: WARNING or ERROR
        message: Human-readable description
    """
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"{self.severity.name.lower()}: {self.message}"


class ErrorLog:
    """
    Append-only, ordered record of transfer failures.

    Records are never removed or reordered. An engine reused across many
    calls accumulates the history of all of them.

    Example:
        log = ErrorLog()
        log.add(Severity.ERROR, "scp: no such file")
        log.last_error()   # "scp: no such file"
        log.all_errors()   # ("scp: no such file",)
    """

    def __init__(self) -> None:
        self._records: list[ErrorRecord] = []

    def add(self, severity: Severity, message: str) -> ErrorRecord:
        """
        Append a record to the log.

        Args:
            severity: Severity of the failure
            message: Message text

        Returns:
            The record that was appended
        """
        record = ErrorRecord(Severity(severity), message)
        self._records.append(record)
        return record

    def add_exception(self, error: BaseException) -> ErrorRecord:
        """Append a record describing an exception raised by a transfer."""
        if isinstance(error, RemoteStatusError):
            return self.add(error.severity, error.message or str(error))
        return self.add(Severity.ERROR, str(error) or type(error).__name__)

    def last_error(self) -> str:
        """Return the most recent message, or an empty string if none."""
        if not self._records:
            return ""
        return self._records[-1].message

    def all_errors(self) -> tuple[str, ...]:
        """Return a snapshot of every message in insertion order."""
        return tuple(record.message for record in self._records)

    def records(self) -> tuple[ErrorRecord, ...]:
        """Return a snapshot of every record in insertion order."""
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

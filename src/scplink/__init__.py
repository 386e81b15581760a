"""
scplink - Single-File Secure Copy over SSH
==========================================

This package implements the client side of the SCP control protocol on
top of an already established SSH connection: upload (`put`) and
download (`get`) one regular file, with chunked streaming, progress
reporting and a persistent error log.

Main Components
---------------
- **scp.transfer**: SCPTransfer engine
    Drives the header/acknowledgment handshake and streams payloads

- **scp.channel**: Channel protocol
    The narrow exec-channel capability the engine needs, with a
    paramiko-backed implementation

- **errors**: Exception hierarchy and ErrorLog

- **cli**: Command-line tool (scplink)

Quick Start
-----------
    >>> from scplink import SCPTransfer
    >>> transfer = SCPTransfer.from_client(ssh_client)
    >>> transfer.put("/tmp/notes.txt", b"remember the milk\\n")
    True
    >>> transfer.get("/tmp/notes.txt")
    b'remember the milk\\n'

Or use the command-line tool:
    $ scplink -H example.org put notes.txt /tmp/notes.txt
    $ scplink -H example.org get /tmp/notes.txt

Version History
---------------
1.0.0 - Initial release with put/get over paramiko
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from scplink.errors import (
    ScpError,
    ArgumentError,
    ChannelError,
    ProtocolError,
    RemoteStatusError,
    RemoteWarning,
    RemoteError,
    Severity,
    ErrorRecord,
    ErrorLog,
)
from scplink.config import TransferConfig
from scplink.scp import (
    Channel,
    ParamikoChannel,
    SCPTransfer,
    SourceMode,
    open_ssh_client,
    close_ssh_client,
)

__all__ = [
    "__version__",
    # Errors
    "ScpError",
    "ArgumentError",
    "ChannelError",
    "ProtocolError",
    "RemoteStatusError",
    "RemoteWarning",
    "RemoteError",
    "Severity",
    "ErrorRecord",
    "ErrorLog",
    # Configuration
    "TransferConfig",
    # Transfer
    "Channel",
    "ParamikoChannel",
    "SCPTransfer",
    "SourceMode",
    "open_ssh_client",
    "close_ssh_client",
]

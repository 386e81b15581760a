"""
SCP Protocol Implementation
===========================

Single-file secure copy over an SSH exec channel.

Module Structure
----------------
- **header**: Header line codec, status bytes, remote command line
- **channel**: Channel protocol and the paramiko adapter
- **ssh**: SSH client open/close helpers
- **local**: Byte sources (put) and sinks (get)
- **transfer**: The SCPTransfer engine

Quick Start
-----------
    >>> from scplink.config import TransferConfig
    >>> from scplink.scp import SCPTransfer, open_ssh_client, close_ssh_client
    >>> client = open_ssh_client(TransferConfig(host="example.org"))
    >>> try:
    ...     transfer = SCPTransfer.from_client(client)
    ...     transfer.put("/tmp/hello.txt", b"Hello\\n")
    ...     data = transfer.get("/tmp/hello.txt")
    ... finally:
    ...     close_ssh_client(client)
"""

from scplink.scp.header import (
    DEFAULT_PERMISSIONS,
    MAX_HEADER_SIZE,
    StatusCode,
    Direction,
    HeaderLine,
    split_status,
    build_command,
)
from scplink.scp.channel import (
    DEFAULT_RECEIVE_SIZE,
    Channel,
    ParamikoChannel,
)
from scplink.scp.ssh import (
    open_ssh_client,
    close_ssh_client,
)
from scplink.scp.local import SourceMode
from scplink.scp.transfer import (
    CHANNEL_DATA_OVERHEAD,
    ChannelFactory,
    ProgressCallback,
    SCPTransfer,
)

# Public API - what gets exported with "from scplink.scp import *"
__all__ = [
    # Header
    "DEFAULT_PERMISSIONS",
    "MAX_HEADER_SIZE",
    "StatusCode",
    "Direction",
    "HeaderLine",
    "split_status",
    "build_command",
    # Channel
    "DEFAULT_RECEIVE_SIZE",
    "Channel",
    "ParamikoChannel",
    # SSH
    "open_ssh_client",
    "close_ssh_client",
    # Transfer
    "CHANNEL_DATA_OVERHEAD",
    "ChannelFactory",
    "ProgressCallback",
    "SCPTransfer",
    "SourceMode",
]

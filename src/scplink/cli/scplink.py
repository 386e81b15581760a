"""
scplink - Secure Copy Command-Line Interface
============================================

This module implements the command-line interface for single-file
transfers over SSH using the SCP protocol.

Usage Examples
--------------
Upload a local file:
    $ scplink -H example.org -u alice put report.pdf /home/alice/report.pdf

Download a remote file into the current directory:
    $ scplink -H example.org get /var/log/syslog

Download to a chosen local path:
    $ scplink -H example.org get /etc/hostname hostname.txt

Connection settings may also come from the environment (SCPLINK_HOST,
SCPLINK_USER, SCPLINK_KEY_FILE, ...). Command-line options win.

Host Keys
---------
Host keys are checked against known_hosts. Connecting to a host that is
not listed fails unless --accept-unknown-hosts is given.

Exit Codes
----------
0 - Success
1 - Connection or transfer error
2 - Invalid arguments or configuration error
3 - Internal error
"""

import logging
from typing import Optional

import click
import paramiko

from scplink import __version__
from scplink.cli.errors import ExitCode, handle_cli_exception
from scplink.config import TransferConfig
from scplink.scp import (
    SCPTransfer,
    SourceMode,
    close_ssh_client,
    open_ssh_client,
)
from scplink.scp.header import remote_basename, validate_remote_path

# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the connection configuration and verbosity.
    """

    def __init__(self) -> None:
        self.config: TransferConfig = TransferConfig.from_env()
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )
        if not self.verbose:
            # paramiko is chatty at INFO
            logging.getLogger("paramiko").setLevel(logging.WARNING)

    def connect(self) -> paramiko.SSHClient:
        """Open the SSH connection described by the configuration."""
        return open_ssh_client(self.config)

    def transfer_for(self, client: paramiko.SSHClient) -> SCPTransfer:
        """Create a transfer engine on a connected client."""
        return SCPTransfer.from_client(
            client,
            receive_size=self.config.receive_size,
            timeout=self.config.timeout,
            scp_command=self.config.scp_command,
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def progress_bar(current: int, total: int) -> None:
    """Simple text progress bar for file transfers."""
    if total == 0:
        return
    percent = current * 100 // total
    filled = percent // 2
    bar = "=" * filled + "-" * (50 - filled)
    click.echo(f"\r[{bar}] {percent:3d}% ({current}/{total} bytes)", nl=False)
    if current >= total:
        click.echo()  # Newline at end


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-H", "--host",
    type=str,
    default=None,
    help="Remote host (default: $SCPLINK_HOST)",
)
@click.option(
    "-P", "--port",
    type=click.IntRange(1, 65535),
    default=None,
    help="SSH port (default: 22)",
)
@click.option(
    "-u", "--user",
    type=str,
    default=None,
    help="Login name (default: current user)",
)
@click.option(
    "--password",
    type=str,
    default=None,
    envvar="SCPLINK_PASSWORD",
    help="Password (prefer keys or an SSH agent)",
)
@click.option(
    "-i", "--identity",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Private key file",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Connection timeout in seconds (default: 30)",
)
@click.option(
    "--accept-unknown-hosts",
    is_flag=True,
    help="Trust host keys that are not in known_hosts",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="scplink")
@pass_context
def main(
    ctx: Context,
    host: Optional[str],
    port: Optional[int],
    user: Optional[str],
    password: Optional[str],
    identity: Optional[str],
    timeout: Optional[float],
    accept_unknown_hosts: bool,
    verbose: bool,
) -> None:
    """
    Copy single files to and from a remote host over SSH.

    The remote host must have an scp binary on the login user's PATH.

    For UPLOADING:
      scplink -H host put LOCAL REMOTE

    For DOWNLOADING:
      scplink -H host get REMOTE [LOCAL]
    """
    config = ctx.config
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port
    if user is not None:
        config.username = user
    if password is not None:
        config.password = password
    if identity is not None:
        config.key_filename = identity
    if timeout is not None:
        config.timeout = timeout
    if accept_unknown_hosts:
        config.accept_unknown_hosts = True

    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Put Command
# =============================================================================

@main.command()
@click.argument("local", type=click.Path(exists=True, dir_okay=False))
@click.argument("remote")
@pass_context
def put(ctx: Context, local: str, remote: str) -> None:
    """
    Upload a local file to the remote host.

    LOCAL is the file to send. REMOTE is the destination path; its last
    component becomes the remote file name.

    Example:
        scplink -H example.org put notes.txt /tmp/notes.txt
    """
    try:
        validate_remote_path(remote)
        client = ctx.connect()

        try:
            transfer = ctx.transfer_for(client)
            click.echo(f"Uploading {local} to {ctx.config.host}:{remote}")
            ok = transfer.put(
                remote, local, mode=SourceMode.LOCAL_FILE, progress=progress_bar
            )
        finally:
            close_ssh_client(client)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, stage="Connection")

    if not ok:
        click.echo(f"Transfer error: {transfer.last_error()}", err=True)
        raise SystemExit(ExitCode.TRANSFER_ERROR)

    click.echo("Transfer complete!")


# =============================================================================
# Get Command
# =============================================================================

@main.command()
@click.argument("remote")
@click.argument("local", type=click.Path(dir_okay=False, writable=True), required=False)
@pass_context
def get(ctx: Context, remote: str, local: Optional[str]) -> None:
    """
    Download a file from the remote host.

    REMOTE is the path on the remote host. LOCAL defaults to the remote
    file name in the current directory.

    Example:
        scplink -H example.org get /etc/hostname
        scplink -H example.org get /etc/hostname hostname.txt
    """
    try:
        validate_remote_path(remote)
        target = local or remote_basename(remote)
        client = ctx.connect()

        try:
            transfer = ctx.transfer_for(client)
            click.echo(f"Downloading {ctx.config.host}:{remote} to {target}")
            ok = transfer.get(remote, target, progress=progress_bar)
        finally:
            close_ssh_client(client)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, stage="Connection")

    if not ok:
        click.echo(f"Transfer error: {transfer.last_error()}", err=True)
        raise SystemExit(ExitCode.TRANSFER_ERROR)

    click.echo("Transfer complete!")


if __name__ == "__main__":
    main()

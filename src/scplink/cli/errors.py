"""
scplink Exit Codes
==================

Turns an exception escaping a command into one stderr line and a
process exit code. Failed transfers do not come through here: the
engine records them and the commands exit with TRANSFER_ERROR directly.

    ArgumentError, missing or unreadable local file  ->  2
    ChannelError and other ScpError                   ->  1
    anything else                                     ->  3
"""

import traceback
from enum import IntEnum
from typing import NoReturn, Optional

import click

from scplink.errors import ArgumentError, ScpError


class ExitCode(IntEnum):
    """Exit status of the scplink command."""
    SUCCESS = 0
    TRANSFER_ERROR = 1   # Could not connect, or the transfer failed
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3


# Checked before ScpError; ArgumentError is one
_USAGE_ERRORS = (ArgumentError, FileNotFoundError, IsADirectoryError, PermissionError)


def exit_code_for(error: BaseException) -> ExitCode:
    """Classify an exception raised while running a command."""
    if isinstance(error, _USAGE_ERRORS):
        return ExitCode.INVALID_ARGS
    if isinstance(error, ScpError):
        return ExitCode.TRANSFER_ERROR
    return ExitCode.INTERNAL_ERROR


def handle_cli_exception(
    error: BaseException,
    verbose: bool = False,
    stage: Optional[str] = None,
) -> NoReturn:
    """
    Report `error` and exit.

    Args:
        error: Exception caught by the command
        verbose: Print the traceback of internal errors
        stage: Label for transfer-side failures, e.g. "Connection"
            gives "Connection error: ..."

    Raises:
        SystemExit: Always, with the code from exit_code_for()
    """
    code = exit_code_for(error)

    if code is ExitCode.INTERNAL_ERROR:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
    elif code is ExitCode.TRANSFER_ERROR and stage:
        click.echo(f"{stage} error: {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)

    raise SystemExit(code)

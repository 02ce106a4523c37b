"""
AccountSwap CLI: switch Antigravity accounts from the command line.

Each command group lives in its own module and is registered on the
main Click group here.

Entry point: accountswap.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="accountswap")
@click.option("--verbose", "-v", is_flag=True, help="Log every store operation.")
def main(verbose: bool):
    """AccountSwap: save, log out and restore Antigravity accounts.

    Quit the app before switching; it may hold the state store open.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .state import register_state_commands
from .accounts import register_accounts_commands

register_state_commands(main)
register_accounts_commands(main)

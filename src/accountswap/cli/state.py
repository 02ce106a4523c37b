"""Store commands: current, clear, restore."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from ..catalog import account_email
from ..cleanup import AccountCleaner
from ..errors import AccountStateError
from ..keystore import KeyStore
from ..marker import load_marker
from ..restore import AccountRestorer
from ._common import (
    ACCOUNTSWAP_HOME,
    catalog_for,
    console,
    fail,
    load_context,
    print_result,
    store_paths,
)

_home_option = click.option(
    "--home", default=ACCOUNTSWAP_HOME, type=click.Path(), help="AccountSwap home directory."
)
_store_option = click.option(
    "--store", default=None, type=click.Path(), help="Path to Antigravity's state.vscdb."
)


def register_state_commands(main: click.Group) -> None:
    """Register the commands that act on the live state store."""

    @main.command("current")
    @_home_option
    @_store_option
    def current(home: str, store: str):
        """Show the signed-in account and which managed fields are present.

        Examples:

            accountswap current
        """
        _, settings = load_context(home, store)
        paths = store_paths(settings)
        config = settings.state

        try:
            with KeyStore.open(paths.primary, timeout=settings.lock_timeout) as ks:
                values = ks.read_many(config.field_keys)
                marker = load_marker(ks, config)
        except AccountStateError as exc:
            fail(exc)

        auth = values.get(config.reserved.auth_status)
        email = account_email(auth) if auth else None
        console.print(f"\n[bold]Account:[/] {email or '[dim]not signed in[/]'}")
        console.print(f"[bold]Store:[/] [cyan]{paths.primary}[/]\n")

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Field", style="cyan")
        table.add_column("Row")
        table.add_column("Marker", justify="right")
        for key in config.field_keys:
            present = "[green]present[/]" if key in values else "[dim]absent[/]"
            flag = marker.flag(key)
            table.add_row(key, present, "-" if flag is None else str(flag))
        console.print(table)
        console.print()

    @main.command("clear")
    @_home_option
    @_store_option
    @click.option("--backup", is_flag=True, help="Save the signed-in account before clearing.")
    def clear(home: str, store: str, backup: bool):
        """Log out of Antigravity by deleting its auth/session rows.

        Clears the primary store and, when present, its replica.

        Examples:

            accountswap clear

            accountswap clear --backup
        """
        home_path, settings = load_context(home, store)
        paths = store_paths(settings)

        if backup:
            catalog = catalog_for(home_path, settings)
            try:
                snapshot, path, overwritten = catalog.backup_current(
                    paths.primary, timeout=settings.lock_timeout
                )
            except (AccountStateError, ValueError) as exc:
                fail(exc)
            action = "Updated" if overwritten else "Created"
            console.print(f"[green]{action} backup {snapshot.name}[/] [dim]{path}[/]")

        try:
            result = AccountCleaner(settings.state, settings.lock_timeout).clear(paths)
        except AccountStateError as exc:
            fail(exc)
        print_result(result, "Logout")

    @main.command("restore")
    @click.argument("name", required=False)
    @click.option("--file", "snapshot_file", default=None, type=click.Path(), help="Restore from this snapshot file.")
    @_home_option
    @_store_option
    def restore(name: str, snapshot_file: str, home: str, store: str):
        """Restore a saved account into Antigravity.

        Examples:

            accountswap restore alice@example.com

            accountswap restore --file ~/exports/alice.json
        """
        if bool(name) == bool(snapshot_file):
            raise click.UsageError("Give exactly one of NAME or --file.")

        home_path, settings = load_context(home, store)
        if snapshot_file:
            source = Path(snapshot_file).expanduser()
        else:
            try:
                source = catalog_for(home_path, settings).path_for(name)
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint="NAME")
        paths = store_paths(settings)

        restorer = AccountRestorer(settings.state, settings.lock_timeout)
        try:
            result = restorer.restore_file(source, paths)
        except AccountStateError as exc:
            fail(exc)
        print_result(result, "Restore")

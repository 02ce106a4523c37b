"""Saved-account commands: list, save, delete, clear, export, import."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.table import Table

from ..catalog import BackupContent
from ..errors import AccountStateError
from ._common import ACCOUNTSWAP_HOME, catalog_for, console, fail, load_context, store_paths

_home_option = click.option(
    "--home", default=ACCOUNTSWAP_HOME, type=click.Path(), help="AccountSwap home directory."
)


def register_accounts_commands(main: click.Group) -> None:
    """Register the accounts command group."""

    @main.group()
    def accounts():
        """Saved accounts, one snapshot per account.

        Save the signed-in account, list what you have, and prune old
        snapshots.
        """

    @accounts.command("list")
    @_home_option
    @click.option("--limit", "-n", default=None, type=click.IntRange(min=0), help="Show at most N accounts.")
    def accounts_list(home: str, limit: int):
        """List saved accounts, most recently saved first.

        Examples:

            accountswap accounts list -n 5
        """
        home_path, settings = load_context(home)
        catalog = catalog_for(home_path, settings)
        entries = catalog.recent_entries(limit=limit)

        if not entries:
            console.print("\n[dim]No saved accounts.[/]\n")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Account", style="cyan")
        table.add_column("Saved", style="dim")
        for name, mtime in entries:
            saved = datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()[:19]
            table.add_row(name, saved)

        console.print(f"\n[bold]{len(entries)}[/] account(s):\n")
        console.print(table)
        console.print()

    @accounts.command("save")
    @_home_option
    @click.option("--store", default=None, type=click.Path(), help="Path to Antigravity's state.vscdb.")
    @click.option("--name", default=None, help="Save under this name instead of the account email.")
    def accounts_save(home: str, store: str, name: str):
        """Save the signed-in account (overwrites an older copy).

        Examples:

            accountswap accounts save

            accountswap accounts save --name work
        """
        home_path, settings = load_context(home, store)
        paths = store_paths(settings)
        catalog = catalog_for(home_path, settings)
        try:
            snapshot, path, overwritten = catalog.backup_current(
                paths.primary, name=name, timeout=settings.lock_timeout
            )
        except AccountStateError as exc:
            fail(exc)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--name")

        action = "Updated" if overwritten else "Saved"
        console.print(
            f"[green]{action} {snapshot.name}[/] "
            f"({len(snapshot.values)} field(s)) [dim]{path}[/]"
        )

    @accounts.command("delete")
    @click.argument("name")
    @_home_option
    def accounts_delete(name: str, home: str):
        """Delete one saved account."""
        home_path, settings = load_context(home)
        try:
            catalog_for(home_path, settings).delete(name)
        except AccountStateError as exc:
            fail(exc)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="NAME")
        console.print(f"[green]Deleted {name}[/]")

    @accounts.command("clear")
    @_home_option
    @click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
    def accounts_clear(home: str, yes: bool):
        """Delete every saved account."""
        if not yes:
            click.confirm("Delete all saved accounts?", abort=True)
        home_path, settings = load_context(home)
        count = catalog_for(home_path, settings).clear_all()
        console.print(f"[green]Deleted {count} saved account(s)[/]")

    @accounts.command("export")
    @click.argument("output", type=click.Path())
    @_home_option
    def accounts_export(output: str, home: str):
        """Bundle every saved account into one JSON file."""
        home_path, settings = load_context(home)
        entries = catalog_for(home_path, settings).export_all()
        data = [entry.model_dump() for entry in entries]
        Path(output).expanduser().write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]Exported {len(entries)} account(s)[/] [dim]{output}[/]")

    @accounts.command("import")
    @click.argument("bundle", type=click.Path(exists=True))
    @_home_option
    def accounts_import(bundle: str, home: str):
        """Write accounts from an export bundle into the catalog."""
        home_path, settings = load_context(home)
        try:
            raw = json.loads(Path(bundle).read_text(encoding="utf-8"))
            entries = [BackupContent.model_validate(item) for item in raw]
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            fail(exc)

        result = catalog_for(home_path, settings).import_all(entries)
        console.print(f"[green]Imported {result.restored_count} account(s)[/]")
        for failed in result.failed:
            console.print(f"  [red]{failed.filename}[/]: {failed.error}")

    main.add_command(accounts)

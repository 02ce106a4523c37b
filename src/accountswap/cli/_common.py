"""Shared helpers for the CLI command modules.

Provides the Rich console, settings loading, and result rendering.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .. import ACCOUNTSWAP_HOME
from ..catalog import AccountCatalog
from ..config import AppSettings, load_settings
from ..errors import AccountStateError, ErrorKind, StoreIOError
from ..models import OperationResult
from ..paths import StorePaths, resolve_store_paths

console = Console()


def load_context(home: str, store: Optional[str] = None) -> tuple[Path, AppSettings]:
    """Expand the home path and load settings, applying a --store override."""
    home_path = Path(home).expanduser()
    settings = load_settings(home_path)
    if store:
        settings.store_path = Path(store).expanduser()
    return home_path, settings


def catalog_for(home_path: Path, settings: AppSettings) -> AccountCatalog:
    return AccountCatalog(settings.accounts_path(home_path), settings.state)


def store_paths(settings: AppSettings) -> StorePaths:
    """Resolve store paths or exit with an error."""
    try:
        return resolve_store_paths(settings)
    except AccountStateError as exc:
        fail(exc)


def fail(exc: Exception) -> None:
    """Print a hard error and exit with status 1."""
    console.print(f"[red]{escape(str(exc))}[/]")
    if isinstance(exc, StoreIOError) and exc.transient:
        console.print("[yellow]The store is locked. Quit Antigravity and try again.[/]")
    raise SystemExit(1)


def print_result(result: OperationResult, title: str) -> None:
    """Render an operation result: summary panel plus any skipped items."""
    style = "yellow" if result.status is ErrorKind.PARTIAL else "green"
    console.print(Panel(
        f"[bold {style}]{result.summary()}[/]",
        title=title,
        border_style=style,
    ))
    for failure in result.all_failures():
        target = f" {failure.key}" if failure.key else ""
        console.print(f"  [yellow]{failure.store}{target}[/]: {escape(failure.message)}")

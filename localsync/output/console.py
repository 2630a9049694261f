# Localsync Console Output
# Rich-based console output for status, config and sync results

from typing import Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from localsync.config.schema import RemoteConfig
from localsync.sync.conflict import Resolution
from localsync.sync.result import Conflict, SyncResult


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for sync operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(no_color=not colored, highlight=False)

    @property
    def rich(self) -> RichConsole:
        """Underlying Rich console, e.g. for log handlers."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{escape(message)}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{escape(message)}[/blue]")

    def print_remote_config(self, config: Optional[RemoteConfig]) -> None:
        """Print the remote configuration, masking the API key."""
        if config is None:
            self._console.print("[dim]No remote configuration stored[/dim]")
            return

        table = Table(title="Remote Configuration", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")

        enabled = "[green]yes[/green]" if config.enabled else "[red]no[/red]"
        api_key = "[dim]not set[/dim]"
        if config.api_key:
            api_key = "*" * 8 + config.api_key[-4:] if len(config.api_key) > 4 else "*" * 8

        table.add_row("Enabled", enabled)
        table.add_row("Base URL", escape(config.base_url) or "[dim]not set[/dim]")
        table.add_row("API key", api_key)
        table.add_row("Sync interval", f"{config.sync_interval}s")
        table.add_row("Content sync", self._flag(config.features.content_sync))
        table.add_row("Dynamic feed", self._flag(config.features.dynamic_feed))
        table.add_row("Notifications", self._flag(config.features.notifications))
        self._console.print(table)

    def _flag(self, value: bool) -> str:
        return "[green]on[/green]" if value else "[dim]off[/dim]"

    def print_status(self, status: dict[str, dict[str, int]]) -> None:
        """Print record and dirty counts per repository."""
        table = Table(title="Repositories", show_header=True, header_style="bold")
        table.add_column("Entity", style="cyan")
        table.add_column("Records", justify="right")
        table.add_column("Unsynced", justify="right")

        for name, counts in status.items():
            dirty = counts.get("dirty")
            dirty_text = "[dim]-[/dim]" if dirty is None else (f"[yellow]{dirty}[/yellow]" if dirty else "0")
            table.add_row(name, str(counts.get("total", 0)), dirty_text)

        self._console.print(table)

    def print_sync_results(self, results: dict[str, SyncResult]) -> None:
        """
        Print per-repository results and an overall summary.

        Args:
            results: Entity-type name to sync result.
        """
        if not results:
            self._console.print("[dim]Remote sync is disabled, nothing synced[/dim]")
            return

        self._console.print()
        for name, result in results.items():
            self._print_result_line(name, result)

        created = sum(r.created for r in results.values())
        updated = sum(r.updated for r in results.values())
        conflicts = sum(len(r.conflicts) for r in results.values())
        errors = sum(len(r.errors) for r in results.values())
        success = all(r.success for r in results.values())

        status_text = "[green]Sync completed[/green]" if success else "[red]Sync completed with errors[/red]"
        border = "red" if not success else ("yellow" if conflicts else "green")
        self._console.print()
        self._console.print(
            Panel(
                f"{status_text}\n"
                f"Created: {created}, updated: {updated}, conflicts: {conflicts}, errors: {errors}",
                title="Summary",
                border_style=border,
            )
        )

    def _print_result_line(self, name: str, result: SyncResult) -> None:
        name = escape(name)
        if result.success and result.total_changes == 0 and not result.conflicts:
            self._console.print(f"[green]✓[/green] [bold]{name}[/bold] - no changes")
        elif result.success:
            self._console.print(
                f"[green]✓[/green] [bold]{name}[/bold] - {result.created} created, {result.updated} updated"
            )
        else:
            self._console.print(
                f"[red]✗[/red] [bold]{name}[/bold] - {result.created} created, "
                f"{result.updated} updated, {len(result.errors)} errors"
            )

        for conflict in result.conflicts:
            self._console.print(f"    [yellow]![/yellow] {escape(conflict.id)} ({conflict.conflict_type.value} conflict)")

        if self.verbose or not result.success:
            for error in result.errors:
                self._console.print(f"    [red]✗[/red] {escape(error)}")

    def print_conflict_resolution(self, conflict: Conflict, resolution: Resolution) -> None:
        """Print the outcome of resolving one conflict."""
        side = "[cyan]remote[/cyan]" if resolution == Resolution.REMOTE else "[yellow]local[/yellow]"
        self._console.print(f"  {escape(conflict.table)}/{escape(conflict.id)}: {side} wins")


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)

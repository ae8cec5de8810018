"""CLI output formatting utilities."""

from rich.console import Console
from rich.table import Table

from podcaddy.core.models import CleanReport, Subscription


def display_subscriptions(subscriptions: list[Subscription], console: Console) -> None:
    """Display subscriptions in a table, dimming the disabled ones."""
    if not subscriptions:
        console.print("[yellow]No podcasts in the library.[/yellow]")
        return

    table = Table(title="Podcasts")
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Last Received", style="green")

    for subscription in subscriptions:
        table.add_row(
            str(subscription.id),
            subscription.name,
            subscription.last_downloaded.strftime("%Y-%m-%d %H:%M:%S"),
            style=None if subscription.enabled else "dim",
        )

    console.print(table)


def display_clean_report(report: CleanReport, console: Console) -> None:
    """Display how many episodes of each podcast were deleted."""
    shows = len(report.deleted)
    episodes = "episode" if report.total == 1 else "episodes"
    podcasts = "podcast" if shows == 1 else "podcasts"
    console.print(
        f"[bold]{report.total} {episodes} of {shows} {podcasts} have been deleted.[/bold]"
    )

    if not report.deleted:
        return

    width = max(len(name) for name in report.deleted)
    longest = max(report.deleted.values())
    console.print("-" * (width + longest + 2), highlight=False)
    for name in sorted(report.deleted):
        bar = "X" * report.deleted[name]
        console.print(f"{name.ljust(width)}  {bar}", highlight=False, markup=False)

    if report.unparsed:
        console.print(
            f"[yellow]{report.unparsed} deleted episodes had no podcast folder.[/yellow]"
        )

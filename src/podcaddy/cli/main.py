"""Main CLI application for podcaddy."""

import logging
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from podcaddy.core.config import Config, get_config
from podcaddy.core.errors import PodcaddyError

app = typer.Typer(
    name="podcaddy",
    help="Download podcasts and keep a portable player's playlist in sync.",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


class State:
    """Global CLI state."""

    def __init__(self) -> None:
        self.quiet: bool = False
        self.config_path: str | None = None
        self._config: Config | None = None

    @property
    def config(self) -> Config:
        """Configuration, loaded on first use."""
        if self._config is None:
            self._config = get_config(self.config_path)
        return self._config


state = State()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from podcaddy import __version__

        console.print(f"podcaddy version {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    root = logging.getLogger("podcaddy")
    root.handlers.clear()
    handler = RichHandler(console=error_console, show_path=False)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(message: str) -> NoReturn:
    error_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress all output except errors"),
    ] = False,
    config_path: Annotated[
        str | None,
        typer.Option("--config", help="Path to configuration file"),
    ] = None,
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """podcaddy - podcast downloader and player sync."""
    state.quiet = quiet
    state.config_path = config_path
    state._config = None
    _setup_logging(verbose)


@app.command("list")
def list_podcasts(
    order: Annotated[
        str,
        typer.Option("--order", "-o", help="Sort by [d]ate, [i]d or [n]ame"),
    ] = "d",
) -> None:
    """List the podcasts in the library."""
    from podcaddy.cli.output import display_subscriptions
    from podcaddy.services.store import SubscriptionStore

    try:
        subscriptions = SubscriptionStore.from_config(state.config).list(order)
    except PodcaddyError as e:
        _fail(str(e))

    display_subscriptions(subscriptions, console)


@app.command()
def download(
    podcast: Annotated[
        str | None,
        typer.Option("--podcast", "-p", help="Only download this podcast (ID or name)"),
    ] = None,
    year: Annotated[
        bool,
        typer.Option("--year", "-y", help="Skip episodes more than a year old"),
    ] = False,
) -> None:
    """Download new episodes of every enabled podcast, or of a single one."""
    from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn

    from podcaddy.core.models import EpisodeMeta, Subscription
    from podcaddy.services.download import DownloadService
    from podcaddy.services.fetcher import ProgressCallback

    try:
        service = DownloadService.from_config(state.config)

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            console=console,
            disable=state.quiet,
        ) as progress:

            def on_episode(subscription: Subscription, episode: EpisodeMeta) -> ProgressCallback:
                duration = episode.duration or "??:??"
                task = progress.add_task(
                    f"{subscription.name}: {episode.title} [{duration}]",
                    total=episode.length or None,
                )

                def update(received: int, total: int) -> None:
                    progress.update(task, completed=received, total=total or None)

                return update

            outcome = service.run(podcast=podcast, single_year=year, on_episode=on_episode)
    except PodcaddyError as e:
        _fail(str(e))

    if not outcome.success:
        _fail(outcome.message)
    if not state.quiet:
        console.print(f"[bold]{outcome.message}[/bold]")


@app.command()
def toggle(
    podcast: Annotated[str, typer.Argument(help="ID or name of the podcast")],
) -> None:
    """Turn downloading of a podcast on or off."""
    from podcaddy.services.activity import ActivityLog
    from podcaddy.services.store import SubscriptionStore

    try:
        subscription = SubscriptionStore.from_config(state.config).toggle(podcast)
    except PodcaddyError as e:
        _fail(str(e))

    status = "on" if subscription.enabled else "off"
    ActivityLog.from_config(state.config).toggle(subscription.name, status)
    if not state.quiet:
        console.print(f'Podcast "{subscription.name}" is now {status}.')


@app.command()
def transfer(
    mode: Annotated[
        str,
        typer.Option("--mode", "-m", help="[a]ppend, [i]nsert or [o]verwrite the device playlist"),
    ],
) -> None:
    """Move downloaded episodes onto the device."""
    from podcaddy.core.models import InsertMode
    from podcaddy.services.transfer import TransferOrchestrator

    try:
        insert_mode = InsertMode.parse(mode)
    except ValueError as e:
        _fail(str(e))

    if not state.quiet:
        console.print("Copying files...")

    try:
        outcome = TransferOrchestrator.from_config(state.config).transfer(insert_mode)
    except PodcaddyError as e:
        _fail(str(e))

    if not outcome.success:
        _fail(outcome.message)
    if not state.quiet:
        console.print(outcome.message)


@app.command()
def clean() -> None:
    """Delete episodes that have already been played."""
    from podcaddy.cli.output import display_clean_report
    from podcaddy.services.cleaner import ConsumptionCleaner

    def on_delete(entry: str) -> None:
        if not state.quiet:
            console.print(f"Deleting {entry}", highlight=False, markup=False)

    try:
        report = ConsumptionCleaner.from_config(state.config, on_delete=on_delete).clean()
    except PodcaddyError as e:
        _fail(str(e))

    if not state.quiet:
        display_clean_report(report, console)


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Name of the podcast")],
    url: Annotated[str, typer.Argument(help="RSS feed URL")],
) -> None:
    """Add a podcast to the library."""
    from podcaddy.services.activity import ActivityLog
    from podcaddy.services.feeds import FeedClient
    from podcaddy.services.store import SubscriptionStore

    if not name.strip() or not url.strip():
        _fail("Podcast name and URL must be specified")

    try:
        start_date = FeedClient.from_config(state.config).get_start_date(url)
        added = SubscriptionStore.from_config(state.config).insert(name, url, start_date)
    except PodcaddyError as e:
        _fail(str(e))

    if not added:
        _fail(f'Could not add "{name}" to the library; it is already there')

    ActivityLog.from_config(state.config).added(name, url)
    if not state.quiet:
        console.print(f'Podcast "{name}" [{url}] has been added to the library', markup=False)


if __name__ == "__main__":
    app()

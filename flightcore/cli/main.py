"""Main CLI application for flightcore."""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Annotated, get_args

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from flightcore import __version__
from flightcore.config.parser import ConfigError, load_settings
from flightcore.config.schemas import GameInstall, InstallerSettings, InstallType
from flightcore.core.consent import ConsentGate, ConsentRequest
from flightcore.core.errors import ChannelError, InstallError
from flightcore.core.installer import PluginInstaller
from flightcore.core.resolver import list_installed_packages
from flightcore.core.staging import remove_stale_staging_dir

# Create the main Typer app
app = typer.Typer(
    name="flightcore",
    help="Plugin installer for Northstar mods",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the flightcore package
logger = logging.getLogger("flightcore")


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2=DEBUG, 3+=DEBUG with source paths
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def get_settings(config: Path | None, **overrides: object) -> InstallerSettings:
    """Load settings and apply command-line overrides.

    Overrides that are None are ignored. Exits with an error message if the
    settings file or an override is invalid.
    """
    try:
        settings = load_settings(config)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    values = {key: value for key, value in overrides.items() if value is not None}
    if not values:
        return settings
    try:
        return InstallerSettings.model_validate({**settings.model_dump(), **values})
    except ValidationError as e:
        print_error(f"Invalid option: {e}")
        raise typer.Exit(1) from e


class PromptNotifier:
    """Asks for plugin install approval on the terminal.

    The prompt runs on a daemon thread so an unanswered prompt never keeps
    the process alive once the consent timeout expires.
    """

    def __init__(self, auto_approve: bool = False):
        self.auto_approve = auto_approve
        self.gate: ConsentGate | None = None

    def __call__(self, request: ConsentRequest) -> None:
        if self.gate is None:
            raise RuntimeError("PromptNotifier is not attached to a consent gate")

        if self.auto_approve:
            console.print(f"Approving plugins from {request.package}: {', '.join(request.plugins)}")
            self.gate.submit_consent(True, request.request_id)
            return

        loop = asyncio.get_running_loop()
        thread = threading.Thread(
            target=self._prompt,
            args=(request, loop),
            name=f"consent-{request.request_id}",
            daemon=True,
        )
        thread.start()

    def _prompt(self, request: ConsentRequest, loop: asyncio.AbstractEventLoop) -> None:
        print_warning(f"{request.package} contains native plugins: {', '.join(request.plugins)}")
        console.print("  Plugins run with full privileges inside the game process.")
        try:
            approved = typer.confirm("Install these plugins?", default=False)
        except typer.Abort:
            approved = False

        try:
            loop.call_soon_threadsafe(self._deliver, approved, request.request_id)
        except RuntimeError:
            # Loop already closed: the install finished without this answer
            logger.debug("Dropping late answer for consent request %s", request.request_id)

    def _deliver(self, approved: bool, request_id: str) -> None:
        if self.gate is None:
            raise RuntimeError("PromptNotifier is not attached to a consent gate")
        try:
            self.gate.submit_consent(approved, request_id)
        except ChannelError as e:
            logger.debug("Dropping late answer: %s", e)


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug, -vvv trace)",
        ),
    ] = 0,
) -> None:
    """flightcore - plugin installer for Northstar mods."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the flightcore version."""
    console.print(f"flightcore {__version__}")


@app.command()
def install(
    archive: Annotated[
        Path,
        typer.Argument(help="Downloaded package archive (.zip)"),
    ],
    mod_string: Annotated[
        str,
        typer.Argument(help="Thunderstore mod string (e.g., 'author-ModName-1.2.3')"),
    ],
    game_path: Annotated[
        Path,
        typer.Option(
            "--game-path",
            "-g",
            help="Titanfall 2 install directory",
        ),
    ],
    install_type: Annotated[
        str,
        typer.Option(
            "--install-type",
            help="How the game was installed (steam, origin, ea-app, unknown)",
        ),
    ] = "unknown",
    allow_plugins: Annotated[
        bool | None,
        typer.Option(
            "--allow-plugins/--no-allow-plugins",
            help="Allow packages that carry native plugins (overrides settings)",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Approve plugin installs without prompting",
        ),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            help="Seconds to wait for plugin approval (overrides settings)",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Settings file (defaults to ./flightcore.yaml)",
        ),
    ] = None,
) -> None:
    """Install a package archive into the game's plugins directory.

    Packages that carry native plugins (.dll files) are only installed when
    plugins are allowed and the install is approved.
    """
    settings = get_settings(config, plugins_allowed=allow_plugins, consent_timeout=timeout)

    if not archive.is_file():
        print_error(f"Archive not found: {archive}")
        raise typer.Exit(1)

    if install_type not in get_args(InstallType):
        print_error(f"Unknown install type: {install_type}")
        raise typer.Exit(1)
    game_install = GameInstall(game_path=game_path, install_type=install_type)

    notifier = PromptNotifier(auto_approve=yes)
    installer = PluginInstaller.from_settings(settings, notifier)
    notifier.gate = installer.consent_gate

    console.print(f"Installing {mod_string}...")
    try:
        result = asyncio.run(
            installer.install(game_install, archive, mod_string, settings.plugins_allowed)
        )
    except InstallError as e:
        print_error(f"Failed to install {mod_string}: {e}")
        raise typer.Exit(1) from e

    print_success(result.message)
    for name in result.replaced:
        console.print(f"  Replaced: {name}")
    for name in result.plugins:
        console.print(f"  Plugin: {name}")


@app.command("list")
def list_packages(
    game_path: Annotated[
        Path,
        typer.Option(
            "--game-path",
            "-g",
            help="Titanfall 2 install directory",
        ),
    ],
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Settings file (defaults to ./flightcore.yaml)",
        ),
    ] = None,
) -> None:
    """List installed plugin packages."""
    settings = get_settings(config)
    game_install = GameInstall(game_path=game_path)
    try:
        installs = list_installed_packages(game_install.plugins_dir)
    except InstallError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    if not installs:
        console.print("No plugin packages installed")
        return

    table = Table(title="Installed Plugin Packages")
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Author", style="dim")
    table.add_column("Plugins")

    for parsed, path in installs:
        plugins = sorted(
            p.name
            for p in path.iterdir()
            if p.is_file() and p.suffix.lower() in settings.plugin_extensions
        )
        table.add_row(parsed.name, parsed.version, parsed.author, ", ".join(plugins))

    console.print(table)


@app.command()
def cleanup(
    game_path: Annotated[
        Path,
        typer.Option(
            "--game-path",
            "-g",
            help="Titanfall 2 install directory",
        ),
    ],
) -> None:
    """Remove a staging directory left behind by an interrupted install."""
    game_install = GameInstall(game_path=game_path)
    try:
        removed = remove_stale_staging_dir(game_install.plugins_dir)
    except InstallError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    if removed:
        print_success("Removed leftover staging directory")
    else:
        console.print("Nothing to clean up")


if __name__ == "__main__":
    app()

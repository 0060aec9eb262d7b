"""CLI commands for totpwatch using cyclopts."""

import os
import sys
import time
from pathlib import Path
from typing import Optional, Annotated, NoReturn
from getpass import getpass
import cyclopts
from rich.console import Console
from rich.table import Table

from . import timestep
from .config import Config, get_manifest_path, get_state_path
from .crypto import seal
from .engine import Authenticator
from .errors import ConfigurationError
from .logging_config import setup_logging
from .persistence import JsonIndexStore
from .provisioning import SEALED_SUFFIX, dump_toml, load_manifest, read_credentials
from .tui import run_tui

app = cyclopts.App(name="totpwatch", help="Rolling TOTP codes for a set of provisioned secrets")
console = Console()
err_console = Console(stderr=True)

ManifestOption = Annotated[
    Optional[Path], cyclopts.Parameter(help="Path to credential manifest")
]
VerboseOption = Annotated[bool, cyclopts.Parameter(help="Enable debug logging")]


def get_password(prompt: str = "Enter manifest password: ") -> str:
    """Get password from environment or prompt user.

    Args:
        prompt: The prompt to display to the user

    Returns:
        The password string
    """
    password = os.environ.get("TOTPWATCH_PASSWD")
    if password:
        return password
    return getpass(prompt)


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def open_authenticator(manifest: Optional[Path], config: Optional[Config] = None) -> Authenticator:
    """Load the manifest and restore the persisted selection.

    Exits with status 1 on configuration errors.
    """
    try:
        config = config or Config.load()
        manifest_path = get_manifest_path(manifest, config)
        if not manifest_path.exists():
            fail(f"Manifest not found at {manifest_path}")

        password = get_password() if manifest_path.suffix == SEALED_SUFFIX else None
        credentials = load_manifest(manifest_path, password)
    except ConfigurationError as e:
        fail(str(e))

    authenticator = Authenticator(credentials, store=JsonIndexStore(get_state_path(config)))
    authenticator.start()
    return authenticator


@app.command
def watch(manifest: ManifestOption = None, verbose: VerboseOption = False) -> None:
    """Show the active code with a live countdown."""
    run_tui(manifest, verbose)


@app.command
def code(
    label: Annotated[
        Optional[str], cyclopts.Parameter(help="Label of the credential, defaults to the active one")
    ] = None,
    at: Annotated[
        Optional[int], cyclopts.Parameter(help="Unix time to compute the code for")
    ] = None,
    manifest: ManifestOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the code for the active or a named credential."""
    setup_logging(verbose)
    authenticator = open_authenticator(manifest)

    if label:
        index = authenticator.credentials.find(label)
        if index is None:
            fail(f"Credential '{label}' not found")
        # Not persisted: shutdown() is never called here
        authenticator.select(index)

    try:
        frame = authenticator.tick(at)
    except ValueError as e:
        fail(str(e))
    console.print(frame.display, highlight=False)


@app.command(name="list")
def list_cmd(manifest: ManifestOption = None, verbose: VerboseOption = False) -> None:
    """List all credentials and their current codes."""
    setup_logging(verbose)
    authenticator = open_authenticator(manifest)

    now = time.time()
    step = timestep.derive(now)
    active_index = authenticator.selection.active_index

    table = Table(title=f"Valid for {step.seconds_remaining}s")
    table.add_column("#", justify="right")
    table.add_column("Label", style="cyan")
    table.add_column("Code", style="green")

    for index in range(authenticator.credentials.count()):
        authenticator.select(index)
        frame = authenticator.tick(now)
        marker = "*" if index == active_index else ""
        table.add_row(f"{marker}{index}", frame.label, frame.display)

    console.print(table)


def _change_selection(manifest: Optional[Path], verbose: bool, move) -> None:
    setup_logging(verbose)
    authenticator = open_authenticator(manifest)
    move(authenticator)
    authenticator.shutdown()

    active = authenticator.active
    console.print(
        f"Active: [cyan]{active.label}[/cyan] "
        f"({authenticator.selection.active_index + 1}/{authenticator.credentials.count()})"
    )


@app.command(name="next")
def next_cmd(manifest: ManifestOption = None, verbose: VerboseOption = False) -> None:
    """Make the next credential active."""
    _change_selection(manifest, verbose, Authenticator.select_next)


@app.command
def previous(manifest: ManifestOption = None, verbose: VerboseOption = False) -> None:
    """Make the previous credential active."""
    _change_selection(manifest, verbose, Authenticator.select_previous)


@app.command
def select(
    target: Annotated[str, cyclopts.Parameter(help="Index or label of the credential")],
    manifest: ManifestOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Make a credential active by index or label."""

    def move(authenticator: Authenticator) -> None:
        if target.isdecimal():
            index = int(target)
        else:
            index = authenticator.credentials.find(target)
            if index is None:
                fail(f"Credential '{target}' not found")
        if not 0 <= index < authenticator.credentials.count():
            fail(f"Index {index} out of range (0-{authenticator.credentials.count() - 1})")
        authenticator.select(index)

    _change_selection(manifest, verbose, move)


@app.command(name="seal")
def seal_cmd(
    source: Annotated[Path, cyclopts.Parameter(help="Manifest to seal (.toml, .txt or .json)")],
    output: Annotated[
        Optional[Path], cyclopts.Parameter(help="Sealed manifest path")
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Encrypt a manifest with a password."""
    setup_logging(verbose)
    output = output or source.with_suffix(SEALED_SUFFIX)

    if output.exists():
        fail(f"{output} already exists")

    try:
        credentials = read_credentials(source)
    except ConfigurationError as e:
        fail(str(e))
    if not credentials:
        fail(f"No credentials found in {source}")

    password = os.environ.get("TOTPWATCH_PASSWD")
    if not password:
        while True:
            password = getpass("Password to seal the manifest: ")
            if not password:
                console.print("[red]Password must not be empty[/red]")
                continue

            repeat = getpass("Repeat: ")
            if password != repeat:
                console.print("[red]Passwords do not match[/red]")
                continue
            break

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(seal(dump_toml(credentials).encode(), password))

    console.print(f"[green]Sealed {len(credentials)} credentials to {output}[/green]")

"""TUI interface for totpwatch using Textual."""

import os
import sys
from pathlib import Path
from typing import Optional
from getpass import getpass

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Header, Label, ProgressBar
from textual.binding import Binding
from rich.text import Text

from . import timestep
from .config import Config, get_manifest_path, get_state_path
from .engine import Authenticator, Frame, InputEvent
from .errors import ConfigurationError
from .logging_config import hand_over_to_textual, setup_logging
from .persistence import JsonIndexStore
from .provisioning import SEALED_SUFFIX, load_manifest


class TotpWatchApp(App):
    """Shows the active credential's code and cycles between credentials."""

    CSS = """
    #token-panel {
        align: center middle;
        height: 1fr;
    }

    #label, #position {
        width: 100%;
        text-align: center;
    }

    #label {
        text-style: bold;
        padding: 0 0 1 0;
    }

    #code {
        width: 100%;
        text-align: center;
        padding: 1 0;
    }

    #position {
        color: $text-muted;
    }

    #progress-bar {
        dock: top;
        height: 1;
    }
    """

    BINDINGS = [
        Binding("up,k", "select_previous", "Previous", show=True),
        Binding("down,j", "select_next", "Next", show=True),
        Binding("r", "manual_refresh", "Refresh", show=True),
        Binding("ctrl+q,q", "quit", "Quit", show=True),
    ]

    def __init__(self, authenticator: Authenticator, rollover_bell: bool = True):
        """Initialize the TUI app.

        Args:
            authenticator: Started authenticator to display
            rollover_bell: Ring the terminal bell when a new code window starts
        """
        super().__init__()
        self.authenticator = authenticator
        self.rollover_bell = rollover_bell
        self.update_timer = None

    def compose(self) -> ComposeResult:
        """Compose the main UI."""
        yield Header()
        yield ProgressBar(total=timestep.INTERVAL, show_eta=False, id="progress-bar")
        with Container(id="token-panel"):
            yield Label("", id="label")
            yield Label("", id="code")
            yield Label("", id="position")
        yield Footer()

    def on_mount(self) -> None:
        """Attach as the display and start the clock."""
        self.authenticator.display = self
        self.tick()
        self.update_timer = self.set_interval(1.0, self.tick)

    def tick(self) -> None:
        self.authenticator.tick()

    def show(self, frame: Frame) -> None:
        """Render a frame."""
        selection = self.authenticator.selection
        self.query_one("#label", Label).update(frame.label)
        self.query_one("#code", Label).update(
            Text(frame.display[:3] + " " + frame.display[3:], style="bold green")
        )
        self.query_one("#position", Label).update(
            f"{selection.active_index + 1}/{selection.count}"
        )
        self.query_one("#progress-bar", ProgressBar).update(progress=frame.seconds_remaining)

    def rollover(self, frame: Frame) -> None:
        """Signal that a new code window started."""
        if self.rollover_bell:
            self.bell()

    def _handle(self, event: InputEvent) -> None:
        self.authenticator.handle(event)
        self.tick()

    def action_select_previous(self) -> None:
        self._handle(InputEvent.SELECT_PREVIOUS)

    def action_select_next(self) -> None:
        self._handle(InputEvent.SELECT_NEXT)

    def action_manual_refresh(self) -> None:
        self._handle(InputEvent.MANUAL_REFRESH)


def run_tui(manifest_path: Optional[Path] = None, verbose: bool = False) -> None:
    """Run the TUI application.

    Args:
        manifest_path: Optional path to credential manifest
        verbose: Enable debug logging
    """
    setup_logging(verbose)
    try:
        config = Config.load()
        manifest_path = get_manifest_path(manifest_path, config)

        if not manifest_path.exists():
            print(f"Error: Manifest not found at {manifest_path}")
            print("Create a totpwatch.toml manifest or pass --manifest")
            sys.exit(1)

        password = None
        if manifest_path.suffix == SEALED_SUFFIX:
            # Get password from env or prompt
            password = os.environ.get("TOTPWATCH_PASSWD") or getpass("Enter manifest password: ")

        credentials = load_manifest(manifest_path, password)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    authenticator = Authenticator(credentials, store=JsonIndexStore(get_state_path(config)))
    authenticator.start()

    app = TotpWatchApp(authenticator, rollover_bell=config.rollover_bell)
    hand_over_to_textual()
    try:
        app.run()
    finally:
        authenticator.shutdown()

"""Logging setup for the CLI and the TUI."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from textual.logging import TextualHandler


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def hand_over_to_textual() -> None:
    """Replace the stderr handlers while a textual app owns the terminal.

    Records then go to the textual devtools console instead of the screen.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(TextualHandler())

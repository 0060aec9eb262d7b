"""totpwatch - rolling TOTP codes for a fixed set of provisioned secrets."""

import sys
from pathlib import Path

from .cli import app as cli_app
from .tui import run_tui


def main() -> None:
    """Main entry point for totpwatch.

    If called with arguments, run CLI commands.
    If called without arguments, run TUI.
    Special case: `--manifest` alone launches TUI with a custom manifest.
    """
    if len(sys.argv) == 3 and sys.argv[1] == "--manifest":
        run_tui(Path(sys.argv[2]))
    elif len(sys.argv) > 1:
        # Run CLI (handles its own --manifest parsing)
        cli_app()
    else:
        run_tui()

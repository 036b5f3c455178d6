"""
Click progress sink — renders engine progress on the terminal.
"""

from __future__ import annotations

import click


class ClickProgressSink:
    """Prints groups and steps with status markers.

    Args:
        verbose: Also print executor progress messages.
        err: Write to stderr instead of stdout.
    """

    def __init__(self, verbose: bool = False, err: bool = False):
        self.verbose = verbose
        self.err = err

    def on_start(self, title: str) -> None:
        click.secho(f"▶ {title}", fg="cyan", err=self.err)

    def on_progress(self, message: str) -> None:
        if self.verbose and message:
            click.secho(f"   {message}", dim=True, err=self.err)

    def on_complete(self, message: str) -> None:
        click.secho(f"   ✓ {message}", fg="green", err=self.err)

    def on_error(self, message: str) -> None:
        click.secho(f"   ✗ {message}", fg="red", err=self.err)

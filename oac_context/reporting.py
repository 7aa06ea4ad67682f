"""User-facing progress reporting.

Services never print. They receive a Reporter and emit progress through it,
so the CLI can render with colors while tests and library callers record or
log the same events.
"""

import logging
from typing import Protocol

import click

logger = logging.getLogger("oac_context")


class Reporter(Protocol):
    """Sink for user-facing progress messages."""

    def header(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def detail(self, message: str) -> None:
        """Indented line shown under the previous message."""
        ...


class ConsoleReporter:
    """Render progress to the terminal with status symbols."""

    def header(self, message: str) -> None:
        click.echo("")
        click.secho(message, fg="cyan", bold=True)
        click.echo("")

    def info(self, message: str) -> None:
        click.echo(f"{click.style('ℹ', fg='blue')} {message}")

    def success(self, message: str) -> None:
        click.echo(f"{click.style('✓', fg='green')} {message}")

    def warning(self, message: str) -> None:
        click.echo(f"{click.style('⚠', fg='yellow')} {message}")

    def error(self, message: str) -> None:
        click.echo(f"{click.style('✗', fg='red')} {message}", err=True)

    def detail(self, message: str) -> None:
        click.echo(f"  - {message}")


class LoggingReporter:
    """Forward progress to the standard logging system."""

    def __init__(self, target: logging.Logger | None = None) -> None:
        self.logger = target or logger

    def header(self, message: str) -> None:
        self.logger.info(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def success(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def detail(self, message: str) -> None:
        self.logger.debug(message)

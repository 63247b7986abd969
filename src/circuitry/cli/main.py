"""Circuitry CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from circuitry.cli.chat import chat_cmd, prompt_cmd
from circuitry.cli.circuits import circuits_app
from circuitry.cli.content import content_app
from circuitry.cli.init import init_cmd
from circuitry.config import ConfigError, LoggingCfg, load_config
from circuitry.logger_config import configure_structlog


def _installed_version() -> str:
    try:
        return importlib.metadata.version("circuitry")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"circuitry {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="circuitry",
    help=(
        "Circuitry — per-class AI tutors.\n\n"
        "  circuitry circuits  Create and configure circuits (class tutors).\n"
        "  circuitry content   Feed a circuit's knowledge base (documents, recordings).\n"
        "  circuitry chat      Talk to a circuit's tutor."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override logging.level (DEBUG, INFO, WARNING...)."),
    ] = None,
) -> None:
    """Circuitry — per-class AI tutors."""
    try:
        logging_cfg = load_config().logging
    except ConfigError:
        # Commands that read config report the error themselves.
        logging_cfg = LoggingCfg()
    configure_structlog(log_level or logging_cfg.level, json=logging_cfg.json)


app.command("init")(init_cmd)
app.add_typer(circuits_app, name="circuits")
app.add_typer(content_app, name="content")
app.command("prompt")(prompt_cmd)
app.command("chat")(chat_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Circuitry version."""
    typer.echo(f"circuitry {_installed_version()}")


if __name__ == "__main__":
    app()

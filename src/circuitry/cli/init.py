"""circuitry init — create the project database and circuitry.yaml."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from circuitry.config import write_project_config
from circuitry.db.connection import Database
from circuitry.db.schema import CURRENT_VERSION, initialize

console = Console()

_DEFAULT_DB = Path(".circuitry.db")


def init_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .circuitry.db (created if missing)."),
    ] = _DEFAULT_DB,
    no_config: Annotated[
        bool,
        typer.Option("--no-config", help="Do not write circuitry.yaml."),
    ] = False,
) -> None:
    """Initialise a Circuitry project in the current directory."""
    existed = db.exists()
    conn = Database(db).connect()
    try:
        initialize(conn)
    finally:
        conn.close()

    if existed:
        console.print(f"[dim]↷ Database already present:[/] {db} (schema v{CURRENT_VERSION})")
    else:
        console.print(f"[green]✓[/] Created database: {db} (schema v{CURRENT_VERSION})")

    if not no_config:
        cfg_path = write_project_config(db.parent)
        console.print(f"[green]✓[/] Config: {cfg_path}")

    console.print(
        "\nNext steps:\n"
        "  circuitry circuits create --name \"Earth Science\" --grade 5 --owner <you>\n"
        "  circuitry content upload <circuit> --file syllabus.pdf"
    )

"""circuitry content CLI commands.

Commands:
  circuitry content upload <circuit> --file F   — store a document (.txt .pdf .doc(x) .ppt(x))
  circuitry content record <circuit> --audio F  — transcribe a class recording
  circuitry content list <circuit>              — list knowledge-base items
  circuitry content archive <id>                — drop an item from future prompts
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from circuitry.circuits import resolve_circuit
from circuitry.cli.errors import (
    err_circuit_not_found,
    err_config,
    err_content_not_found,
    err_file_not_found,
    err_no_api_key,
    err_no_db,
    err_transcription,
    err_validation,
    warn_extraction_degraded,
)
from circuitry.config import CircuitryConfig, ConfigError, load_config
from circuitry.db.connection import Database
from circuitry.db.repository import Repository
from circuitry.db.schema import initialize
from circuitry.errors import CircuitNotFound, ContentNotFound, TranscriptionFailed, ValidationError
from circuitry.ingest import service
from circuitry.ingest.audio import Transcriber, mime_type_for_extension
from circuitry.ingest.documents import DocumentExtractor

console = Console()

content_app = typer.Typer(
    name="content",
    help="Manage a circuit's knowledge base (upload, record, list, archive).",
    add_completion=False,
)

_DEFAULT_DB = Path(".circuitry.db")

DbOption = Annotated[Path, typer.Option("--db", help="Path to .circuitry.db.")]
RefArgument = Annotated[str, typer.Argument(help="Circuit id or join code.")]


@content_app.command("upload")
def content_upload_cmd(
    ref: RefArgument,
    file: Annotated[Path, typer.Option("--file", "-f", help="Document to upload.")],
    title: Annotated[str | None, typer.Option("--title", help="Defaults to the file name.")] = None,
    description: Annotated[str, typer.Option("--description", help="Optional description.")] = "",
    category: Annotated[
        str,
        typer.Option(
            "--category",
            help="syllabus | worksheet | pacing_guide | lesson_plan | reference_material",
        ),
    ] = "reference_material",
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Upload a document into a circuit's knowledge base."""
    if not file.is_file():
        console.print(err_file_not_found(str(file)))
        raise typer.Exit(1)
    cfg = _load_cfg(db)

    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        result = service.upload_document(
            repo,
            circuit.id,
            file.name,
            file.read_bytes(),
            title=title,
            description=description,
            category=category,
            extractor=DocumentExtractor(),
            uploads_dir=db.parent / cfg.storage.uploads_dir,
            max_bytes=cfg.storage.max_upload_bytes,
        )
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    item = result.item
    console.print(
        f"[green]✓[/] Stored [bold]{item.title}[/] (id {item.id}, {item.kind}, "
        f"{len(item.content):,} chars)"
    )
    if result.degraded:
        console.print(warn_extraction_degraded(item.title, result.reason))


@content_app.command("record")
def content_record_cmd(
    ref: RefArgument,
    audio: Annotated[Path, typer.Option("--audio", "-a", help="Recorded audio file.")],
    mime_type: Annotated[
        str | None,
        typer.Option("--mime-type", help="Override the MIME type inferred from the extension."),
    ] = None,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Transcribe a class recording into the circuit's knowledge base."""
    if not audio.is_file():
        console.print(err_file_not_found(str(audio)))
        raise typer.Exit(1)
    cfg = _load_cfg(db)
    if not cfg.provider.api_key:
        console.print(err_no_api_key())
        raise typer.Exit(1)

    resolved_mime = mime_type or mime_type_for_extension(audio.suffix)
    if resolved_mime is None:
        console.print(err_validation(f"Unsupported audio format '{audio.suffix}'."))
        raise typer.Exit(1)

    transcriber = Transcriber(
        model=cfg.transcription.model,
        api_key=cfg.provider.api_key,
        language=cfg.transcription.language,
        max_bytes=cfg.transcription.max_bytes,
    )

    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task(f"Transcribing {audio.name}…", total=None)
            item = service.record_transcript(
                repo, circuit.id, audio.read_bytes(), resolved_mime, transcriber
            )
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        raise typer.Exit(1)
    except TranscriptionFailed as exc:
        console.print(err_transcription(exc.cause))
        raise typer.Exit(1)
    finally:
        conn.close()

    console.print(
        f"[green]✓[/] Stored [bold]{item.title}[/] (id {item.id}, {len(item.content):,} chars)"
    )


@content_app.command("list")
def content_list_cmd(
    ref: RefArgument,
    all_items: Annotated[
        bool, typer.Option("--all", help="Include archived items.")
    ] = False,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """List a circuit's content items, oldest first."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        items = service.list_content(repo, circuit.id, include_archived=all_items)
    finally:
        conn.close()

    if not items:
        console.print(f"[yellow]No content in {circuit.name} yet.[/]")
        raise typer.Exit(0)

    table = Table(title=f"Content — {circuit.name}", show_header=True, header_style="bold")
    table.add_column("Id", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Kind")
    table.add_column("Category")
    table.add_column("Chars", justify="right")
    table.add_column("Uploaded")
    if all_items:
        table.add_column("Status")
    for item in items:
        row = [
            str(item.id), item.title, item.kind, item.category,
            f"{len(item.content):,}", (item.created_at or "")[:16],
        ]
        if all_items:
            row.append("[dim]archived[/]" if item.archived else "[green]active[/]")
        table.add_row(*row)
    console.print(table)


@content_app.command("archive")
def content_archive_cmd(
    content_id: Annotated[int, typer.Argument(help="Content item id.")],
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Archive a content item; it stops appearing in prompts immediately."""
    conn = _open_db(db)
    try:
        item = service.archive_content(Repository(conn), content_id)
    except ContentNotFound:
        console.print(err_content_not_found(content_id))
        raise typer.Exit(1)
    finally:
        conn.close()
    console.print(f"[green]✓[/] Archived: {item.title}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _load_cfg(db_path: Path) -> CircuitryConfig:
    try:
        return load_config(db_path.parent)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


def _resolve(repo: Repository, ref: str):
    try:
        return resolve_circuit(repo, ref)
    except CircuitNotFound:
        console.print(err_circuit_not_found(ref))
        raise typer.Exit(1)


def _open_db(db_path: Path) -> sqlite3.Connection:
    """Open the project database and run migrations; exit if it is missing."""
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    conn = Database(db_path).connect()
    initialize(conn)
    return conn

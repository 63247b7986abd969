"""circuitry circuits CLI commands.

Commands:
  circuitry circuits create      — create a circuit with pedagogical settings
  circuitry circuits describe    — suggest a description for a title and grade
  circuitry circuits list        — list circuits (active or archived)
  circuitry circuits show <ref>  — settings, directives and content counts
  circuitry circuits configure   — change settings (takes effect next turn)
  circuitry circuits archive / unarchive / delete
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from circuitry import circuits as circuit_service
from circuitry.cli.errors import (
    err_circuit_not_found,
    err_config,
    err_description,
    err_no_api_key,
    err_no_db,
    err_validation,
)
from circuitry.config import ConfigError, load_config
from circuitry.db.connection import Database
from circuitry.db.models import Circuit
from circuitry.db.repository import Repository
from circuitry.db.schema import initialize
from circuitry.errors import CircuitNotFound, UpstreamError, ValidationError
from circuitry.tutor.chat import ChatSettings
from circuitry.tutor.describe import describe_circuit
from circuitry.tutor.mapper import directive_sentences

console = Console()

circuits_app = typer.Typer(
    name="circuits",
    help="Manage circuits (create, list, show, configure, archive, delete).",
    add_completion=False,
)

_DEFAULT_DB = Path(".circuitry.db")

DbOption = Annotated[Path, typer.Option("--db", help="Path to .circuitry.db.")]
RefArgument = Annotated[str, typer.Argument(help="Circuit id or join code.")]


@circuits_app.command("create")
def circuits_create_cmd(
    name: Annotated[str, typer.Option("--name", "-n", help="Subject name.")],
    owner: Annotated[str, typer.Option("--owner", help="Owner (teacher) reference.")],
    grade: Annotated[str, typer.Option("--grade", "-g", help="K or 1-12.")] = "K",
    description: Annotated[str, typer.Option("--description", help="Short description.")] = "",
    generate_description: Annotated[
        bool,
        typer.Option("--generate-description", help="Ask the AI service for a description."),
    ] = False,
    teaching_style: Annotated[
        list[str] | None,
        typer.Option("--teaching-style", help="Teaching style tag (repeatable)."),
    ] = None,
    homework_policy: Annotated[
        list[str] | None,
        typer.Option("--homework-policy", help="Homework policy tag (repeatable)."),
    ] = None,
    response_type: Annotated[
        list[str] | None,
        typer.Option("--response-type", help="Response type tag (repeatable)."),
    ] = None,
    state: Annotated[
        str | None, typer.Option("--state", help="State standard, e.g. California.")
    ] = None,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Create a circuit."""
    if generate_description:
        if description:
            console.print(err_validation("Use either --description or --generate-description"))
            raise typer.Exit(1)
        description = _generate_description(name, grade, db)
        console.print("[dim]Generated description:[/] ", end="")
        console.print(description, markup=False, highlight=False)

    conn = _open_db(db, create=True)
    try:
        circuit = circuit_service.create_circuit(
            Repository(conn),
            name=name,
            owner=owner,
            grade=grade,
            description=description,
            teaching_styles=teaching_style,
            homework_policies=homework_policy,
            response_types=response_type,
            state_alignment=state,
        )
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    console.print(
        f"[green]✓[/] Created circuit [bold]{circuit.name}[/] "
        f"(id {circuit.id}, code [bold]{circuit.code}[/])"
    )


@circuits_app.command("describe")
def circuits_describe_cmd(
    name: Annotated[str, typer.Option("--name", "-n", help="Subject name.")],
    grade: Annotated[str, typer.Option("--grade", "-g", help="K or 1-12.")] = "K",
    model: Annotated[
        str | None, typer.Option("--model", help="Override generation.model.")
    ] = None,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Suggest a grade-appropriate description; nothing is stored."""
    console.print(_generate_description(name, grade, db, model), markup=False, highlight=False)


@circuits_app.command("list")
def circuits_list_cmd(
    owner: Annotated[str | None, typer.Option("--owner", help="Only this owner's circuits.")] = None,
    archived: Annotated[bool, typer.Option("--archived", help="List archived circuits.")] = False,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """List circuits."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuits = repo.list_circuits(owner=owner, archived=archived)
        if not circuits:
            console.print("[yellow]No circuits found.[/]")
            raise typer.Exit(0)

        table = Table(
            title="Archived circuits" if archived else "Circuits",
            show_header=True,
            header_style="bold",
        )
        table.add_column("Id", justify="right")
        table.add_column("Code")
        table.add_column("Name", style="bold")
        table.add_column("Grade")
        table.add_column("Owner")
        table.add_column("Content", justify="right")
        for c in circuits:
            table.add_row(
                str(c.id), c.code, c.name, c.grade_label, c.owner,
                str(repo.count_content(c.id)),
            )
        console.print(table)
    finally:
        conn.close()


@circuits_app.command("show")
def circuits_show_cmd(ref: RefArgument, db: DbOption = _DEFAULT_DB) -> None:
    """Show a circuit's settings and the directives they map to."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        active = repo.count_content(circuit.id)
        total = repo.count_content(circuit.id, include_archived=True)
    finally:
        conn.close()

    _print_circuit(circuit)
    console.print(f"  Content:           {active} active, {total - active} archived")
    console.print("\n[bold]Directives[/]")
    for sentence in directive_sentences(circuit):
        console.print(f"  {sentence}")


@circuits_app.command("configure")
def circuits_configure_cmd(
    ref: RefArgument,
    name: Annotated[str | None, typer.Option("--name", "-n")] = None,
    grade: Annotated[str | None, typer.Option("--grade", "-g")] = None,
    description: Annotated[str | None, typer.Option("--description")] = None,
    teaching_style: Annotated[list[str] | None, typer.Option("--teaching-style")] = None,
    homework_policy: Annotated[list[str] | None, typer.Option("--homework-policy")] = None,
    response_type: Annotated[list[str] | None, typer.Option("--response-type")] = None,
    state: Annotated[str | None, typer.Option("--state")] = None,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Replace circuit settings; repeatable tag options replace the whole set."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        updated = circuit_service.configure_circuit(
            repo,
            circuit.id,
            name=name,
            grade=grade,
            description=description,
            teaching_styles=teaching_style,
            homework_policies=homework_policy,
            response_types=response_type,
            state_alignment=state,
        )
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    console.print(f"[green]✓[/] Updated circuit [bold]{updated.name}[/]")
    _print_circuit(updated)


@circuits_app.command("archive")
def circuits_archive_cmd(ref: RefArgument, db: DbOption = _DEFAULT_DB) -> None:
    """Archive a circuit (hidden from listings, content kept)."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = circuit_service.archive_circuit(repo, _resolve(repo, ref).id)
    finally:
        conn.close()
    console.print(f"[green]✓[/] Archived: {circuit.name}")


@circuits_app.command("unarchive")
def circuits_unarchive_cmd(ref: RefArgument, db: DbOption = _DEFAULT_DB) -> None:
    """Restore an archived circuit."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = circuit_service.unarchive_circuit(repo, _resolve(repo, ref).id)
    finally:
        conn.close()
    console.print(f"[green]✓[/] Restored: {circuit.name}")


@circuits_app.command("delete")
def circuits_delete_cmd(
    ref: RefArgument,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    db: DbOption = _DEFAULT_DB,
) -> None:
    """Delete a circuit and all of its content."""
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        total = repo.count_content(circuit.id, include_archived=True)
        console.print(f"\nDelete circuit: [bold]{circuit.name}[/]  ({total} content items)")
        if not yes and not typer.confirm("Confirm deletion?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)
        circuit_service.delete_circuit(repo, circuit.id)
    finally:
        conn.close()
    console.print(f"[green]✓[/] Deleted: {circuit.name}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _print_circuit(circuit: Circuit) -> None:
    console.print(f"\n[bold]{circuit.name}[/]  (id {circuit.id}, code {circuit.code})")
    if circuit.description:
        console.print(f"  {circuit.description}")
    console.print(f"  Grade:             {circuit.grade_label}")
    console.print(f"  Teaching styles:   {', '.join(circuit.teaching_styles)}")
    console.print(f"  Homework policies: {', '.join(circuit.homework_policies)}")
    console.print(f"  Response types:    {', '.join(circuit.response_types)}")
    console.print(f"  State alignment:   {circuit.state_alignment}")
    console.print(f"  Archived:          {'yes' if circuit.archived else 'no'}")


def _resolve(repo: Repository, ref: str) -> Circuit:
    try:
        return circuit_service.resolve_circuit(repo, ref)
    except CircuitNotFound:
        console.print(err_circuit_not_found(ref))
        raise typer.Exit(1)


def _generate_description(name: str, grade: str, db_path: Path, model: str | None = None) -> str:
    try:
        cfg = load_config(db_path.parent)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if not cfg.provider.api_key:
        console.print(err_no_api_key())
        raise typer.Exit(1)

    settings = ChatSettings(model=model or cfg.generation.model, api_key=cfg.provider.api_key)
    try:
        return describe_circuit(name, grade, settings)
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        raise typer.Exit(1)
    except UpstreamError as exc:
        console.print(err_description(exc))
        raise typer.Exit(1)


def _open_db(db_path: Path, create: bool = False) -> sqlite3.Connection:
    """Open the project database and run migrations; exit if it is missing."""
    if not create and not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    conn = Database(db_path).connect()
    initialize(conn)
    return conn

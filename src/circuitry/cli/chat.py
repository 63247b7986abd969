"""circuitry prompt / chat — inspect the composed prompt and talk to the tutor.

  circuitry prompt <circuit>                 — print the system prompt for the next turn
  circuitry chat <circuit> --message "..."   — one turn
  circuitry chat <circuit>                   — interactive session (empty line exits)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from circuitry.circuits import resolve_circuit
from circuitry.cli.errors import (
    err_circuit_not_found,
    err_config,
    err_no_api_key,
    err_no_db,
    err_validation,
)
from circuitry.config import CircuitryConfig, ConfigError, load_config
from circuitry.db.connection import Database
from circuitry.db.repository import Repository
from circuitry.db.schema import initialize
from circuitry.errors import CircuitNotFound, ValidationError
from circuitry.tutor.chat import ChatSettings, reply
from circuitry.tutor.composer import ComposerConfig, compose_for_circuit

console = Console()

_DEFAULT_DB = Path(".circuitry.db")


def prompt_cmd(
    ref: Annotated[str, typer.Argument(help="Circuit id or join code.")],
    db: Annotated[Path, typer.Option("--db", help="Path to .circuitry.db.")] = _DEFAULT_DB,
) -> None:
    """Print the system prompt the tutor would receive on the next turn."""
    cfg = _load_cfg(db)
    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)
        prompt = compose_for_circuit(repo, circuit.id, _composer_cfg(cfg))
    finally:
        conn.close()

    console.print(prompt.text, markup=False, highlight=False)
    console.print(
        f"\n[dim]{len(prompt.excerpts)} excerpts · ~{prompt.total_tokens:,} tokens"
        + (f" · {prompt.omitted} omitted (knowledge budget)" if prompt.omitted else "")
        + "[/]"
    )


def chat_cmd(
    ref: Annotated[str, typer.Argument(help="Circuit id or join code.")],
    message: Annotated[
        str | None,
        typer.Option("--message", "-m", help="Send one message and exit."),
    ] = None,
    model: Annotated[
        str | None, typer.Option("--model", help="Override generation.model.")
    ] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .circuitry.db.")] = _DEFAULT_DB,
) -> None:
    """Chat with a circuit's tutor."""
    cfg = _load_cfg(db)
    if not cfg.provider.api_key:
        console.print(err_no_api_key())
        raise typer.Exit(1)

    settings = ChatSettings(
        model=model or cfg.generation.model,
        temperature=cfg.generation.temperature,
        max_tokens=cfg.generation.max_tokens,
        api_key=cfg.provider.api_key,
    )

    conn = _open_db(db)
    try:
        repo = Repository(conn)
        circuit = _resolve(repo, ref)

        if message is not None:
            if not _turn(repo, circuit.id, message, settings, cfg):
                raise typer.Exit(1)
            return

        console.print(f"[bold]{circuit.name}[/] tutor — empty line to quit.\n")
        while True:
            text = typer.prompt("you", default="", show_default=False)
            if not text.strip():
                break
            _turn(repo, circuit.id, text, settings, cfg)
    finally:
        conn.close()


def _turn(
    repo: Repository,
    circuit_id: int,
    message: str,
    settings: ChatSettings,
    cfg: CircuitryConfig,
) -> bool:
    """Run one turn; return False when the turn ended in an error."""
    try:
        answer = reply(repo, circuit_id, message, settings, _composer_cfg(cfg))
    except ValidationError as exc:
        console.print(err_validation(str(exc)))
        return False
    console.print("tutor: " if answer.ok else "[yellow]tutor:[/] ", end="")
    console.print(answer.text, markup=False, highlight=False)
    return answer.ok


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _composer_cfg(cfg: CircuitryConfig) -> ComposerConfig:
    return ComposerConfig(knowledge_token_budget=cfg.composer.knowledge_token_budget)


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
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    conn = Database(db_path).connect()
    initialize(conn)
    return conn

"""Circuitry rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from circuitry.cli.errors import err_no_db
    console.print(err_no_db(".circuitry.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from circuitry.errors import AuthError, InvalidAudio, RateLimited, UpstreamError


def err_no_db(db_path: str = ".circuitry.db") -> str:
    """No .circuitry.db found."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  circuitry init"
    )


def err_no_api_key() -> str:
    return (
        "[red]Error:[/] No API key configured for the AI service.\n"
        "  Set:  export OPENAI_API_KEY=sk-...   (or CIRCUITRY_API_KEY)"
    )


def err_circuit_not_found(ref: str) -> str:
    return (
        f"[red]Error:[/] Circuit not found: '{ref}'.\n"
        "  Run:  circuitry circuits list  to see your circuits."
    )


def err_content_not_found(content_id: int) -> str:
    return (
        f"[red]Error:[/] Content item not found: {content_id}.\n"
        "  Run:  circuitry content list <circuit>  to see item ids."
    )


def err_validation(message: str) -> str:
    return f"[red]Error:[/] {message}"


def err_config(message: str) -> str:
    return f"[red]Config error:[/] {message}"


def err_file_not_found(path: str) -> str:
    return f"[red]Error:[/] File not found: '{path}'"


def err_transcription(error: UpstreamError) -> str:
    """Transcription failed; nothing was stored."""
    if isinstance(error, AuthError):
        hint = "Check OPENAI_API_KEY / CIRCUITRY_API_KEY."
    elif isinstance(error, RateLimited):
        hint = "The speech-to-text quota is exhausted; try again later."
    elif isinstance(error, InvalidAudio):
        hint = "The recording could not be decoded; re-record or convert it (mp3, wav, webm)."
    else:
        hint = "Re-record or retry the upload."
    return (
        f"[red]Error:[/] Transcription failed: {error}\n"
        "  Nothing was saved.\n"
        f"  {hint}"
    )


def warn_extraction_degraded(title: str, reason: str) -> str:
    """Document stored without text."""
    return (
        f"[yellow]⚠[/] No text could be extracted from '{title}'.\n"
        f"  {reason}\n"
        "  The file is stored as an attachment; add a description to give the tutor context."
    )


def err_description(error: UpstreamError) -> str:
    """Description generation failed; the circuit can still be described by hand."""
    if isinstance(error, AuthError):
        message = "Unable to access AI services. Please check your OpenAI API key."
    elif isinstance(error, RateLimited):
        message = "AI description generation is temporarily unavailable. Please try again later."
    else:
        message = (
            "Failed to generate description. Please try again or enter a description manually."
        )
    return (
        f"[red]Error:[/] {message}\n"
        "  Or pass:  --description \"...\""
    )

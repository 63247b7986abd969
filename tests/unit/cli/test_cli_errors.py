"""Tests for CLI error message helpers."""

from __future__ import annotations

from circuitry.cli.errors import (
    err_circuit_not_found,
    err_description,
    err_no_db,
    err_transcription,
    warn_extraction_degraded,
)
from circuitry.errors import AuthError, InvalidAudio, RateLimited, Transient


def test_no_db_points_to_init():
    assert "circuitry init" in err_no_db("x.db")


def test_circuit_not_found_names_ref():
    assert "'ABC'" in err_circuit_not_found("ABC")


def test_transcription_hint_per_error_type():
    assert "API_KEY" in err_transcription(AuthError("denied", 401))
    assert "quota" in err_transcription(RateLimited("slow", 429))
    assert "could not be decoded" in err_transcription(InvalidAudio("bad", 400))
    assert "retry" in err_transcription(Transient("reset"))


def test_transcription_error_says_nothing_saved():
    assert "Nothing was saved." in err_transcription(Transient("reset"))


def test_extraction_degraded_warning_mentions_title_and_reason():
    msg = warn_extraction_degraded("slides.pptx", "No text extractor")
    assert "slides.pptx" in msg
    assert "No text extractor" in msg


def test_description_message_per_error_type():
    assert "check your OpenAI API key" in err_description(AuthError("denied", 401))
    assert "temporarily unavailable" in err_description(RateLimited("slow", 429))
    assert "enter a description manually" in err_description(Transient("No description generated"))
    assert "--description" in err_description(Transient("reset"))

"""Tests for circuitry content commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from circuitry.cli.main import app
from circuitry.db.connection import Database
from circuitry.db.repository import Repository
from circuitry.errors import InvalidAudio

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.delenv("CIRCUITRY_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    path = tmp_path / ".circuitry.db"
    assert runner.invoke(app, ["init", "--db", str(path)]).exit_code == 0
    result = runner.invoke(
        app, ["circuits", "create", "--name", "Geology", "--owner", "t", "--db", str(path)]
    )
    assert result.exit_code == 0, result.output
    return path


def _items(db: Path, include_archived: bool = True):
    with Database(db) as conn:
        return Repository(conn).list_content(1, include_archived=include_archived)


# ---------------------------------------------------------------------------
# upload
# ---------------------------------------------------------------------------


def test_upload_txt(db: Path, tmp_path: Path) -> None:
    doc = tmp_path / "syllabus.txt"
    doc.write_text("Unit 1: Minerals", encoding="utf-8")

    result = runner.invoke(
        app, ["content", "upload", "1", "--file", str(doc), "--category", "syllabus",
              "--db", str(db)],
    )

    assert result.exit_code == 0, result.output
    [item] = _items(db)
    assert item.content == "Unit 1: Minerals"
    assert item.category == "syllabus"
    assert Path(item.content_url).parent == tmp_path / "uploads"


def test_upload_docx_warns_degraded(db: Path, tmp_path: Path) -> None:
    doc = tmp_path / "worksheet.docx"
    doc.write_bytes(b"PK\x03\x04")
    result = runner.invoke(app, ["content", "upload", "1", "-f", str(doc), "--db", str(db)])
    assert result.exit_code == 0, result.output
    assert "No text could be extracted" in result.output
    assert _items(db)[0].content == ""


def test_upload_unsupported_type_exits_1(db: Path, tmp_path: Path) -> None:
    doc = tmp_path / "photo.png"
    doc.write_bytes(b"\x89PNG")
    result = runner.invoke(app, ["content", "upload", "1", "-f", str(doc), "--db", str(db)])
    assert result.exit_code == 1
    assert "Unsupported file type" in result.output
    assert _items(db) == []


def test_upload_missing_file_exits_1(db: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["content", "upload", "1", "-f", str(tmp_path / "nope.txt"), "--db", str(db)]
    )
    assert result.exit_code == 1
    assert "File not found" in result.output


# ---------------------------------------------------------------------------
# record
# ---------------------------------------------------------------------------


def test_record_stores_transcript(db: Path, tmp_path: Path) -> None:
    audio = tmp_path / "class.webm"
    audio.write_bytes(b"\x1a\x45\xdf\xa3")
    with patch(
        "circuitry.ingest.audio.llm_client.transcribe", return_value="We discussed erosion."
    ) as mock_call:
        result = runner.invoke(app, ["content", "record", "1", "-a", str(audio), "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert mock_call.call_args.kwargs["api_key"] == "sk-test"
    [item] = _items(db)
    assert item.kind == "transcript"
    assert item.content == "We discussed erosion."


def test_record_failure_saves_nothing(db: Path, tmp_path: Path) -> None:
    audio = tmp_path / "class.webm"
    audio.write_bytes(b"\x00corrupt")
    with patch(
        "circuitry.ingest.audio.llm_client.transcribe",
        side_effect=InvalidAudio("could not decode", status_code=400),
    ):
        result = runner.invoke(app, ["content", "record", "1", "-a", str(audio), "--db", str(db)])

    assert result.exit_code == 1
    assert "Nothing was saved" in result.output
    assert _items(db) == []


def test_record_without_api_key_exits_1(db: Path, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    audio = tmp_path / "class.webm"
    audio.write_bytes(b"\x00")
    with patch("circuitry.ingest.audio.llm_client.transcribe") as mock_call:
        result = runner.invoke(app, ["content", "record", "1", "-a", str(audio), "--db", str(db)])
    assert result.exit_code == 1
    assert "No API key" in result.output
    mock_call.assert_not_called()


def test_record_unknown_extension_exits_1(db: Path, tmp_path: Path) -> None:
    audio = tmp_path / "class.avi"
    audio.write_bytes(b"\x00")
    result = runner.invoke(app, ["content", "record", "1", "-a", str(audio), "--db", str(db)])
    assert result.exit_code == 1
    assert "Unsupported audio format" in result.output


# ---------------------------------------------------------------------------
# list / archive
# ---------------------------------------------------------------------------


def test_list_and_archive(db: Path, tmp_path: Path) -> None:
    doc = tmp_path / "notes.txt"
    doc.write_text("Sedimentary layers", encoding="utf-8")
    runner.invoke(app, ["content", "upload", "1", "-f", str(doc), "--db", str(db)])

    listed = runner.invoke(app, ["content", "list", "1", "--db", str(db)])
    assert listed.exit_code == 0
    assert "notes.txt" in listed.output

    archived = runner.invoke(app, ["content", "archive", "1", "--db", str(db)])
    assert archived.exit_code == 0, archived.output
    assert _items(db, include_archived=False) == []

    empty = runner.invoke(app, ["content", "list", "1", "--db", str(db)])
    assert "No content" in empty.output


def test_archive_unknown_item_exits_1(db: Path) -> None:
    result = runner.invoke(app, ["content", "archive", "99", "--db", str(db)])
    assert result.exit_code == 1
    assert "Content item not found" in result.output

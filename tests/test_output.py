"""Tests for rechenbot/output.py."""

from pathlib import Path

import frontmatter
import pytest
from rich.console import Console

from rechenbot.models import Message, Speaker
from rechenbot.output import export_markdown, load_export, render_message, render_transcript
from rechenbot.transcript import CorruptRecordError


def _recording_console() -> Console:
    return Console(record=True, width=100, force_terminal=False)


def test_render_transcript_shows_all_messages(sample_messages):
    out = _recording_console()
    render_transcript(tuple(sample_messages), out=out)
    text = out.export_text()
    assert "Hallo! Stell mir eine Rechenaufgabe." in text
    assert "5 * 5" in text
    assert "Das Ergebnis ist: 25" in text
    assert "Rechenbot" in text
    assert "Du" in text


def test_user_bubble_is_right_aligned(sample_messages):
    out = _recording_console()
    render_message(sample_messages[1], out=out)
    first_line = out.export_text().splitlines()[0]
    assert first_line.startswith(" ")


def test_assistant_bubble_is_left_aligned(sample_messages):
    out = _recording_console()
    render_message(sample_messages[0], out=out)
    first_line = out.export_text().splitlines()[0]
    assert not first_line.startswith(" ")


def test_export_creates_file_with_frontmatter(tmp_path: Path, sample_messages):
    path = export_markdown(tuple(sample_messages), tmp_path / "out" / "verlauf.md")
    assert path.exists()
    post = frontmatter.load(str(path))
    assert post.metadata["message_count"] == 3
    assert post.metadata["user_messages"] == 1
    assert "exported_at" in post.metadata
    assert "# Rechenbot Verlauf" in post.content
    assert "**Du:** 5 * 5" in post.content


def test_export_can_be_read_back(tmp_path: Path, sample_messages):
    path = export_markdown(tuple(sample_messages), tmp_path / "verlauf.md")
    messages, metadata = load_export(path)
    assert messages == sample_messages
    assert messages[0].speaker is Speaker.ASSISTANT
    assert "history" not in metadata


def test_load_export_rejects_bad_history(tmp_path: Path):
    path = tmp_path / "broken.md"
    path.write_text("---\nhistory: 5\n---\nbody\n", encoding="utf-8")
    with pytest.raises(CorruptRecordError):
        load_export(path)


@pytest.mark.parametrize("text", ["[/b] 5+5", "[red]x[/red] a[1]", "[bold]"])
def test_bracketed_text_is_shown_as_typed(text):
    out = _recording_console()
    render_message(Message(Speaker.USER, text), out=out)
    assert text in out.export_text()


def test_bracketed_history_renders(sample_messages):
    messages = tuple(sample_messages) + (Message(Speaker.USER, "[/b]"),)
    out = _recording_console()
    render_transcript(messages, out=out)
    assert "[/b]" in out.export_text()

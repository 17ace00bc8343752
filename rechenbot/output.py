"""Rich console rendering of the transcript and markdown export."""

import logging
from datetime import datetime
from pathlib import Path

import frontmatter
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from rechenbot.models import Message, Speaker
from rechenbot.transcript import from_records

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_BUBBLE_WIDTH = 60
_LABELS = {Speaker.USER: "Du", Speaker.ASSISTANT: "Rechenbot"}


def _bubble(message: Message) -> Align:
    """Wrap one message in a panel, user on the right, assistant on the left."""
    is_user = message.speaker is Speaker.USER
    panel = Panel(
        Text(message.text),
        title=f"[bold]{_LABELS[message.speaker]}[/bold]",
        title_align="right" if is_user else "left",
        border_style="magenta" if is_user else "dim",
        expand=False,
        width=min(_BUBBLE_WIDTH, max(len(message.text), len(_LABELS[message.speaker]) + 4) + 4),
    )
    return Align.right(panel) if is_user else Align.left(panel)


def render_transcript(messages: tuple[Message, ...], out: Console | None = None) -> None:
    """Print the whole transcript."""
    target = out if out is not None else console
    target.print(Rule("[bold cyan]Rechenbot[/bold cyan]"))
    for message in messages:
        target.print(_bubble(message))


def render_message(message: Message, out: Console | None = None) -> None:
    """Print a single message bubble."""
    (out if out is not None else console).print(_bubble(message))


def export_markdown(messages: tuple[Message, ...], path: Path) -> Path:
    """Save the transcript as markdown with a YAML frontmatter header.

    Args:
        messages: Transcript snapshot.
        path: Target file. Parent directories are created.

    Returns:
        Path to the written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = ["# Rechenbot Verlauf", ""]
    for message in messages:
        lines.append(f"**{_LABELS[message.speaker]}:** {message.text}")
        lines.append("")

    post = frontmatter.Post(
        "\n".join(lines),
        exported_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        message_count=len(messages),
        user_messages=sum(1 for m in messages if m.speaker is Speaker.USER),
        history=[{"sender": m.speaker.value, "text": m.text} for m in messages],
    )
    path.write_text(frontmatter.dumps(post), encoding="utf-8")
    logger.info("Transcript exported to: %s", path)
    return path


def load_export(path: Path) -> tuple[list[Message], dict]:
    """Read an exported transcript back.

    Returns:
        (messages, metadata) where messages come from the frontmatter
        history and metadata is the remaining frontmatter.

    Raises:
        rechenbot.transcript.CorruptRecordError: If the history block is malformed.
    """
    post = frontmatter.load(str(path))
    metadata = dict(post.metadata)
    messages = from_records(metadata.pop("history", []))
    return messages, metadata

"""Append-only transcript with best-effort persistence to a key-value store."""

import json
import logging
from collections.abc import Callable
from enum import Enum

from rechenbot.models import Message, PersistenceErrorKind, Speaker
from rechenbot.storage import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "chatHistory"
DEFAULT_GREETING = "Hallo! Stell mir eine Rechenaufgabe."


class CorruptRecordError(ValueError):
    """Raised when persisted bytes do not decode to a transcript."""


class TranscriptState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"


def serialize(messages: tuple[Message, ...] | list[Message]) -> bytes:
    """Encode messages as a UTF-8 JSON array of {sender, text} records."""
    records = [{"sender": m.speaker.value, "text": m.text} for m in messages]
    return json.dumps(records, ensure_ascii=False).encode("utf-8")


def deserialize(raw: bytes) -> list[Message]:
    """Decode a persisted record.

    Raises:
        CorruptRecordError: On bad encoding, bad JSON, or wrong shape.
    """
    try:
        records = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise CorruptRecordError(f"undecodable record: {exc}") from exc
    return from_records(records)


def from_records(records: object) -> list[Message]:
    """Validate already-decoded {sender, text} records into messages.

    Raises:
        CorruptRecordError: If records is not a list of well-formed objects.
    """
    if not isinstance(records, list):
        raise CorruptRecordError(f"expected a list, got {type(records).__name__}")

    messages: list[Message] = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise CorruptRecordError(f"record {i} is not an object")
        text = record.get("text")
        if not isinstance(text, str):
            raise CorruptRecordError(f"record {i} has no text")
        try:
            speaker = Speaker(record.get("sender"))
        except ValueError:
            raise CorruptRecordError(f"record {i} has unknown sender {record.get('sender')!r}") from None
        messages.append(Message(speaker=speaker, text=text))
    return messages


class TranscriptStore:
    """Owns the session transcript.

    Every append is persisted and then handed to the render callback as a
    snapshot. Persistence is best effort: the in-memory list is what the
    session trusts.

    Args:
        store: Backend for load/persist.
        key: Fixed key the record lives under.
        greeting: Assistant message a fresh session starts with.
        on_change: Optional render callback, receives the full snapshot.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_KEY,
        greeting: str = DEFAULT_GREETING,
        on_change: Callable[[tuple[Message, ...]], None] | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._greeting = greeting
        self._on_change = on_change
        self._messages: list[Message] = []
        self._state = TranscriptState.UNINITIALIZED

    @property
    def state(self) -> TranscriptState:
        return self._state

    def _fresh(self) -> None:
        self._messages = [Message(Speaker.ASSISTANT, self._greeting)]

    def load(self) -> PersistenceErrorKind | None:
        """Restore the persisted transcript, or start fresh with the greeting.

        Returns:
            The absorbed problem (ABSENT or CORRUPT), or None when the
            previous transcript was restored.
        """
        try:
            raw = self._store.get(self._key)
        except StoreError as exc:
            logger.warning("Could not read transcript, starting fresh: %s", exc)
            raw = None

        problem: PersistenceErrorKind | None = None
        if raw is None:
            problem = PersistenceErrorKind.ABSENT
            self._fresh()
        else:
            try:
                self._messages = deserialize(raw)
            except CorruptRecordError as exc:
                logger.warning("Persisted transcript is corrupt, starting fresh: %s", exc)
                problem = PersistenceErrorKind.CORRUPT
                self._fresh()

        self._state = TranscriptState.LOADED
        logger.info("Transcript loaded: %d messages", len(self._messages))
        return problem

    def persist(self) -> bool:
        """Write the transcript under the fixed key. Never raises StoreError."""
        try:
            self._store.set(self._key, serialize(self._messages))
        except StoreError as exc:
            logger.warning("Transcript not saved (%s): %s", PersistenceErrorKind.WRITE_FAILED.value, exc)
            return False
        return True

    def append(self, speaker: Speaker, text: str) -> Message:
        """Add a message, persist, and notify the render callback.

        Raises:
            RuntimeError: If called before load().
        """
        if self._state is not TranscriptState.LOADED:
            raise RuntimeError("TranscriptStore.append() called before load()")
        message = Message(speaker=speaker, text=text)
        self._messages.append(message)
        self.persist()
        if self._on_change:
            self._on_change(self.all())
        return message

    def all(self) -> tuple[Message, ...]:
        """Return a read-only snapshot in chronological order."""
        return tuple(self._messages)

    def reset(self) -> None:
        """Drop the persisted record and start over with the greeting."""
        try:
            self._store.delete(self._key)
        except StoreError as exc:
            logger.warning("Could not delete persisted transcript: %s", exc)
        self._fresh()
        self._state = TranscriptState.LOADED
        self.persist()
        if self._on_change:
            self._on_change(self.all())

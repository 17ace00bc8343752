"""Key-value byte stores backing the transcript."""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store read or write fails."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"[{key}] {message}")


class KeyValueStore(ABC):
    """Abstract base for persistence backends."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if the key is absent.

        Raises:
            StoreError: If the backend cannot be read.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value.

        Raises:
            StoreError: If the write fails (full disk, quota, permissions).
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. ``fail_writes`` simulates an exhausted quota."""

    def __init__(self, fail_writes: bool = False) -> None:
        self._data: dict[str, bytes] = {}
        self.fail_writes = fail_writes

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise StoreError(key, "quota exceeded")
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """One file per key under a directory.

    Writes go to a temp file in the same directory and are moved into place,
    so a reader never sees a half-written record.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(key, f"read failed: {exc}") from exc

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreError(key, f"write failed: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(key, f"delete failed: {exc}") from exc

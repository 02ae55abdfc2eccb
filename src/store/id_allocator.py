"""Persisted record id allocation for one storage root.

The allocator keeps ``{"next_id": N}`` in the settings file at the root of a
store. Every allocation re-reads the file, bumps the counter and writes it
straight back. There is no cross-process lock, so two writers allocating at
the same moment can receive the same id; the file backend detects the
resulting path collision and allocates again.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.constants import DEFAULT_SETTINGS
from core.errors import TagStoreIOError
from core.logging_config import get_logger
from store.codecs import RecordCodec

_LOGGER = get_logger(__name__)


class IdAllocator:
    """Monotonic id counter persisted beside the records it numbers."""

    def __init__(self, settings_path: Path, codec: RecordCodec) -> None:
        self._settings_path = settings_path
        self._codec = codec
        if not settings_path.exists():
            self._write_settings(dict(DEFAULT_SETTINGS))

    @property
    def settings_path(self) -> Path:
        return self._settings_path

    def allocate(self, step: int = 1) -> int:
        """Reserve and return the next id.

        Args:
            step: How far to advance the counter, at least 1.

        Returns:
            Newly allocated id.

        Raises:
            TagStoreIOError: If settings cannot be read or written.
        """
        settings = self._read_settings()
        settings["next_id"] = int(settings["next_id"]) + max(step, 1)
        self._write_settings(settings)
        return int(settings["next_id"])

    def peek(self) -> int:
        """Return the last allocated id without advancing."""
        return int(self._read_settings()["next_id"])

    def _read_settings(self) -> dict[str, Any]:
        if not self._settings_path.exists():
            return dict(DEFAULT_SETTINGS)
        try:
            payload = self._codec.decode(self._settings_path.read_bytes())
        except OSError as error:
            raise TagStoreIOError(
                f"Failed to read store settings at {self._settings_path}: {error}."
            ) from error
        if not isinstance(payload, dict) or not isinstance(payload.get("next_id"), int):
            raise TagStoreIOError(
                f"Invalid store settings at {self._settings_path}: expected a mapping with "
                "an integer next_id. Restore the file or set next_id above the highest id."
            )
        return payload

    def _write_settings(self, settings: dict[str, Any]) -> None:
        try:
            self._settings_path.parent.mkdir(parents=True, exist_ok=True)
            self._settings_path.write_bytes(self._codec.encode(settings))
        except OSError as error:
            raise TagStoreIOError(
                f"Failed to write store settings at {self._settings_path}: {error}."
            ) from error
        _LOGGER.debug("settings_written", path=str(self._settings_path), **settings)

"""Filesystem-backed record store.

Layout under the store root::

    settings.<codec>                              id allocator state
    <tag>/data/<aa>/<bb>/<cc>/<dd>.<codec>        one record per file

The shard path comes from the zero-padded 8 digit id split into 2 digit
groups, so no directory holds more than 100 entries. Searches are linear
scans over the tree, narrowed to one tag when the ruleset pins ``_tag``
with ``eq``.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from pathlib import Path
import random
from typing import Any, Iterator

from core.constants import (
    DATA_DIR_NAME,
    DEFAULT_CODEC_NAME,
    MAX_ADD_ATTEMPTS,
    MAX_ID_SKIP,
    MAX_SHARD_ID,
    SETTINGS_FILE_STEM,
    SHARD_GROUP_WIDTH,
    SHARD_ID_WIDTH,
)
from core.errors import TagStoreConfigError, TagStoreIOError, TagStoreValidationError
from core.logging_config import get_logger
from core.types import Record, Ruleset
from store.backend_base import (
    StorageBackend,
    check_record_payload,
    check_tag,
    default_ruleset,
    resolve_record_id,
)
from store.codecs import RecordCodec, get_codec
from store.comparison import compile_ruleset
from store.id_allocator import IdAllocator

_LOGGER = get_logger(__name__)


class FileBackend(StorageBackend):
    """Record store over a directory tree, one encoded file per record."""

    def __init__(self, root: str | Path, codec_name: str = DEFAULT_CODEC_NAME) -> None:
        """Open or create a store rooted at ``root``.

        Args:
            root: Store directory, created when missing.
            codec_name: Codec used for settings and record files.

        Raises:
            TagStoreConfigError: If root is a regular file, cannot be created,
                or the codec is unknown.
        """
        root_path = Path(root).expanduser()
        if root_path.is_file():
            raise TagStoreConfigError(
                f"Cannot open a file store at {root_path}: the path is a regular file. "
                "Point the locator at a directory."
            )
        self._codec: RecordCodec = get_codec(codec_name)
        try:
            root_path.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise TagStoreConfigError(
                f"Cannot create file store directory at {root_path}: {error}. "
                "Check the locator path and permissions."
            ) from error
        self._root = root_path
        self._allocator = IdAllocator(
            root_path / f"{SETTINGS_FILE_STEM}{self._codec.extension}", self._codec
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def codec(self) -> RecordCodec:
        return self._codec

    def add(self, tag: str, record: Record) -> int:
        if not check_record_payload(record):
            return 0
        check_tag(tag)
        record_id = self._allocator.allocate()
        path = self._build_path(record_id, tag)
        attempts = 1
        while path.exists():
            if attempts >= MAX_ADD_ATTEMPTS:
                raise TagStoreIOError(
                    f"Could not find a free record slot under tag '{tag}' after "
                    f"{attempts} attempts. Check {self._allocator.settings_path}."
                )
            _LOGGER.warning("id_collision", tag=tag, record_id=record_id)
            record_id = self._allocator.allocate(step=1 + random.randint(0, MAX_ID_SKIP))
            path = self._build_path(record_id, tag)
            attempts += 1
        payload = dict(record)
        payload["_id"] = record_id
        self._store(path, payload)
        return record_id

    def data(self, record_id: Any) -> Record | None:
        resolved_id = resolve_record_id(record_id)
        if resolved_id is None:
            return None
        path = self._find_path(resolved_id)
        if path is None:
            return None
        return self._fetch(path)

    def update(self, record: Record) -> int | None:
        record_id = resolve_record_id(record)
        if record_id is None:
            raise TagStoreValidationError("Backend update requires a record carrying _id.")
        path = self._build_path(record_id, check_tag(record.get("_tag")))
        return record_id if self._store(path, dict(record)) else None

    def delete(self, record_id: Any) -> bool:
        resolved_id = resolve_record_id(record_id)
        if resolved_id is None:
            return False
        path = self._find_path(resolved_id)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as error:
            raise TagStoreIOError(f"Failed to delete record file {path}: {error}.") from error
        self._prune_empty_dirs(path.parent)
        return True

    def taglist(self) -> set[str]:
        return {child.name for child in self._root.iterdir() if child.is_dir()}

    def search(self, ruleset: Ruleset) -> list[Record]:
        return list(self._scan(ruleset))

    def count(self, ruleset: Ruleset | None = None) -> int:
        return sum(1 for _ in self._scan(default_ruleset(ruleset)))

    def _scan(self, ruleset: Ruleset) -> Iterator[Record]:
        """Yield stored records matching ``ruleset`` in path order."""
        compiled = compile_ruleset(ruleset)
        tag = _pinned_tag(ruleset)
        scan_root = self._root / tag / DATA_DIR_NAME if tag is not None else self._root
        if not scan_root.is_dir():
            return
        for path in sorted(scan_root.rglob(f"*{self._codec.extension}")):
            if not path.is_file():
                continue
            payload = self._fetch(path)
            if not isinstance(payload, dict) or "_uuid" not in payload:
                _LOGGER.debug("foreign_file_skipped", path=str(path))
                continue
            if compiled.matches(payload):
                yield payload

    def _build_path(self, record_id: int, tag: str) -> Path:
        """Map an id onto its shard file path under ``tag``."""
        if record_id < 1 or record_id > MAX_SHARD_ID:
            raise TagStoreIOError(
                f"Record id {record_id} is outside the shard range 1..{MAX_SHARD_ID}."
            )
        digits = f"{record_id:0{SHARD_ID_WIDTH}d}"
        groups = [
            digits[index : index + SHARD_GROUP_WIDTH]
            for index in range(0, SHARD_ID_WIDTH, SHARD_GROUP_WIDTH)
        ]
        directory = self._root.joinpath(tag, DATA_DIR_NAME, *groups[:-1])
        return directory / f"{groups[-1]}{self._codec.extension}"

    def _find_path(self, record_id: int) -> Path | None:
        """Locate a record file by probing each known tag."""
        if record_id > MAX_SHARD_ID:
            return None
        for tag in sorted(self.taglist()):
            path = self._build_path(record_id, tag)
            if path.is_file():
                return path
        return None

    def _store(self, path: Path, payload: Record) -> bool:
        """Encode and write a whole record file."""
        encoded = self._codec.encode(payload)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(encoded)
        except OSError as error:
            raise TagStoreIOError(f"Failed to write record file {path}: {error}.") from error
        return path.is_file()

    def _fetch(self, path: Path) -> Any:
        """Read and decode one record file."""
        try:
            raw = path.read_bytes()
        except OSError as error:
            raise TagStoreIOError(f"Failed to read record file {path}: {error}.") from error
        try:
            return self._codec.decode(raw)
        except TagStoreIOError as error:
            raise TagStoreIOError(
                f"Corrupt record file {path}: {error} Delete or restore the file."
            ) from error

    def _prune_empty_dirs(self, directory: Path) -> None:
        """Remove emptied shard directories up to and including the tag directory."""
        while directory != self._root and self._root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent


def _pinned_tag(ruleset: Ruleset) -> str | None:
    """Return the tag a ruleset fixes with ``eq``, if any."""
    rule = ruleset.get("_tag") if isinstance(ruleset, MappingABC) else None
    if not isinstance(rule, MappingABC):
        return None
    tag = rule.get("eq")
    if not isinstance(tag, str) or not tag or "/" in tag or tag.startswith("."):
        return None
    return tag

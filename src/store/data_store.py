"""Store façade over a pluggable backend.

``DataStore`` is the entry point callers use. It resolves a storage locator
to a backend once, owns the generation of record metadata, and applies the
create-or-replace policy for updates: a record is replaced in place only
when the caller's ``_uuid`` still matches the stored one, otherwise it is
written as a brand new record.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from dataclasses import replace
import math
import time
from typing import Any
import uuid

from core.config import StoreConfig
from core.constants import TIMESTAMP_INPUT_FIELD
from core.errors import TagStoreValidationError
from core.logging_config import get_logger
from core.types import Record, RecordMetadata, Ruleset, StoredRecord, user_fields
from store.backend_base import StorageBackend, check_record_payload, check_tag
from store.backend_registry import create_backend
from store.date_normalization import resolve_datetime

_LOGGER = get_logger(__name__)


class DataStore:
    """Uniform record API over any registered backend."""

    def __init__(
        self,
        locator: str | None = None,
        config: StoreConfig | None = None,
        backend: StorageBackend | None = None,
    ) -> None:
        """Create a store.

        Args:
            locator: Storage locator; defaults to ``config.locator``.
            config: Optional runtime configuration.
            backend: Ready-made backend, bypassing locator resolution.

        Raises:
            TagStoreConfigError: If the locator or codec is invalid.
        """
        self._config = config or StoreConfig.from_env()
        if backend is None:
            backend = create_backend(locator or self._config.locator, self._config.codec)
        self._backend = backend
        _LOGGER.info(
            "backend_created",
            backend=type(backend).__name__,
            locator=locator or self._config.locator,
        )

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def add(self, tag: str, record: Any) -> int:
        """Store a new record under ``tag``.

        Caller values for reserved metadata fields are discarded. A
        ``timestamp`` field, as epoch seconds or a date string, sets
        ``_timestamp``; otherwise the creation time is used.

        Args:
            tag: Category for the record.
            record: Mapping of field name to value.

        Returns:
            New record id, or 0 when ``record`` is empty.

        Raises:
            TagStoreValidationError: If record or tag has the wrong shape.
        """
        if not check_record_payload(record):
            return 0
        check_tag(tag)
        now = int(time.time())
        fields = user_fields(record)
        metadata = RecordMetadata(
            record_id=0,
            tag=tag,
            uuid=str(uuid.uuid4()),
            timestamp=_resolve_timestamp(fields.get(TIMESTAMP_INPUT_FIELD), now),
            created=now,
            source=self._config.source,
        )
        record_id = self._backend.add(tag, StoredRecord(metadata, fields).to_payload())
        _LOGGER.info("record_added", tag=tag, record_id=record_id)
        return record_id

    def data(self, record_id: Any) -> Record | None:
        """Fetch a record by id, or by a record carrying ``_id``."""
        return self._backend.data(record_id)

    def update(self, record: Any) -> int | None:
        """Replace a stored record, or create it anew if the copy is stale.

        When the stored record with the same ``_id`` still has the caller's
        ``_uuid``, its user fields are replaced by the caller's, metadata is
        kept and ``_modified`` is refreshed. When the record was deleted or
        the ``_uuid`` differs, the caller's fields are added as a new record
        under the caller's ``_tag``.

        Args:
            record: Record mapping, normally obtained from ``data``.

        Returns:
            The same id when replaced, a new id when created, or None if the
            backend failed to persist the replacement.

        Raises:
            TagStoreValidationError: If record is not a mapping, or a new
                record has to be created without a usable ``_tag``.
        """
        if not isinstance(record, MappingABC):
            raise TagStoreValidationError(
                f"update requires a record mapping, got {type(record).__name__}."
            )
        current = self._backend.data(record)
        caller_uuid = record.get("_uuid")
        if current is not None and caller_uuid is not None and current.get("_uuid") == caller_uuid:
            stored = StoredRecord.from_payload(current)
            metadata = replace(stored.metadata, modified=int(time.time()))
            replaced_id = self._backend.update(
                StoredRecord(metadata, user_fields(record)).to_payload()
            )
            _LOGGER.info("record_updated", tag=metadata.tag, record_id=replaced_id)
            return replaced_id
        new_id = self.add(record.get("_tag"), record)
        _LOGGER.info("record_recreated", previous_id=record.get("_id"), record_id=new_id)
        return new_id

    def delete(self, record_id: Any) -> bool:
        """Delete a record by id or record; absent ids return False."""
        deleted = self._backend.delete(record_id)
        if deleted:
            _LOGGER.info("record_deleted", record_id=_describe_id(record_id))
        return deleted

    def taglist(self) -> set[str]:
        """Return every tag that currently holds records."""
        return set(self._backend.taglist())

    def search(self, ruleset: Ruleset) -> list[Record]:
        """Return records matching every rule in ``ruleset``."""
        return self._backend.search(_check_ruleset(ruleset, "search"))

    def count(self, ruleset: Ruleset | None = None) -> int:
        """Count matching records; all records when ``ruleset`` is omitted."""
        if ruleset is None:
            return self._backend.count()
        return self._backend.count(_check_ruleset(ruleset, "count"))

    def purge(self, ruleset: Ruleset) -> int:
        """Delete records matching ``ruleset`` and return how many went."""
        removed = self._backend.purge(_check_ruleset(ruleset, "purge"))
        _LOGGER.info("records_purged", removed=removed)
        return removed


def _resolve_timestamp(value: Any, default: int) -> int:
    """Turn a caller ``timestamp`` into epoch seconds.

    Args:
        value: Epoch number, digit string, date string, or None.
        default: Value used when ``value`` is None.

    Returns:
        Epoch seconds.

    Raises:
        TagStoreValidationError: If the value cannot be read as a date.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise TagStoreValidationError(
                f"Invalid {TIMESTAMP_INPUT_FIELD} value {value!r}: epoch seconds must be finite."
            )
        return int(value)
    moment = resolve_datetime(value) if isinstance(value, str) else None
    if moment is None:
        raise TagStoreValidationError(
            f"Invalid {TIMESTAMP_INPUT_FIELD} value {value!r}: expected epoch seconds "
            "or a date/time string such as '2014-06-02 12:34:56'."
        )
    return int(moment.timestamp())


def _check_ruleset(ruleset: Any, operation: str) -> Ruleset:
    if not isinstance(ruleset, MappingABC):
        raise TagStoreValidationError(
            f"{operation} requires a ruleset mapping, got {type(ruleset).__name__}."
        )
    return ruleset


def _describe_id(value: Any) -> Any:
    return value.get("_id") if isinstance(value, MappingABC) else value

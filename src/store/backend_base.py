"""Backend contract shared by every storage implementation.

A backend stores flat record mappings that already carry their metadata;
the ``DataStore`` façade generates that metadata. Any class implementing
``StorageBackend`` can be registered for a locator scheme.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping as MappingABC
from typing import Any

from core.constants import COUNT_ALL_RULESET
from core.errors import TagStoreValidationError
from core.types import Record, Ruleset


class StorageBackend(ABC):
    """Capability set every backend provides."""

    @abstractmethod
    def add(self, tag: str, record: Record) -> int:
        """Persist a new record under ``tag`` and return its new id.

        Empty records are a no-op returning 0.
        """

    @abstractmethod
    def data(self, record_id: Any) -> Record | None:
        """Return the record for a bare id or a record carrying ``_id``."""

    @abstractmethod
    def update(self, record: Record) -> int | None:
        """Rewrite an existing record in place, keyed by its ``_tag`` and ``_id``."""

    @abstractmethod
    def delete(self, record_id: Any) -> bool:
        """Remove a record; absent ids return False."""

    @abstractmethod
    def taglist(self) -> set[str]:
        """Return the tags that currently hold at least one record."""

    @abstractmethod
    def search(self, ruleset: Ruleset) -> list[Record]:
        """Return every record matching ``ruleset``."""

    @abstractmethod
    def count(self, ruleset: Ruleset | None = None) -> int:
        """Return the number of records matching ``ruleset``, all when omitted."""

    def purge(self, ruleset: Ruleset) -> int:
        """Delete every record matching ``ruleset``.

        Returns:
            Number of records actually deleted.
        """
        return sum(1 for record in self.search(ruleset) if self.delete(record["_id"]))


def resolve_record_id(value: Any) -> int | None:
    """Extract a record id from a bare id or a record mapping.

    Args:
        value: Integer id, integral float, digit string, or mapping with ``_id``.

    Returns:
        Positive integer id, or None when no usable id is present.
    """
    if isinstance(value, MappingABC):
        value = value.get("_id")
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
    try:
        record_id = int(value)
    except (TypeError, ValueError):
        return None
    return record_id if record_id > 0 else None


def check_record_payload(record: Any) -> bool:
    """Validate a record payload before it reaches storage.

    Args:
        record: Candidate record.

    Returns:
        False for an empty payload that should be skipped, True otherwise.

    Raises:
        TagStoreValidationError: If the payload is not a string-keyed mapping
            or a field holds a set.
    """
    if record is None:
        return False
    if not isinstance(record, MappingABC):
        raise TagStoreValidationError(
            f"Records must be mappings of field name to value, got {type(record).__name__}."
        )
    if not record:
        return False
    bad_keys = [key for key in record if not isinstance(key, str)]
    if bad_keys:
        raise TagStoreValidationError(
            f"Record field names must be strings, got {bad_keys!r}."
        )
    set_fields = sorted(
        key for key, value in record.items() if isinstance(value, (set, frozenset))
    )
    if set_fields:
        raise TagStoreValidationError(
            f"Fields {set_fields} hold sets, which cannot be stored. Convert them to lists."
        )
    return True


def default_ruleset(ruleset: Ruleset | None) -> Ruleset:
    """Return ``ruleset`` or the match-everything ruleset when omitted."""
    return COUNT_ALL_RULESET if ruleset is None else ruleset


def check_tag(tag: Any) -> str:
    """Validate a tag name before it is used as a storage key.

    Args:
        tag: Candidate tag.

    Returns:
        The tag unchanged.

    Raises:
        TagStoreValidationError: If the tag is empty, not a string, or not
            usable as a single directory name.
    """
    if not isinstance(tag, str) or not tag.strip():
        raise TagStoreValidationError(f"Tag must be a non-empty string, got {tag!r}.")
    if "/" in tag or "\\" in tag or tag.startswith("."):
        raise TagStoreValidationError(
            f"Invalid tag {tag!r}: tags cannot contain path separators or start with a dot."
        )
    return tag

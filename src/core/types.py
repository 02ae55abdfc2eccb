"""Shared typed models.

This module separates the system-owned record metadata from the open
user-field mapping, and converts between them and the flat wire form
that backends persist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

Record = dict[str, Any]
Rule = Mapping[str, Any]
Ruleset = Mapping[str, Rule]

# Wire field name for each RecordMetadata attribute.
METADATA_FIELDS: Mapping[str, str] = {
    "record_id": "_id",
    "tag": "_tag",
    "uuid": "_uuid",
    "timestamp": "_timestamp",
    "created": "_created",
    "modified": "_modified",
    "source": "_source",
}
RESERVED_FIELD_NAMES = frozenset(METADATA_FIELDS.values())


@dataclass(frozen=True)
class RecordMetadata:
    """System-owned metadata attached to every stored record.

    Attributes:
        record_id: Backend-assigned id, zero until the backend stamps it.
        tag: Category the record is grouped under.
        uuid: Creation-time token used for optimistic update checks.
        timestamp: Caller-supplied or creation epoch seconds.
        created: Creation epoch seconds.
        source: Originating host identity.
        modified: Epoch seconds of the last update, None before any update.
    """

    record_id: int
    tag: str
    uuid: str
    timestamp: int
    created: int
    source: str
    modified: int | None = None

    def to_fields(self) -> Record:
        """Render metadata as reserved wire fields.

        ``_id`` is left out until assigned and ``_modified`` until set.
        """
        fields: Record = {}
        for attribute, wire_name in METADATA_FIELDS.items():
            value = getattr(self, attribute)
            if attribute == "record_id" and not value:
                continue
            if attribute == "modified" and value is None:
                continue
            fields[wire_name] = value
        return fields

    @classmethod
    def from_fields(cls, payload: Mapping[str, Any]) -> "RecordMetadata":
        """Read metadata back from a stored wire record."""
        modified = payload.get("_modified")
        return cls(
            record_id=int(payload.get("_id") or 0),
            tag=str(payload.get("_tag", "")),
            uuid=str(payload.get("_uuid", "")),
            timestamp=int(payload.get("_timestamp") or 0),
            created=int(payload.get("_created") or 0),
            source=str(payload.get("_source", "")),
            modified=int(modified) if modified is not None else None,
        )


@dataclass(frozen=True)
class StoredRecord:
    """A record split into metadata and user fields.

    Attributes:
        metadata: System-owned metadata.
        fields: Caller-owned fields, never containing reserved names.
    """

    metadata: RecordMetadata
    fields: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Record:
        """Flatten into the single mapping handed to backends."""
        payload: Record = dict(self.fields)
        payload.update(self.metadata.to_fields())
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StoredRecord":
        """Split a flat stored mapping into metadata and user fields."""
        return cls(
            metadata=RecordMetadata.from_fields(payload),
            fields=user_fields(payload),
        )


def user_fields(payload: Mapping[str, Any]) -> Record:
    """Return a copy of ``payload`` without reserved metadata names."""
    return {key: value for key, value in payload.items() if key not in RESERVED_FIELD_NAMES}

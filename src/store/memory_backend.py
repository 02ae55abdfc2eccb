"""In-process record store.

Records live in a dict keyed by id and are deep-copied on the way in and
out, so callers never share state with the store. Contents vanish with the
instance.
"""

from __future__ import annotations

import copy
from typing import Any

from core.errors import TagStoreValidationError
from core.types import Record, Ruleset
from store.backend_base import (
    StorageBackend,
    check_record_payload,
    check_tag,
    default_ruleset,
    resolve_record_id,
)
from store.comparison import compile_ruleset


class MemoryBackend(StorageBackend):
    """Dict-backed implementation of the backend contract."""

    def __init__(self) -> None:
        self._records: dict[int, Record] = {}
        self._next_id = 0

    def add(self, tag: str, record: Record) -> int:
        if not check_record_payload(record):
            return 0
        check_tag(tag)
        self._next_id += 1
        payload = copy.deepcopy(dict(record))
        payload["_id"] = self._next_id
        self._records[self._next_id] = payload
        return self._next_id

    def data(self, record_id: Any) -> Record | None:
        record = self._records.get(resolve_record_id(record_id) or 0)
        return copy.deepcopy(record) if record is not None else None

    def update(self, record: Record) -> int | None:
        record_id = resolve_record_id(record)
        if record_id is None:
            raise TagStoreValidationError("Backend update requires a record carrying _id.")
        check_tag(record.get("_tag"))
        self._records[record_id] = copy.deepcopy(dict(record))
        return record_id

    def delete(self, record_id: Any) -> bool:
        return self._records.pop(resolve_record_id(record_id) or 0, None) is not None

    def taglist(self) -> set[str]:
        return {str(record["_tag"]) for record in self._records.values() if "_tag" in record}

    def search(self, ruleset: Ruleset) -> list[Record]:
        compiled = compile_ruleset(ruleset)
        return [
            copy.deepcopy(self._records[record_id])
            for record_id in sorted(self._records)
            if compiled.matches(self._records[record_id])
        ]

    def count(self, ruleset: Ruleset | None = None) -> int:
        compiled = compile_ruleset(default_ruleset(ruleset))
        return sum(1 for record in self._records.values() if compiled.matches(record))

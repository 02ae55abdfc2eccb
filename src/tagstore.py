"""Public SDK surface for tagstore.

This module provides a stable import path for library users.
It re-exports the store façade, configuration and error types.
"""

from __future__ import annotations

from core.config import StoreConfig
from core.errors import (
    TagStoreComparisonError,
    TagStoreConfigError,
    TagStoreError,
    TagStoreIOError,
    TagStoreValidationError,
)
from core.store_locator import StoreLocator, parse_store_locator
from core.types import RecordMetadata, StoredRecord
from store.backend_base import StorageBackend
from store.backend_registry import create_backend, register_backend, registered_schemes
from store.comparison import compile_ruleset, matches
from store.data_store import DataStore
from store.file_backend import FileBackend
from store.memory_backend import MemoryBackend

__all__ = [
    "DataStore",
    "FileBackend",
    "MemoryBackend",
    "RecordMetadata",
    "StorageBackend",
    "StoreConfig",
    "StoreLocator",
    "StoredRecord",
    "TagStoreComparisonError",
    "TagStoreConfigError",
    "TagStoreError",
    "TagStoreIOError",
    "TagStoreValidationError",
    "compile_ruleset",
    "create_backend",
    "matches",
    "parse_store_locator",
    "register_backend",
    "registered_schemes",
]

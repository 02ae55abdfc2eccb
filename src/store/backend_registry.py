"""Locator scheme to backend constructor registry.

Backends are looked up by the scheme of a storage locator. The built-in
``file`` and ``memory`` schemes are registered at import; further
implementations of ``StorageBackend`` can be added with
``register_backend``.
"""

from __future__ import annotations

from typing import Callable

from core.constants import DEFAULT_CODEC_NAME
from core.errors import TagStoreConfigError
from core.store_locator import StoreLocator, parse_store_locator
from store.backend_base import StorageBackend
from store.file_backend import FileBackend
from store.memory_backend import MemoryBackend

BackendFactory = Callable[[StoreLocator, str], StorageBackend]

_REGISTRY: dict[str, BackendFactory] = {}


def register_backend(scheme: str, factory: BackendFactory) -> None:
    """Register a constructor for a locator scheme.

    Args:
        scheme: Locator scheme, case-insensitive.
        factory: Callable taking the parsed locator and the default codec name.
    """
    _REGISTRY[scheme.strip().lower()] = factory


def registered_schemes() -> tuple[str, ...]:
    """Return registered schemes in sorted order."""
    return tuple(sorted(_REGISTRY))


def create_backend(
    locator: str | StoreLocator,
    default_codec: str = DEFAULT_CODEC_NAME,
) -> StorageBackend:
    """Build the backend a locator points at.

    Args:
        locator: Raw or parsed storage locator.
        default_codec: Codec used when the locator names none.

    Returns:
        Backend instance.

    Raises:
        TagStoreConfigError: For malformed locators or unknown schemes.
    """
    parsed = parse_store_locator(locator) if isinstance(locator, str) else locator
    factory = _REGISTRY.get(parsed.scheme)
    if factory is None:
        raise TagStoreConfigError(
            f"No backend registered for scheme '{parsed.scheme}'. "
            f"Use one of: {', '.join(registered_schemes())}."
        )
    return factory(parsed, default_codec)


def _build_file_backend(locator: StoreLocator, default_codec: str) -> StorageBackend:
    if not locator.target:
        raise TagStoreConfigError(
            f"File locator '{locator.raw}' has no path. Use file:///path/to/store."
        )
    return FileBackend(locator.target, codec_name=locator.params.get("codec", default_codec))


def _build_memory_backend(locator: StoreLocator, default_codec: str) -> StorageBackend:
    return MemoryBackend()


register_backend("file", _build_file_backend)
register_backend("memory", _build_memory_backend)

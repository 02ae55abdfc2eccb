"""Unit tests for locator scheme dispatch."""

from __future__ import annotations

import pytest

from core.errors import TagStoreConfigError
from store.backend_registry import create_backend, register_backend, registered_schemes
from store.file_backend import FileBackend
from store.memory_backend import MemoryBackend


def test_builtin_schemes_are_registered() -> None:
    """file and memory should be available without setup."""
    assert {"file", "memory"} <= set(registered_schemes())


def test_file_locator_builds_file_backend(tmp_path) -> None:
    """A file locator should open a store at its path with its codec."""
    backend = create_backend(f"file://{tmp_path};codec=msgpack")

    assert isinstance(backend, FileBackend) and backend.codec.name == "msgpack"


def test_file_locator_falls_back_to_default_codec(tmp_path) -> None:
    """Without a codec parameter the configured default is used."""
    backend = create_backend(f"file://{tmp_path}", default_codec="msgpack")

    assert isinstance(backend, FileBackend) and backend.codec.name == "msgpack"


def test_unknown_scheme_is_a_config_error() -> None:
    """Schemes without a registered backend fail fast."""
    with pytest.raises(TagStoreConfigError, match="mongo"):
        create_backend("mongo://db.local;user=app")


def test_registered_factory_receives_locator() -> None:
    """Custom backends plug in through the registry."""
    seen = {}

    def factory(locator, default_codec):
        seen["params"] = dict(locator.params)
        return MemoryBackend()

    register_backend("scratch", factory)

    backend = create_backend("scratch://anything;mode=fast")

    assert isinstance(backend, MemoryBackend) and seen["params"] == {"mode": "fast"}

"""Unit tests for persisted id allocation."""

from __future__ import annotations

import json

import pytest

from core.errors import TagStoreIOError
from store.codecs import get_codec
from store.id_allocator import IdAllocator


def test_allocator_writes_default_settings(tmp_path) -> None:
    """A fresh allocator should persist next_id 0."""
    settings_path = tmp_path / "settings.json"

    IdAllocator(settings_path, get_codec("json"))

    assert json.loads(settings_path.read_text(encoding="utf-8")) == {"next_id": 0}


def test_allocate_starts_at_one_and_persists(tmp_path) -> None:
    """Allocation should survive a new allocator over the same file."""
    settings_path = tmp_path / "settings.json"
    IdAllocator(settings_path, get_codec("json")).allocate()

    second_id = IdAllocator(settings_path, get_codec("json")).allocate()

    assert second_id == 2


def test_allocate_skips_ahead_by_step(tmp_path) -> None:
    """A larger step should leave a gap in the sequence."""
    allocator = IdAllocator(tmp_path / "settings.json", get_codec("json"))
    allocator.allocate()

    assert allocator.allocate(step=3) == 4


def test_allocate_rereads_settings_each_time(tmp_path) -> None:
    """Another writer's allocation should be seen by the next call."""
    settings_path = tmp_path / "settings.json"
    first = IdAllocator(settings_path, get_codec("json"))
    second = IdAllocator(settings_path, get_codec("json"))
    first.allocate()

    assert second.allocate() == 2


def test_corrupt_settings_raise_io_error(tmp_path) -> None:
    """Unreadable settings should not silently reset the counter."""
    settings_path = tmp_path / "settings.json"
    allocator = IdAllocator(settings_path, get_codec("json"))
    settings_path.write_text("{broken", encoding="utf-8")

    with pytest.raises(TagStoreIOError):
        allocator.allocate()

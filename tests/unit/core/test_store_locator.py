"""Unit tests for storage locator parsing."""

from __future__ import annotations

import pytest

from core.errors import TagStoreConfigError
from core.store_locator import parse_store_locator


def test_parse_file_locator_keeps_absolute_path() -> None:
    """Everything after :// is the file backend target."""
    locator = parse_store_locator("file:///var/lib/tagstore")

    assert (locator.scheme, locator.target) == ("file", "/var/lib/tagstore")


def test_parse_locator_collects_trimmed_params() -> None:
    """Semicolon separated pairs become trimmed parameters."""
    locator = parse_store_locator("Redis://cache.local ; port = 6379;db=2;junk")

    assert locator.scheme == "redis"
    assert locator.target == "cache.local"
    assert dict(locator.params) == {"port": "6379", "db": "2"}


def test_parse_locator_rejects_missing_scheme() -> None:
    """Locators without scheme:// should fail as config errors."""
    with pytest.raises(TagStoreConfigError):
        parse_store_locator("/tmp/store")

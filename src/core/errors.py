"""Tagstore exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each layer raises a specific error type so callers can react precisely.
"""

from __future__ import annotations


class TagStoreError(Exception):
    """Base exception for all tagstore failures."""


class TagStoreConfigError(TagStoreError):
    """Raised for invalid configuration, locators, or codecs."""


class TagStoreValidationError(TagStoreError):
    """Raised when a record or ruleset has the wrong shape."""


class TagStoreComparisonError(TagStoreError):
    """Raised for unknown comparators or invalid rule operands."""


class TagStoreIOError(TagStoreError, OSError):
    """Raised for codec and filesystem access failures."""


class TagStoreDependencyError(TagStoreError):
    """Raised when an optional runtime dependency is missing."""

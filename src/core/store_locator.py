"""Storage locator parsing helpers.

A locator has the form ``<scheme>://<target>[;key=value;...]``. The scheme
selects a backend, the target is a path or host, and the optional pairs
carry backend parameters such as the codec name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Mapping

from core.errors import TagStoreConfigError

_SCHEME_PATTERN = re.compile(r"^(?P<scheme>\w+)://(?P<rest>.*)$", re.DOTALL)


@dataclass(frozen=True)
class StoreLocator:
    """Parsed storage locator model."""

    scheme: str
    target: str
    params: Mapping[str, str] = field(default_factory=dict)
    raw: str = ""


def parse_store_locator(locator: str) -> StoreLocator:
    """Parse and validate a storage locator.

    Args:
        locator: Locator string such as ``file:///var/lib/store;codec=json``.

    Returns:
        Parsed scheme, target and parameter mapping.

    Raises:
        TagStoreConfigError: If the locator has no ``scheme://`` prefix.
    """
    match = _SCHEME_PATTERN.match(locator.strip())
    if match is None:
        raise TagStoreConfigError(
            f"Invalid storage locator '{locator}': expected <scheme>://<path-or-host>. "
            "Use for example file:///tmp/store or memory://."
        )
    target, *pairs = match.group("rest").split(";")
    params: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        if key.strip():
            params[key.strip()] = value.strip()
    return StoreLocator(
        scheme=match.group("scheme").lower(),
        target=target.strip(),
        params=params,
        raw=locator,
    )

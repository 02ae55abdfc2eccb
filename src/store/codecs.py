"""Record codecs for on-disk persistence.

A codec turns a record mapping into bytes and back. The codec name doubles
as the file extension, so stores written with different codecs can share a
directory tree without reading each other's files.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from core.constants import SUPPORTED_CODEC_NAMES
from core.errors import TagStoreConfigError, TagStoreIOError


class RecordCodec:
    """Base codec interface."""

    name = ""

    @property
    def extension(self) -> str:
        return f".{self.name}"

    def encode(self, payload: Mapping[str, Any]) -> bytes:
        raise NotImplementedError

    def decode(self, raw: bytes) -> Any:
        raise NotImplementedError


class JsonCodec(RecordCodec):
    """UTF-8 JSON codec, the default."""

    name = "json"

    def encode(self, payload: Mapping[str, Any]) -> bytes:
        try:
            return json.dumps(payload, sort_keys=True).encode("utf-8")
        except (TypeError, ValueError) as error:
            raise TagStoreIOError(
                f"Failed to encode record as JSON: {error}. "
                "Store only JSON-compatible scalars, lists and mappings."
            ) from error

    def decode(self, raw: bytes) -> Any:
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            raise TagStoreIOError(f"Failed to decode JSON record: {error}.") from error


class MsgpackCodec(RecordCodec):
    """Binary msgpack codec."""

    name = "msgpack"

    def encode(self, payload: Mapping[str, Any]) -> bytes:
        import msgpack

        try:
            return msgpack.packb(payload, use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as error:
            raise TagStoreIOError(
                f"Failed to encode record as msgpack: {error}. "
                "Store only msgpack-compatible scalars, lists and mappings."
            ) from error

    def decode(self, raw: bytes) -> Any:
        import msgpack

        try:
            return msgpack.unpackb(raw, raw=False, strict_map_key=False)
        except (ValueError, TypeError, msgpack.exceptions.UnpackException) as error:
            raise TagStoreIOError(f"Failed to decode msgpack record: {error}.") from error


_CODECS: Mapping[str, type[RecordCodec]] = {
    JsonCodec.name: JsonCodec,
    MsgpackCodec.name: MsgpackCodec,
}


def supported_codecs() -> tuple[str, ...]:
    """Return the codec names accepted by ``get_codec``."""
    return SUPPORTED_CODEC_NAMES


def get_codec(name: str) -> RecordCodec:
    """Build a codec by name.

    Args:
        name: Codec name, case-insensitive.

    Returns:
        Codec instance.

    Raises:
        TagStoreConfigError: If the codec is unknown.
    """
    codec_class = _CODECS.get(name.strip().lower())
    if codec_class is None:
        raise TagStoreConfigError(
            f"Unknown codec '{name}'. Use one of: {', '.join(supported_codecs())}."
        )
    return codec_class()

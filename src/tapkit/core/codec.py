"""
Record codecs for the generic-object dataset format.

A codec turns a typed value into bytes and back. Object shards store one record
per line as base64 text, so this module also owns the base64 framing used by
both the eager reader (ObjectFileTap.value) and the pipeline reader
(PipelineContext.object_file). Sharing these helpers keeps both read paths on
the identical codec and encoding.

Responsibilities
- Define the RecordCodec protocol (encode/decode) and two implementations:
  PickleCodec for arbitrary Python objects and JsonCodec for JSON-native values.
- Carry the element type tag on the codec itself; decode checks the tag instead of
  inspecting types at the call site.
- Provide encode_to_base64 / decode_from_base64 for line framing.

Notes:
    - Codecs are deterministic for a given value: PickleCodec pins the pickle protocol and
      JsonCodec uses the canonical JSON policy from tapkit.core.serde.
    - Decode failures surface as tapkit.core.errors.CodecError; nothing is skipped or
      replaced with a default.
    - Only unpickle data you trust; pickle can execute code on load.

Examples:
    >>> from tapkit.core.codec import PickleCodec, decode_from_base64, encode_to_base64
    >>> codec = PickleCodec(int)
    >>> decode_from_base64(codec, encode_to_base64(codec, 42))
    42
"""

from __future__ import annotations

import base64
import binascii
import json
import pickle
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, get_origin

from .errors import CodecError
from .serde import json_dumps_canonical, json_loads

__all__ = [
    "PICKLE_PROTOCOL",
    "RecordCodec",
    "PickleCodec",
    "JsonCodec",
    "encode_to_base64",
    "decode_from_base64",
]

T = TypeVar("T")

# Fixed protocol for every encode.
PICKLE_PROTOCOL: int = 5


class RecordCodec(Protocol[T]):
    """Converts values of one element type to bytes and back."""

    def encode(self, value: T) -> bytes: ...

    def decode(self, data: bytes) -> T: ...


def _require_plain_class(type_: Any) -> None:
    if type_ is not None and (not isinstance(type_, type) or get_origin(type_) is not None):
        raise TypeError(f"codec type tag must be a plain class, got {type_!r}")


def _check_type(value: Any, type_: type | None) -> None:
    if type_ is None:
        return
    if type(value) is bool and type_ is int:
        raise CodecError("decoded value has type bool, expected int")
    if not isinstance(value, type_):
        raise CodecError(
            f"decoded value has type {type(value).__name__}, expected {type_.__name__}"
        )


@dataclass(frozen=True)
class PickleCodec(Generic[T]):
    """
    Codec for arbitrary picklable Python objects.

    Attributes:
        type_ (type | None): Element type tag. When set, decode() rejects values of
            any other type with CodecError; None accepts any decoded object. Must be a
            plain class (not list[int]); bool does not satisfy an int tag.
    """

    type_: type[T] | None = None

    def __post_init__(self) -> None:
        _require_plain_class(self.type_)

    def encode(self, value: T) -> bytes:
        return pickle.dumps(value, protocol=PICKLE_PROTOCOL)

    def decode(self, data: bytes) -> T:
        try:
            value = pickle.loads(data)
        except Exception as exc:
            raise CodecError(f"failed to unpickle record: {exc}") from exc
        _check_type(value, self.type_)
        return value


@dataclass(frozen=True)
class JsonCodec(Generic[T]):
    """
    Codec for JSON-native values (dict, list, str, int, float, bool, None).

    Attributes:
        type_ (type | None): Element type tag checked on decode.

    Notes:
        Tuples encode as JSON arrays and decode as lists; use PickleCodec where the
        exact container type must survive the round trip.
    """

    type_: type[T] | None = None

    def __post_init__(self) -> None:
        _require_plain_class(self.type_)

    def encode(self, value: T) -> bytes:
        return json_dumps_canonical(value).encode("utf-8")

    def decode(self, data: bytes) -> T:
        try:
            value = json_loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CodecError(f"failed to decode JSON record: {exc}") from exc
        _check_type(value, self.type_)
        return value


def encode_to_base64(codec: RecordCodec[T], value: T) -> str:
    """
    Encode a value with codec and frame it as a single base64 line.

    Args:
        codec (RecordCodec[T]): Codec for the element type.
        value (T): Value to encode.

    Returns:
        str: Standard base64 text (no newline).
    """
    return base64.b64encode(codec.encode(value)).decode("ascii")


def decode_from_base64(codec: RecordCodec[T], text: str) -> T:
    """
    Decode one base64 line produced by encode_to_base64.

    Args:
        codec (RecordCodec[T]): Codec for the element type; must match the writer's.
        text (str): Base64 text, surrounding whitespace ignored.

    Returns:
        T: Decoded value.

    Raises:
        CodecError: If text is not valid base64 or the codec rejects the payload.
    """
    try:
        data = base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CodecError(f"invalid base64 record: {exc}") from exc
    return codec.decode(data)

"""
Core exception types raised by record codecs.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Codecs in tapkit.core.codec raise CodecError when bytes or text do not decode
      into the expected type; IO-layer failures live in tapkit.io.errors.

Examples:
    >>> from tapkit.core.errors import CodecError
    >>> try:
    ...     raise CodecError("expected int, decoded str")
    ... except ValueError as e:
    ...     msg = str(e)
    >>> "expected int" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "CodecError",
]


class CodecError(ValueError):
    """Encoded record does not decode into the codec's declared type."""

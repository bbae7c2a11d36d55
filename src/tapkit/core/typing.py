"""
Lightweight typing aliases shared by codecs, taps and the registry.

This module contains no runtime logic and is zero-IO.

Examples:
    >>> from tapkit.core.typing import RegistryId, TableRow
    >>> def describe(rid: RegistryId) -> str:
    ...     return f"mem:{rid}"
    >>> describe(RegistryId("abc"))
    'mem:abc'
    >>> row: TableRow = {"name": "a", "count": 1}
"""

from __future__ import annotations

from typing import Any, NewType

__all__ = [
    "RegistryId",
    "TableRow",
]

# Opaque token naming an in-process dataset buffer (uuid4 hex).
RegistryId = NewType("RegistryId", str)

# Structured row decoded from JSON or fetched from a remote table.
TableRow = dict[str, Any]

"""
Canonical JSON serialization/deserialization for structured rows.

Provides one canonical JSON policy used by the JSON-row writers, the JSON-row
readers and JsonCodec, so that a row written by one component decodes
identically in every other. This module is zero-IO.

Notes:
    - Canonical JSON:
        - sort_keys=True
        - separators=(",", ":")
        - ensure_ascii=False
    - Canonical output never contains a raw newline, so one document fits on one line
      of a line-delimited shard.
"""

from __future__ import annotations

import json
from typing import Any

__all__ = [
    "json_loads",
    "json_dumps_canonical",
]


def json_dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj (Any): JSON-serializable object.

    Returns:
        str: Canonical JSON string with sort_keys=True, compact separators,
        and ensure_ascii=False.

    Notes:
        This function assumes the input is JSON-serializable and does not perform
        coercion of unsupported types (json raises TypeError for those).
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def json_loads(s: str) -> Any:
    """
    Deserialize a JSON string to Python objects using the stdlib json module.

    Args:
        s (str): JSON string to parse.

    Returns:
        Any: Decoded Python object (dict, list, str, int, float, bool, or None).

    Raises:
        json.JSONDecodeError: If s is not valid JSON.
    """
    return json.loads(s)

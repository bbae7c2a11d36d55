"""
Path and layout helpers for tapkit.io.

Overview (file protocol baseline)
- <dataset_dir>/part-00000-of-00002.<suffix>
- <dataset_dir>/part-00001-of-00002.<suffix>
- <dataset_dir>/.part-00000-of-00002.<suffix>.<uuid>.tmp  (in-flight writes only)

Notes
- A dataset is the union of files matching <dataset_dir>/part-*. Temporary files start
  with a dot so they are never picked up by the shard glob.
- This module focuses solely on path construction; tapkit.io.fs performs the IO.
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from typing import Final

from tapkit.core.constants import SHARD_GLOB, SHARD_PREFIX

_TMP_SUFFIX: Final[str] = ".tmp"


@dataclass(frozen=True, slots=True)
class ShardPaths:
    """
    Temporary and final file paths for one shard write.

    Attributes:
        tmp_path (str): Hidden temporary file path under the dataset directory.
        final_path (str): Final shard path visible to readers.
    """

    tmp_path: str
    final_path: str


def shard_glob(path: str) -> str:
    """
    Wildcard pattern matching every shard of a dataset directory.

    Args:
        path (str): Dataset directory.

    Returns:
        str: "<path>/part-*".
    """
    return os.path.join(path, SHARD_GLOB)


def format_shard_name(index: int, total: int, suffix: str = "") -> str:
    """
    Format a shard file name as 'part-00001-of-00004<suffix>'.

    Args:
        index (int): Zero-based shard index.
        total (int): Total number of shards (>= 1).
        suffix (str): File extension including the dot (e.g., ".txt").

    Returns:
        str: Formatted file name. Names sort in index order.

    Raises:
        ValueError: If total < 1 or index is outside [0, total).
    """
    if total < 1:
        raise ValueError("total must be >= 1")
    if not 0 <= index < total:
        raise ValueError(f"index must be in [0, {total}), got {index}")
    return f"{SHARD_PREFIX}{index:05d}-of-{total:05d}{suffix}"


def is_shard_name(name: str) -> bool:
    """Return True if a base file name is a visible shard name."""
    return name.startswith(SHARD_PREFIX)


def shard_paths(path: str, index: int, total: int, suffix: str = "") -> ShardPaths:
    """
    Compute tmp and final paths for one shard of a dataset directory.

    Args:
        path (str): Dataset directory.
        index (int): Zero-based shard index.
        total (int): Total number of shards.
        suffix (str): File extension including the dot.

    Returns:
        ShardPaths: tmp path ".part-...<suffix>.<uuid>.tmp" and final path "part-...<suffix>".
    """
    name = format_shard_name(index, total, suffix)
    tmp_name = f".{name}.{uuid.uuid4().hex}{_TMP_SUFFIX}"
    return ShardPaths(
        tmp_path=os.path.join(path, tmp_name),
        final_path=os.path.join(path, name),
    )

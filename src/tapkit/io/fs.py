"""
Filesystem helpers for tapkit.io (file protocol baseline).

Responsibilities
- Resolve a dataset directory to its concrete shard files (list_shards / glob_shards).
  Eager reads (Tap.value) and pipeline reads (PipelineContext) both resolve shards here,
  so they always see the same set.
- Stream shard lines without loading whole files.
- Provide the atomic write path used by tapkit.io.write: tmp write → fsync → atomic rename.

Import DAG discipline
- stdlib + tapkit.io.errors only; remote object stores can be layered later behind the
  same interface. Paths carrying a URL scheme (gs://, s3://, ...) are rejected.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same filesystem.
- All helpers are synchronous; callers decide on concurrency/locking if/when needed.
"""

from __future__ import annotations

import glob
import logging
import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from .errors import IoConfigError, IoDecodeError, IoNotFoundError
from .paths import shard_glob

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def require_local(path: str) -> str:
    """
    Reject paths addressed to a non-local filesystem.

    Args:
        path (str): Path or pattern to check.

    Returns:
        str: The path, unchanged (file:// prefixes are stripped).

    Raises:
        IoConfigError: If the path carries a URL scheme other than file://.
    """
    if path.startswith("file://"):
        return path[len("file://") :]
    if _SCHEME_RE.match(path):
        raise IoConfigError(f"unsupported filesystem protocol in path {path!r}; only local paths are supported")
    return path


def makedirs(path: str, exist_ok: bool = True) -> None:
    """
    Create directories recursively.

    Args:
        path (str): Directory path to create.
        exist_ok (bool): Do not error if the directory already exists.
    """
    os.makedirs(path, exist_ok=exist_ok)


@contextmanager
def open_write(path: str) -> Iterator[BinaryIO]:
    """
    Open a file for binary write as a context manager.

    Args:
        path (str): Destination path to open in write-binary mode.

    Yields:
        BinaryIO: A writable file handle.

    Notes:
        Caller is responsible for fsync and the atomic os.replace of the temporary
        file to its final path.
    """
    fh = open(path, "wb")
    try:
        yield fh
    finally:
        fh.close()


def fsync_path(path: str) -> None:
    """
    Open a path read-only and fsync its file descriptor.

    Args:
        path (str): Path to an already-written file.

    Notes:
        Useful when a library wrote to a path directly (e.g., pyarrow.parquet.write_table),
        and you want to ensure data hits the disk before an atomic rename operation.
    """
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def rename_atomic(src: str, dst: str) -> None:
    """
    Atomically rename src -> dst on the same filesystem.

    Args:
        src (str): Existing source path (typically a temporary file).
        dst (str): Final destination path.
    """
    os.replace(src, dst)


def remove_quietly(path: str) -> None:
    """Remove a file if present; used for tmp cleanup after a failed write."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def glob_shards(pattern: str) -> list[str]:
    """
    Resolve a shard pattern like "<dir>/part-*" to concrete shard files.

    Args:
        pattern (str): Dataset directory joined with a wildcard file pattern. Only the
            final path component is treated as a wildcard; the directory is matched literally.

    Returns:
        list[str]: Sorted shard paths (regular files only).

    Raises:
        IoConfigError: If the pattern addresses a non-local filesystem.
        IoNotFoundError: If the directory is missing or no shard matches.
    """
    pattern = require_local(pattern)
    directory, file_pattern = os.path.split(pattern)
    if not os.path.isdir(directory or "."):
        raise IoNotFoundError(f"dataset directory not found: {directory!r}")
    matches = glob.glob(os.path.join(glob.escape(directory), file_pattern))
    shards = sorted(p for p in matches if os.path.isfile(p))
    if not shards:
        raise IoNotFoundError(f"no shards match {pattern!r}")
    logger.debug("resolved %d shard(s) for %s", len(shards), pattern)
    return shards


def list_shards(path: str) -> list[str]:
    """
    List the shards of a dataset directory.

    Args:
        path (str): Dataset directory.

    Returns:
        list[str]: Sorted shard paths matching "<path>/part-*".

    Raises:
        IoNotFoundError: If the directory is missing or holds no shard.
    """
    return glob_shards(shard_glob(path))


def iter_lines(path: str, encoding: str = "utf-8") -> Iterator[str]:
    """
    Stream the lines of a shard, without line terminators.

    Args:
        path (str): Shard file path.
        encoding (str): Text encoding of the shard.

    Yields:
        str: Each line with its trailing "\\n" removed. A final line without a
        terminator is still yielded; an empty file yields nothing.

    Raises:
        IoNotFoundError: If the shard disappeared after listing.
        IoDecodeError: If a line is not valid in the given encoding.
    """
    try:
        fh = open(path, "rb")
    except FileNotFoundError as exc:
        raise IoNotFoundError(f"shard not found: {path!r}") from exc
    with fh:
        for lineno, raw in enumerate(fh, start=1):
            if raw.endswith(b"\n"):
                raw = raw[:-1]
            try:
                yield raw.decode(encoding)
            except UnicodeDecodeError as exc:
                raise IoDecodeError(f"{path}:{lineno}: not valid {encoding} text: {exc}") from exc


def has_shards(path: str) -> bool:
    """Return True if a dataset directory already holds at least one shard file."""
    path = require_local(path)
    return any(os.path.isfile(p) for p in glob.glob(shard_glob(glob.escape(path))))

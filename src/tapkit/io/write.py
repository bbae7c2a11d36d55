"""
Sharded writers that publish datasets and return taps over them.

Overview
- write_text / write_table_row_json / write_object_file: line-oriented shards.
- write_parquet: Parquet shards written through pyarrow (rows or a polars DataFrame).
- write_in_memory: publishes records in an InMemoryRegistry.

Every file writer splits its records into IoSettings.num_shards contiguous chunks,
so reading shards in name order returns the records in write order. Each shard goes
through the atomic path tmp → fsync → os.replace; tmp names start with a dot and are
never matched by the part-* glob, so readers never observe a partial shard.

Notes
- Single-writer semantics: writing into a directory that already holds shards raises
  IoWriteError, so the shard set behind a published tap never changes.
- Records are encoded before any file is created; an unencodable record leaves no shards.
- A shard that fails to commit rolls back the shards already committed by the same call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq

from tapkit.core.codec import RecordCodec, encode_to_base64
from tapkit.core.constants import JSON_SUFFIX, OBJECT_SUFFIX, PARQUET_SUFFIX, TEXT_SUFFIX
from tapkit.core.serde import json_dumps_canonical
from tapkit.core.typing import TableRow

from .config import IoSettings
from .errors import IoWriteError
from .fs import fsync_path, has_shards, makedirs, open_write, remove_quietly, rename_atomic, require_local
from .paths import ShardPaths, shard_paths
from .registry import InMemoryRegistry, default_registry
from .taps import InMemoryTap, ObjectFileTap, ParquetTap, TableRowJsonTap, TextTap

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _chunk_bounds(n_records: int, n_shards: int) -> list[tuple[int, int]]:
    """
    Split [0, n_records) into n_shards contiguous, near-equal ranges.

    Returns:
        list[tuple[int, int]]: (start, stop) per shard; trailing ranges may be empty.
    """
    size, extra = divmod(n_records, n_shards)
    bounds: list[tuple[int, int]] = []
    start = 0
    for i in range(n_shards):
        stop = start + size + (1 if i < extra else 0)
        bounds.append((start, stop))
        start = stop
    return bounds


def _prepare_dir(settings: IoSettings, path: str) -> str:
    settings.validate()
    local = require_local(path)
    if has_shards(local):
        raise IoWriteError(f"dataset directory {path!r} already holds shards")
    makedirs(local, exist_ok=True)
    return local


def _commit(ppaths: ShardPaths, write: Callable[[str], None]) -> None:
    """
    Write one shard to its tmp path, fsync, then rename it into place.

    Raises:
        IoWriteError: If any step fails; the tmp file is removed best-effort.
    """
    try:
        write(ppaths.tmp_path)
        fsync_path(ppaths.tmp_path)
        rename_atomic(ppaths.tmp_path, ppaths.final_path)
    except (OSError, ValueError, pa.ArrowException) as exc:
        remove_quietly(ppaths.tmp_path)
        raise IoWriteError(f"failed to write shard {ppaths.final_path}: {exc}") from exc


def _publish(
    settings: IoSettings,
    path: str,
    n_records: int,
    suffix: str,
    writer_for: Callable[[int, int], Callable[[str], None]],
) -> None:
    """
    Commit every shard of a dataset, or none of them.

    Args:
        writer_for (Callable[[int, int], Callable[[str], None]]): Maps a (start, stop)
            record range to a function writing that range to a tmp path.

    Raises:
        IoWriteError: If a shard fails; shards already committed by this call are removed.
    """
    local = _prepare_dir(settings, path)
    total = settings.num_shards
    committed: list[str] = []
    try:
        for index, (start, stop) in enumerate(_chunk_bounds(n_records, total)):
            ppaths = shard_paths(local, index, total, suffix)
            _commit(ppaths, writer_for(start, stop))
            committed.append(ppaths.final_path)
    except IoWriteError:
        for final in committed:
            remove_quietly(final)
        logger.warning("rolled back %d shard(s) under %s after a failed write", len(committed), path)
        raise


def _encode_lines(lines: Sequence[str], encoding: str) -> list[bytes]:
    encoded: list[bytes] = []
    for i, line in enumerate(lines):
        try:
            encoded.append(line.encode(encoding) + b"\n")
        except (UnicodeEncodeError, LookupError) as exc:
            raise IoWriteError(f"record {i} cannot be encoded as {encoding}: {exc}") from exc
    return encoded


def _write_lines(settings: IoSettings, path: str, lines: Sequence[str], suffix: str) -> None:
    encoded = _encode_lines(lines, settings.text_encoding)

    def writer_for(start: int, stop: int) -> Callable[[str], None]:
        def write(tmp: str) -> None:
            with open_write(tmp) as fh:
                fh.writelines(encoded[start:stop])

        return write

    _publish(settings, path, len(encoded), suffix, writer_for)
    logger.info("wrote %d records to %d shard(s) under %s", len(lines), settings.num_shards, path)


def write_text(settings: IoSettings, path: str, records: Iterable[str]) -> TextTap:
    """
    Write strings as newline-delimited text shards.

    Args:
        settings (IoSettings): Shard count and text encoding.
        path (str): Dataset directory (created if missing; must not hold shards).
        records (Iterable[str]): Lines to write; none may contain "\\n".

    Returns:
        TextTap: Tap over the written dataset.

    Raises:
        IoWriteError: If a record contains a newline, the directory already holds
            shards, or a shard write fails.
    """
    lines = list(records)
    for i, line in enumerate(lines):
        if "\n" in line:
            raise IoWriteError(f"text record {i} contains a newline and cannot be stored as one line")
    _write_lines(settings, path, lines, TEXT_SUFFIX)
    return TextTap(path, encoding=settings.text_encoding)


def write_table_row_json(settings: IoSettings, path: str, rows: Iterable[TableRow]) -> TableRowJsonTap:
    """
    Write structured rows as canonical JSON, one object per line.

    Raises:
        IoWriteError: If a row is not a dict or is not JSON-serializable.
    """
    lines: list[str] = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise IoWriteError(f"row {i} is a {type(row).__name__}, expected dict")
        try:
            lines.append(json_dumps_canonical(row))
        except (TypeError, ValueError) as exc:
            raise IoWriteError(f"row {i} is not JSON-serializable: {exc}") from exc
    _write_lines(settings, path, lines, JSON_SUFFIX)
    return TableRowJsonTap(path, encoding=settings.text_encoding)


def write_object_file(
    settings: IoSettings, path: str, values: Iterable[T], codec: RecordCodec[T]
) -> ObjectFileTap[T]:
    """
    Write arbitrary values as base64-framed codec records, one per line.

    Args:
        settings (IoSettings): Shard count and text encoding.
        path (str): Dataset directory.
        values (Iterable[T]): Values to encode.
        codec (RecordCodec[T]): Codec used for encoding; the returned tap decodes with it.

    Returns:
        ObjectFileTap[T]: Tap bound to the same codec.
    """
    lines = [encode_to_base64(codec, v) for v in values]
    _write_lines(settings, path, lines, OBJECT_SUFFIX)
    return ObjectFileTap(path, codec, encoding=settings.text_encoding)


def _to_arrow(rows: Iterable[TableRow] | pl.DataFrame, schema: pa.Schema | None) -> pa.Table:
    try:
        if isinstance(rows, pl.DataFrame):
            table = rows.to_arrow()
            return table.cast(schema) if schema is not None else table
        records = list(rows)
        if not records and schema is None:
            raise IoWriteError("cannot infer a parquet schema from zero rows; pass schema")
        return pa.Table.from_pylist(records, schema=schema)
    except (pa.ArrowInvalid, pa.ArrowTypeError, TypeError, ValueError) as exc:
        raise IoWriteError(f"rows do not fit a parquet table: {exc}") from exc


def write_parquet(
    settings: IoSettings,
    path: str,
    rows: Iterable[TableRow] | pl.DataFrame,
    schema: pa.Schema | None = None,
) -> ParquetTap:
    """
    Write rows as Parquet shards.

    Args:
        settings (IoSettings): Shard count, compression and row group size.
        path (str): Dataset directory.
        rows (Iterable[TableRow] | pl.DataFrame): Rows as dicts, or a polars DataFrame.
        schema (pa.Schema | None): Schema to write with. When None it is inferred from
            the data, and the returned tap infers it again from the first shard on read.

    Returns:
        ParquetTap: Tap over the written dataset, declaring schema when one was given.

    Raises:
        IoWriteError: If rows cannot be converted, the directory already holds shards,
            or a shard write fails.
    """
    table = _to_arrow(rows, schema)

    def writer_for(start: int, stop: int) -> Callable[[str], None]:
        def write(tmp: str) -> None:
            pq.write_table(
                table.slice(start, stop - start),
                tmp,
                compression=settings.compression,
                row_group_size=settings.row_group_size,
            )

        return write

    _publish(settings, path, table.num_rows, PARQUET_SUFFIX, writer_for)
    logger.info(
        "wrote %d rows to %d parquet shard(s) under %s", table.num_rows, settings.num_shards, path
    )
    return ParquetTap(path, schema)


def write_in_memory(
    values: Iterable[Any], registry: InMemoryRegistry | None = None
) -> InMemoryTap[Any]:
    """
    Publish values in an in-memory registry under a fresh id.

    Args:
        values (Iterable[Any]): Records to publish; snapshotted on insert.
        registry (InMemoryRegistry | None): Target registry; the process-wide one when None.

    Returns:
        InMemoryTap: Tap over the new entry. The entry is fully inserted before the
        tap is returned.
    """
    registry = registry if registry is not None else default_registry()
    registry_id = registry.new_id()
    registry.put(registry_id, values)
    return InMemoryTap(registry_id, registry)

"""
Record readers for the file-backed dataset formats.

Overview
- read_text(): newline-delimited strings.
- read_parquet(): Parquet rows as dicts, read against a declared or inferred schema.
- read_table_row_json(): one JSON object per line, decoded into a dict.
- read_object_file(): one base64-framed record per line, decoded through a RecordCodec.

Every reader takes the already-resolved shard list (see tapkit.io.fs.list_shards)
and yields records lazily, shard by shard, preserving in-shard order. Taps
materialize these generators eagerly; LocalPipeline calls the same readers at
execution time.

Parquet
- scan_parquet() builds the one polars scan (projection plus cast to the declared or
  inferred schema) behind both read paths. read_parquet() collects it per shard and
  converts rows with DataFrame.to_dicts; LocalPipeline.parquet_file runs read_parquet
  for collect() and exposes scan_parquet over all shards through to_frame().
- pyarrow is used only to read the schema stored in a shard footer.

Decode semantics
- A malformed record aborts the read with IoDecodeError naming the shard and line;
  nothing is skipped or defaulted.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from typing import TypeVar

import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq

from tapkit.core.codec import RecordCodec, decode_from_base64
from tapkit.core.errors import CodecError
from tapkit.core.serde import json_loads
from tapkit.core.typing import TableRow

from .errors import IoDecodeError, IoNotFoundError
from .fs import iter_lines

T = TypeVar("T")


def read_text(shards: Iterable[str], encoding: str = "utf-8") -> Iterator[str]:
    """
    Yield every line of every shard, in shard order.

    Args:
        shards (Iterable[str]): Resolved shard paths.
        encoding (str): Text encoding of the shards.

    Yields:
        str: Lines without terminators.
    """
    for shard in shards:
        yield from iter_lines(shard, encoding)


def infer_parquet_schema(shards: list[str]) -> pa.Schema:
    """
    Infer a dataset schema from its first shard.

    Args:
        shards (list[str]): Resolved shard paths (non-empty).

    Returns:
        pa.Schema: Arrow schema stored in the first shard's footer.

    Raises:
        IoDecodeError: If the first shard is not a readable Parquet file.
    """
    try:
        return pq.read_schema(shards[0])
    except FileNotFoundError as exc:
        raise IoNotFoundError(f"shard not found: {shards[0]!r}") from exc
    except (pa.ArrowInvalid, OSError) as exc:
        raise IoDecodeError(f"{shards[0]}: cannot read parquet schema: {exc}") from exc


def scan_parquet(shards: list[str], schema: pa.Schema | None = None) -> pl.LazyFrame:
    """
    Build a polars scan over Parquet shards, projected and cast to a schema.

    Args:
        shards (list[str]): Resolved shard paths (non-empty).
        schema (pa.Schema | None): Declared schema; inferred from the first shard when None.

    Returns:
        pl.LazyFrame: Scan holding exactly the schema's columns, in schema order.
    """
    if schema is None:
        schema = infer_parquet_schema(shards)
    target = pl.from_arrow(schema.empty_table()).schema  # type: ignore[union-attr]
    lf = pl.scan_parquet(shards, glob=False)
    return lf.select(list(target.keys())).cast(dict(target))


def read_parquet(shards: list[str], schema: pa.Schema | None = None) -> Iterator[TableRow]:
    """
    Yield Parquet rows as dicts keyed by column name, one shard at a time.

    Args:
        shards (list[str]): Resolved shard paths.
        schema (pa.Schema | None): Declared schema; inferred from the first shard when None.

    Yields:
        TableRow: One dict per row, as produced by polars DataFrame.to_dicts.

    Raises:
        IoNotFoundError: If a shard disappeared after listing.
        IoDecodeError: If a shard is corrupt or does not match the schema.
    """
    if schema is None:
        schema = infer_parquet_schema(shards)
    for shard in shards:
        try:
            rows = scan_parquet([shard], schema).collect().to_dicts()
        except FileNotFoundError as exc:
            raise IoNotFoundError(f"shard not found: {shard!r}") from exc
        except (pl.exceptions.PolarsError, OSError) as exc:
            raise IoDecodeError(f"{shard}: does not match schema: {exc}") from exc
        yield from rows


def read_table_row_json(shards: Iterable[str], encoding: str = "utf-8") -> Iterator[TableRow]:
    """
    Yield one structured row per JSON line.

    Args:
        shards (Iterable[str]): Resolved shard paths.
        encoding (str): Text encoding of the shards.

    Yields:
        TableRow: Decoded JSON object.

    Raises:
        IoDecodeError: If a line is not valid JSON or is not a JSON object.
    """
    for shard in shards:
        for lineno, line in enumerate(iter_lines(shard, encoding), start=1):
            try:
                row = json_loads(line)
            except json.JSONDecodeError as exc:
                raise IoDecodeError(f"{shard}:{lineno}: malformed JSON row: {exc}") from exc
            if not isinstance(row, dict):
                raise IoDecodeError(
                    f"{shard}:{lineno}: expected a JSON object, got {type(row).__name__}"
                )
            yield row


def read_object_file(
    shards: Iterable[str], codec: RecordCodec[T], encoding: str = "utf-8"
) -> Iterator[T]:
    """
    Yield values decoded from base64-framed records.

    Args:
        shards (Iterable[str]): Resolved shard paths.
        codec (RecordCodec[T]): Codec matching the one used by the writer.
        encoding (str): Text encoding of the shards.

    Yields:
        T: Decoded values.

    Raises:
        IoDecodeError: If a line is not valid base64 or the codec rejects it.
    """
    for shard in shards:
        for lineno, line in enumerate(iter_lines(shard, encoding), start=1):
            try:
                yield decode_from_base64(codec, line)
            except CodecError as exc:
                raise IoDecodeError(f"{shard}:{lineno}: {exc}") from exc

"""
Dataset handles ("taps").

A tap is an immutable reference to an already-materialized dataset. It can either
pull the dataset into memory (value) or reopen it as a lazy collection inside a new
pipeline execution (open). Both paths resolve the same backing reference and decode
with the same readers, so they yield the same logical record set.

Variants (one frozen dataclass each, no shared base class)
- TextTap: part-* newline-delimited text shards.
- ParquetTap: part-* Parquet shards, declared or inferred pyarrow schema.
- TableRowJsonTap: part-* shards holding one JSON object per line.
- RemoteTableTap: a remote analytical table read through a TableClient.
- ObjectFileTap: part-* shards holding one base64-framed codec record per line.
- InMemoryTap: an entry of an InMemoryRegistry.

Semantics
- value() is eager and blocking; it raises IoNotFoundError when the reference no longer
  resolves and returns a new list on every call.
- open() performs no I/O (InMemoryTap only validates its registry id) and returns a new,
  independent collection description on every call.
- Errors from collaborators (readers, codecs, table clients) propagate unchanged.

Examples:
    >>> from tapkit.io.registry import InMemoryRegistry
    >>> from tapkit.io.write import write_in_memory
    >>> tap = write_in_memory(["a", "b"], registry=InMemoryRegistry())
    >>> tap.value()
    ['a', 'b']
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

import pyarrow as pa

from tapkit.core.codec import RecordCodec
from tapkit.core.constants import TEXT_ENCODING
from tapkit.core.typing import RegistryId, TableRow

from .errors import IoMaterializeLimitError
from .fs import list_shards
from .paths import shard_glob
from .pipeline import Collection, PipelineContext
from .read import infer_parquet_schema, read_object_file, read_parquet, read_table_row_json, read_text
from .registry import InMemoryRegistry, default_registry
from .remote import RemoteTableOptions, TableClientFactory, TableReference, fetch_rows

logger = logging.getLogger(__name__)

__all__ = [
    "Tap",
    "TextTap",
    "ParquetTap",
    "TableRowJsonTap",
    "RemoteTableTap",
    "ObjectFileTap",
    "InMemoryTap",
]

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Tap(Protocol[T_co]):
    """Placeholder for a dataset that can be read into memory or opened in a pipeline."""

    def value(self, *, max_records: int | None = None) -> list[T_co]:
        """Read the whole dataset into memory."""
        ...

    def open(self, ctx: PipelineContext) -> Collection[T_co]:
        """Describe the dataset as a lazy collection of ctx."""
        ...


def _materialize(records: Iterable[T], max_records: int | None, source: str) -> list[T]:
    """
    Drain records into a list, enforcing an optional cap.

    Raises:
        IoMaterializeLimitError: If more than max_records records are produced.
    """
    if max_records is None:
        out = list(records)
    else:
        out = []
        for record in records:
            if len(out) >= max_records:
                raise IoMaterializeLimitError(f"{source} holds more than {max_records} records")
            out.append(record)
    logger.debug("materialized %d records from %s", len(out), source)
    return out


@dataclass(frozen=True)
class TextTap:
    """
    Tap for newline-delimited text shards.

    Attributes:
        path (str): Dataset directory holding part-* shards.
        encoding (str): Text encoding of the shards.
    """

    path: str
    encoding: str = TEXT_ENCODING

    def value(self, *, max_records: int | None = None) -> list[str]:
        return _materialize(read_text(list_shards(self.path), self.encoding), max_records, self.path)

    def open(self, ctx: PipelineContext) -> Collection[str]:
        return ctx.text_file(shard_glob(self.path), encoding=self.encoding)


@dataclass(frozen=True)
class ParquetTap:
    """
    Tap for Parquet shards.

    Attributes:
        path (str): Dataset directory holding part-* shards.
        schema (pa.Schema | None): Declared schema. When None, the schema stored in the
            first shard is used for every shard.
    """

    path: str
    schema: pa.Schema | None = None

    def resolved_schema(self) -> pa.Schema:
        """Return the declared schema, or the one inferred from the first shard."""
        if self.schema is not None:
            return self.schema
        return infer_parquet_schema(list_shards(self.path))

    def value(self, *, max_records: int | None = None) -> list[TableRow]:
        return _materialize(
            read_parquet(list_shards(self.path), self.schema), max_records, self.path
        )

    def open(self, ctx: PipelineContext) -> Collection[TableRow]:
        return ctx.parquet_file(shard_glob(self.path), schema=self.schema)


@dataclass(frozen=True)
class TableRowJsonTap:
    """
    Tap for JSON-row shards (one JSON object per line).

    Attributes:
        path (str): Dataset directory holding part-* shards.
        encoding (str): Text encoding of the shards.
    """

    path: str
    encoding: str = TEXT_ENCODING

    def value(self, *, max_records: int | None = None) -> list[TableRow]:
        return _materialize(
            read_table_row_json(list_shards(self.path), self.encoding), max_records, self.path
        )

    def open(self, ctx: PipelineContext) -> Collection[TableRow]:
        return ctx.table_row_json_file(shard_glob(self.path), encoding=self.encoding)


@dataclass(frozen=True)
class RemoteTableTap:
    """
    Tap for a remote analytical table.

    Attributes:
        table (TableReference): Table to read.
        options (RemoteTableOptions): Connection options passed to the client factory.
        client_factory (TableClientFactory): Builds the client used by value(). open()
            leaves the read to the engine, which uses its own client.

    Notes:
        value() streams rows straight from the client into memory; nothing is staged to
        local files.
    """

    table: TableReference
    options: RemoteTableOptions
    client_factory: TableClientFactory = field(compare=False, repr=False)

    def value(self, *, max_records: int | None = None) -> list[TableRow]:
        return _materialize(
            fetch_rows(self.client_factory, self.table, self.options), max_records, str(self.table)
        )

    def open(self, ctx: PipelineContext) -> Collection[TableRow]:
        return ctx.remote_table(self.table, self.options)


@dataclass(frozen=True)
class ObjectFileTap(Generic[T]):
    """
    Tap for shards of base64-framed codec records.

    Attributes:
        path (str): Dataset directory holding part-* shards.
        codec (RecordCodec[T]): Codec the dataset was written with; it carries the
            element type tag.
        encoding (str): Text encoding of the shards.
    """

    path: str
    codec: RecordCodec[T]
    encoding: str = TEXT_ENCODING

    def value(self, *, max_records: int | None = None) -> list[T]:
        return _materialize(
            read_object_file(list_shards(self.path), self.codec, self.encoding),
            max_records,
            self.path,
        )

    def open(self, ctx: PipelineContext) -> Collection[T]:
        return ctx.object_file(shard_glob(self.path), self.codec, encoding=self.encoding)


@dataclass(frozen=True)
class InMemoryTap(Generic[T]):
    """
    Tap for records published in an InMemoryRegistry.

    Attributes:
        registry_id (RegistryId): Id the producing step inserted its records under.
        registry (InMemoryRegistry): Registry holding the entry (process-wide by default).

    Notes:
        Lookups of an unknown id raise RegistryKeyError from both value() and open().
    """

    registry_id: RegistryId
    registry: InMemoryRegistry = field(default_factory=default_registry, compare=False, repr=False)

    def value(self, *, max_records: int | None = None) -> list[T]:
        records: tuple[Any, ...] = self.registry.get(self.registry_id)
        return _materialize(records, max_records, f"registry:{self.registry_id}")

    def open(self, ctx: PipelineContext) -> Collection[T]:
        return ctx.parallelize(self.registry.get(self.registry_id))

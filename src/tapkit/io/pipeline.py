"""
Execution-engine contract consumed by Tap.open, plus an in-process engine.

Overview
- PipelineContext: the entry points a pipeline execution engine must expose, one per
  tap variant (text_file, parquet_file, table_row_json_file, remote_table,
  object_file, parallelize). Each returns a lazy collection description.
- Collection: what a tap's open() hands back; only collect() is required here.
- LazyCollection: immutable, re-executable description used by LocalPipeline. Nothing
  is read until it is iterated or collected, and each execution starts from scratch.
- LocalPipeline: single-process engine that executes descriptions with the same shard
  resolution (tapkit.io.fs) and readers (tapkit.io.read) as Tap.value, scanning Parquet
  with polars.

Notes
- Distributed execution is out of scope; LocalPipeline exists so pipelines and tests can
  run eager and lazy reads side by side.
- Shard patterns are resolved at execution time, so a missing dataset surfaces when the
  collection runs, not when it is described.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Any, Generic, Protocol, TypeVar

import polars as pl
import pyarrow as pa

from tapkit.core.codec import RecordCodec
from tapkit.core.typing import TableRow

from .errors import IoConfigError
from .fs import glob_shards
from .read import read_object_file, read_parquet, read_table_row_json, read_text, scan_parquet
from .remote import RemoteTableOptions, TableClientFactory, TableReference, fetch_rows

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
T_co = TypeVar("T_co", covariant=True)


class Collection(Protocol[T_co]):
    """Lazy collection returned by a PipelineContext."""

    def collect(self) -> list[T_co]: ...


class PipelineContext(Protocol):
    """
    Entry points a pipeline execution engine exposes to taps.

    Notes:
        Implementations must not perform I/O when these are called; reading happens
        when the enclosing pipeline executes.
    """

    def text_file(self, pattern: str, encoding: str = "utf-8") -> Collection[str]: ...

    def parquet_file(self, pattern: str, schema: pa.Schema | None = None) -> Collection[TableRow]: ...

    def table_row_json_file(self, pattern: str, encoding: str = "utf-8") -> Collection[TableRow]: ...

    def remote_table(
        self, table: TableReference, options: RemoteTableOptions
    ) -> Collection[TableRow]: ...

    def object_file(
        self, pattern: str, codec: RecordCodec[T], encoding: str = "utf-8"
    ) -> Collection[T]: ...

    def parallelize(self, records: Iterable[T]) -> Collection[T]: ...


def _apply(kind: str, fn: Callable[[Any], Any], items: Iterator[Any]) -> Iterator[Any]:
    if kind == "map":
        return map(fn, items)
    if kind == "filter":
        return filter(fn, items)
    return (out for item in items for out in fn(item))


@dataclass(frozen=True)
class LazyCollection(Generic[T]):
    """
    Immutable description of a read followed by element-wise transforms.

    Attributes:
        name (str): Human-readable description of the source (e.g., "text_file(/d/part-*)").
        source (Callable[[], Iterable[Any]]): Zero-argument producer invoked on each execution.
        steps (tuple): Transform steps applied in order.
        frame (Callable[[], pl.LazyFrame] | None): Columnar scan for sources that have one.

    Examples:
        >>> from tapkit.io.pipeline import LocalPipeline
        >>> LocalPipeline().parallelize([1, 2, 3]).map(lambda x: x * 2).collect()
        [2, 4, 6]
    """

    name: str
    source: Callable[[], Iterable[Any]]
    steps: tuple[tuple[str, Callable[[Any], Any]], ...] = ()
    frame: Callable[[], pl.LazyFrame] | None = field(default=None, compare=False)

    def map(self, fn: Callable[[T], U]) -> LazyCollection[U]:
        return replace(self, steps=self.steps + (("map", fn),), frame=None)  # type: ignore[return-value]

    def filter(self, fn: Callable[[T], bool]) -> LazyCollection[T]:
        return replace(self, steps=self.steps + (("filter", fn),), frame=None)

    def flat_map(self, fn: Callable[[T], Iterable[U]]) -> LazyCollection[U]:
        return replace(self, steps=self.steps + (("flat_map", fn),), frame=None)  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        logger.debug("executing %s", self.name)
        items: Iterator[Any] = iter(self.source())
        for kind, fn in self.steps:
            items = _apply(kind, fn, items)
        return items

    def collect(self) -> list[T]:
        """Execute the description and return every element."""
        return list(self)

    def to_frame(self) -> pl.LazyFrame:
        """
        Return the columnar scan behind this collection.

        Raises:
            TypeError: If the source is not columnar or transforms were applied.
        """
        if self.frame is None:
            raise TypeError(f"{self.name} has no columnar representation")
        return self.frame()


class LocalPipeline:
    """
    In-process PipelineContext.

    Args:
        table_client_factory (TableClientFactory | None): Builds remote table clients;
            remote_table() collections fail at execution without one.

    Notes:
        The engine holds no per-execution state; every collection it returns can be
        executed any number of times, independently of the others.
    """

    def __init__(self, table_client_factory: TableClientFactory | None = None) -> None:
        self.table_client_factory = table_client_factory

    def text_file(self, pattern: str, encoding: str = "utf-8") -> LazyCollection[str]:
        return LazyCollection(
            name=f"text_file({pattern})",
            source=lambda: read_text(glob_shards(pattern), encoding),
        )

    def parquet_file(self, pattern: str, schema: pa.Schema | None = None) -> LazyCollection[TableRow]:
        def frame() -> pl.LazyFrame:
            return scan_parquet(glob_shards(pattern), schema)

        return LazyCollection(
            name=f"parquet_file({pattern})",
            source=lambda: read_parquet(glob_shards(pattern), schema),
            frame=frame,
        )

    def table_row_json_file(self, pattern: str, encoding: str = "utf-8") -> LazyCollection[TableRow]:
        return LazyCollection(
            name=f"table_row_json_file({pattern})",
            source=lambda: read_table_row_json(glob_shards(pattern), encoding),
        )

    def remote_table(
        self, table: TableReference, options: RemoteTableOptions
    ) -> LazyCollection[TableRow]:
        factory = self.table_client_factory

        def source() -> Iterator[TableRow]:
            if factory is None:
                raise IoConfigError(f"cannot read {table}: LocalPipeline has no table_client_factory")
            return fetch_rows(factory, table, options)

        return LazyCollection(name=f"remote_table({table})", source=source)

    def object_file(
        self, pattern: str, codec: RecordCodec[T], encoding: str = "utf-8"
    ) -> LazyCollection[T]:
        return LazyCollection(
            name=f"object_file({pattern})",
            source=lambda: read_object_file(glob_shards(pattern), codec, encoding),
        )

    def parallelize(self, records: Iterable[T]) -> LazyCollection[T]:
        seed = tuple(records)
        return LazyCollection(name=f"parallelize({len(seed)} records)", source=lambda: seed)

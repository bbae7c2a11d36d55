"""
tapkit.io — dataset handles and the storage layer behind them.

## Responsibilities
- Define the Tap contract (value / open) and one handle per backend: text, Parquet,
  JSON rows, remote tables, codec-encoded objects and in-memory registry entries.
- Resolve file-backed datasets as the union of <dir>/part-* shards, identically for
  eager reads and pipeline reads.
- Publish datasets through sharded, atomic writers that return taps.
- Own the process-wide InMemoryRegistry.

## Public API
- IoSettings — configuration (defaults from tapkit.core.constants).
- Tap and its variants — TextTap, ParquetTap, TableRowJsonTap, RemoteTableTap,
  ObjectFileTap, InMemoryTap.
- InMemoryRegistry, default_registry — in-process dataset buffers.
- PipelineContext, LocalPipeline, LazyCollection — execution-engine contract and
  the in-process engine.
- write_text, write_parquet, write_table_row_json, write_object_file, write_in_memory.

## Import DAG discipline
- Depends only on stdlib, polars/pyarrow/pydantic, and tapkit.core.*.

## Examples
```python
from tapkit.io import IoSettings, LocalPipeline, write_text

tap = write_text(IoSettings(num_shards=2), "out/words", ["a", "b", "c"])  # doctest: +SKIP
tap.value()  # ['a', 'b', 'c']  # doctest: +SKIP
tap.open(LocalPipeline()).map(str.upper).collect()  # ['A', 'B', 'C']  # doctest: +SKIP
```

## Notes
- Shard write path: tmp file → fsync → os.replace(tmp, final) on the same filesystem.
- Only local paths are supported; remote object stores can be layered behind tapkit.io.fs.
"""

from __future__ import annotations

from .config import IoSettings
from .pipeline import Collection, LazyCollection, LocalPipeline, PipelineContext
from .registry import InMemoryRegistry, default_registry
from .remote import RemoteTableOptions, TableClient, TableReference
from .taps import (
    InMemoryTap,
    ObjectFileTap,
    ParquetTap,
    RemoteTableTap,
    TableRowJsonTap,
    Tap,
    TextTap,
)
from .write import (
    write_in_memory,
    write_object_file,
    write_parquet,
    write_table_row_json,
    write_text,
)

__all__ = [
    "IoSettings",
    "Collection",
    "LazyCollection",
    "LocalPipeline",
    "PipelineContext",
    "InMemoryRegistry",
    "default_registry",
    "RemoteTableOptions",
    "TableClient",
    "TableReference",
    "Tap",
    "TextTap",
    "ParquetTap",
    "TableRowJsonTap",
    "RemoteTableTap",
    "ObjectFileTap",
    "InMemoryTap",
    "write_text",
    "write_parquet",
    "write_table_row_json",
    "write_object_file",
    "write_in_memory",
]

from pathlib import Path

import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from tapkit.io.config import IoSettings
from tapkit.io.errors import IoDecodeError, IoNotFoundError
from tapkit.io.pipeline import LocalPipeline
from tapkit.io.taps import ParquetTap
from tapkit.io.write import write_parquet

SCHEMA = pa.schema(
    [
        pa.field("name", pa.string()),
        pa.field("count", pa.int64()),
        pa.field("score", pa.float64()),
    ]
)

ROWS = [
    {"name": "a", "count": 1, "score": 0.5},
    {"name": "b", "count": 2, "score": None},
    {"name": "c", "count": 3, "score": 1.5},
    {"name": "d", "count": 4, "score": 2.0},
]


def test_parquet_tap_with_declared_schema(tmp_path: Path):
    tap = write_parquet(IoSettings(num_shards=3), str(tmp_path / "pq"), ROWS, schema=SCHEMA)

    assert tap.schema == SCHEMA
    assert tap.resolved_schema() == SCHEMA
    assert tap.value() == ROWS
    assert tap.open(LocalPipeline()).collect() == ROWS


def test_parquet_tap_infers_schema_from_data(tmp_path: Path):
    path = str(tmp_path / "pq")
    tap = write_parquet(IoSettings(num_shards=2), path, ROWS)

    assert tap.schema is None
    inferred = tap.resolved_schema()
    assert inferred.names == ["name", "count", "score"]
    assert inferred.field("count").type == pa.int64()
    assert tap.value() == ROWS
    assert tap.open(LocalPipeline()).collect() == ROWS


def test_parquet_tap_from_polars_frame(tmp_path: Path):
    df = pl.DataFrame({"id": [3, 1, 2], "label": ["x", "y", "z"]})
    tap = write_parquet(IoSettings(num_shards=2), str(tmp_path / "pq"), df)

    assert tap.value() == df.to_dicts()
    coll = tap.open(LocalPipeline())
    assert coll.collect() == df.to_dicts()
    # the columnar scan stays lazy and composable
    total = coll.to_frame().select(pl.col("id").sum()).collect().item()
    assert total == 6


def test_parquet_declared_schema_casts_on_read(tmp_path: Path):
    d = tmp_path / "pq"
    d.mkdir()
    pq.write_table(pa.table({"n": pa.array([1, 2], type=pa.int32())}), str(d / "part-00000.parquet"))
    wide = pa.schema([pa.field("n", pa.int64())])

    tap = ParquetTap(str(d), wide)

    assert tap.value() == [{"n": 1}, {"n": 2}]
    frame = tap.open(LocalPipeline()).to_frame().collect()
    assert frame.schema["n"] == pl.Int64
    assert frame.to_dicts() == [{"n": 1}, {"n": 2}]


def test_parquet_empty_dataset_with_schema(tmp_path: Path):
    tap = write_parquet(IoSettings(num_shards=2), str(tmp_path / "pq"), [], schema=SCHEMA)
    assert tap.value() == []
    assert tap.open(LocalPipeline()).collect() == []


def test_parquet_tap_missing_path(tmp_path: Path):
    tap = ParquetTap(str(tmp_path / "missing"))
    with pytest.raises(IoNotFoundError):
        tap.value()
    with pytest.raises(IoNotFoundError):
        tap.resolved_schema()


def test_parquet_corrupt_shard_is_decode_error(tmp_path: Path):
    d = tmp_path / "pq"
    d.mkdir()
    (d / "part-00000.parquet").write_bytes(b"definitely not parquet")
    with pytest.raises(IoDecodeError):
        ParquetTap(str(d)).value()


def test_parquet_value_is_idempotent(tmp_path: Path):
    tap = write_parquet(IoSettings(), str(tmp_path / "pq"), ROWS, schema=SCHEMA)
    assert tap.value() == tap.value()


def test_parquet_declared_column_missing_from_shard(tmp_path: Path):
    d = tmp_path / "pq"
    d.mkdir()
    pq.write_table(pa.table({"n": [1]}), str(d / "part-00000.parquet"))
    tap = ParquetTap(str(d), pa.schema([pa.field("other", pa.int64())]))
    with pytest.raises(IoDecodeError, match="does not match schema"):
        tap.value()
    with pytest.raises(IoDecodeError):
        tap.open(LocalPipeline()).collect()

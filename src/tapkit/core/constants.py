"""
tapkit core dataset-layout defaults.

Defines the shard naming and writer defaults consumed by the IO layer. This
module is zero-IO and uses only the Python standard library.

Notes:
    - A dataset directory holds shards named ``part-00000-of-00003<suffix>``; readers
      resolve the dataset as every file matching ``<dir>/part-*``.
    - Parquet writers size row groups and set compression according to these values.
"""

from __future__ import annotations

__all__ = [
    "SHARD_PREFIX",
    "SHARD_GLOB",
    "NUM_SHARDS",
    "TEXT_ENCODING",
    "ROW_GROUP_SIZE",
    "COMPRESSION",
    "TEXT_SUFFIX",
    "PARQUET_SUFFIX",
    "JSON_SUFFIX",
    "OBJECT_SUFFIX",
]

# Every shard file name starts with this prefix; readers glob on SHARD_GLOB.
SHARD_PREFIX: str = "part-"
SHARD_GLOB: str = SHARD_PREFIX + "*"

# Number of shards a file writer splits its records into.
NUM_SHARDS: int = 1

# Encoding of line-oriented shards (text, JSON rows, base64 objects).
TEXT_ENCODING: str = "utf-8"

# Target row group size for Parquet shards.
ROW_GROUP_SIZE: int = 128 * 1024

# Default compression codec for Parquet shards.
COMPRESSION: str = "zstd"

TEXT_SUFFIX: str = ".txt"
PARQUET_SUFFIX: str = ".parquet"
JSON_SUFFIX: str = ".json"
OBJECT_SUFFIX: str = ".obj"

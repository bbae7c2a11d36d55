"""
tapkit — dataset handles for batch pipelines.

A tap names an already-materialized dataset and lets a pipeline author either read
it into memory (Tap.value) or reopen it as a lazy collection in a new pipeline
execution (Tap.open).

Packages
- tapkit.core — zero-IO contracts: codecs, canonical JSON, typing aliases, constants.
- tapkit.io — taps, shard layout, readers/writers, the in-memory registry and the
  execution-engine contract.
"""

__version__ = "0.1.0"

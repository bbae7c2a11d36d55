"""
Custom exceptions for the tapkit.io module.

Purpose
- Provide IO-layer specific error types that map cleanly to responsibilities in tapkit.io.
- Keep tapkit.core as the source of truth for codec errors (see tapkit.core.errors).

Boundaries
- tapkit.io raises Io* errors for filesystem/reader/writer concerns:
  - IoConfigError: invalid or unsupported configuration.
  - IoNotFoundError: a tap's reference no longer resolves to data.
  - IoDecodeError: a stored record does not match its format.
  - IoWriteError: atomic write path failed (tmp write/fsync/rename).
  - IoMaterializeLimitError: an eager read exceeded the caller's record cap.
- Registry misuse raises RegistryError subclasses; these signal programming defects,
  not recoverable conditions.

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations


class IoError(Exception):
    """
    Base class for IO-related errors in tapkit.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from tapkit.core errors.
    """


class IoConfigError(IoError):
    """
    Raised when IO configuration is invalid or unsupported.

    Examples:
        - Unsupported filesystem protocol (e.g., a gs:// or s3:// path)
        - Invalid shard count (< 1)
        - Remote-table read without a table client factory
    """


class IoNotFoundError(IoError):
    """
    Raised when a tap's backing reference does not resolve to data.

    Notes:
        Missing dataset directories and directories without any part-* shard both
        raise this error; an unresolvable reference is never read as empty.
    """


class IoDecodeError(IoError):
    """
    Raised when a stored record does not conform to its expected format.

    Notes:
        Malformed JSON, non-object JSON rows, invalid base64 and codec mismatches abort
        the whole read. The message names the shard and 1-based line number.
    """


class IoWriteError(IoError):
    """
    Raised when a write operation fails to complete atomically.

    Notes:
        The write path is tmp shard → fsync → os.replace(tmp, final). Failures at any
        step surface as IoWriteError (with best-effort cleanup of tmp files). Writing
        into a directory that already holds shards also raises this error.
    """


class IoMaterializeLimitError(IoError):
    """Raised when value(max_records=N) would materialize more than N records."""


class RegistryError(IoError):
    """Base class for in-memory registry misuse."""


class RegistryKeyError(RegistryError, IoNotFoundError):
    """Raised when a registry id was never inserted (or already removed)."""


class RegistryDuplicateError(RegistryError):
    """Raised when a registry id is inserted a second time."""

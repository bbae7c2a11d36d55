"""
Configuration for the tapkit.io module.

Defines IoSettings, a frozen dataclass carrying runtime configuration for the
writers and readers behind taps. Defaults are sourced from tapkit.core.constants
(the single source of truth) and align with a local file-based layout of
part-* shards under a dataset directory.

Source of truth
- tapkit.core.constants.NUM_SHARDS, TEXT_ENCODING, ROW_GROUP_SIZE, COMPRESSION

Import DAG discipline
- Depends only on stdlib, tapkit.core.constants and tapkit.io.errors.

Notes
- Loader precedence is env > TOML > defaults (see IoSettings.load).
- Compression applies to Parquet writes via pyarrow in tapkit.io.write.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from tapkit.core.constants import COMPRESSION as CORE_COMPRESSION
from tapkit.core.constants import NUM_SHARDS as CORE_NUM_SHARDS
from tapkit.core.constants import ROW_GROUP_SIZE as CORE_ROW_GROUP_SIZE
from tapkit.core.constants import TEXT_ENCODING as CORE_TEXT_ENCODING

from .errors import IoConfigError

logger = logging.getLogger(__name__)

Compression = Literal["zstd", "lz4", "snappy"]

_COMPRESSIONS = ("zstd", "lz4", "snappy")
_SUPPORTED_PROTOCOLS = ("file",)


@dataclass(frozen=True)
class IoSettings:
    """
    Runtime settings for the tapkit.io layer.

    Attributes:
        num_shards (int): Number of part-* shards a file writer produces (>= 1).
        text_encoding (str): Encoding of line-oriented shards (text, JSON rows, objects).
        compression (Literal["zstd","lz4","snappy"]): Parquet compression codec.
        row_group_size (int): Parquet row group size used for writes.
        fs_protocol (str): Filesystem protocol (only "file" is supported).
        default_project (str | None): Project used when a table reference omits one.

    Examples:
        >>> from tapkit.io import IoSettings
        >>> IoSettings(num_shards=4)  # doctest: +ELLIPSIS
        IoSettings(...)
    """

    num_shards: int = CORE_NUM_SHARDS
    text_encoding: str = CORE_TEXT_ENCODING
    compression: Compression = CORE_COMPRESSION  # type: ignore[assignment]
    row_group_size: int = CORE_ROW_GROUP_SIZE
    fs_protocol: str = "file"
    default_project: str | None = None

    def validate(self) -> IoSettings:
        """
        Check value ranges and supported options.

        Returns:
            IoSettings: self, to allow chaining.

        Raises:
            IoConfigError: If num_shards or row_group_size is < 1, compression is unknown,
                or fs_protocol is not supported.
        """
        if self.num_shards < 1:
            raise IoConfigError(f"num_shards must be >= 1, got {self.num_shards}")
        if self.row_group_size < 1:
            raise IoConfigError(f"row_group_size must be >= 1, got {self.row_group_size}")
        if self.compression not in _COMPRESSIONS:
            raise IoConfigError(f"unsupported compression {self.compression!r}")
        if self.fs_protocol not in _SUPPORTED_PROTOCOLS:
            raise IoConfigError(f"unsupported filesystem protocol {self.fs_protocol!r}")
        return self

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: IoSettings, cfg: dict[str, Any] | None) -> IoSettings:
        """Apply a loose config mapping onto IoSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        for key in ("num_shards", "row_group_size"):
            if key in cfg:
                try:
                    s = replace(s, **{key: int(cfg[key])})
                except (TypeError, ValueError):
                    logger.warning("ignoring non-integer %s=%r", key, cfg[key])

        if "text_encoding" in cfg and isinstance(cfg["text_encoding"], str):
            s = replace(s, text_encoding=cfg["text_encoding"])

        if "compression" in cfg and isinstance(cfg["compression"], str):
            comp = cfg["compression"].strip().lower()
            if comp in _COMPRESSIONS:
                s = replace(s, compression=comp)  # type: ignore[arg-type]

        if "fs_protocol" in cfg and isinstance(cfg["fs_protocol"], str):
            s = replace(s, fs_protocol=cfg["fs_protocol"])

        if "default_project" in cfg and isinstance(cfg["default_project"], str):
            s = replace(s, default_project=cfg["default_project"] or None)

        return s

    @classmethod
    def from_env(cls, base: IoSettings | None = None, prefix: str = "TAPKIT_IO_") -> IoSettings:
        """
        Build IoSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - TAPKIT_IO_NUM_SHARDS
            - TAPKIT_IO_TEXT_ENCODING
            - TAPKIT_IO_COMPRESSION ("zstd" | "lz4" | "snappy")
            - TAPKIT_IO_ROW_GROUP_SIZE
            - TAPKIT_IO_FS_PROTOCOL
            - TAPKIT_IO_DEFAULT_PROJECT
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in (
            "num_shards",
            "text_encoding",
            "compression",
            "row_group_size",
            "fs_protocol",
            "default_project",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> IoSettings:
        """
        Build IoSettings from a TOML file.

        Search order when `path` is None:
            1) ./tapkit.toml (with either top-level [io] or direct keys)
            2) ./pyproject.toml under [tool.tapkit.io]

        Returns defaults if no file is present.

        Raises:
            IoConfigError: If a candidate file exists but is not valid TOML.
        """
        s = cls()

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "tapkit.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            try:
                with p.open("rb") as fh:
                    data = tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise IoConfigError(f"invalid TOML in {p}: {exc}") from exc
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("tapkit", {}).get("io") if isinstance(tool, dict) else None
            elif isinstance(data.get("io"), dict):
                cfg = data["io"]
            else:
                cfg = data
            if cfg:
                logger.debug("loaded io settings from %s", p)
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> IoSettings:
        """
        Load IoSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (tapkit.toml, pyproject.toml).

        Returns:
            IoSettings: Validated settings.

        Raises:
            IoConfigError: If the merged settings are invalid.
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s.validate()

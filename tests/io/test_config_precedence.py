from __future__ import annotations

from pathlib import Path

import pytest

from tapkit.io.config import IoSettings
from tapkit.io.errors import IoConfigError

_ENV_KEYS = [
    "TAPKIT_IO_NUM_SHARDS",
    "TAPKIT_IO_TEXT_ENCODING",
    "TAPKIT_IO_COMPRESSION",
    "TAPKIT_IO_ROW_GROUP_SIZE",
    "TAPKIT_IO_FS_PROTOCOL",
    "TAPKIT_IO_DEFAULT_PROJECT",
]


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_tapkit_toml(tmp: Path, content: str) -> Path:
    p = tmp / "tapkit.toml"
    p.write_text(content)
    return p


def test_io_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    _write_tapkit_toml(
        tmp_path,
        """
        [io]
        num_shards = 3
        compression = "lz4"
        default_project = "toml-project"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("TAPKIT_IO_NUM_SHARDS", "8")
    monkeypatch.setenv("TAPKIT_IO_COMPRESSION", "zstd")

    s = IoSettings.load()

    assert s.num_shards == 8  # env override
    assert s.compression == "zstd"  # env override
    assert s.default_project == "toml-project"  # TOML value kept


def test_io_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [tool.tapkit.io]
        num_shards = 2
        text_encoding = "latin-1"
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = IoSettings.load()

    assert s.num_shards == 2
    assert s.text_encoding == "latin-1"


def test_io_settings_top_level_keys_and_explicit_path(tmp_path: Path, monkeypatch) -> None:
    cfg = tmp_path / "custom.toml"
    cfg.write_text('num_shards = 5\ncompression = "SNAPPY"\n')
    _clear_env(monkeypatch)

    s = IoSettings.load(cfg)

    assert s.num_shards == 5
    assert s.compression == "snappy"


def test_io_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = IoSettings.load()

    assert s == IoSettings()
    assert s.num_shards == 1
    assert s.fs_protocol == "file"
    assert s.compression in {"zstd", "lz4", "snappy"}


def test_io_settings_ignores_unparseable_values(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("TAPKIT_IO_NUM_SHARDS", "many")
    monkeypatch.setenv("TAPKIT_IO_COMPRESSION", "brotli")

    s = IoSettings.load()

    assert s.num_shards == 1
    assert s.compression == "zstd"


@pytest.mark.parametrize(
    "settings",
    [
        IoSettings(num_shards=0),
        IoSettings(row_group_size=0),
        IoSettings(fs_protocol="gcs"),
    ],
)
def test_validate_rejects_invalid_settings(settings: IoSettings) -> None:
    with pytest.raises(IoConfigError):
        settings.validate()


def test_invalid_toml_raises_config_error(tmp_path: Path) -> None:
    cfg = tmp_path / "broken.toml"
    cfg.write_text("num_shards = \n")
    with pytest.raises(IoConfigError):
        IoSettings.from_toml(cfg)

import os

import pytest

from tapkit.io.paths import format_shard_name, is_shard_name, shard_glob, shard_paths


def test_format_shard_name():
    assert format_shard_name(0, 1) == "part-00000-of-00001"
    assert format_shard_name(2, 3, ".txt") == "part-00002-of-00003.txt"


def test_format_shard_name_invalid():
    with pytest.raises(ValueError):
        format_shard_name(0, 0)
    with pytest.raises(ValueError):
        format_shard_name(3, 3)
    with pytest.raises(ValueError):
        format_shard_name(-1, 3)


def test_shard_names_sort_in_index_order():
    names = [format_shard_name(i, 12, ".json") for i in range(12)]
    assert sorted(names) == names


def test_shard_glob():
    assert shard_glob("/data/words") == os.path.join("/data/words", "part-*")


def test_shard_paths_tmp_is_hidden_and_unique(tmp_path):
    a = shard_paths(str(tmp_path), 0, 2, ".txt")
    b = shard_paths(str(tmp_path), 0, 2, ".txt")
    assert a.final_path == os.path.join(str(tmp_path), "part-00000-of-00002.txt")
    assert a.final_path == b.final_path
    assert a.tmp_path != b.tmp_path
    tmp_name = os.path.basename(a.tmp_path)
    assert tmp_name.startswith(".")
    assert tmp_name.endswith(".tmp")
    assert not is_shard_name(tmp_name)
    assert is_shard_name(os.path.basename(a.final_path))

import pytest

from tapkit.core.typing import RegistryId
from tapkit.io.errors import IoNotFoundError, RegistryKeyError
from tapkit.io.pipeline import LocalPipeline
from tapkit.io.registry import InMemoryRegistry, default_registry
from tapkit.io.taps import InMemoryTap
from tapkit.io.write import write_in_memory


def test_in_memory_tap_value_and_open():
    reg = InMemoryRegistry()
    records = [{"k": 1}, {"k": 2}, {"k": 3}]
    tap = write_in_memory(records, registry=reg)

    assert tap.registry is reg
    assert tap.registry_id in reg
    assert tap.value() == records
    assert tap.value() == records
    assert tap.open(LocalPipeline()).collect() == records


def test_in_memory_tap_value_returns_fresh_list():
    tap = write_in_memory([1, 2], registry=InMemoryRegistry())
    out = tap.value()
    out.append(3)
    assert tap.value() == [1, 2]


def test_in_memory_taps_get_distinct_ids():
    reg = InMemoryRegistry()
    a = write_in_memory(["a"], registry=reg)
    b = write_in_memory(["b"], registry=reg)
    assert a.registry_id != b.registry_id
    assert a.value() == ["a"]
    assert b.value() == ["b"]


def test_in_memory_tap_unknown_id_fails_fast():
    tap = InMemoryTap(RegistryId("never-published"), InMemoryRegistry())
    with pytest.raises(RegistryKeyError):
        tap.value()
    with pytest.raises(IoNotFoundError):
        tap.open(LocalPipeline())


def test_in_memory_tap_from_other_registry_is_unresolvable():
    producer = InMemoryRegistry()
    tap = write_in_memory([1], registry=producer)
    foreign = InMemoryTap(tap.registry_id, InMemoryRegistry())
    with pytest.raises(RegistryKeyError):
        foreign.value()


def test_write_in_memory_defaults_to_process_registry():
    tap = write_in_memory(["x"])
    try:
        assert tap.registry is default_registry()
        assert InMemoryTap(tap.registry_id).value() == ["x"]
    finally:
        default_registry().remove(tap.registry_id)

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from tapkit.core.typing import TableRow
from tapkit.io.errors import IoConfigError
from tapkit.io.pipeline import LocalPipeline
from tapkit.io.remote import RemoteTableOptions, TableReference
from tapkit.io.taps import RemoteTableTap


class TableNotFound(Exception):
    pass


class FakeTableClient:
    """Serves rows from a dict keyed by table spec and records each fetch."""

    def __init__(self, tables: dict[str, list[TableRow]], options: RemoteTableOptions) -> None:
        self.tables = tables
        self.options = options
        self.fetches: list[str] = []

    def get_table_rows(self, table: TableReference) -> Iterator[TableRow]:
        self.fetches.append(str(table))
        if str(table) not in self.tables:
            raise TableNotFound(str(table))
        yield from (dict(row) for row in self.tables[str(table)])


class FakeClientFactory:
    def __init__(self, tables: dict[str, list[TableRow]]) -> None:
        self.tables = tables
        self.clients: list[FakeTableClient] = []

    def __call__(self, options: RemoteTableOptions) -> FakeTableClient:
        client = FakeTableClient(self.tables, options)
        self.clients.append(client)
        return client


ROWS = [{"id": 1, "city": "Oslo"}, {"id": 2, "city": "Lima"}]


def _tap(factory: FakeClientFactory, spec: str = "acme:geo.cities") -> RemoteTableTap:
    return RemoteTableTap(
        TableReference.parse(spec),
        RemoteTableOptions(project="acme", credentials={"token": "s3cret"}),
        factory,
    )


def test_remote_tap_value_fetches_through_client():
    factory = FakeClientFactory({"acme:geo.cities": ROWS})
    tap = _tap(factory)

    assert tap.value() == ROWS
    assert tap.value() == ROWS
    assert len(factory.clients) == 2
    assert factory.clients[0].options.project == "acme"
    assert factory.clients[0].fetches == ["acme:geo.cities"]


def test_remote_tap_open_is_lazy_and_matches_value():
    factory = FakeClientFactory({"acme:geo.cities": ROWS})
    tap = _tap(factory)

    coll = tap.open(LocalPipeline(table_client_factory=factory))
    assert factory.clients == []  # nothing fetched yet

    assert coll.collect() == tap.value()


def test_remote_tap_client_errors_propagate_unchanged():
    tap = _tap(FakeClientFactory({}), "acme:geo.deleted")
    with pytest.raises(TableNotFound):
        tap.value()


def test_local_pipeline_without_client_factory_fails_at_execution():
    tap = _tap(FakeClientFactory({"acme:geo.cities": ROWS}))
    coll = tap.open(LocalPipeline())
    with pytest.raises(IoConfigError):
        coll.collect()


def test_table_reference_parse_forms():
    ref = TableReference.parse("sales.orders", default_project="acme")
    assert (ref.project, ref.dataset, ref.table) == ("acme", "sales", "orders")
    assert str(TableReference.parse("sales.orders")) == "sales.orders"
    assert str(TableReference.parse("p:d.t")) == "p:d.t"


@pytest.mark.parametrize("spec", ["orders", "a:b:c.d", "a.b.c", ":d.t", "p:.t"])
def test_table_reference_parse_rejects_malformed(spec: str):
    with pytest.raises(ValueError):
        TableReference.parse(spec)


def test_table_reference_is_frozen():
    ref = TableReference(dataset="d", table="t")
    with pytest.raises(ValidationError):
        ref.table = "other"  # type: ignore[misc]


def test_remote_options_hide_credentials():
    opts = RemoteTableOptions(project="acme", credentials={"token": "s3cret"})
    assert "s3cret" not in repr(opts)
    assert hash(opts) == hash(RemoteTableOptions(project="acme", credentials={"token": "other"}))

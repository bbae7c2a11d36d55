"""
Remote analytical-table contract used by RemoteTableTap and PipelineContext.remote_table.

Responsibilities
- TableReference: validated, immutable identifier of a remote table
  ("project:dataset.table" or "dataset.table").
- RemoteTableOptions: connection options handed to a client factory (project,
  opaque credentials, location).
- TableClient / TableClientFactory: the interface a remote table client must expose.
  Authentication, query execution, paging and retries belong to the client.
- fetch_rows(): the single row-fetch path shared by eager and pipeline reads.

Notes
- Pydantic v2 models (frozen, extra="forbid"), so references are hashable and can be
  embedded in frozen tap dataclasses.
- Errors raised by a client propagate unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, field_validator

from tapkit.core.typing import TableRow

logger = logging.getLogger(__name__)

__all__ = [
    "TableReference",
    "RemoteTableOptions",
    "TableClient",
    "TableClientFactory",
    "fetch_rows",
]

_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_\-$]*$")
_SPEC_RE = re.compile(r"^(?:(?P<project>[^:.]+):)?(?P<dataset>[^:.]+)\.(?P<table>[^:.]+)$")


class TableReference(BaseModel):
    """
    Identifier of a remote analytical table.

    Attributes:
        project (str | None): Owning project; None defers to the client's default.
        dataset (str): Dataset (schema) name.
        table (str): Table name.

    Examples:
        >>> from tapkit.io.remote import TableReference
        >>> ref = TableReference.parse("acme:sales.orders")
        >>> (ref.project, ref.dataset, ref.table)
        ('acme', 'sales', 'orders')
        >>> str(ref)
        'acme:sales.orders'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    project: str | None = None
    dataset: str
    table: str

    @field_validator("dataset", "table")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError(f"invalid table name component {v!r}")
        return v

    @field_validator("project")
    @classmethod
    def _check_project(cls, v: str | None) -> str | None:
        if v is not None and (not v or ":" in v or "." in v):
            raise ValueError(f"invalid project {v!r}")
        return v

    @classmethod
    def parse(cls, spec: str, default_project: str | None = None) -> TableReference:
        """
        Parse "project:dataset.table" or "dataset.table".

        Args:
            spec (str): Table spec string.
            default_project (str | None): Project used when the spec omits one.

        Returns:
            TableReference: Parsed reference.

        Raises:
            ValueError: If the spec is malformed (pydantic.ValidationError is a ValueError).
        """
        m = _SPEC_RE.match(spec.strip())
        if m is None:
            raise ValueError(
                f"invalid table spec {spec!r}: expected 'project:dataset.table' or 'dataset.table'"
            )
        return cls(
            project=m.group("project") or default_project,
            dataset=m.group("dataset"),
            table=m.group("table"),
        )

    def __str__(self) -> str:
        base = f"{self.dataset}.{self.table}"
        return f"{self.project}:{base}" if self.project else base


class RemoteTableOptions(BaseModel):
    """
    Connection options for building a table client.

    Attributes:
        project (str | None): Billing/default project for the client.
        credentials (dict[str, Any] | None): Opaque credential material understood by the
            client factory (e.g., a service-account mapping). Never logged.
        location (str | None): Optional data location / region hint.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    project: str | None = None
    credentials: dict[str, Any] | None = None
    location: str | None = None

    def __hash__(self) -> int:
        # credentials is a dict; hash on the identifying fields only.
        return hash((self.project, self.location))

    def __repr__(self) -> str:
        redacted = None if self.credentials is None else "<redacted>"
        return (
            f"RemoteTableOptions(project={self.project!r}, credentials={redacted}, "
            f"location={self.location!r})"
        )


class TableClient(Protocol):
    """Minimal remote table client interface."""

    def get_table_rows(self, table: TableReference) -> Iterable[TableRow]: ...


TableClientFactory = Callable[[RemoteTableOptions], TableClient]


def fetch_rows(
    factory: TableClientFactory, table: TableReference, options: RemoteTableOptions
) -> Iterator[TableRow]:
    """
    Stream rows of a remote table through a freshly built client.

    Args:
        factory (TableClientFactory): Builds a client from options.
        table (TableReference): Table to read.
        options (RemoteTableOptions): Connection options.

    Yields:
        TableRow: Rows in the order the client returns them.
    """
    logger.debug("fetching rows of %s", table)
    client = factory(options)
    yield from client.get_table_rows(table)

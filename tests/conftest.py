"""Pytest configuration and shared test fixtures.

Provides an in-memory stand-in for a Neo4j async driver. FakeGraph keeps
a live index catalog, answers the introspection queries the tool issues,
and applies CREATE / DROP statements so that orchestration can be tested
end to end.
"""

from __future__ import annotations

from collections.abc import Iterable
import io
import re
from typing import Any

from neo4j.exceptions import ClientError
import pytest
from rich.console import Console

from neo4j_index_tool.console import Reporter
from neo4j_index_tool.models import IndexDescriptor
from neo4j_index_tool.progress import ProgressTracker
from neo4j_index_tool.queries import (
    CONSTRAINT_STATUS_QUERY,
    INDEX_STATUS_QUERY,
    SHOW_INDEXES_QUERY,
)

_NAME_PATTERN = re.compile(r"(?:INDEX|CONSTRAINT) `((?:[^`]|``)+)`")
_LABEL_PATTERN = re.compile(r":`((?:[^`]|``)+)`")


# =============================================================================
# NEO4J FAKES
# =============================================================================


class MockRecord:
    """Mock Neo4j record supporting positional and key access."""

    def __init__(self, data: dict[str, Any]) -> None:
        """Initialize with an ordered column -> value mapping."""
        self.data = data

    def __getitem__(self, key: int | str) -> Any:
        """Get a value by column index or name."""
        if isinstance(key, int):
            return list(self.data.values())[key]
        return self.data[key]

    def keys(self) -> list[str]:
        """Get record keys."""
        return list(self.data.keys())


class MockResult:
    """Mock Neo4j result for testing."""

    def __init__(self, records: list[dict[str, Any]]) -> None:
        """Initialize with list of record dicts."""
        self._records = [MockRecord(r) for r in records]
        self._index = 0

    def __aiter__(self) -> MockResult:
        """Return async iterator."""
        return self

    async def __anext__(self) -> MockRecord:
        """Get next record."""
        if self._index >= len(self._records):
            raise StopAsyncIteration
        record = self._records[self._index]
        self._index += 1
        return record

    async def consume(self) -> None:
        """Discard remaining records."""
        self._index = len(self._records)


class FakeGraph:
    """In-memory index catalog answering the tool's queries.

    Attributes:
        known: Every descriptor the graph can create, by name.
        live: Names currently present in the catalog.
        queries: Every statement received, in order.
        transactions: Statements grouped by write transaction.
        created: Names created, in order.
        dropped: Names dropped, in order.
        rejected_drops: Names whose DROP the server refuses.
    """

    def __init__(
        self,
        descriptors: Iterable[IndexDescriptor] = (),
        live: Iterable[str] = (),
        version: str = "4.4.12",
        label_counts: dict[str, int] | None = None,
    ) -> None:
        """Initialize the fake graph."""
        self.known = {d.name: d for d in descriptors}
        self.live = list(live)
        self.version = version
        self.label_counts = label_counts or {}
        self.failing: set[str] = set()
        self.never_started: set[str] = set()
        self.constraint_offline: set[str] = set()
        self.progress_script: dict[str, list[tuple[str, float]]] = {}
        self.rejected_drops: set[str] = set()
        self.queries: list[str] = []
        self.transactions: list[list[str]] = []
        self.created: list[str] = []
        self.dropped: list[str] = []

    def add_live(self, *descriptors: IndexDescriptor) -> None:
        """Register descriptors as already present in the catalog."""
        for descriptor in descriptors:
            self.known[descriptor.name] = descriptor
            if descriptor.name not in self.live:
                self.live.append(descriptor.name)

    @property
    def ddl(self) -> list[str]:
        """CREATE and DROP statements received."""
        return [q for q in self.queries if q.startswith(("CREATE", "DROP"))]

    def execute(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Answer one statement."""
        self.queries.append(query)

        if query.startswith("CALL dbms.components"):
            return [{"version": self.version}]
        if query == SHOW_INDEXES_QUERY:
            return [self._index_row(self.known[name]) for name in self.live if name in self.known]
        if query == INDEX_STATUS_QUERY:
            return self._index_status(params["name"])
        if query == CONSTRAINT_STATUS_QUERY:
            name = params["name"]
            online = (
                name in self.live
                and name in self.known
                and self.known[name].uniqueness
                and name not in self.constraint_offline
            )
            return [{"name": name}] if online else []
        if query.startswith("MATCH"):
            label = _unquote(_LABEL_PATTERN.search(query).group(1))
            return [{"count": self.label_counts.get(label, 0)}]
        if query.startswith("CREATE"):
            name = _unquote(_NAME_PATTERN.search(query).group(1))
            if name not in self.never_started and name not in self.live:
                self.live.append(name)
            self.created.append(name)
            return []
        if query.startswith("DROP"):
            name = _unquote(_NAME_PATTERN.search(query).group(1))
            if name in self.rejected_drops:
                raise ClientError("Index belongs to constraint")
            if name in self.live:
                self.live.remove(name)
            self.dropped.append(name)
            return []
        return []

    def _index_status(self, name: str) -> list[dict[str, Any]]:
        if name not in self.live:
            return []
        if name in self.failing:
            return [{"state": "FAILED", "populationPercent": 0.0}]
        script = self.progress_script.get(name)
        if script:
            state, percent = script.pop(0)
            return [{"state": state, "populationPercent": percent}]
        return [{"state": "ONLINE", "populationPercent": 100.0}]

    @staticmethod
    def _index_row(descriptor: IndexDescriptor) -> dict[str, Any]:
        return {
            "id": descriptor.id,
            "name": descriptor.name,
            "state": "ONLINE",
            "populationPercent": 100.0,
            "uniqueness": "UNIQUE" if descriptor.uniqueness else "NONUNIQUE",
            "type": descriptor.type,
            "entityType": descriptor.entity_type,
            "labelsOrTypes": list(descriptor.labels_or_types),
            "properties": list(descriptor.properties),
            "indexProvider": descriptor.index_provider,
        }


def _unquote(identifier: str) -> str:
    return identifier.replace("``", "`")


class FakeTransaction:
    """Managed write transaction recording its statements."""

    def __init__(self, graph: FakeGraph) -> None:
        """Initialize with the backing graph."""
        self.graph = graph
        self.queries: list[str] = []

    async def run(self, query: str, **params: Any) -> MockResult:
        """Run a statement inside the transaction."""
        self.queries.append(query)
        return MockResult(self.graph.execute(query, params))


class FakeSession:
    """Mock Neo4j async session backed by a FakeGraph."""

    def __init__(self, graph: FakeGraph) -> None:
        """Initialize with the backing graph."""
        self.graph = graph

    async def run(self, query: str, **params: Any) -> MockResult:
        """Run an auto-commit statement."""
        return MockResult(self.graph.execute(query, params))

    async def execute_write(self, work: Any) -> Any:
        """Run a unit of work in one write transaction."""
        tx = FakeTransaction(self.graph)
        value = await work(tx)
        self.graph.transactions.append(tx.queries)
        return value

    async def __aenter__(self) -> FakeSession:
        """Enter async context."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context."""


class FakeDriver:
    """Mock Neo4j async driver backed by a FakeGraph."""

    def __init__(self, graph: FakeGraph) -> None:
        """Initialize with the backing graph."""
        self.graph = graph
        self.session_kwargs: list[dict[str, Any]] = []
        self.closed = False

    def session(self, **kwargs: Any) -> FakeSession:
        """Return a new session."""
        self.session_kwargs.append(kwargs)
        return FakeSession(self.graph)

    async def verify_connectivity(self) -> None:
        """Connectivity check (always succeeds)."""

    async def close(self) -> None:
        """Close driver."""
        self.closed = True


# =============================================================================
# DESCRIPTOR FIXTURES
# =============================================================================


def make_descriptor(
    name: str,
    labels: Iterable[str] = ("Person",),
    properties: Iterable[str] = ("id",),
    uniqueness: bool = False,
    **kwargs: Any,
) -> IndexDescriptor:
    """Build a descriptor with sensible defaults for tests."""
    return IndexDescriptor(
        name=name,
        labels_or_types=tuple(labels),
        properties=tuple(properties),
        uniqueness=uniqueness,
        type=kwargs.pop("type", "BTREE"),
        **kwargs,
    )


@pytest.fixture
def quiet_reporter() -> Reporter:
    """Reporter writing to an in-memory buffer."""
    return Reporter(Console(file=io.StringIO(), width=200))


@pytest.fixture
def fake_graph() -> FakeGraph:
    """Empty fake graph running Neo4j 4.4."""
    return FakeGraph()


@pytest.fixture
def fake_driver(fake_graph: FakeGraph) -> FakeDriver:
    """Fake driver over the fake_graph fixture."""
    return FakeDriver(fake_graph)


@pytest.fixture
def tracker(fake_driver: FakeDriver, quiet_reporter: Reporter) -> ProgressTracker:
    """Progress tracker that never sleeps."""
    return ProgressTracker(
        fake_driver,
        reporter=quiet_reporter,
        poll_interval=0,
        start_check_interval=0,
        constraint_attempts=3,
    )

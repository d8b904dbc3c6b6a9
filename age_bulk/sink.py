"""Bulk-write transport boundary and its Apache AGE implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, Sequence

import psycopg
from psycopg_pool import PoolTimeout

from age_bulk.exceptions import TransportError
from age_bulk.models import OperationOutcome, WriteMode, WriteOperation
from age_bulk.utils.serialization import escape_sql_literal, operation_sql

if TYPE_CHECKING:
    from age_bulk.database import Database

log = logging.getLogger(__name__)


class BulkSink(Protocol):
    """Accepts a batch of write operations and reports one outcome per operation.

    Implementations may block and may parallelize internally. They raise
    ``TransportError`` only for failures that make the whole batch (and any
    further batch) impossible, such as a lost connection or an exhausted pool;
    per-operation failures, timeouts included, are reported as outcomes.
    """

    def execute(self, operations: Sequence[WriteOperation], destination: Any = None) -> list[OperationOutcome]:
        ...


class AgeSink:
    """Writes operations to an AGE graph, one Cypher statement per operation.

    Each statement runs in its own transaction block on a single pooled
    connection, so a rejected operation does not roll back the rest of the
    batch. ``destination`` (if given) is the graph name to write to.
    """

    def __init__(self, db: "Database", graph_name: str):
        self._db = db
        self._graph_name = graph_name
        self._known_labels: set[tuple[str, str]] = set()

    @property
    def graph_name(self) -> str:
        return self._graph_name

    def execute(self, operations: Sequence[WriteOperation], destination: Any = None) -> list[OperationOutcome]:
        graph = destination or self._graph_name
        outcomes: list[OperationOutcome] = []
        try:
            with self._db.pool.connection() as conn:
                for operation in operations:
                    outcomes.append(self._execute_one(conn, graph, operation))
        except (psycopg.OperationalError, PoolTimeout) as exc:
            raise TransportError(f"Bulk write to graph '{graph}' failed: {exc}") from exc
        log.debug("Executed %d operations on graph %s", len(outcomes), graph)
        return outcomes

    def _execute_one(self, conn: psycopg.Connection, graph: str, operation: WriteOperation) -> OperationOutcome:
        try:
            sql = operation_sql(graph, operation)
        except ValueError as exc:
            return OperationOutcome.failure(operation, exc, status="invalid")
        try:
            with conn.transaction():
                self._ensure_label(conn, graph, operation)
                rows = conn.execute(sql).fetchall()
        except psycopg.Error as exc:
            # a statement or lock timeout is an OperationalError as well;
            # only a dead connection ends the batch
            if conn.broken or conn.closed:
                raise TransportError(f"Connection to graph '{graph}' lost: {exc}") from exc
            return OperationOutcome.failure(operation, exc, status=exc.sqlstate)
        self._known_labels.add((graph, operation.document.label))
        if not rows:
            return OperationOutcome.failure(operation, "endpoint vertices not found", status="not_found")
        return OperationOutcome.success(operation, status="created" if operation.mode is WriteMode.CREATE else "upserted")

    def _ensure_label(self, conn: psycopg.Connection, graph: str, operation: WriteOperation) -> None:
        """Create the vertex/edge label table on first use; AGE needs it before MATCH on an empty label."""
        kind = "e" if operation.is_edge else "v"
        label = operation.document.label
        if (graph, label) in self._known_labels:
            return
        row = conn.execute(
            "SELECT 1 FROM information_schema.tables WHERE table_schema = %s AND table_name = %s",
            (graph, label),
        ).fetchone()
        if row is None:
            fn = "create_elabel" if kind == "e" else "create_vlabel"
            conn.execute(f"SELECT {fn}('{escape_sql_literal(graph)}', '{escape_sql_literal(label)}')")
            log.info("Created %s label: %s", "edge" if kind == "e" else "vertex", label)

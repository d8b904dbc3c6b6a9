"""Two-pass streaming ingestion of matrix-shaped data into batched graph writes.

Pass one discovers the distinct entities from the header and the first column
and writes them as a single vertex batch. Pass two re-reads the rows and turns
every qualifying cell into an edge, flushing a batch whenever it reaches the
configured size. Memory use stays at one snapshot per distinct entity plus one
batch, whatever the number of cells.
"""

from __future__ import annotations

import logging
import math
from contextlib import closing
from typing import Any, ClassVar, Sequence

from pydantic import BaseModel, ConfigDict, Field

from age_bulk.convert import VertexConverter
from age_bulk.factory import OperationFactory
from age_bulk.icio import SUPPLY_LABEL, CountrySectorVertex, SupplyEdge, is_entity_id
from age_bulk.models import EndpointSnapshot, OperationOutcome, WriteMode
from age_bulk.sink import BulkSink
from age_bulk.sources import TabularSource

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10_000
DEFAULT_MAX_FAILURES_KEPT = 1000


class IngestionConfig(BaseModel):
    """Settings for one ingestion run.

    ``threshold``: cells with a value at or below it are dropped.
    ``destination``: passed to the sink untouched.
    ``max_failures_kept``: how many failed outcomes the report keeps as a
    sample; the failure count itself is always exact.
    """

    model_config: ClassVar[dict] = ConfigDict(frozen=True)

    threshold: float = 1.0
    batch_size: int = Field(DEFAULT_BATCH_SIZE, gt=0)
    mode: WriteMode = WriteMode.UPSERT
    destination: Any = None
    edge_label: str = SUPPLY_LABEL
    max_failures_kept: int = Field(DEFAULT_MAX_FAILURES_KEPT, ge=0)


class IngestionReport(BaseModel):
    vertices: int = 0
    edges: int = 0
    flushes: int = 0
    skipped_rows: int = 0
    skipped_columns: int = 0
    skipped_cells: int = 0
    failed_operations: int = 0
    # first failed outcomes only, up to IngestionConfig.max_failures_kept
    failures: list[OperationOutcome] = Field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.skipped_rows + self.skipped_columns + self.skipped_cells

    @property
    def ok(self) -> bool:
        return self.failed_operations == 0


def _parse_weight(cell: Any) -> float | None:
    try:
        value = float(cell.strip() if isinstance(cell, str) else cell)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class StreamingIngestionPipeline:
    """Streams a tabular source into a bulk sink.

    Flushes are synchronous: a batch is handed to the sink only after the
    previous one returned. If the sink raises, no further input is read, the
    row reader is closed and the error propagates. Per-operation failures are
    collected in the report and never stop the run.

    Usage:
        pipeline = StreamingIngestionPipeline(sink, IngestionConfig(threshold=1.0))
        report = pipeline.run(CsvMatrixSource("icio.csv"))
    """

    def __init__(
        self,
        sink: BulkSink,
        config: IngestionConfig | None = None,
        factory: OperationFactory | None = None,
    ):
        self._sink = sink
        self._config = config or IngestionConfig()
        self._factory = factory or OperationFactory()
        self._vertices = VertexConverter(self._factory.builder)

    @property
    def config(self) -> IngestionConfig:
        return self._config

    def run(self, source: TabularSource) -> IngestionReport:
        report = IngestionReport()
        log.info("Starting ingestion of %r (threshold=%s, batch_size=%d, mode=%s)",
                 source, self._config.threshold, self._config.batch_size, self._config.mode.value)
        snapshots = self._discover(source, report)
        self._load_edges(source, snapshots, report)
        log.info(
            "Ingestion finished: %d vertices, %d edges, %d flushes, %d skipped, %d failed operations",
            report.vertices, report.edges, report.flushes, report.skipped, report.failed_operations,
        )
        return report

    def _discover(self, source: TabularSource, report: IngestionReport) -> dict[str, EndpointSnapshot]:
        entity_ids: dict[str, None] = {}
        for column in source.columns():
            if is_entity_id(column):
                entity_ids.setdefault(column)
            else:
                report.skipped_columns += 1
                log.warning("Skipping column with invalid entity id: %r", column)

        supplier_count = 0
        with closing(source.rows()) as rows:
            for row_id, _ in rows:
                if is_entity_id(row_id):
                    entity_ids.setdefault(row_id)
                    supplier_count += 1
                else:
                    report.skipped_rows += 1
                    log.warning("Skipping row with invalid entity id: %r", row_id)

        log.info("Found %d supplier rows and %d distinct entities", supplier_count, len(entity_ids))

        vertices = [CountrySectorVertex.from_id(entity_id) for entity_id in entity_ids]
        snapshots = {vertex.id: self._vertices.snapshot(vertex) for vertex in vertices}
        if vertices:
            self._flush(vertices, report)
            report.vertices = len(vertices)
        return snapshots

    def _load_edges(
        self, source: TabularSource, snapshots: dict[str, EndpointSnapshot], report: IngestionReport
    ) -> None:
        threshold = self._config.threshold
        batch_size = self._config.batch_size
        columns = [snapshots.get(column) for column in source.columns()]
        batch: list[SupplyEdge] = []

        with closing(source.rows()) as rows:
            for row_id, cells in rows:
                supplier = snapshots.get(row_id)
                if supplier is None:
                    continue
                for consumer, cell in zip(columns, cells):
                    if consumer is None:
                        continue
                    value = _parse_weight(cell)
                    if value is None:
                        report.skipped_cells += 1
                        log.debug("Skipping malformed cell %r at (%s, %s)", cell, row_id, consumer.id)
                        continue
                    if value <= threshold:
                        continue
                    batch.append(
                        SupplyEdge(source=supplier, destination=consumer, label=self._config.edge_label, value=value)
                    )
                    if len(batch) >= batch_size:
                        self._flush(batch, report)
                        report.edges += len(batch)
                        batch = []

        if batch:
            self._flush(batch, report)
            report.edges += len(batch)

    def _flush(self, objects: Sequence[Any], report: IngestionReport) -> None:
        operations = list(self._factory.operations(objects, self._config.mode))
        log.info("Flushing batch %d: %d operations", report.flushes + 1, len(operations))
        outcomes = self._sink.execute(operations, destination=self._config.destination)
        report.flushes += 1
        for outcome in outcomes:
            if outcome.succeeded:
                continue
            document = outcome.operation.document
            log.error("Failed to write %s %s: status=%s error=%s", document.label, document.id,
                      outcome.status, outcome.error)
            report.failed_operations += 1
            if len(report.failures) < self._config.max_failures_kept:
                report.failures.append(outcome)

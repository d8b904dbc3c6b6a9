"""Matrix-shaped tabular sources for streaming ingestion.

A source exposes its column ids and a fresh row iterator per pass, so the
pipeline can scan the data twice without holding it in memory.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Iterator, Protocol, Sequence

log = logging.getLogger(__name__)


class TabularSource(Protocol):
    def columns(self) -> list[str]:
        """Column entity ids (the header without its first cell)."""
        ...

    def rows(self) -> Iterator[tuple[str, Sequence[Any]]]:
        """Yield (row entity id, cells) for every data row, opening the data anew."""
        ...


class CsvMatrixSource:
    """Comma-delimited matrix file.

    The first line is the header: its first cell is ignored, the rest are
    consumer entity ids. Every following line holds a supplier entity id and
    one numeric flow value per consumer column.

    Usage:
        source = CsvMatrixSource("icio.csv")
        columns = source.columns()
        for row_id, cells in source.rows():
            ...
    """

    def __init__(self, path: str | Path, delimiter: str = ",", encoding: str = "utf-8"):
        self.path = Path(path)
        self.delimiter = delimiter
        self.encoding = encoding

    def __repr__(self):
        return f"CsvMatrixSource({str(self.path)!r})"

    def columns(self) -> list[str]:
        with self.path.open(newline="", encoding=self.encoding) as f:
            header = next(csv.reader(f, delimiter=self.delimiter), [])
        return [cell.strip() for cell in header[1:]]

    def rows(self) -> Iterator[tuple[str, Sequence[str]]]:
        # The file stays open only while the generator is alive; closing the
        # generator (or an exception in the consumer) closes it.
        with self.path.open(newline="", encoding=self.encoding) as f:
            reader = csv.reader(f, delimiter=self.delimiter)
            next(reader, None)
            for record in reader:
                if not record:
                    continue
                yield record[0].strip(), record[1:]


class MatrixSource:
    """In-memory matrix: ``matrix[i][j]`` is the flow from ``row_labels[i]`` to ``col_labels[j]``."""

    def __init__(self, matrix: Sequence[Sequence[Any]], row_labels: Sequence[str], col_labels: Sequence[str]):
        if matrix is None or row_labels is None or col_labels is None:
            raise ValueError("Data matrix and labels cannot be None")
        if len(matrix) != len(row_labels):
            raise ValueError("Data matrix rows must match row labels length")
        if any(len(row) != len(col_labels) for row in matrix):
            raise ValueError("Data matrix columns must match column labels length")
        self.matrix = matrix
        self.row_labels = list(row_labels)
        self.col_labels = list(col_labels)

    def columns(self) -> list[str]:
        return list(self.col_labels)

    def rows(self) -> Iterator[tuple[str, Sequence[Any]]]:
        for label, values in zip(self.row_labels, self.matrix):
            yield label, values

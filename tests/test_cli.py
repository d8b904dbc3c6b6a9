"""Tests for the command-line interface (database and sink are mocked)."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from age_bulk.cli import cli
from age_bulk.exceptions import TransportError
from age_bulk.icio import CountrySectorVertex
from age_bulk.models import WriteMode
from tests.conftest import RecordingSink


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("AGE_BULK_BATCH_SIZE", raising=False)
    monkeypatch.delenv("AGE_BULK_MIN_VALUE", raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "icio.csv"
    path.write_text("V1,USA_MANUFACTURING,CHN_SERVICES\nUSA_MANUFACTURING,0,5000000\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def database():
    with patch("age_bulk.cli.Database") as database:
        yield database


def _invoke(runner, sink, args, **kwargs):
    with patch("age_bulk.cli.AgeSink", return_value=sink):
        return runner.invoke(cli, args, obj={}, **kwargs)


class TestIngest:
    def test_ingest(self, runner, database, csv_file):
        sink = RecordingSink()
        result = _invoke(runner, sink, ["ingest", csv_file, "--graph", "trade", "--dsn", "postgresql://h/db"])
        assert result.exit_code == 0, result.output
        assert "Vertices written:   2" in result.output
        assert "Edges written:      1" in result.output
        assert "Operation type: UPSERT" in result.output
        assert database.call_args.args == ("postgresql://h/db",)
        database.return_value.__enter__.return_value.ensure_graph.assert_called_once_with("trade")
        assert sink.destinations == ["trade", "trade"]

    def test_min_value_and_create(self, runner, database, csv_file):
        sink = RecordingSink()
        result = _invoke(runner, sink, ["ingest", csv_file, "-m", "6000000", "--create"])
        assert result.exit_code == 0, result.output
        assert "Edges written:      0" in result.output
        assert {op.mode for op in sink.vertices} == {WriteMode.CREATE}

    def test_batch_size(self, runner, database, tmp_path):
        path = tmp_path / "wide.csv"
        path.write_text("V1,A_X,B_Y,C_Z\nA_X,5,5,5\n", encoding="utf-8")
        sink = RecordingSink()
        result = _invoke(runner, sink, ["ingest", str(path), "-b", "2"])
        assert result.exit_code == 0, result.output
        assert sink.sizes == [3, 2, 1]

    def test_failed_operations_exit_nonzero(self, runner, database, csv_file):
        sink = RecordingSink(fail_ids={"CHN_SERVICES"})
        result = _invoke(runner, sink, ["ingest", csv_file])
        assert result.exit_code == 1
        assert "Failed operations:  1" in result.output

    def test_transport_error(self, runner, database, csv_file):
        sink = RecordingSink()
        with patch.object(sink, "execute", side_effect=TransportError("connection lost")):
            result = _invoke(runner, sink, ["ingest", csv_file])
        assert result.exit_code == 1
        assert "connection lost" in result.output

    def test_missing_file(self, runner, database):
        result = _invoke(runner, RecordingSink(), ["ingest", "nope.csv"])
        assert result.exit_code == 2

    def test_invalid_batch_size(self, runner, database, csv_file):
        result = _invoke(runner, RecordingSink(), ["ingest", csv_file, "-b", "0"])
        assert result.exit_code == 2


class TestSamples:
    @pytest.fixture(autouse=True)
    def fixed_vertices(self):
        vertices = [CountrySectorVertex.from_id(i) for i in ("USA_MINING", "CHN_FINANCE", "BRA_ENERGY")]
        with patch("age_bulk.cli.generate_vertices", return_value=vertices):
            yield vertices

    def test_samples(self, runner, database):
        sink = RecordingSink()
        result = _invoke(runner, sink, ["samples", "--volume", "3", "--factor", "1"])
        assert result.exit_code == 0, result.output
        assert "Generated 3 vertices and 3 edges" in result.output
        assert len(sink.vertices) == 3
        assert len(sink.edges) == 3
        assert "Failed operations: 0" in result.output

    def test_batches_follow_settings(self, runner, database):
        sink = RecordingSink()
        result = _invoke(runner, sink, ["samples", "--factor", "1"], env={"AGE_BULK_BATCH_SIZE": "4"})
        assert result.exit_code == 0, result.output
        assert sink.sizes == [4, 2]

    def test_failures_exit_nonzero(self, runner, database):
        sink = RecordingSink(fail_ids={"USA_MINING"})
        result = _invoke(runner, sink, ["samples", "--factor", "1"])
        assert result.exit_code == 1
        assert "Failed operations: 1" in result.output

    def test_volume_must_allow_edges(self, runner, database):
        result = _invoke(runner, RecordingSink(), ["samples", "--volume", "1"])
        assert result.exit_code == 2

    def test_documents(self, runner, database, fixed_vertices):
        sink = RecordingSink()
        result = _invoke(runner, sink, ["samples", "--volume", "4", "--factor", "1", "--documents"])
        assert result.exit_code == 0, result.output
        assert "Generated 4 vertices and 4 edges" in result.output
        assert len(sink.vertices) == 4
        assert {op.document.id for op in sink.vertices}.isdisjoint(v.id for v in fixed_vertices)
        assert all(op.partition_key_value == op.document.properties["country"] for op in sink.vertices)
        assert all(op.document.source.partition_key == op.document.partition_key for op in sink.edges)

    def test_single_distinct_vertex_is_reported(self, runner, database):
        vertex = CountrySectorVertex.from_id("USA_MINING")
        with patch("age_bulk.cli.generate_vertices", return_value=[vertex, vertex]):
            result = _invoke(runner, RecordingSink(), ["samples", "--volume", "2"])
        assert result.exit_code == 1
        assert "Error: Need at least two distinct vertices" in result.output
        assert "Traceback" not in result.output
        database.assert_not_called()

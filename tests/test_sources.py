"""Tests for CSV and in-memory matrix sources."""

import pytest

from age_bulk.sources import CsvMatrixSource, MatrixSource


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "icio.csv"
    path.write_text(
        "V1,USA_MANUFACTURING,CHN_SERVICES\n"
        "USA_MANUFACTURING,0,5000000\n"
        "\n"
        " CHN_SERVICES ,12.5,0.5\n",
        encoding="utf-8",
    )
    return path


class TestCsvMatrixSource:
    def test_columns_skip_header_corner(self, csv_file):
        assert CsvMatrixSource(csv_file).columns() == ["USA_MANUFACTURING", "CHN_SERVICES"]

    def test_rows(self, csv_file):
        rows = list(CsvMatrixSource(csv_file).rows())
        assert rows == [
            ("USA_MANUFACTURING", ["0", "5000000"]),
            ("CHN_SERVICES", ["12.5", "0.5"]),
        ]

    def test_rows_can_be_read_twice(self, csv_file):
        source = CsvMatrixSource(csv_file)
        assert list(source.rows()) == list(source.rows())

    def test_closing_rows_closes_file(self, csv_file, monkeypatch):
        source = CsvMatrixSource(csv_file)
        opened = []
        original_open = type(csv_file).open

        def tracking_open(self, *args, **kwargs):
            f = original_open(self, *args, **kwargs)
            opened.append(f)
            return f

        monkeypatch.setattr(type(csv_file), "open", tracking_open)
        rows = source.rows()
        next(rows)
        assert not opened[0].closed
        rows.close()
        assert opened[0].closed

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        source = CsvMatrixSource(path)
        assert source.columns() == []
        assert list(source.rows()) == []

    def test_custom_delimiter(self, tmp_path):
        path = tmp_path / "semi.csv"
        path.write_text("x;A_B\nA_B;3\n", encoding="utf-8")
        source = CsvMatrixSource(path, delimiter=";")
        assert source.columns() == ["A_B"]
        assert list(source.rows()) == [("A_B", ["3"])]

    def test_repr(self, csv_file):
        assert "icio.csv" in repr(CsvMatrixSource(csv_file))


class TestMatrixSource:
    def test_columns_and_rows(self):
        source = MatrixSource([[0, 5000000]], ["USA_MANUFACTURING"], ["USA_MANUFACTURING", "CHN_SERVICES"])
        assert source.columns() == ["USA_MANUFACTURING", "CHN_SERVICES"]
        assert list(source.rows()) == [("USA_MANUFACTURING", [0, 5000000])]

    def test_none_rejected(self):
        with pytest.raises(ValueError, match="cannot be None"):
            MatrixSource(None, [], [])

    def test_row_count_mismatch(self):
        with pytest.raises(ValueError, match="rows"):
            MatrixSource([[1]], ["A_B", "C_D"], ["A_B"])

    def test_column_count_mismatch(self):
        with pytest.raises(ValueError, match="columns"):
            MatrixSource([[1, 2]], ["A_B"], ["A_B"])

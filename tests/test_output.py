import csv

import pytest

from thagomizer import output
from thagomizer.abparse import ResultRow
from thagomizer.config import CSV_HEADER
from thagomizer.errors import OutputError
from thagomizer.output import CsvOutput

ROW = ResultRow("Mon, 19 Oct 2026 18:04:11 GMT", "200", "0", "1", "1", "2", "valid", None, "a|b")


def read(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_new_file_gets_header(tmp_path):
    path = tmp_path / "out.csv"
    with CsvOutput(path) as out:
        out.write([ROW])
    assert read(path) == [CSV_HEADER, ["Mon, 19 Oct 2026 18:04:11 GMT", "200", "0", "1", "1", "2", "valid", "", "a|b"]]


def test_existing_file_is_appended_without_header(tmp_path):
    path = tmp_path / "out.csv"
    with CsvOutput(path) as out:
        out.write([ROW])
    with CsvOutput(path) as out:
        out.write([ROW, ROW])
    rows = read(path)
    assert rows.count(CSV_HEADER) == 1
    assert len(rows) == 4


def test_empty_file_gets_header(tmp_path):
    path = tmp_path / "out.csv"
    path.touch()
    CsvOutput(path).close()
    assert read(path) == [CSV_HEADER]


def test_unwritable_path(tmp_path):
    with pytest.raises(OutputError):
        CsvOutput(tmp_path / "missing-dir" / "out.csv")


def test_write_failure(tmp_path, monkeypatch):
    def full_disk(fd):
        raise OSError(28, "No space left on device")

    with CsvOutput(tmp_path / "out.csv") as out:
        monkeypatch.setattr(output.os, "fsync", full_disk)
        with pytest.raises(OutputError):
            out.write([ROW])

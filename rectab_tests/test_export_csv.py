import csv
import io

import pytest

from rectab.column import TabColumn
from rectab.export import (
    ExportArtifact,
    ExportFormat,
    export_records,
    export_table,
    resolve_format,
)
from rectab.projection import build_table


def read_csv(content: bytes):
    return list(csv.reader(io.StringIO(content.decode("utf-8"), newline="")))


def test_attendance_csv(attendance, attendance_columns):
    artifact = export_records(attendance, attendance_columns, "csv")
    assert artifact.file_name == "export.csv"
    assert artifact.media_type == "text/csv"
    assert artifact.content == (
        b"employee,status\r\n"
        b"A,present\r\n"
        b"B,absent\r\n"
        b"C,present\r\n"
    )


def test_header_only(attendance_columns):
    artifact = export_records([], attendance_columns, ExportFormat.CSV)
    assert artifact.content == b"employee,status\r\n"


def test_quoting():
    columns = [TabColumn.for_field("text"), TabColumn.for_field("n")]
    records = [
        {"text": 'He said "hi", then left', "n": 1},
        {"text": "two\nlines", "n": None},
    ]
    rows = read_csv(export_records(records, columns, "csv").content)
    assert rows == [
        ["Text", "N"],
        ['He said "hi", then left', "1"],
        ["two\nlines", ""],
    ]


def test_unicode_without_bom():
    columns = [TabColumn.for_field("name")]
    content = export_records([{"name": "Zoë 名前"}], columns, "csv").content
    assert not content.startswith(b"\xef\xbb\xbf")
    assert "Zoë 名前" in content.decode("utf-8")


def test_custom_file_name(attendance, attendance_columns):
    artifact = export_records(
        attendance, attendance_columns, "csv", file_name="attendance"
    )
    assert artifact.file_name == "attendance.csv"


def test_save(tmp_path, attendance, attendance_columns):
    artifact = export_records(attendance, attendance_columns, "csv")
    path = artifact.save(str(tmp_path / "out"))
    with open(path, "rb") as f:
        assert f.read() == artifact.content


def test_artifact_repr_hides_content():
    artifact = ExportArtifact(
        file_name="a.csv", content=b"x" * 10, fmt=ExportFormat.CSV
    )
    assert "<10 bytes>" in repr(artifact)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("csv", ExportFormat.CSV),
        ("CSV", ExportFormat.CSV),
        ("xlsx", ExportFormat.XLSX),
        ("excel", ExportFormat.XLSX),
        ("pdf", ExportFormat.PDF),
        (ExportFormat.PDF, ExportFormat.PDF),
        ("docx", None),
    ],
)
def test_resolve_format(name, expected):
    assert resolve_format(name) is expected


def test_unknown_format(attendance_columns):
    with pytest.raises(AssertionError):
        export_table(build_table([], attendance_columns), "docx")


def test_format_labels():
    assert [f.label for f in ExportFormat] == ["CSV", "Excel", "PDF"]
    assert ExportFormat.XLSX.extension == "xlsx"

import io
from datetime import date, datetime, timezone

from openpyxl import load_workbook

from rectab.column import TabColumn
from rectab.export import export_records
from rectab.export.xl_writer import XlTableWriter, sanitize_sheet_title
from rectab.letterhead import Letterhead
from rectab.projection import build_table


def load(content: bytes):
    return load_workbook(io.BytesIO(content)).active


def test_attendance_sheet(attendance, attendance_columns):
    artifact = export_records(attendance, attendance_columns, "excel")
    assert artifact.file_name == "export.xlsx"
    ws = load(artifact.content)
    assert [c.value for c in ws[1]] == ["employee", "status"]
    assert [[c.value for c in row] for row in ws.iter_rows(min_row=2)] == [
        ["A", "present"],
        ["B", "absent"],
        ["C", "present"],
    ]
    assert ws.freeze_panes == "A2"
    assert ws[1][0].font.bold


def test_header_only(attendance_columns):
    ws = load(export_records([], attendance_columns, "xlsx").content)
    assert ws.max_row == 1
    assert [c.value for c in ws[1]] == ["employee", "status"]


def test_sheet_title_from_table_title(attendance, attendance_columns):
    ws = load(
        export_records(
            attendance, attendance_columns, "xlsx", title="Attendance: May"
        ).content
    )
    assert ws.title == "Attendance- May"


def test_native_values():
    columns = [
        TabColumn.for_field("n"),
        TabColumn.for_field("f"),
        TabColumn.for_field("d"),
        TabColumn.for_field("t"),
        TabColumn.for_field("ok"),
    ]
    records = [
        {
            "n": 3,
            "f": 2.5,
            "d": date(2024, 1, 2),
            "t": datetime(2024, 1, 2, 3, 4, 5),
            "ok": True,
        }
    ]
    ws = load(export_records(records, columns, "xlsx").content)
    row = [c.value for c in ws[2]]
    assert row[0] == 3
    assert row[1] == 2.5
    assert row[2].date() == date(2024, 1, 2)
    assert row[3] == datetime(2024, 1, 2, 3, 4, 5)
    assert row[4] is True


def test_formulas_are_stored_as_text():
    columns = [TabColumn.for_field("v")]
    ws = load(export_records([{"v": "=1+1"}], columns, "xlsx").content)
    assert ws["A2"].value == "=1+1"
    assert ws["A2"].data_type == "s"


def test_missing_values_leave_empty_cells(people, people_columns):
    ws = load(export_records(people, people_columns, "xlsx").content)
    assert ws["B6"].value is None
    assert ws.max_row == 6


def test_cell_value_conversions():
    writer = XlTableWriter(table=build_table([], []))
    aware = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert writer.cell_value("") is None
    assert writer.cell_value(aware) == "2024-01-02 03:04:05+00:00"
    assert writer.cell_value(["a", "b"]) == "a, b"
    assert writer.cell_value("bad\x00char") == "badchar"


def test_header_uses_accent():
    table = build_table([], [TabColumn.for_field("a")])
    writer = XlTableWriter(table=table, letterhead=Letterhead(accent="#112233"))
    ws = writer.generate().active
    assert ws["A1"].fill.start_color.rgb == "FF112233"


def test_sanitize_sheet_title():
    assert sanitize_sheet_title("a/b[c]") == "a-b-c-"
    assert sanitize_sheet_title("  ") == "Sheet1"
    assert len(sanitize_sheet_title("x" * 40)) == 31

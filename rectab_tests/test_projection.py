from rectab.actions import RowCallbacks, inject_actions
from rectab.column import TabColumn
from rectab.projection import (
    ExportRow,
    build_table,
    exportable_columns,
    project,
    projection_headers,
)
from rectab.search import SearchState, wrap_searchable


def test_attendance_projection(attendance, attendance_columns):
    rows = project(attendance, attendance_columns)
    assert len(rows) == 3
    assert rows[0].cells == (("employee", "A"), ("status", "present"))
    assert [r.as_dict()["employee"] for r in rows] == ["A", "B", "C"]


def test_missing_values_become_empty_strings(people, people_columns):
    rows = project(people, people_columns)
    assert rows[4].values == ["Eve Black", "", 39]


def test_values_keep_their_type(people, people_columns):
    assert project(people[:1], people_columns)[0].values[2] == 31


def test_throwing_accessor_blanks_a_single_cell(people):
    def fragile(record):
        if record["id"] == 3:
            raise ValueError("bad record")
        return record["name"].upper()

    columns = [
        TabColumn.for_field("id"),
        TabColumn(key="upper", accessor=fragile),
    ]
    rows = project(people, columns)
    assert len(rows) == 5
    assert [r.values[1] for r in rows] == [
        "ALICE SMITH",
        "BOB STONE",
        "",
        "DAN BROWN",
        "EVE BLACK",
    ]
    assert [r.values[0] for r in rows] == [1, 2, 3, 4, 5]


def test_columns_without_accessor_are_skipped(people):
    columns = [
        TabColumn.for_field("name"),
        TabColumn(key="avatar", title="Avatar"),
        TabColumn.for_field("age"),
    ]
    assert projection_headers(columns) == ["Name", "Age"]
    assert all(len(row) == 2 for row in project(people, columns))


def test_actions_and_search_wrappers(people, people_columns):
    enhanced = inject_actions(
        wrap_searchable(people_columns, SearchState()),
        RowCallbacks(on_view=print),
    )
    assert exportable_columns(enhanced) == people_columns
    assert projection_headers(enhanced) == ["Name", "Department", "Age"]


def test_render_is_not_applied(people):
    columns = [TabColumn.for_field("age", render=lambda v: f"{v} years")]
    assert project(people[:1], columns)[0].values == [31]


class TestBuildTable:
    def test_headers_without_records(self, attendance_columns):
        table = build_table([], attendance_columns)
        assert table.headers == ("employee", "status")
        assert table.row_count == 0
        assert table.title == "Report"

    def test_title_and_widths(self):
        columns = [
            TabColumn.for_field("a", width=80),
            TabColumn.for_field("b"),
        ]
        table = build_table([{"a": 1, "b": 2}], columns, "Payroll")
        assert table.title == "Payroll"
        assert table.widths == (80, None)
        assert table.column_count == 2
        assert table.value_rows() == [[1, 2]]

    def test_order_is_preserved(self, people, people_columns):
        table = build_table(reversed(people), people_columns)
        assert [r.values[0] for r in table.rows][0] == "Eve Black"


def test_export_row_accessors():
    row = ExportRow(cells=(("A", 1), ("B", "x")))
    assert row.titles == ["A", "B"]
    assert row.values == [1, "x"]
    assert len(row) == 2

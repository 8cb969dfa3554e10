"""Flatten records into ordered (title, value) pairs.

The projection is what every export format and the print document consume,
so they all agree on which columns appear, in which order and with which
values.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from attrs import define, field

from rectab.search import unwrap

logger = logging.getLogger(__name__)

Cell = Tuple[str, Any]


@define(frozen=True)
class ExportRow:
    """The projection of a single record.

    Attributes:
        cells: (title, value) pairs in column order. Missing values are
            represented by empty strings.
    """

    cells: Tuple[Cell, ...] = field(factory=tuple)

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def titles(self) -> List[str]:
        return [title for title, _ in self.cells]

    @property
    def values(self) -> List[Any]:
        return [value for _, value in self.cells]

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.cells)


@define(frozen=True)
class ProjectedTable:
    """Headers and rows ready to be serialized.

    Attributes:
        headers: The titles of the exported columns.
        rows: One entry for each record.
        title: The title of the document.
        widths: Preferred width of each column, if known.
    """

    headers: Tuple[str, ...] = field(factory=tuple)
    rows: Tuple[ExportRow, ...] = field(factory=tuple)
    title: str = field(default="Report")
    widths: Tuple[Optional[int], ...] = field(factory=tuple)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def value_rows(self) -> List[List[Any]]:
        return [row.values for row in self.rows]


def exportable_columns(columns: Iterable[Any]) -> List[Any]:
    """The columns that take part in the projection.

    Search wrappers are replaced by the original columns; columns without
    an accessor (like the actions column) are left out.
    """
    result = []
    for column in columns:
        column = unwrap(column)
        if getattr(column, "accessor", None) is None:
            continue
        result.append(column)
    return result


def project_record(record: Any, columns: Sequence[Any]) -> ExportRow:
    """Project a record using already filtered columns.

    Args:
        record: The record.
        columns: Columns that all have accessors.
    """
    cells = []
    for column in columns:
        value = column.read_value(record)
        cells.append((column.title, "" if value is None else value))
    return ExportRow(cells=tuple(cells))


def projection_headers(columns: Iterable[Any]) -> List[str]:
    return [column.title for column in exportable_columns(columns)]


def project(records: Iterable[Any], columns: Iterable[Any]) -> List[ExportRow]:
    """Flatten records into ordered (title, value) pairs.

    Args:
        records: The records, in the order they should appear.
        columns: The columns of the table, in display order.

    Returns:
        One `ExportRow` for each record.
    """
    selected = exportable_columns(columns)
    return [project_record(record, selected) for record in records]


def build_table(
    records: Iterable[Any],
    columns: Iterable[Any],
    title: Optional[str] = None,
) -> ProjectedTable:
    """Project records into a table with headers.

    The headers are computed from the columns so that an empty set of
    records still produces a header row.
    """
    selected = exportable_columns(columns)
    rows = tuple(project_record(record, selected) for record in records)
    logger.debug(
        "Projected %d records on %d columns", len(rows), len(selected)
    )
    return ProjectedTable(
        headers=tuple(column.title for column in selected),
        rows=rows,
        title=title or "Report",
        widths=tuple(getattr(column, "width", None) for column in selected),
    )

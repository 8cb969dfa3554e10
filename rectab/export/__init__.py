"""Export pipeline.

All formats consume the same `ProjectedTable`, so CSV, Excel and PDF files
always agree on columns, order and values.
"""

import logging
import os
from datetime import datetime
from enum import StrEnum
from typing import Any, Callable, Dict, Iterable, Optional

from attrs import define, field

from rectab.export import csv_writer, pdf_writer, xl_writer
from rectab.letterhead import Letterhead
from rectab.projection import ProjectedTable, build_table

logger = logging.getLogger(__name__)


class ExportFormat(StrEnum):
    """The formats a table can be exported to."""

    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self]

    @property
    def label(self) -> str:
        return LABELS[self]


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    ),
    ExportFormat.PDF: "application/pdf",
}

LABELS = {
    ExportFormat.CSV: "CSV",
    ExportFormat.XLSX: "Excel",
    ExportFormat.PDF: "PDF",
}

# "excel" is what the export menu calls the spreadsheet format.
ALIASES = {"excel": ExportFormat.XLSX}

Serializer = Callable[..., bytes]

SERIALIZERS: Dict[str, Serializer] = {
    ExportFormat.CSV: csv_writer.serialize,
    ExportFormat.XLSX: xl_writer.serialize,
    ExportFormat.PDF: pdf_writer.serialize,
}


@define(frozen=True)
class ExportArtifact:
    """The result of an export.

    Attributes:
        file_name: The suggested file name, including the extension.
        content: The bytes of the file.
        fmt: The format of the file.
    """

    file_name: str
    content: bytes = field(repr=lambda v: f"<{len(v)} bytes>")
    fmt: ExportFormat

    @property
    def media_type(self) -> str:
        return self.fmt.media_type

    def save(self, directory: str) -> str:
        """Write the file into a directory and return its path."""
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, self.file_name)
        with open(path, "wb") as f:
            f.write(self.content)
        logger.debug("Saved %s (%d bytes)", path, len(self.content))
        return path


def resolve_format(fmt: Any) -> Optional[ExportFormat]:
    """Get the format for a name, or None if it is not known."""
    if isinstance(fmt, ExportFormat):
        return fmt
    name = str(fmt).lower()
    if name in ALIASES:
        return ALIASES[name]
    try:
        return ExportFormat(name)
    except ValueError:
        return None


def export_table(
    table: ProjectedTable,
    fmt: Any,
    file_name: str = "export",
    letterhead: Optional[Letterhead] = None,
    generated: Optional[datetime] = None,
) -> ExportArtifact:
    """Serialize a projected table.

    Args:
        table: The table to serialize.
        fmt: One of the `ExportFormat` values (or its name).
        file_name: The file name, without extension.
        letterhead: The identity printed on PDF documents.
        generated: The generation time printed on PDF documents.

    Returns:
        The artifact; nothing is written to disk.
    """
    resolved = resolve_format(fmt)
    serializer = SERIALIZERS.get(resolved) if resolved else None
    assert serializer is not None, f"Unknown export format: {fmt!r}"

    content = serializer(
        table,
        letterhead=letterhead or Letterhead(),
        generated=generated or datetime.now(),
    )
    logger.debug(
        "Exported %d rows of %s as %s", table.row_count, table.title, resolved
    )
    return ExportArtifact(
        file_name=f"{file_name}.{resolved.extension}",  # type: ignore
        content=content,
        fmt=resolved,  # type: ignore
    )


def export_records(
    records: Iterable[Any],
    columns: Iterable[Any],
    fmt: Any,
    file_name: str = "export",
    title: Optional[str] = None,
    letterhead: Optional[Letterhead] = None,
    generated: Optional[datetime] = None,
) -> ExportArtifact:
    """Project the records and serialize them in one step."""
    return export_table(
        build_table(records, columns, title),
        fmt,
        file_name=file_name,
        letterhead=letterhead,
        generated=generated,
    )


__all__ = [
    "ExportArtifact",
    "ExportFormat",
    "export_records",
    "export_table",
    "resolve_format",
]

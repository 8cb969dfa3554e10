import csv
import io
from typing import Any

from rectab.column import format_value
from rectab.projection import ProjectedTable


def serialize(table: ProjectedTable, **kwargs: Any) -> bytes:
    """Write the table as RFC 4180 comma separated values.

    The first line holds the titles of the columns, then one line follows
    for each row. Lines end in CRLF and the result is UTF-8 encoded.
    """
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, dialect="excel", lineterminator="\r\n")
    writer.writerow(table.headers)
    for row in table.rows:
        writer.writerow([format_value(value) for value in row.values])
    return buffer.getvalue().encode("utf-8")

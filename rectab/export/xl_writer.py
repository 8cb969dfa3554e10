import io
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from attrs import define, field
from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from rectab.column import format_value
from rectab.letterhead import Letterhead
from rectab.projection import ProjectedTable

if TYPE_CHECKING:
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

MIN_COLUMN_WIDTH = 8
MAX_COLUMN_WIDTH = 60
PIXELS_PER_CHARACTER = 7


def sanitize_sheet_title(value: str) -> str:
    # Excel sheet titles cannot contain: : \ / ? * [ ] and must be <= 31
    for ch in [":", "\\", "/", "?", "*", "[", "]"]:
        value = value.replace(ch, "-")
    value = value.strip()
    if len(value) > 31:
        value = value[:31]
    return value or "Sheet1"


def _argb(color: str) -> str:
    return "FF" + color.lstrip("#").upper()


@define
class XlTableWriter:
    """Writes a projected table into a single worksheet.

    Row 1 holds the titles of the columns in bold, the data starts on row 2.
    Numbers, dates and booleans are stored as native values; everything else
    is stored as text (so that nothing is ever evaluated as a formula).

    Attributes:
        table: The table to write.
        letterhead: Provides the accent color of the header row.
        workbook: The workbook being created.
        worksheet: The single worksheet of the workbook.
        style_cache: Lazily created openpyxl styles.
    """

    table: ProjectedTable
    letterhead: Letterhead = field(factory=Letterhead)
    workbook: Workbook = field(factory=Workbook, init=False)
    worksheet: "Worksheet" = field(default=None, init=False)
    style_cache: dict[str, Any] = field(factory=dict, init=False)

    def __attrs_post_init__(self) -> None:
        self.worksheet = self.workbook.active
        self.worksheet.title = sanitize_sheet_title(self.table.title)

    @property
    def side_thin(self) -> "Side":
        value = self.style_cache.get("side_thin")
        if value is None:
            from openpyxl.styles import Side

            value = Side(style="thin", color="FFE2E8F0")
            self.style_cache["side_thin"] = value
        return value

    @property
    def border_thin(self) -> "Border":
        value = self.style_cache.get("border_thin")
        if value is None:
            from openpyxl.styles import Border

            value = Border(
                left=self.side_thin,
                top=self.side_thin,
                right=self.side_thin,
                bottom=self.side_thin,
            )
            self.style_cache["border_thin"] = value
        return value

    @property
    def header_font(self) -> "Font":
        value = self.style_cache.get("header_font")
        if value is None:
            from openpyxl.styles import Font

            value = Font(bold=True, size=11, color="FFFFFFFF")
            self.style_cache["header_font"] = value
        return value

    @property
    def header_fill(self) -> "PatternFill":
        value = self.style_cache.get("header_fill")
        if value is None:
            from openpyxl.styles import PatternFill

            color = _argb(self.letterhead.accent)
            value = PatternFill(
                fill_type="solid", start_color=color, end_color=color
            )
            self.style_cache["header_fill"] = value
        return value

    @property
    def align_header(self) -> "Alignment":
        value = self.style_cache.get("align_header")
        if value is None:
            from openpyxl.styles import Alignment

            value = Alignment(
                horizontal="left", vertical="center", wrap_text=True
            )
            self.style_cache["align_header"] = value
        return value

    def setup_page(self) -> None:
        """Print the sheet one page wide, landscape A4."""
        ws = self.worksheet
        ws.page_setup.orientation = ws.ORIENTATION_LANDSCAPE
        ws.page_setup.paperSize = ws.PAPERSIZE_A4
        ws.page_setup.fitToWidth = 1
        ws.page_setup.fitToHeight = 0
        from openpyxl.worksheet.properties import PageSetupProperties

        sheet_props = ws.sheet_properties
        if getattr(sheet_props, "pageSetUpPr", None) is None:
            sheet_props.pageSetUpPr = PageSetupProperties(fitToPage=True)
        else:
            sheet_props.pageSetUpPr.fitToPage = True
        ws.print_title_rows = "1:1"

    def cell_value(self, value: Any) -> Optional[Any]:
        """Convert a projected value into what is stored in the cell."""
        if value is None or value == "":
            return None
        if isinstance(value, (bool, int, float, Decimal)):
            return value
        if isinstance(value, (datetime, time)):
            if value.tzinfo is not None:
                return format_value(value)
            return value
        if isinstance(value, date):
            return value
        return ILLEGAL_CHARACTERS_RE.sub("", format_value(value))

    def write_header(self) -> None:
        for c, title in enumerate(self.table.headers, start=1):
            cell = self.worksheet.cell(row=1, column=c)
            cell.value = title
            cell.data_type = "s"
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.border = self.border_thin
            cell.alignment = self.align_header

    def write_rows(self) -> None:
        for r, row in enumerate(self.table.rows, start=2):
            for c, value in enumerate(row.values, start=1):
                value = self.cell_value(value)
                if value is None:
                    continue
                cell = self.worksheet.cell(row=r, column=c)
                cell.value = value
                if isinstance(value, str):
                    cell.data_type = "s"
                elif isinstance(value, datetime):
                    cell.number_format = "yyyy-mm-dd hh:mm:ss"
                elif isinstance(value, date):
                    cell.number_format = "yyyy-mm-dd"

    def column_width(self, index: int) -> float:
        """Get the width of a column, in characters."""
        widths = self.table.widths
        if index < len(widths) and widths[index]:
            return max(
                MIN_COLUMN_WIDTH, widths[index] / PIXELS_PER_CHARACTER
            )  # type: ignore

        longest = len(self.table.headers[index])
        for row in self.table.rows:
            longest = max(longest, len(format_value(row.values[index])))
        return min(MAX_COLUMN_WIDTH, max(MIN_COLUMN_WIDTH, longest + 2))

    def generate(self) -> Workbook:
        """Fill the worksheet and return the workbook."""
        self.setup_page()
        self.write_header()
        self.write_rows()
        for i in range(self.table.column_count):
            letter = get_column_letter(i + 1)
            self.worksheet.column_dimensions[letter].width = (
                self.column_width(i)
            )
        self.worksheet.freeze_panes = "A2"
        logger.debug(
            "Worksheet %s has %d data rows",
            self.worksheet.title,
            self.table.row_count,
        )
        return self.workbook


def serialize(
    table: ProjectedTable,
    letterhead: Optional[Letterhead] = None,
    **kwargs: Any,
) -> bytes:
    """Write the table as an Office Open XML workbook."""
    writer = XlTableWriter(table=table, letterhead=letterhead or Letterhead())
    workbook = writer.generate()
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()

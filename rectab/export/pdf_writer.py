import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from attrs import define, field
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

from rectab.column import format_value
from rectab.export.pdf_fonts import bold_font, ensure_fonts
from rectab.letterhead import Letterhead, generated_label
from rectab.projection import ProjectedTable

logger = logging.getLogger(__name__)

FONT_SIZE = 9
SIDE_MARGIN = 15 * mm
TOP_MARGIN = 55 * mm
BOTTOM_MARGIN = 25 * mm
BAND_HEIGHT = 35 * mm
ACCENT_HEIGHT = 2 * mm
LANDSCAPE_AFTER = 6
DEFAULT_COLUMN_WIDTH = 100

TITLE_COLOR = colors.Color(30 / 255, 41 / 255, 59 / 255)
MUTED_COLOR = colors.Color(100 / 255, 116 / 255, 139 / 255)
ADDRESS_COLOR = colors.Color(150 / 255, 150 / 255, 150 / 255)
FOOTER_COLOR = colors.Color(148 / 255, 163 / 255, 184 / 255)
RULE_COLOR = colors.Color(226 / 255, 232 / 255, 240 / 255)
STRIPE_COLOR = colors.Color(248 / 255, 250 / 255, 252 / 255)


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers the footer until the page count is known."""

    def __init__(self, *args: Any, writer: "PdfTableWriter", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._writer = writer
        self._saved_page_states: List[Dict[str, Any]] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._writer.draw_footer(self, self._pageNumber, total)
            super().showPage()
        super().save()


@define
class PdfTableWriter:
    """Creates a PDF document with the letterhead and a ruled table.

    Attributes:
        table: The table to write.
        letterhead: The corporate identity drawn on each page.
        generated: The moment the document is generated.
        family: The font family; resolved when the writer is created.
        cache: Lazily created paragraph styles.
    """

    table: ProjectedTable
    letterhead: Letterhead = field(factory=Letterhead)
    generated: datetime = field(factory=datetime.now)
    family: str = field(default=None)
    cache: Dict[str, Any] = field(factory=dict, init=False)

    def __attrs_post_init__(self) -> None:
        if self.family is None:
            self.family = ensure_fonts()

    @property
    def pagesize(self):
        if self.table.column_count > LANDSCAPE_AFTER:
            return landscape(A4)
        return A4

    @property
    def accent(self) -> colors.Color:
        return colors.HexColor(self.letterhead.accent)

    @property
    def head_style(self) -> ParagraphStyle:
        """Paragraph style of the header cells."""
        value = self.cache.get("head_style")
        if value is None:
            value = ParagraphStyle(
                "TabHead",
                fontName=bold_font(self.family),
                fontSize=FONT_SIZE,
                leading=FONT_SIZE * 1.2,
                textColor=colors.white,
            )
            self.cache["head_style"] = value
        return value

    @property
    def body_style(self) -> ParagraphStyle:
        """Paragraph style of the data cells."""
        value = self.cache.get("body_style")
        if value is None:
            value = ParagraphStyle(
                "TabBody",
                fontName=self.family,
                fontSize=FONT_SIZE,
                leading=FONT_SIZE * 1.2,
                textColor=TITLE_COLOR,
            )
            self.cache["body_style"] = value
        return value

    def paragraph(self, value: Any, style: ParagraphStyle) -> Paragraph:
        text = escape(format_value(value)).replace("\n", "<br/>")
        return Paragraph(text, style)

    def column_widths(self) -> List[float]:
        """Spread the usable page width according to the width hints."""
        available = self.pagesize[0] - 2 * SIDE_MARGIN
        hints = [
            (w or DEFAULT_COLUMN_WIDTH) for w in self.table.widths
        ] or [DEFAULT_COLUMN_WIDTH]
        hints += [DEFAULT_COLUMN_WIDTH] * (self.table.column_count - len(hints))
        hints = hints[: max(1, self.table.column_count)]
        total = float(sum(hints))
        return [available * h / total for h in hints]

    def table_styles(self) -> List[Any]:
        return [
            ("BACKGROUND", (0, 0), (-1, 0), self.accent),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE_COLOR]),
            ("GRID", (0, 0), (-1, -1), 0.25, RULE_COLOR),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LEFTPADDING", (0, 0), (-1, -1), 4),
            ("RIGHTPADDING", (0, 0), (-1, -1), 4),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]

    def create_table(self) -> Optional[Table]:
        """Create the table flowable; the header repeats on each page.

        Rows taller than a page are split between pages.
        """
        if not self.table.column_count:
            return None
        head, body = self.head_style, self.body_style
        data = [[self.paragraph(h, head) for h in self.table.headers]]
        for row in self.table.rows:
            data.append([self.paragraph(v, body) for v in row.values])
        result = Table(
            data,
            colWidths=self.column_widths(),
            repeatRows=1,
            splitInRow=1,
            hAlign="LEFT",
        )
        result.setStyle(TableStyle(self.table_styles()))
        return result

    def build_story(self) -> List[Any]:
        table = self.create_table()
        if table is None:
            logger.debug("PDF export without columns")
            return [Paragraph("", self.body_style)]
        return [table]

    def draw_header(self, canv: canvas.Canvas, doc: Any) -> None:
        """Draw the letterhead band and the title of the document."""
        width, height = doc.pagesize
        lh = self.letterhead
        bold = bold_font(self.family)

        canv.saveState()
        canv.setFillColor(colors.HexColor(lh.band))
        canv.rect(0, height - BAND_HEIGHT, width, BAND_HEIGHT, stroke=0, fill=1)
        canv.setFillColor(self.accent)
        canv.rect(
            0,
            height - BAND_HEIGHT - ACCENT_HEIGHT,
            width,
            ACCENT_HEIGHT,
            stroke=0,
            fill=1,
        )

        # Company name: the first word large, the rest below it.
        first, _, rest = lh.company.partition(" ")
        canv.setFont(bold, 22)
        canv.drawString(SIDE_MARGIN, height - 18 * mm, first)
        if rest:
            canv.setFont(bold, 8)
            canv.drawString(SIDE_MARGIN, height - 25 * mm, rest)

        canv.setFont(self.family, 8)
        canv.setFillColor(ADDRESS_COLOR)
        canv.drawRightString(width - SIDE_MARGIN, height - 15 * mm, lh.address)
        canv.drawRightString(
            width - SIDE_MARGIN,
            height - 22 * mm,
            f"Tel: {lh.phone} | {lh.email}",
        )

        canv.setFont(bold, 14)
        canv.setFillColor(TITLE_COLOR)
        canv.drawString(SIDE_MARGIN, height - 48 * mm, self.table.title)
        canv.setFont(self.family, 9)
        canv.setFillColor(MUTED_COLOR)
        canv.drawRightString(
            width - SIDE_MARGIN,
            height - 48 * mm,
            generated_label(self.generated),
        )
        canv.restoreState()

    def draw_footer(self, canv: canvas.Canvas, page: int, total: int) -> None:
        width = canv._pagesize[0]
        canv.saveState()
        canv.setStrokeColor(RULE_COLOR)
        canv.line(SIDE_MARGIN, 20 * mm, width - SIDE_MARGIN, 20 * mm)
        canv.setFont(self.family, 8)
        canv.setFillColor(FOOTER_COLOR)
        canv.drawString(SIDE_MARGIN, 12 * mm, self.letterhead.confidentiality)
        canv.drawCentredString(width / 2, 12 * mm, f"Page {page} of {total}")
        canv.drawRightString(
            width - SIDE_MARGIN, 12 * mm, self.letterhead.website
        )
        canv.restoreState()

    def generate(self) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            leftMargin=SIDE_MARGIN,
            rightMargin=SIDE_MARGIN,
            topMargin=TOP_MARGIN,
            bottomMargin=BOTTOM_MARGIN,
            title=self.table.title,
            author=self.letterhead.company,
        )
        doc.build(
            self.build_story(),
            onFirstPage=self.draw_header,
            onLaterPages=self.draw_header,
            canvasmaker=lambda *a, **kw: NumberedCanvas(*a, writer=self, **kw),
        )
        return buffer.getvalue()


def serialize(
    table: ProjectedTable,
    letterhead: Optional[Letterhead] = None,
    generated: Optional[datetime] = None,
    **kwargs: Any,
) -> bytes:
    """Write the table as a paginated PDF document."""
    writer = PdfTableWriter(
        table=table,
        letterhead=letterhead or Letterhead(),
        generated=generated or datetime.now(),
    )
    return writer.generate()

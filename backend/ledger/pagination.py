"""Table layout and first-page capacity planning for billing reports.

The planner decides how many rows fit on the first page so that short reports
can be padded with blank rows and the footer band always starts at the same
height. Rows beyond that capacity are left to the document template, which
splits the table across pages on its own and repeats the header row.
"""

from __future__ import annotations

import html
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, Table, TableStyle

logger = logging.getLogger(__name__)


ROW_HEIGHT = 20.0
HEADER_BAND_HEIGHT = 108.0
TITLE_FONT_SIZE = 16.0
TITLE_SPACE_BEFORE = 28.35  # 1 cm
TITLE_SPACE_AFTER = 5.67  # 0.2 cm
FOOTER_BAND_HEIGHT = 50.0
SIGNATURE_BLOCK_HEIGHT = 20.0
CELL_PADDING = 5
CELL_FONT_SIZE = 10.0
CELL_LEADING = 12.0

CELL_STYLE = ParagraphStyle(
    "LedgerCell",
    fontName="Helvetica",
    fontSize=CELL_FONT_SIZE,
    leading=CELL_LEADING,
)


@dataclass(frozen=True)
class GridColumn:
    key: str
    label: str
    ratio: float


COLUMNS: Tuple[GridColumn, ...] = (
    GridColumn("date", "Date", 2),
    GridColumn("student", "Student", 2),
    GridColumn("subject", "Subject", 2),
    GridColumn("school", "School", 2),
    GridColumn("category", "Project", 2),
    GridColumn("hours", "Time", 1),
)


def select_columns(fields: Optional[Sequence[str]] = None) -> Tuple[GridColumn, ...]:
    if not fields:
        return COLUMNS
    wanted = set(fields)
    return tuple(column for column in COLUMNS if column.key in wanted)


@dataclass(frozen=True)
class PageGeometry:
    """Page size, margins and the heights reserved around the data grid."""

    page_width: float = letter[0]
    page_height: float = letter[1]
    left_margin: float = 36.0
    right_margin: float = 36.0
    top_margin: float = 108.0
    bottom_margin: float = 72.0
    header_band_height: float = HEADER_BAND_HEIGHT
    title_block_height: float = TITLE_FONT_SIZE + TITLE_SPACE_BEFORE + TITLE_SPACE_AFTER
    footer_band_height: float = FOOTER_BAND_HEIGHT
    signature_block_height: float = SIGNATURE_BLOCK_HEIGHT
    row_height: float = ROW_HEIGHT

    @property
    def pagesize(self) -> Tuple[float, float]:
        return (self.page_width, self.page_height)

    @property
    def content_width(self) -> float:
        return self.page_width - self.left_margin - self.right_margin

    @property
    def available_height(self) -> float:
        return (
            self.page_height
            - self.top_margin
            - self.bottom_margin
            - self.header_band_height
            - self.title_block_height
            - self.footer_band_height
            - self.signature_block_height
        )

    def first_page_capacity(self) -> int:
        available = self.available_height
        if available <= 0:
            return 0
        return int(available // self.row_height)


class ParsedDuration(NamedTuple):
    value: float
    parseable: bool


def parse_duration(raw: Any) -> ParsedDuration:
    """Read a duration cell as hours.

    Blank, non-numeric, negative and non-finite values come back with
    ``parseable=False`` and a value of 0.
    """
    if raw is None:
        return ParsedDuration(0.0, False)
    try:
        value = float(str(raw).strip())
    except ValueError:
        return ParsedDuration(0.0, False)
    if not math.isfinite(value) or value < 0:
        return ParsedDuration(0.0, False)
    return ParsedDuration(value, True)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


@dataclass
class ReportGrid:
    columns: Tuple[GridColumn, ...]
    capacity: int
    data_rows: List[List[str]] = field(default_factory=list)
    filler_rows: int = 0

    @property
    def header(self) -> List[str]:
        return [column.label for column in self.columns]

    def filler_row(self) -> List[str]:
        return [" " for _ in self.columns]

    def rows(self) -> List[List[str]]:
        rows = [self.header]
        rows.extend(self.data_rows)
        rows.extend(self.filler_row() for _ in range(self.filler_rows))
        return rows

    def column_widths(self, total_width: float) -> List[float]:
        ratio_sum = sum(column.ratio for column in self.columns)
        return [total_width * column.ratio / ratio_sum for column in self.columns]

    def to_table(self, total_width: float, row_height: float = ROW_HEIGHT) -> Table:
        """Build the reportlab table.

        Data cells are paragraphs so long values wrap inside their column and
        the row grows to fit. Filler rows keep the fixed ``row_height``.
        """
        rows: List[List[Any]] = [self.header]
        rows.extend(
            [Paragraph(html.escape(text, quote=False), CELL_STYLE) for text in row] for row in self.data_rows
        )
        rows.extend(self.filler_row() for _ in range(self.filler_rows))
        row_heights: List[Optional[float]] = (
            [None] * (1 + len(self.data_rows)) + [row_height] * self.filler_rows
        )
        # a one-line paragraph plus padding fills exactly one row_height
        vertical_padding = max((row_height - CELL_LEADING) / 2, 0)
        table = Table(
            rows,
            colWidths=self.column_widths(total_width),
            rowHeights=row_heights,
            repeatRows=1,
            hAlign="CENTER",
        )
        table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 12),
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.lightgrey),
                    ("FONT", (0, 1), (-1, -1), "Helvetica", 10),
                    ("LEFTPADDING", (0, 0), (-1, -1), CELL_PADDING),
                    ("RIGHTPADDING", (0, 0), (-1, -1), CELL_PADDING),
                    ("TOPPADDING", (0, 0), (-1, -1), vertical_padding),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), vertical_padding),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        return table


class LayoutResult(NamedTuple):
    grid: ReportGrid
    total: float


def plan_layout(
    records: Iterable[Any],
    geometry: PageGeometry = PageGeometry(),
    columns: Tuple[GridColumn, ...] = COLUMNS,
) -> LayoutResult:
    """Lay records into the report grid and sum their hours.

    Every record becomes one row in input order. Blank rows pad the first page
    up to its capacity; records past the capacity stay in the grid and flow
    onto later pages. Hours that do not parse are rendered as-is and left out
    of the total.
    """
    capacity = geometry.first_page_capacity()
    logger.debug(
        "[layout] available_height=%.2f row_height=%.2f capacity=%d",
        geometry.available_height,
        geometry.row_height,
        capacity,
    )
    grid = ReportGrid(columns=columns, capacity=capacity)
    total = 0.0
    for record in records:
        grid.data_rows.append([_cell_text(getattr(record, column.key, None)) for column in columns])
        parsed = parse_duration(getattr(record, "hours", None))
        if parsed.parseable:
            total += parsed.value
        else:
            logger.warning(
                "[layout] skipping unparseable hours record_id=%s date=%s hours=%r",
                getattr(record, "id", None),
                getattr(record, "date", None),
                getattr(record, "hours", None),
            )
    grid.filler_rows = max(capacity - len(grid.data_rows), 0)
    return LayoutResult(grid=grid, total=total)

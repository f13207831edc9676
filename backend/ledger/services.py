from __future__ import annotations

import functools
import hashlib
import html
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from openpyxl import Workbook
from PyPDF2 import PdfReader
from PyPDF2.errors import PyPdfError
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import BaseDocTemplate, Frame, PageTemplate, Paragraph
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .config import settings
from .exceptions import DocumentWriteError, FinalizationError, ReportGenerationError, ReportQueryError
from .models import LedgerEntry
from .page_events import ReportBranding, ReportCanvas, ReportPageDecorator
from .pagination import (
    TITLE_FONT_SIZE,
    TITLE_SPACE_AFTER,
    TITLE_SPACE_BEFORE,
    LayoutResult,
    PageGeometry,
    plan_layout,
    select_columns,
)
from .schemas import LedgerEntryCreate, ReportRequest, ReportResult
from .utils import report_filename

logger = logging.getLogger(__name__)


TITLE_STYLE = ParagraphStyle(
    "ReportTitle",
    fontName="Helvetica-Bold",
    fontSize=TITLE_FONT_SIZE,
    leading=TITLE_FONT_SIZE * 1.2,
    alignment=TA_CENTER,
    spaceBefore=TITLE_SPACE_BEFORE,
    spaceAfter=TITLE_SPACE_AFTER,
)

TOTAL_STYLE = ParagraphStyle(
    "ReportTotal",
    fontName="Helvetica-Bold",
    fontSize=12,
    leading=14.4,
    alignment=TA_RIGHT,
)

SIGNATURE_STYLE = ParagraphStyle(
    "ReportSignature",
    fontName="Helvetica",
    fontSize=12,
    leading=14.4,
    alignment=TA_RIGHT,
    spaceBefore=50,
)


def create_entry(db: Session, payload: LedgerEntryCreate) -> LedgerEntry:
    entry = LedgerEntry(**payload.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("[entries] created id=%s date=%s category=%s", entry.id, entry.date, entry.category)
    return entry


def list_entries(db: Session) -> List[LedgerEntry]:
    return db.query(LedgerEntry).order_by(LedgerEntry.id.asc()).all()


def build_report_query(
    db: Session,
    start_date: str,
    end_date: str,
    categories: Iterable[str],
    student: Optional[str] = None,
) -> Query:
    """Entries dated between the two ISO strings, inclusive, in the given categories.

    The IN clause gets one bound parameter per category. Dates are compared
    as text, which matches calendar order for zero-padded ISO dates.
    """
    selected = list(categories)
    if not selected:
        raise ValueError("At least one category must be selected")
    conditions = [
        LedgerEntry.date.between(start_date, end_date),
        LedgerEntry.category.in_(selected),
    ]
    if student:
        conditions.append(LedgerEntry.student == student)
    return db.query(LedgerEntry).filter(and_(*conditions)).order_by(LedgerEntry.date.asc())


def fetch_report_entries(
    db: Session,
    start_date: str,
    end_date: str,
    categories: Iterable[str],
    student: Optional[str] = None,
) -> List[LedgerEntry]:
    query = build_report_query(db, start_date, end_date, categories, student)
    try:
        entries = query.all()
    except SQLAlchemyError as exc:
        logger.error("[report] query failed start=%s end=%s error=%s", start_date, end_date, exc)
        raise ReportQueryError(f"Error fetching data: {exc}") from exc
    logger.info("[report] fetched rows=%d start=%s end=%s", len(entries), start_date, end_date)
    return entries


def _report_story(
    request: ReportRequest,
    layout: LayoutResult,
    geometry: PageGeometry,
    signature_line: bool,
) -> list:
    story = [
        Paragraph(html.escape(f"INVOICE: {request.start_date} to {request.end_date}", quote=False), TITLE_STYLE),
        layout.grid.to_table(geometry.content_width, geometry.row_height),
        Paragraph(f"Total Billed Hours: {layout.total:,.2f}", TOTAL_STYLE),
    ]
    if signature_line:
        story.append(Paragraph("Signature: _______________________", SIGNATURE_STYLE))
    return story


def _write_report_pdf(
    path: Path,
    request: ReportRequest,
    layout: LayoutResult,
    branding: ReportBranding,
    geometry: PageGeometry,
    signature_line: bool,
) -> int:
    decorator = ReportPageDecorator(branding=branding, geometry=geometry)
    with path.open("wb") as handle:
        doc = BaseDocTemplate(
            handle,
            pagesize=geometry.pagesize,
            leftMargin=geometry.left_margin,
            rightMargin=geometry.right_margin,
            topMargin=geometry.top_margin,
            bottomMargin=geometry.bottom_margin,
            title=f"Ledger Report {request.start_date} to {request.end_date}",
        )
        frame = Frame(doc.leftMargin, doc.bottomMargin, doc.width, doc.height, id="body")
        doc.addPageTemplates([PageTemplate(id="report", frames=[frame], onPageEnd=decorator.on_page)])
        try:
            doc.build(
                _report_story(request, layout, geometry, signature_line),
                canvasmaker=functools.partial(ReportCanvas, decorator=decorator),
            )
        except (OSError, ReportGenerationError):
            raise
        except Exception as exc:
            raise FinalizationError(f"Error generating PDF: {exc}") from exc
    if decorator.pending is None:
        raise FinalizationError("Document was never opened")
    page_count = decorator.pending.value
    _verify_page_count(path, page_count)
    return page_count


def _verify_page_count(path: Path, expected: int) -> None:
    try:
        reader = PdfReader(str(path))
        actual = len(reader.pages)
    except PyPdfError as exc:
        raise FinalizationError(f"Written report is not a readable PDF: {exc}") from exc
    if actual != expected:
        raise FinalizationError(f"Report has {actual} pages but its footer says {expected}")


def _write_report_xlsx(path: Path, layout: LayoutResult) -> None:
    grid = layout.grid
    wb = Workbook()
    ws = wb.active
    ws.title = "Ledger"
    ws.append(grid.header)
    for row in grid.data_rows:
        ws.append(row)
    ws.append([])
    ws.append(["Total Billed Hours", round(layout.total, 2)])
    with path.open("wb") as handle:
        wb.save(handle)


def _checksum_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("[report] could not remove partial file path=%s error=%s", path, exc)
    else:
        logger.info("[report] removed partial file path=%s", path)


def generate_report(
    db: Session,
    request: ReportRequest,
    destination_dir: Optional[Path] = None,
    *,
    branding: Optional[ReportBranding] = None,
    geometry: Optional[PageGeometry] = None,
    signature_line: Optional[bool] = None,
) -> ReportResult:
    """Query, lay out and write one billing report.

    Raises a :class:`ReportGenerationError` subclass on any fatal failure; no
    file is left behind in that case.
    """
    if request.start_date > request.end_date:
        logger.warning(
            "[report] start date after end date start=%s end=%s", request.start_date, request.end_date
        )
    entries = fetch_report_entries(
        db, request.start_date, request.end_date, request.categories, request.student
    )
    geometry = geometry or PageGeometry()
    branding = branding or ReportBranding.from_settings(settings)
    if signature_line is None:
        signature_line = settings.signature_line
    layout = plan_layout(entries, geometry, select_columns(request.display_fields))

    directory = Path(destination_dir) if destination_dir is not None else settings.export_dir
    path = directory / report_filename(request.start_date, request.end_date, request.format)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DocumentWriteError(f"Cannot create report directory {directory}: {exc}") from exc

    logger.info("[report] rendering path=%s format=%s rows=%d", path, request.format, len(layout.grid.data_rows))
    page_count: Optional[int] = None
    try:
        if request.format == "pdf":
            page_count = _write_report_pdf(path, request, layout, branding, geometry, signature_line)
        else:
            _write_report_xlsx(path, layout)
    except OSError as exc:
        _discard(path)
        raise DocumentWriteError(f"Error writing report {path}: {exc}") from exc
    except ReportGenerationError:
        _discard(path)
        raise

    result = ReportResult(
        path=path,
        format=request.format,
        page_count=page_count,
        total_hours=round(layout.total, 2),
        row_count=len(layout.grid.data_rows),
        checksum=_checksum_file(path),
    )
    logger.info("[report] written path=%s pages=%s total=%.2f", path, page_count, layout.total)
    return result

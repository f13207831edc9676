"""Recurring header/footer drawing and the deferred "Page N of M" total.

The total page count is unknown while pages are being laid out. Each footer
therefore draws a reference to a shared PDF form XObject that is left empty
until the canvas is saved; at that point the form receives the real count and
every page that references it shows the same number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from .exceptions import FinalizationError
from .pagination import PageGeometry

logger = logging.getLogger(__name__)


PLACEHOLDER_WIDTH = 30
PLACEHOLDER_HEIGHT = 16
PLACEHOLDER_BASELINE = 6
DIGIT_WIDTH = 5
FOOTER_FONT = ("Helvetica", 8)
HEADER_FONT = ("Helvetica", 12)
HEADER_LEADING = 14
FOOTER_TOP = 50.0
FOOTER_HEIGHT = 40.0
FOOTER_RATIOS = (24, 2, 1)
BAND_INSET = 2.0


@dataclass(frozen=True)
class ReportBranding:
    organization_lines: Tuple[str, ...] = ()
    copyright_notice: str = ""

    @classmethod
    def from_settings(cls, settings: Any) -> "ReportBranding":
        return cls(
            organization_lines=tuple(settings.organization_lines),
            copyright_notice=settings.copyright_notice,
        )


class PendingPageTotal:
    """Handle for the page total, reserved at open and resolved once at close."""

    def __init__(self, form_name: str = "ledgerPageTotal") -> None:
        self.form_name = form_name
        self._value: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self._value is not None

    @property
    def value(self) -> int:
        if self._value is None:
            raise FinalizationError("Total page count was never written")
        return self._value

    def place(self, canv: canvas.Canvas, x: float, y: float) -> None:
        """Reference the (possibly still empty) form at ``x``/``y``."""
        canv.saveState()
        canv.translate(x, y)
        canv.doForm(self.form_name)
        canv.restoreState()

    def resolve(self, canv: canvas.Canvas, page_count: int) -> None:
        if self._value is not None:
            raise FinalizationError("Total page count was already written")
        if page_count < 1:
            raise FinalizationError(f"Cannot write a total of {page_count} pages")
        text = str(page_count)
        canv.beginForm(
            self.form_name,
            lowerx=0,
            lowery=0,
            upperx=PLACEHOLDER_WIDTH,
            uppery=PLACEHOLDER_HEIGHT,
        )
        canv.setFont(*FOOTER_FONT)
        # right edge grows with the digit count so the number hugs the label
        canv.drawRightString(len(text) * DIGIT_WIDTH, PLACEHOLDER_BASELINE, text)
        canv.endForm()
        self._value = page_count


@dataclass
class ReportPageDecorator:
    """Page lifecycle observer for one report document."""

    branding: ReportBranding
    geometry: PageGeometry = field(default_factory=PageGeometry)
    pending: Optional[PendingPageTotal] = None
    pages_drawn: int = 0

    def on_open(self, canv: canvas.Canvas) -> None:
        if self.pending is not None:
            raise FinalizationError("Page decorator is already bound to a document")
        self.pending = PendingPageTotal()
        logger.debug("[report] reserved page total form=%s", self.pending.form_name)

    def on_page(self, canv: canvas.Canvas, doc: Any = None) -> None:
        if self.pending is None:
            raise FinalizationError("Page drawn before the document was opened")
        self.pages_drawn += 1
        canv.saveState()
        self._draw_header(canv)
        self._draw_footer(canv, canv.getPageNumber())
        canv.restoreState()

    def on_close(self, canv: canvas.Canvas) -> None:
        if self.pending is None:
            raise FinalizationError("Document closed before it was opened")
        self.pending.resolve(canv, self.pages_drawn)
        logger.info("[report] resolved page total pages=%d", self.pages_drawn)

    @property
    def band_left(self) -> float:
        return self.geometry.left_margin - BAND_INSET

    @property
    def band_width(self) -> float:
        return self.geometry.content_width + 2 * BAND_INSET

    def _draw_header(self, canv: canvas.Canvas) -> None:
        page_height = self.geometry.page_height
        rule_y = page_height - self.geometry.top_margin + 8
        x = self.band_left + 10
        y = page_height - 40
        canv.setFont(*HEADER_FONT)
        canv.setFillColor(colors.black)
        for line in self.branding.organization_lines:
            canv.drawString(x, y, line)
            y -= HEADER_LEADING
        canv.setStrokeColor(colors.lightgrey)
        canv.setLineWidth(0.5)
        canv.line(self.band_left, rule_y, self.band_left + self.band_width, rule_y)

    def _footer_columns(self) -> Sequence[float]:
        ratio_sum = sum(FOOTER_RATIOS)
        return [self.band_width * ratio / ratio_sum for ratio in FOOTER_RATIOS]

    def _draw_footer(self, canv: canvas.Canvas, page_number: int) -> None:
        notice_width, label_width, _ = self._footer_columns()
        left = self.band_left
        baseline = FOOTER_TOP - FOOTER_HEIGHT / 2
        canv.setStrokeColor(colors.lightgrey)
        canv.setLineWidth(0.5)
        canv.line(left, FOOTER_TOP, left + self.band_width, FOOTER_TOP)

        canv.setFont(*FOOTER_FONT)
        canv.setFillColor(colors.black)
        canv.drawString(left + BAND_INSET, baseline, self.branding.copyright_notice)

        label = f"Page {page_number} of"
        label_right = left + notice_width + label_width - BAND_INSET
        canv.drawRightString(label_right, baseline, label)

        placeholder_x = left + notice_width + label_width + BAND_INSET
        self.pending.place(canv, placeholder_x, baseline - PLACEHOLDER_BASELINE)


class ReportCanvas(canvas.Canvas):
    """Canvas that reports its open and save to a :class:`ReportPageDecorator`."""

    def __init__(self, *args: Any, decorator: ReportPageDecorator, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._decorator = decorator
        decorator.on_open(self)

    def save(self) -> None:
        self._decorator.on_close(self)
        super().save()

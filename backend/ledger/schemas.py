from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from typing_extensions import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import REPORT_CATEGORIES
from .utils import clean_notes, normalize_category_selection

STUDENT_PATTERN = re.compile(r"^[A-Z][a-z][A-Z][a-z]$")

QUARTER_HOUR = Decimal("0.25")

DISPLAY_FIELDS = ("date", "student", "subject", "school", "category", "hours")


class LedgerEntryCreate(BaseModel):
    date: str
    student: str
    subject: str
    school: str
    category: str
    hours: str
    notes: str = ""
    complete: bool = False

    @field_validator("date")
    @classmethod
    def _validate_date(cls, value: str) -> str:
        text = value.strip()
        try:
            parsed = dt.date.fromisoformat(text)
        except ValueError as exc:
            raise ValueError("Date must be in the format YYYY-MM-DD") from exc
        return parsed.isoformat()

    @field_validator("student")
    @classmethod
    def _validate_student(cls, value: str) -> str:
        if not STUDENT_PATTERN.match(value):
            raise ValueError("Student field must be in the format XxXx (e.g., AbCd)")
        return value

    @field_validator("subject", "school")
    @classmethod
    def _require_text(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("Field must not be empty")
        return text

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: str) -> str:
        text = value.strip()
        if text not in REPORT_CATEGORIES:
            raise ValueError(f"Unknown category: {text}")
        return text

    @field_validator("hours", mode="before")
    @classmethod
    def _validate_hours(cls, value: object) -> str:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError("Time must be a number of hours") from exc
        if not amount.is_finite() or amount < 0:
            raise ValueError("Time must be a non-negative number of hours")
        if amount % QUARTER_HOUR != 0:
            raise ValueError("Time must be rounded to the nearest quarter hour")
        return f"{amount:.2f}"

    @field_validator("notes")
    @classmethod
    def _clean_notes(cls, value: str) -> str:
        return clean_notes(value)


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    date: str
    student: str
    subject: str
    school: str
    category: str
    hours: str
    notes: str
    complete: bool


class ReportRequest(BaseModel):
    start_date: str
    end_date: str
    categories: List[str] = Field(default_factory=lambda: list(REPORT_CATEGORIES))
    student: Optional[str] = None
    display_fields: Optional[List[str]] = None
    format: Literal["pdf", "xlsx"] = "pdf"

    @field_validator("start_date", "end_date")
    @classmethod
    def _strip_date(cls, value: str) -> str:
        return value.strip()

    @field_validator("categories")
    @classmethod
    def _normalize_categories(cls, value: List[str]) -> List[str]:
        normalized = normalize_category_selection(value)
        if not normalized:
            raise ValueError("At least one category must be selected")
        return normalized

    @field_validator("display_fields")
    @classmethod
    def _validate_fields(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        unknown = [name for name in value if name not in DISPLAY_FIELDS]
        if unknown:
            raise ValueError(f"Unknown display fields: {', '.join(unknown)}")
        selected = [name for name in DISPLAY_FIELDS if name in value]
        if not selected:
            raise ValueError("At least one display field must be selected")
        return selected


class ReportResult(BaseModel):
    path: Path
    format: str
    page_count: Optional[int]
    total_hours: float
    row_count: int
    checksum: str

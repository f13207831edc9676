from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


REPORT_CATEGORIES = (
    "UEB Literary Transcription",
    "UEB Technical Transcription",
    "Tactile Graphics Generation",
    "Large Print Generation",
    "3D Print Rendering",
    "3D Print Production",
)


class LedgerEntry(Base):
    __tablename__ = "ledger"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # ISO text so BETWEEN on the raw column orders chronologically
    date = Column(String(10), nullable=False, index=True)
    student = Column(String(4), nullable=False)
    subject = Column(String(100), nullable=False)
    school = Column(String(120), nullable=False)
    category = Column(String(60), nullable=False, index=True)
    # kept as entered; the report tolerates values that do not parse
    hours = Column(String(20), nullable=False)
    notes = Column(Text, nullable=False, default="")
    complete = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<LedgerEntry id={self.id} date={self.date} student={self.student} hours={self.hours}>"

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger errors."""


class ReportGenerationError(LedgerError):
    """A report could not be produced; no output file should be trusted."""


class ReportQueryError(ReportGenerationError):
    pass


class DocumentWriteError(ReportGenerationError):
    pass


class FinalizationError(ReportGenerationError):
    """The deferred page total was never written, or written inconsistently."""


__all__ = [
    "LedgerError",
    "ReportGenerationError",
    "ReportQueryError",
    "DocumentWriteError",
    "FinalizationError",
]

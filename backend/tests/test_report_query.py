from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Session, sessionmaker

from ledger import services
from ledger.exceptions import ReportQueryError
from ledger.models import REPORT_CATEGORIES


def _compiled_sql(query) -> str:
    return str(query.statement.compile(dialect=sqlite.dialect(), compile_kwargs={"render_postcompile": True}))


@pytest.mark.parametrize("size", [1, 2, 4, len(REPORT_CATEGORIES)])
def test_query_binds_one_parameter_per_category(session: Session, size: int):
    query = services.build_report_query(session, "2024-01-01", "2024-01-31", REPORT_CATEGORIES[:size])
    sql = _compiled_sql(query)
    assert sql.count("?") == size + 2
    assert "BETWEEN" in sql
    assert "ORDER BY" in sql


def test_student_filter_adds_one_binding(session: Session):
    query = services.build_report_query(session, "2024-01-01", "2024-01-31", REPORT_CATEGORIES[:3], student="AlPu")
    assert _compiled_sql(query).count("?") == 3 + 2 + 1


def test_empty_category_selection_is_rejected(session: Session):
    with pytest.raises(ValueError):
        services.build_report_query(session, "2024-01-01", "2024-01-31", [])


def test_fetch_filters_by_range_and_category_in_date_order(session: Session, add_entry):
    add_entry("2024-02-15", category="Large Print Generation")
    add_entry("2024-01-16", category="Large Print Generation")
    add_entry("2024-02-01", category="3D Print Production")
    add_entry("2024-02-16", category="Large Print Generation")
    add_entry("2024-01-15", category="Large Print Generation")
    add_entry("2024-01-20", category="UEB Literary Transcription")

    entries = services.fetch_report_entries(
        session, "2024-01-16", "2024-02-15", ["Large Print Generation", "3D Print Production"]
    )
    assert [entry.date for entry in entries] == ["2024-01-16", "2024-02-01", "2024-02-15"]


def test_fetch_with_student_filter(session: Session, add_entry):
    add_entry("2024-01-20", student="AlPu")
    add_entry("2024-01-21", student="ZoFe")

    entries = services.fetch_report_entries(
        session, "2024-01-01", "2024-01-31", ["UEB Literary Transcription"], student="ZoFe"
    )
    assert [entry.student for entry in entries] == ["ZoFe"]


def test_fetch_empty_result_is_not_an_error(session: Session):
    assert services.fetch_report_entries(session, "1999-01-01", "1999-12-31", REPORT_CATEGORIES) == []


def test_store_failure_raises_report_query_error(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}", future=True)
    db = sessionmaker(bind=engine, future=True)()
    try:
        with pytest.raises(ReportQueryError):
            services.fetch_report_entries(db, "2024-01-01", "2024-01-31", REPORT_CATEGORIES)
    finally:
        db.close()
        engine.dispose()

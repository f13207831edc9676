from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from ledger import models
from ledger.database import init_db


@pytest.fixture(scope="session")
def temp_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("store") / "ledger.db"


@pytest.fixture(scope="session")
def engine(temp_db_path: Path):
    url = f"sqlite:///{temp_db_path}"
    engine = create_engine(url, connect_args={"check_same_thread": False}, future=True)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionTesting = sessionmaker(bind=connection, autoflush=False, autocommit=False, future=True)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "reports"
    path.mkdir()
    return path


@pytest.fixture()
def add_entry(session: Session) -> Callable[..., models.LedgerEntry]:
    """Insert a raw ledger row, bypassing entry validation."""

    def _add(
        date: str,
        hours: str = "1.00",
        category: str = "UEB Literary Transcription",
        student: str = "AbCd",
        subject: str = "Math",
        school: str = "Farmington High",
    ) -> models.LedgerEntry:
        entry = models.LedgerEntry(
            date=date,
            student=student,
            subject=subject,
            school=school,
            category=category,
            hours=hours,
            notes="",
            complete=False,
        )
        session.add(entry)
        session.flush()
        return entry

    return _add

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from .config import settings
from .models import Base

DATABASE_URL = f"sqlite:///{settings.sqlite_path}"

# One connection per session; nothing is pooled between report runs.
engine = create_engine(DATABASE_URL, poolclass=NullPool, future=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(bind: Engine = engine) -> None:
    Base.metadata.create_all(bind=bind)


@contextmanager
def db_session() -> Iterator[Session]:
    """Session scope for one unit of work, committed on success."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

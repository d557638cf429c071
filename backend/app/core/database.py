from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings


def _is_sqlite(dsn: str) -> bool:
    return dsn.startswith("sqlite")


engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=({"check_same_thread": False} if _is_sqlite(settings.APP_DATABASE_DSN) else {}),
    pool_pre_ping=not _is_sqlite(settings.APP_DATABASE_DSN),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all discount engine tables (development and tests only)."""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)

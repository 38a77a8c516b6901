"""
Database engine and session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from skillsync_feedback.core.config import settings


def _engine_options(url: str) -> dict:
    """SQLite needs cross-thread access; in-memory SQLite must share one connection."""
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    **_engine_options(settings.DATABASE_URL)
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session for the duration of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

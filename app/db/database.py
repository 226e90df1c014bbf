"""Engine and session factory"""

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from ..core.config import settings


def build_engine(url: str, testing: bool = False):
    if testing:
        # One shared in-memory SQLite connection so every session sees the same tables
        return create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=10,
        max_overflow=20,
    )


engine = build_engine(settings.DATABASE_URL, settings.TESTING)

# Repositories flush explicitly; conditional UPDATEs must not trigger autoflush.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ping(session_factory=SessionLocal) -> bool:
    """Return True when the database answers a trivial query."""
    session = session_factory()
    try:
        session.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
    finally:
        session.close()

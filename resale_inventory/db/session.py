"""Engine construction and the per-request session dependency."""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings

IN_MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


def build_engine(url: str) -> Engine:
    """Create an engine for ``url``.

    SQLite connections are handed between FastAPI's worker threads, and an
    in-memory database only survives on a single shared connection.
    """

    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    connect_args = {"check_same_thread": False}
    if url in IN_MEMORY_URLS:
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


def session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=True)


engine = build_engine(settings.DB_URL)
SessionLocal = session_factory(engine)
Base = declarative_base()


def get_db() -> Iterator[Session]:
    with SessionLocal() as db:
        yield db

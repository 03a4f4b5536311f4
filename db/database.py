from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from settings import DATABASE_URL

# Lazy initialization for engine and session
_engine = None
_SessionLocal = None


def create_db_engine(database_url: str):
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def get_db_engine():
    global _engine
    if _engine is None:
        _engine = create_db_engine(DATABASE_URL)
    return _engine


def _get_session_local():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_db_engine())
    return _SessionLocal


def get_db():
    SessionLocal = _get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(engine=None):
    """Create tables that do not exist yet"""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine or get_db_engine())


Base = declarative_base()

import logging
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _sqlite_file(database_url: str) -> Path | None:
    """Return the database file for a file-backed SQLite URL."""
    if not database_url.startswith("sqlite:///"):
        return None
    path = database_url.replace("sqlite:///", "", 1)
    if not path or path == ":memory:":
        return None
    return Path(path)


# SQLite needs different config than PostgreSQL
if settings.database_url.startswith("sqlite"):
    db_file = _sqlite_file(settings.database_url)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False}  # Needed for SQLite
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20
    )


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Let SQLite honour ON DELETE SET NULL on items.category_id."""
    if settings.database_url.startswith("sqlite"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_directories():
    """Create the public upload tree if it does not exist yet."""
    for directory in (settings.images_dir, settings.files_dir):
        directory.mkdir(parents=True, exist_ok=True)


def init_db():
    """Initialize asset directories and database tables."""
    # Import models so they are registered on Base.metadata
    from app.models import Category, Item  # noqa: F401

    ensure_directories()
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema is ready")

from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import settings

SQLITE_FILE_PREFIX = "sqlite:///"

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if _is_sqlite else {}
)

if _is_sqlite:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        # WAL lets the stats endpoints read while a session is being logged.
        # follows/activities rely on ON DELETE CASCADE, which SQLite ignores by default
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autoflush=False, bind=engine)

Base = declarative_base()


def sqlite_file_path(database_url: str) -> Path | None:
    """Filesystem path of a file-backed SQLite URL, None for memory or other backends"""
    if not database_url.startswith(SQLITE_FILE_PREFIX):
        return None
    path = database_url[len(SQLITE_FILE_PREFIX):]
    if not path or path == ":memory:":
        return None
    return Path(path)


def init_db() -> None:
    """Create the SQLite directory if needed, then every table registered on Base"""
    # Every model has to be imported before create_all sees it
    from app import models  # noqa: F401

    db_path = sqlite_file_path(settings.database_url)
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind=engine)

import logging
import os

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)

# DATABASE_URL wins; otherwise records live in a local SQLite file
DATABASE_PATH = os.getenv("DATABASE_PATH", "./driverpay.db")


def normalize_database_url(url: str) -> str:
    """SQLAlchemy only understands the postgresql:// scheme."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL") or f"sqlite:///{DATABASE_PATH}")
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # Records reference users and photos reference records
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Request handlers run on a worker thread, so SQLite connections are shared across threads
engine = create_engine(
    DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
)
if IS_SQLITE:
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)

logger.info(f"Record store: {DATABASE_URL.split(':', 1)[0]}")


def create_db_and_tables():
    """Create the user, work_record and photo tables if missing; existing rows are kept."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """One session per request."""
    with Session(engine) as session:
        yield session

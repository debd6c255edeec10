import pytest
from sqlalchemy import text

from db import IS_SQLITE, engine, normalize_database_url


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@host/db", "postgresql://u:p@host/db"),
        ("postgresql://u:p@host/db", "postgresql://u:p@host/db"),
        ("sqlite:///./driverpay.db", "sqlite:///./driverpay.db"),
    ],
)
def test_normalize_database_url(url, expected):
    """Hosted postgres:// URLs are rewritten for SQLAlchemy."""
    assert normalize_database_url(url) == expected


@pytest.mark.skipif(not IS_SQLITE, reason="SQLite-specific connection setup")
def test_sqlite_connections_enforce_foreign_keys():
    """Every SQLite connection has foreign key checks switched on."""
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

"""Shared test fixtures."""

import pytest

from dataimport import create_service

PEOPLE_DDL = """
CREATE TABLE people (
    id        INTEGER PRIMARY KEY,
    name      VARCHAR(50) NOT NULL,
    age       INTEGER,
    balance   DECIMAL(15,6),
    active    BOOLEAN,
    born      DATE,
    photo     BLOB,
    notes     CLOB
);
"""


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh SQLite DatabaseService for each test."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    yield service
    service.close()


@pytest.fixture
def people_service(db_service):
    """SQLite service with an empty ``people`` table."""
    db_service.execute_ddl(PEOPLE_DDL)
    return db_service

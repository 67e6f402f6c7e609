import sqlite3

import pytest
from sqlalchemy import text

from propdesk.db.session import create_db_engine


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'propdesk.db'}")
    try:
        yield engine
    finally:
        engine.dispose()


def test_sqlite_transaction_starts_before_first_write(sqlite_engine):
    with sqlite_engine.connect() as connection:
        connection.execute(text("SELECT 1"))

        assert connection.connection.driver_connection.in_transaction


def test_sqlite_reader_blocks_a_second_writer(sqlite_engine, tmp_path):
    with sqlite_engine.connect() as connection:
        connection.execute(text("SELECT 1"))

        other = sqlite3.connect(tmp_path / "propdesk.db", timeout=0)
        try:
            with pytest.raises(sqlite3.OperationalError, match="locked"):
                other.execute("BEGIN IMMEDIATE")
        finally:
            other.close()


def test_lock_is_released_on_commit(sqlite_engine, tmp_path):
    with sqlite_engine.begin() as connection:
        connection.execute(text("CREATE TABLE guest_notes (id INTEGER)"))

    other = sqlite3.connect(tmp_path / "propdesk.db", timeout=0)
    try:
        other.execute("BEGIN IMMEDIATE")
        other.execute("ROLLBACK")
    finally:
        other.close()

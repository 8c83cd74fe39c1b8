import sqlite3

import pytest
from school_directory.database import init_db

INSERT = "INSERT INTO schools (name, address, city, state, contact, image, email_id) VALUES (?, ?, ?, ?, ?, ?, ?)"


def test_init_db(executor):
    result = executor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='schools'")
    assert result.rows == [{"name": "schools"}]


def test_init_db_is_idempotent(executor):
    init_db(executor)
    init_db(executor)


def test_ids_are_assigned_by_the_store(executor):
    first = executor.execute(INSERT, ["A", "addr", "Austin", "Texas", "5125551234", "a.jpg", "a@b.com"])
    second = executor.execute(INSERT, ["B", "addr", "Austin", "Texas", "5125551234", "b.jpg", "b@b.com"])
    assert second.lastrowid > first.lastrowid > 0


def test_name_and_city_pair_is_unique(executor):
    executor.execute(INSERT, ["A", "addr", "Austin", "Texas", "5125551234", "a.jpg", "a@b.com"])
    executor.execute(INSERT, ["A", "addr", "Dallas", "Texas", "5125551234", "b.jpg", "a@b.com"])
    with pytest.raises(sqlite3.IntegrityError):
        executor.execute(INSERT, ["A", "other", "Austin", "Texas", "5125551234", "c.jpg", "a@b.com"])

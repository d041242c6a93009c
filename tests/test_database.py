from __future__ import annotations

import mysql.connector
import pytest

from school_portal.core.exceptions import StoreUnavailableError
from school_portal.database.bootstrap import iter_sql_statements
from school_portal.database.mysql_base import db_cursor


class FakeCursor:
    def __init__(self, fail: bool):
        self.fail = fail
        self.closed = False

    def execute(self, sql, params=None):
        if self.fail:
            raise mysql.connector.errors.OperationalError("gone away")

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, fail: bool):
        self.cursor_obj = FakeCursor(fail)
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self.cursor_obj

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, fail: bool = False):
        self.conn = FakeConnection(fail)

    @property
    def cursor_obj(self):
        return self.conn.cursor_obj

    def connect(self):
        return self.conn


def test_db_cursor_commits_on_success():
    factory = FakeFactory()
    with db_cursor(factory) as (_, cur):
        cur.execute("SELECT 1")
    assert factory.conn.committed
    assert factory.conn.closed


def test_db_cursor_translates_driver_errors():
    factory = FakeFactory(fail=True)
    with pytest.raises(StoreUnavailableError):
        with db_cursor(factory) as (_, cur):
            cur.execute("SELECT 1")
    assert factory.conn.rolled_back
    assert factory.conn.closed
    assert factory.cursor_obj.closed


def test_sql_splitter_ignores_semicolons_in_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nCREATE TABLE x (id INT);"
    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", "CREATE TABLE x (id INT)"]

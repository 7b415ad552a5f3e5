# tests/conftest.py
"""
Shared test fixtures and configuration for pytest.
"""

import logging
import os
import sqlite3
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from queryxsv import logging_utils
from queryxsv.database import Database
from queryxsv.defaults import settings
from queryxsv.utils import reset_format_cache

TEST_KEY = '2YvTXI9DHQPy4d6-ZC9NxcypvLMsJ94OBdmoHyjmwbM='


@pytest.fixture(autouse=True)
def setup_test_config():
    """Use tests/test.yml and a fixed encryption key; restore settings afterwards."""
    from queryxsv.config import set_config_file

    saved_settings = dict(settings)
    set_config_file(str(Path(__file__).parent / 'test.yml'))

    with patch.dict(os.environ, {'QUERYXSV_ENCRYPTION_KEY': TEST_KEY}):
        yield

    settings.clear()
    settings.update(saved_settings)
    reset_format_cache()


class FakeColumn(tuple):
    """DB-API description entry that also exposes the underlying column name."""

    def __new__(cls, label, name=None):
        obj = super().__new__(cls, (label, None, None, None, None, None, None))
        obj.name = name
        return obj


class FakeCursor:
    """
    Minimal DB-API cursor over an in-memory list of rows.

    Records every fetchmany() size. ``fail_after`` raises once that many rows
    have been handed out; ``lazy_description`` hides the description until the
    first fetch, like a server-side cursor.
    """

    def __init__(self, description, rows, fail_after=None, lazy_description=False, name=None):
        self._description = description
        self._rows = list(rows)
        self._pos = 0
        self.fail_after = fail_after
        self.lazy_description = lazy_description
        self.fetched = False
        self.fetch_sizes = []
        self.executed = []
        self.closed = False
        self.name = name
        self.arraysize = 1

    @property
    def description(self):
        if self.lazy_description and not self.fetched:
            return None
        return self._description

    def execute(self, query, params=None):
        self.executed.append(query)

    def fetchmany(self, size=None):
        size = size or self.arraysize
        self.fetch_sizes.append(size)
        self.fetched = True
        if self.fail_after is not None and self._pos >= self.fail_after:
            raise RuntimeError('connection lost')
        batch = self._rows[self._pos:self._pos + size]
        self._pos += len(batch)
        return batch

    def close(self):
        self.closed = True


class FakeConnection:
    """Connection handing out one FakeCursor."""

    def __init__(self, cursor_factory):
        self.cursor_factory = cursor_factory
        self.cursors = []
        self.cursor_kwargs = []
        self.closed = False

    def cursor(self, **kwargs):
        self.cursor_kwargs.append(kwargs)
        cur = self.cursor_factory(name=kwargs.get('name'))
        self.cursors.append(cur)
        return cur

    def close(self):
        self.closed = True


@pytest.fixture
def make_fake_db():
    """Factory for Database objects backed by FakeCursor."""

    def factory(description, rows, driver='sqlite3', **cursor_opts):
        conn = FakeConnection(lambda name=None: FakeCursor(description, rows, name=name, **cursor_opts))
        return Database(conn, SimpleNamespace(__name__=driver))

    return factory


@pytest.fixture
def people_db():
    """In-memory SQLite database with a small people table."""
    connection = sqlite3.connect(':memory:')
    connection.executescript("""
        CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT, city TEXT);
        INSERT INTO people VALUES (1, 'Alice', 'Boston');
        INSERT INTO people VALUES (2, NULL, 'Chicago');
        INSERT INTO people VALUES (3, 'Bob', NULL);
    """)
    db = Database(connection, sqlite3, 'memory')
    yield db
    db.close()


@pytest.fixture
def numbers_db():
    """In-memory SQLite database with 2500 rows."""
    connection = sqlite3.connect(':memory:')
    connection.execute("CREATE TABLE numbers (n INTEGER, label TEXT)")
    connection.executemany("INSERT INTO numbers VALUES (?, ?)",
                           [(i, f'row {i}') for i in range(1, 2501)])
    connection.commit()
    db = Database(connection, sqlite3, 'memory')
    yield db
    db.close()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging_utils._error_handler = None

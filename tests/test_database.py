# tests/test_database.py
"""
Tests for driver selection and connection parameters.
"""

import sqlite3

import pytest

from queryxsv.database import (
    Database, get_connection_string, get_drivers_for_database, get_odbc_connection_string,
    get_params_for_database, get_supported_db_types, sqlite, validate_connection_params
)


class TestConnectionParams:

    def test_param_map_and_default_port(self):
        params = validate_connection_params('psycopg2', host='db', database='sales', user='me')
        assert params == {'host': 'db', 'dbname': 'sales', 'user': 'me', 'port': 5432}

    def test_extra_params_dropped(self):
        params = validate_connection_params('sqlite3', database='x.db', colour='blue')
        assert params == {'database': 'x.db'}

    def test_missing_required(self):
        with pytest.raises(ValueError, match='Missing required parameters'):
            validate_connection_params('psycopg2', host='db')

    def test_unknown_driver(self):
        with pytest.raises(ValueError, match='Unknown driver'):
            validate_connection_params('nosuchdriver', database='x')

    def test_connection_string_skips_none(self):
        assert get_connection_string(host='db', password=None, port=5432) == 'host=db port=5432'

    def test_odbc_connection_string(self):
        conn_str = get_odbc_connection_string('ODBC Driver 17 for SQL Server',
                                              host='sql1', port=1433, DATABASE='sales', UID='me')
        assert conn_str == 'DRIVER={ODBC Driver 17 for SQL Server};SERVER=sql1,1433;DATABASE=sales;UID=me'

    def test_params_for_database(self):
        assert {'host', 'database', 'user', 'password'} <= get_params_for_database('postgres')

    def test_supported_types(self):
        assert get_supported_db_types() == {'postgres', 'oracle', 'mysql', 'sqlserver', 'sqlite'}


class TestDatabase:

    def test_sqlite_driver_always_available(self):
        assert get_drivers_for_database('sqlite') == ['sqlite3']

    def test_create_sqlite(self):
        with Database.create('sqlite', database=':memory:') as db:
            assert db.server_type == 'sqlite'
            assert db.server_side_cursor is False
            assert str(db) == 'Database(:memory::sqlite)'

    def test_sqlite_helper(self, tmp_path):
        db = sqlite(str(tmp_path / 'data.db'))
        assert db.database_name == 'data.db'
        db.close()

    def test_delegates_to_connection(self):
        connection = sqlite3.connect(':memory:')
        db = Database(connection, sqlite3)
        assert db.in_transaction is False
        db.close()

    def test_driver_type_mismatch(self):
        with pytest.raises(ValueError, match='not compatible'):
            Database.create('sqlite', driver='psycopg2', database='x')

    def test_no_driver_for_type(self):
        with pytest.raises(ImportError):
            Database.create('nosql', database='x')

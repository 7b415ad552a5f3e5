# queryxsv/__init__.py
"""
queryxsv - stream SQL query results to CSV or TSV

Runs one query against any DB-API database and writes the result set to a
delimited text file (or stdout) as rows arrive, fetching a bounded number of
rows per round-trip so arbitrarily large results fit in constant memory.

Basic usage::

    import queryxsv

    # From YAML config file
    with queryxsv.connect('warehouse') as db:
        queryxsv.export_query(db, "SELECT * FROM users", 'users.csv')

Direct connections:
    from queryxsv.database import postgres

    db = postgres(user='user', password='pass', database='db')
    queryxsv.export_query(db, "SELECT * FROM orders", 'orders.tsv', fetch_size=5000)
"""

__version__ = '0.1.0'

import logging

from .database import Database
from .config import connect, set_config_file
from .cursors import Cursor, ColumnInfo
from .exceptions import QueryXsvError, ConfigurationError, ExecutionError, RowShapeError
from .export import QueryExporter, export_query
from .logging_utils import setup_logging, errors_logged
from .rows import coerce_row, resolve_headers
from . import writers

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'connect',
    'set_config_file',
    'Database',
    'Cursor',
    'ColumnInfo',
    'QueryExporter',
    'export_query',
    'resolve_headers',
    'coerce_row',
    'writers',
    'setup_logging',
    'errors_logged',
    'QueryXsvError',
    'ConfigurationError',
    'ExecutionError',
    'RowShapeError',
]

# queryxsv/cursors.py
"""
Streaming cursor that wraps a DB-API cursor and fetches results in
batches of at most ``fetch_size`` rows.
"""

import itertools
import logging
from collections import namedtuple
from typing import Any, Iterator, List, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)
__all__ = ['Cursor', 'ColumnInfo', 'validate_fetch_size']

_cursor_ids = itertools.count(1)

ColumnInfo = namedtuple('ColumnInfo', ['label', 'name'])
ColumnInfo.__doc__ = """Display label and underlying name of one result column."""


def validate_fetch_size(fetch_size: Any) -> int:
    """Return fetch_size as an int, raising ConfigurationError unless it is positive."""
    if isinstance(fetch_size, bool) or not isinstance(fetch_size, int) or fetch_size <= 0:
        raise ConfigurationError(f"Fetch size must be a positive integer, got {fetch_size!r}")
    return fetch_size


class Cursor:
    """
    Forward-only cursor that streams query results in bounded batches.

    The DB-API ``arraysize`` of the underlying cursor is set to ``fetch_size``.
    For drivers that support it (psycopg2, psycopg) a named, server-side cursor
    is opened instead of a client-side one, so the server only ships
    ``fetch_size`` rows per round-trip instead of materialising the whole
    result on the client.

    Parameters
    ----------
    connection : Database
        The database connection this cursor belongs to
    fetch_size : int, default 100
        Maximum number of rows fetched per round-trip
    server_side : bool, default False
        Open a named server-side cursor
    **kwargs
        Additional arguments passed to the underlying database cursor

    Example
    -------
    ::

        with db.cursor(fetch_size=1000) as cursor:
            cursor.execute("SELECT id, name FROM users")
            for row in cursor:
                print(row)
    """

    def __init__(self,
                 connection,
                 fetch_size: int = 100,
                 server_side: bool = False,
                 **kwargs):
        self.connection = connection
        self.fetch_size = validate_fetch_size(fetch_size)
        self.server_side = server_side
        self._closed = False

        raw_connection = getattr(connection, '_connection', connection)
        try:
            make_cursor = raw_connection.cursor
        except AttributeError:
            raise TypeError("First argument must be a database connection object")

        # driver errors such as a closed connection propagate unchanged
        if server_side:
            name = f'queryxsv_cursor_{next(_cursor_ids)}'
            self._cursor = make_cursor(name=name, **kwargs)
            self._cursor.itersize = self.fetch_size
        else:
            self._cursor = make_cursor(**kwargs)

        try:
            self._cursor.arraysize = self.fetch_size
        except AttributeError:
            logger.debug("Underlying cursor does not support arraysize")

    def __getattr__(self, key: str) -> Any:
        """Delegate attribute access to underlying cursor."""
        if key == '_cursor':
            raise AttributeError(key)
        return getattr(self._cursor, key)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> Iterator:
        """Iterate rows one at a time, fetched fetch_size rows at a time."""
        for batch in self.batches():
            yield from batch

    def execute(self, query: str, bind_vars: tuple = ()) -> None:
        """Execute a database query."""
        logger.debug(f'Query:\n{query}')
        if bind_vars:
            self._cursor.execute(query, bind_vars)
        else:
            self._cursor.execute(query)

    def batches(self) -> Iterator[List[Any]]:
        """
        Yield lists of raw rows until the result set is exhausted.

        Each list holds at most ``fetch_size`` rows; only one list is alive
        at a time unless the caller keeps references.
        """
        while True:
            batch = self._cursor.fetchmany(self.fetch_size)
            if not batch:
                break
            yield batch

    def column_metadata(self) -> List[ColumnInfo]:
        """
        Return label and name for each result column, in column order.

        Server-side cursors may only populate ``description`` after the
        first fetch, so call this once a row has been read.
        """
        description = self._cursor.description
        if not description:
            return []
        columns = []
        for col in description:
            label = col[0]
            name = getattr(col, 'name', None)
            columns.append(ColumnInfo(label, name if name is not None else label))
        return columns

    def close(self) -> None:
        """Close the underlying cursor. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._cursor.close()

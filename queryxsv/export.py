# queryxsv/export.py
"""
Stream the result of one SQL query to a CSV or TSV file.

Rows are pulled from the database ``fetch_size`` at a time and written as
they arrive, so memory use depends on the fetch size and not on the size of
the result set.

Basic usage::

    import queryxsv

    with queryxsv.connect('warehouse') as db:
        queryxsv.export_query(db, "SELECT id, name AS customer FROM customers",
                              'customers.tsv', fetch_size=1000)
"""

import logging
from pathlib import Path
from typing import Optional, TextIO, Union

from .cursors import validate_fetch_size
from .defaults import settings
from .exceptions import ExecutionError, QueryXsvError
from .rows import coerce_row, resolve_headers
from .writers import DelimitedWriter, OutputType, get_writer, resolve_output_type

logger = logging.getLogger(__name__)


class QueryExporter:
    """
    Runs a query and writes every row as one delimited line.

    The column count is unknown until the first row arrives. At that point
    the header (if enabled) is written once and the column count is fixed
    for the rest of the run; every row, the first included, is then written
    as a data line.

    A failure while executing or fetching stops the export. Lines already
    written stay in the output. The writer is flushed and closed, and the
    cursor closed, on every exit path.

    Parameters
    ----------
    db : Database
        Open connection (anything with a ``cursor(fetch_size=...)`` method)
    fetch_size : int, default 100
        Rows requested per round-trip. Must be positive.
    output_type : str, default 'csv'
        'csv' or 'tsv'
    include_header : bool, default True
        Write a line of column names before the first data line

    Example
    -------
    ::

        exporter = QueryExporter(db, fetch_size=500, output_type='tsv')
        rows = exporter.export("SELECT * FROM orders", 'orders.tsv')
    """

    def __init__(self,
                 db,
                 fetch_size: int = 100,
                 output_type: str = OutputType.CSV,
                 include_header: bool = True,
                 **writer_kwargs):
        self.db = db
        self.fetch_size = validate_fetch_size(fetch_size)
        self.output_type = OutputType.parse(output_type)
        self.include_header = include_header
        self.writer_kwargs = writer_kwargs
        self._column_count = None

    def export(self, sql: str, file: Optional[Union[str, Path, TextIO]] = None) -> int:
        """
        Execute ``sql`` and stream its rows to ``file`` (stdout if None).

        Returns:
            Number of data rows written

        Raises:
            ExecutionError: The query failed or the connection was lost mid-stream
        """
        if not sql or not sql.strip():
            raise ValueError("SQL query text is empty")

        self._column_count = None
        destination = file if file is not None else 'stdout'
        logger.info(f"Exporting query to {destination} as {self.output_type} (fetch size {self.fetch_size})")

        with get_writer(self.output_type, file, **self.writer_kwargs) as writer:
            try:
                with self.db.cursor(fetch_size=self.fetch_size) as cursor:
                    cursor.execute(sql)
                    for batch in cursor.batches():
                        for row in batch:
                            self._write_record(cursor, writer, row)
            except QueryXsvError:
                logger.error(f"Export aborted after {writer.row_count} rows")
                raise
            except OSError:
                logger.error(f"Error writing to {destination} after {writer.row_count} rows")
                raise
            except Exception as e:
                logger.error(f"Query failed after {writer.row_count} rows: {e}")
                logger.debug(f"Failed SQL:\n{sql}")
                raise ExecutionError(str(e)) from e

            logger.info(f"Wrote {writer.row_count} rows to {destination}")
            return writer.row_count

    def _write_record(self, cursor, writer: DelimitedWriter, row) -> None:
        if self._column_count is None:
            columns = cursor.column_metadata()
            self._column_count = len(columns) if columns else len(row)
            logger.debug(f"Result has {self._column_count} columns")
            if self.include_header:
                writer.write_headers(resolve_headers(columns))
        writer.write_row(coerce_row(row, self._column_count))


def _destination_name(file) -> Optional[Union[str, Path]]:
    """File name used for format inference; open streams are checked by their name."""
    if file is None or isinstance(file, (str, Path)):
        return file
    name = getattr(file, 'name', None)
    return name if isinstance(name, str) else None


def export_query(db,
                 sql: str,
                 file: Optional[Union[str, Path, TextIO]] = None,
                 fetch_size: Optional[int] = None,
                 output_type: Optional[str] = None,
                 include_header: Optional[bool] = None,
                 **writer_kwargs) -> int:
    """
    Stream the result of ``sql`` to a delimited text file.

    Args:
        db: Open Database connection
        sql: Query text
        file: Output filename or open text stream. If None, writes to stdout
        fetch_size: Rows per round-trip, defaults to settings['default_fetch_size']
        output_type: 'csv' or 'tsv'. Defaults to the file extension, then CSV
        include_header: Write column names first, defaults to settings['include_header']
        **writer_kwargs: Passed to the writer (encoding, line_terminator)

    Returns:
        Number of data rows written

    Example:
        # Format from extension
        export_query(db, "SELECT * FROM users", 'users.tsv')

        # Explicit format to stdout, no header
        export_query(db, "SELECT * FROM users", output_type='csv', include_header=False)
    """
    if fetch_size is None:
        fetch_size = settings.get('default_fetch_size', 100)
    if include_header is None:
        include_header = settings.get('include_header', True)
    resolved_type = resolve_output_type(output_type, _destination_name(file))

    exporter = QueryExporter(db, fetch_size=fetch_size, output_type=resolved_type,
                             include_header=include_header, **writer_kwargs)
    return exporter.export(sql, file)

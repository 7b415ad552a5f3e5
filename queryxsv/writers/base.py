# queryxsv/writers/base.py
"""
Base class for delimited text writers with common sink handling.
"""

import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, TextIO, Union

from ..defaults import settings
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class OutputType:
    """
    Delimited output formats.

    Example:
        >>> OutputType.parse('TSV')
        'tsv'
    """
    CSV = 'csv'
    TSV = 'tsv'
    DEFAULT = CSV

    @classmethod
    def values(cls):
        return [cls.CSV, cls.TSV]

    @classmethod
    def parse(cls, token: str) -> str:
        """Normalise an output type token, raising ConfigurationError if unrecognised."""
        value = str(token).strip().lower()
        if value not in cls.values():
            raise ConfigurationError(
                f"Unrecognized output type '{token}'. Must be one of: {cls.values()}"
            )
        return value

    @classmethod
    def from_filename(cls, filename: Optional[Union[str, Path]]) -> Optional[str]:
        """Output type implied by the file extension (case-insensitive), or None."""
        if filename is None:
            return None
        suffix = Path(filename).suffix.lower()
        if suffix == '.csv':
            return cls.CSV
        elif suffix == '.tsv':
            return cls.TSV
        return None


def resolve_output_type(explicit: Optional[str] = None,
                        filename: Optional[Union[str, Path]] = None) -> str:
    """
    Pick the output format once, before any output is produced.

    An explicit type wins; otherwise a ``.csv`` or ``.tsv`` extension on the
    destination decides; otherwise ``settings['default_output_type']``.
    """
    if explicit:
        return OutputType.parse(explicit)
    inferred = OutputType.from_filename(filename)
    if inferred:
        return inferred
    return OutputType.parse(settings.get('default_output_type', OutputType.DEFAULT))


class DelimitedWriter(ABC):
    """
    Abstract base class for writers that emit one delimited line per row.

    The writer owns the output sink for the duration of one export:

    * ``file=None`` writes to stdout, which is flushed but never closed
    * a path (str or Path) is opened for writing, truncating existing content,
      and closed by ``close()``
    * an already open text stream is written to as-is and left open

    Headers and rows go through the same encoding; a header is simply a row
    of column names. ``close()`` flushes and releases the sink and may be
    called any number of times; only the first call has an effect.

    Parameters
    ----------
    file : str, Path or TextIO, optional
        Output destination. None writes to stdout.
    encoding : str, optional
        File encoding, defaults to settings['encoding']
    line_terminator : str, optional
        Line terminator, defaults to settings['line_terminator']

    Example
    -------
    ::

        with CSVWriter('users.csv') as writer:
            writer.write_headers(['id', 'name'])
            writer.write_row(['1', 'Alice'])
    """
    delimiter = None

    def __init__(self,
                 file: Optional[Union[str, Path, TextIO]] = None,
                 encoding: Optional[str] = None,
                 line_terminator: Optional[str] = None):
        self.file = file
        self.encoding = encoding or settings.get('encoding', 'utf-8')
        self.line_terminator = line_terminator or settings.get('line_terminator', '\n')
        self._row_num = 0
        self._headers_written = False
        self._closed = False
        self._file_obj, self._should_close = self._get_file_handle()

    @property
    def row_count(self) -> int:
        """Returns the number of data rows written."""
        return self._row_num

    @property
    def destination(self) -> str:
        if self.file is None:
            return 'stdout'
        return str(getattr(self.file, 'name', self.file))

    def _get_file_handle(self):
        """
        Get file handle, returning stdout if file is None.

        Returns:
            Tuple of (file_obj, should_close)
        """
        if self.file is None:
            return sys.stdout, False
        elif hasattr(self.file, 'write'):
            return self.file, False
        else:
            return open(self.file, 'w', encoding=self.encoding, newline=''), True

    @abstractmethod
    def _write_fields(self, fields: Sequence[str]) -> None:
        """Encode one sequence of string fields as a line on the sink."""
        pass

    def write_headers(self, headers: Sequence[str]) -> None:
        """Write the header line. Only one header line may be written."""
        if self._headers_written:
            raise ValueError("Headers have already been written")
        self._write_fields(headers)
        self._headers_written = True

    def write_row(self, fields: Sequence[str]) -> None:
        """Write one data line."""
        self._write_fields(fields)
        self._row_num += 1

    def close(self) -> None:
        """Flush buffered output and release the sink."""
        if self._closed:
            return
        self._closed = True
        try:
            self._file_obj.flush()
        finally:
            if self._should_close:
                self._file_obj.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

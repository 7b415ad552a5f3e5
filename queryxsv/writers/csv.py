# queryxsv/writers/csv.py

import csv
import io
import logging
from pathlib import Path
from typing import Optional, Sequence, TextIO, Union

from .base import DelimitedWriter

logger = logging.getLogger(__name__)

# csv.writer only quotes line-break characters that appear in its lineterminator
_ENCODER_TERMINATOR = '\r\n'


class CSVWriter(DelimitedWriter):
    """
    Comma-separated writer.

    Fields containing the delimiter, a quote, a carriage return or a line
    feed are quoted and embedded quotes doubled; all other fields are
    written bare. This holds for any ``line_terminator``.
    """
    delimiter = ','

    def __init__(self,
                 file: Optional[Union[str, Path, TextIO]] = None,
                 encoding: Optional[str] = None,
                 line_terminator: Optional[str] = None,
                 **csv_kwargs):
        """
        Initialize CSV writer.

        Args:
            file: Output filename or open text stream. If None, writes to stdout
            encoding: File encoding
            line_terminator: Line terminator
            **csv_kwargs: Additional arguments passed to csv.writer
        """
        super().__init__(file, encoding=encoding, line_terminator=line_terminator)
        fmt = {'delimiter': self.delimiter, 'quotechar': '"', 'doublequote': True,
               'quoting': csv.QUOTE_MINIMAL}
        fmt.update(csv_kwargs)
        self._line_buffer = io.StringIO(newline='')
        self._writer = csv.writer(self._line_buffer, lineterminator=_ENCODER_TERMINATOR, **fmt)

    def _write_fields(self, fields: Sequence[str]) -> None:
        self._line_buffer.seek(0)
        self._line_buffer.truncate()
        self._writer.writerow(fields)
        line = self._line_buffer.getvalue()[:-len(_ENCODER_TERMINATOR)]
        self._file_obj.write(line + self.line_terminator)

# queryxsv/writers/tsv.py
"""
Tab-separated writer.

TSV has no quoting. Characters that would break the line structure are
backslash-escaped instead::

    backslash  ->  \\\\
    tab        ->  \\t
    newline    ->  \\n
    return     ->  \\r

Every other character is written literally.
"""

import logging
import re
from typing import Sequence

from .base import DelimitedWriter

logger = logging.getLogger(__name__)

_ESCAPES = {'\\': '\\\\', '\t': '\\t', '\n': '\\n', '\r': '\\r'}
_UNESCAPES = {v: k for k, v in _ESCAPES.items()}
_escape_re = re.compile(r'[\\\t\n\r]')
_unescape_re = re.compile(r'\\[\\tnr]')


def escape_tsv_field(value: str) -> str:
    """Escape backslash, tab, newline and carriage return."""
    return _escape_re.sub(lambda m: _ESCAPES[m.group(0)], value)


def unescape_tsv_field(value: str) -> str:
    """Reverse escape_tsv_field()."""
    return _unescape_re.sub(lambda m: _UNESCAPES[m.group(0)], value)


class TSVWriter(DelimitedWriter):
    """Tab-separated writer using backslash escapes instead of quoting."""
    delimiter = '\t'

    def _write_fields(self, fields: Sequence[str]) -> None:
        line = self.delimiter.join(escape_tsv_field(field) for field in fields)
        self._file_obj.write(line + self.line_terminator)

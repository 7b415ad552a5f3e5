# queryxsv/writers/__init__.py
"""
Delimited text writers.

Supported formats:
- CSV: Comma-separated values with standard quoting
- TSV: Tab-separated values with backslash escapes

Example
-------
::
    from queryxsv.writers import get_writer, resolve_output_type

    output_type = resolve_output_type(None, 'report.tsv')   # 'tsv'
    with get_writer(output_type, 'report.tsv') as writer:
        writer.write_headers(['id', 'name'])
        writer.write_row(['1', 'Alice'])
"""

from pathlib import Path
from typing import Optional, TextIO, Union

from .base import DelimitedWriter, OutputType, resolve_output_type
from .csv import CSVWriter
from .tsv import TSVWriter, escape_tsv_field, unescape_tsv_field

WRITERS = {
    OutputType.CSV: CSVWriter,
    OutputType.TSV: TSVWriter,
}


def get_writer(output_type: str,
               file: Optional[Union[str, Path, TextIO]] = None,
               **kwargs) -> DelimitedWriter:
    """
    Create the writer for an output type.

    Args:
        output_type: 'csv' or 'tsv' (case-insensitive)
        file: Output filename or open text stream. If None, writes to stdout
        **kwargs: Passed to the writer class
    """
    return WRITERS[OutputType.parse(output_type)](file, **kwargs)


__all__ = ['DelimitedWriter', 'CSVWriter', 'TSVWriter', 'OutputType', 'WRITERS',
           'get_writer', 'resolve_output_type', 'escape_tsv_field', 'unescape_tsv_field']

# queryxsv/rows.py
"""
Conversion of result metadata and fetched rows into text fields.
"""

from typing import Any, List, Sequence

from .exceptions import RowShapeError
from .utils import to_string


def resolve_headers(columns: Sequence[Any]) -> List[str]:
    """
    Derive one display name per column, in column order.

    The column's label is used when present and non-empty, otherwise its
    name, otherwise the empty string. An aliased column (``SELECT x AS y``)
    therefore shows as ``y``.

    Args:
        columns: Objects with ``label`` and ``name`` attributes, such as
            ColumnInfo from Cursor.column_metadata()

    Returns:
        List of header strings
    """
    headers = []
    for col in columns:
        label = getattr(col, 'label', None)
        name = getattr(col, 'name', None)
        if label:
            headers.append(str(label))
        elif name:
            headers.append(str(name))
        else:
            headers.append('')
    return headers


def coerce_row(row: Sequence[Any], column_count: int) -> List[str]:
    """
    Convert one fetched row to exactly ``column_count`` strings.

    ``column_count`` is the value fixed when the first row was read. A row of
    any other length raises RowShapeError rather than being padded or cut.
    Null values become empty strings.
    """
    if len(row) != column_count:
        raise RowShapeError(
            f"Row has {len(row)} columns but the result set has {column_count}"
        )
    return [to_string(value) for value in row]

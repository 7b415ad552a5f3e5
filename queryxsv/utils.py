# queryxsv/utils.py
"""
Utility functions for queryxsv.
"""

import datetime as dt
from typing import Any

from .defaults import settings

# cache format strings for performance
_format_cache = None


def _build_format_strings():
    """Build format strings for datetime and date objects."""
    return {
        'date': settings.get('date_format', '%Y-%m-%d'),
        'timestamp': settings.get('timestamp_format', '%Y-%m-%d %H:%M:%S.%f'),
        'timestamp_tz': settings.get('timestamp_format', '%Y-%m-%d %H:%M:%S.%f') + \
                        settings.get('tz_suffix', ' %z'),
        'time': settings.get('time_format', '%H:%M:%S'),
        'time_micro': settings.get('time_format', '%H:%M:%S') + '.%f',
        'time_tz': settings.get('time_format', '%H:%M:%S') + \
                   settings.get('tz_suffix', ' %z'),
    }


def reset_format_cache():
    """Clear format cache to force rebuilding on next call."""
    global _format_cache
    _format_cache = None


def _get_format_strings():
    global _format_cache
    if _format_cache is None:
        _format_cache = _build_format_strings()
    return _format_cache


def to_string(obj: Any) -> str:
    """
    Convert a database value to its text representation.

    None always becomes the empty string. Dates and times use the formats in
    ``settings``. Every datetime is written with the timestamp format, so all
    values in a timestamp column share one shape.

    Args:
        obj: Value to convert

    Returns:
        String representation
    """
    if obj is None:
        return ''
    fmts = _get_format_strings()
    if isinstance(obj, dt.datetime):
        if obj.tzinfo:
            return obj.strftime(fmts['timestamp_tz'])
        return obj.strftime(fmts['timestamp'])
    elif isinstance(obj, dt.date):
        return obj.strftime(fmts['date'])
    elif isinstance(obj, dt.time):
        if obj.tzinfo:
            return obj.strftime(fmts['time_tz'])
        elif obj.microsecond:
            return obj.strftime(fmts['time_micro'])
        else:
            return obj.strftime(fmts['time'])
    elif isinstance(obj, str):
        return obj
    elif isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).hex()
    elif hasattr(obj, 'read'):
        # Handle LOB objects
        return to_string(obj.read())
    else:
        return str(obj)

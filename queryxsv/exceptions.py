# queryxsv/exceptions.py
"""Exceptions raised by queryxsv."""


class QueryXsvError(Exception):
    """Base class for queryxsv errors."""


class ConfigurationError(QueryXsvError, ValueError):
    """Invalid option or connection setting, detected before any query runs."""


class ExecutionError(QueryXsvError, RuntimeError):
    """Failure while executing the query or fetching its rows."""


class RowShapeError(ExecutionError):
    """A fetched row does not have the column count fixed by the first row."""

# queryxsv/logging_utils.py
"""
Logging utilities for export runs.

Creates timestamped log files like export_YYYYMMDD_HHMMSS.log and an error
log that only appears when something goes wrong.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Module-level state for error tracking
_error_handler: Optional['ErrorCountHandler'] = None
_main_log_path: Optional[str] = None
_error_log_path: Optional[str] = None
_split_errors: bool = False


class ErrorCountHandler(logging.Handler):
    """Custom handler that counts ERROR and CRITICAL level messages and lazily creates error log."""

    def __init__(self, error_log_path: Optional[str] = None, formatter: Optional[logging.Formatter] = None):
        super().__init__()
        self.error_count = 0
        self.error_log_path = error_log_path
        self.formatter = formatter
        self._error_file_handler = None

    def emit(self, record):
        """Count errors and lazily create error log file on first error."""
        if record.levelno < logging.ERROR:
            return
        self.error_count += 1

        if self.error_log_path and self._error_file_handler is None:
            try:
                self._error_file_handler = logging.FileHandler(self.error_log_path, encoding='utf-8')
                self._error_file_handler.setLevel(logging.ERROR)
                if self.formatter:
                    self._error_file_handler.setFormatter(self.formatter)
                # root is still dispatching this record, so the new handler receives it too
                logging.getLogger().addHandler(self._error_file_handler)
            except OSError as e:
                logger.warning(f"Failed to create error log file: {e}")


def setup_logging(
    script_name: Optional[str] = None,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    split_errors: Optional[bool] = None,
    console: Optional[bool] = None
) -> Tuple[str, Optional[str]]:
    """
    Configure logging for an export run.

    Creates log files with pattern: {script_name}_{datetime}.log
    Optionally creates separate error log: {script_name}_{datetime}_error.log

    Console output goes to stderr so that exports written to stdout are not
    interleaved with log lines.

    Args:
        script_name: Base name for log files (defaults to script filename without extension)
        log_dir: Directory for log files (defaults to config setting or './logs')
        level: Logging level string - DEBUG, INFO, WARNING, ERROR (defaults to config or 'INFO')
        split_errors: Create separate error log file (defaults to config or True)
        console: Also log to stderr (defaults to config or True)

    Returns:
        Tuple of (log_file_path, error_log_path or None)

    Example
    -------
    ::
        from queryxsv import setup_logging

        setup_logging('nightly_export', log_dir='/var/log/exports', level='DEBUG')
    """
    from queryxsv.config import get_setting

    if script_name is None:
        script_name = Path(sys.argv[0]).stem or 'queryxsv'

    logging_config = get_setting('logging', {})

    log_dir = log_dir or logging_config.get('directory', './logs')
    level = level or logging_config.get('level', 'INFO')
    split_errors = split_errors if split_errors is not None else logging_config.get('split_errors', True)
    console = console if console is not None else logging_config.get('console', True)

    log_format = logging_config.get('format', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    timestamp_format = logging_config.get('timestamp_format', '%Y-%m-%d %H:%M:%S')
    filename_format = logging_config.get('filename_format', '%Y%m%d_%H%M%S')

    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    if filename_format:
        timestamp = datetime.now().strftime(filename_format)
        log_file = log_dir_path / f"{script_name}_{timestamp}.log"
        error_file = log_dir_path / f"{script_name}_{timestamp}_error.log" if split_errors else None
    else:
        # No timestamp - single rolling log file
        log_file = log_dir_path / f"{script_name}.log"
        error_file = log_dir_path / f"{script_name}_error.log" if split_errors else None

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(log_format, datefmt=timestamp_format)

    global _error_handler
    _error_handler = ErrorCountHandler(
        error_log_path=str(error_file) if error_file else None,
        formatter=formatter
    )
    _error_handler.setLevel(logging.ERROR)
    root_logger.addHandler(_error_handler)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.info(f"Logging initialized: {log_file}")

    global _main_log_path, _error_log_path, _split_errors
    _main_log_path = str(log_file)
    _error_log_path = str(error_file) if error_file else None
    _split_errors = bool(split_errors)

    return (str(log_file), str(error_file) if error_file else None)


def errors_logged() -> Optional[str]:
    """
    Check if any ERROR or CRITICAL messages were logged during this run.

    Returns the path to the log file containing errors if any were logged,
    None otherwise (including when setup_logging() was not called).
    """
    if _error_handler is None:
        logger.warning("errors_logged() called but setup_logging() was not called")
        return None

    if _error_handler.error_count == 0:
        return None

    if _split_errors and _error_log_path:
        return _error_log_path
    else:
        return _main_log_path

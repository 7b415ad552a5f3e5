# tests/test_logging_utils.py
import logging
from pathlib import Path

import pytest

from queryxsv.logging_utils import setup_logging, errors_logged, ErrorCountHandler


pytestmark = pytest.mark.usefixtures('restore_root_logger')


def make_record(level):
    return logging.LogRecord(name='test', level=level, pathname='', lineno=0,
                             msg='message', args=(), exc_info=None)


class TestErrorCountHandler:
    """Test ErrorCountHandler class functionality."""

    def test_counts_errors_and_critical(self):
        handler = ErrorCountHandler()

        handler.emit(make_record(logging.ERROR))
        handler.emit(make_record(logging.INFO))
        handler.emit(make_record(logging.CRITICAL))

        assert handler.error_count == 2

    def test_ignores_lower_levels(self):
        handler = ErrorCountHandler()

        for level in (logging.DEBUG, logging.INFO, logging.WARNING):
            handler.emit(make_record(level))

        assert handler.error_count == 0


class TestSetupLogging:

    def test_creates_log_file(self, tmp_path):
        log_file, error_file = setup_logging('export_job', log_dir=str(tmp_path), console=False)

        assert Path(log_file).exists()
        assert Path(log_file).name.startswith('export_job_')
        assert error_file is not None
        assert not Path(error_file).exists()

    def test_error_log_created_on_first_error(self, tmp_path):
        _, error_file = setup_logging('export_job', log_dir=str(tmp_path), console=False)

        logging.getLogger('queryxsv.export').error('Query failed')

        assert Path(error_file).exists()
        assert errors_logged() == error_file
        assert 'Query failed' in Path(error_file).read_text(encoding='utf-8')

    def test_no_errors(self, tmp_path):
        setup_logging('export_job', log_dir=str(tmp_path), console=False)
        logging.getLogger('queryxsv').info('all good')

        assert errors_logged() is None

    def test_single_file_without_split(self, tmp_path):
        log_file, error_file = setup_logging('export_job', log_dir=str(tmp_path),
                                             split_errors=False, console=False)
        logging.error('bad')

        assert error_file is None
        assert errors_logged() == log_file

    def test_errors_logged_without_setup(self):
        assert errors_logged() is None

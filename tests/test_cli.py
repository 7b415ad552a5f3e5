# tests/test_cli.py
"""
Tests for the queryxsv command line.
"""

import sqlite3

import pytest

from queryxsv.cli import main


@pytest.fixture
def cli_config(tmp_path):
    """Config file with a SQLite connection holding a small table."""
    db_file = tmp_path / 'cli.db'
    connection = sqlite3.connect(db_file)
    connection.executescript("""
        CREATE TABLE items (id INTEGER, name TEXT);
        INSERT INTO items VALUES (1, 'widget');
        INSERT INTO items VALUES (2, NULL);
        INSERT INTO items VALUES (3, 'tab\tbed');
    """)
    connection.commit()
    connection.close()

    config_file = tmp_path / 'queryxsv.yml'
    config_file.write_text(f"connections:\n  local:\n    type: sqlite\n    database: '{db_file}'\n",
                           encoding='utf-8')
    return str(config_file)


class TestExportCommand:

    def test_export_csv_file(self, cli_config, tmp_path):
        output_file = tmp_path / 'items.csv'

        status = main(['export', 'local', '--config', cli_config,
                       '--query', 'SELECT id, name AS item FROM items ORDER BY id',
                       '--output-file', str(output_file)])

        assert status == 0
        assert output_file.read_text(encoding='utf-8') == 'id,item\n1,widget\n2,\n3,tab\tbed\n'

    def test_export_tsv_inferred(self, cli_config, tmp_path):
        output_file = tmp_path / 'items.TSV'

        status = main(['export', 'local', '--config', cli_config,
                       '--query', 'SELECT id, name FROM items ORDER BY id',
                       '--output-file', str(output_file), '--header', 'false'])

        assert status == 0
        assert output_file.read_text(encoding='utf-8') == '1\twidget\n2\t\n3\ttab\\tbed\n'

    def test_query_file_and_stdout(self, cli_config, tmp_path, capsys):
        query_file = tmp_path / 'q.sql'
        query_file.write_text('SELECT id FROM items ORDER BY id', encoding='utf-8')

        status = main(['export', 'local', '--config', cli_config,
                       '--query-file', str(query_file), '--output-type', 'tsv', '--fetch-size', '1'])

        assert status == 0
        assert capsys.readouterr().out == 'id\n1\n2\n3\n'

    def test_bad_sql_exits_nonzero(self, cli_config, tmp_path, capsys):
        status = main(['export', 'local', '--config', cli_config,
                       '--query', 'SELECT * FROM missing_table',
                       '--output-file', str(tmp_path / 'out.csv')])

        err = capsys.readouterr().err
        assert status == 1
        assert 'missing_table' in err
        assert len(err.strip().splitlines()) == 1

    @pytest.mark.usefixtures('restore_root_logger')
    def test_failure_points_to_error_log(self, cli_config, tmp_path, capsys):
        log_dir = tmp_path / 'logs'

        status = main(['export', 'local', '--config', cli_config,
                       '--query', 'SELECT * FROM missing_table',
                       '--output-file', str(tmp_path / 'out.csv'), '--log-dir', str(log_dir)])

        assert status == 1
        error_logs = list(log_dir.glob('queryxsv_*_error.log'))
        assert len(error_logs) == 1
        assert 'missing_table' in error_logs[0].read_text(encoding='utf-8')
        last_line = capsys.readouterr().err.strip().splitlines()[-1]
        assert last_line.startswith('no such table: missing_table')
        assert f'(details in {error_logs[0]})' in last_line

    def test_missing_query_file(self, cli_config, tmp_path, capsys):
        status = main(['export', 'local', '--config', cli_config,
                       '--query-file', str(tmp_path / 'nope.sql'),
                       '--output-file', str(tmp_path / 'out.csv')])

        assert status == 1
        assert 'SQL file was not found' in capsys.readouterr().err
        assert not (tmp_path / 'out.csv').exists()

    def test_unknown_connection(self, cli_config, tmp_path, capsys):
        status = main(['export', 'remote', '--config', cli_config, '--query', 'SELECT 1',
                       '--output-file', str(tmp_path / 'out.csv')])

        assert status == 1
        assert "Connection 'remote' not found" in capsys.readouterr().err
        assert not (tmp_path / 'out.csv').exists()

    @pytest.mark.parametrize('extra', [
        ['--fetch-size', '0'],
        ['--fetch-size', 'many'],
        ['--output-type', 'xlsx'],
        ['--header', 'maybe'],
    ])
    def test_invalid_options(self, cli_config, extra):
        with pytest.raises(SystemExit) as exc_info:
            main(['export', 'local', '--config', cli_config, '--query', 'SELECT 1'] + extra)
        assert exc_info.value.code != 0

    def test_query_and_query_file_exclusive(self, cli_config, tmp_path):
        with pytest.raises(SystemExit):
            main(['export', 'local', '--config', cli_config, '--query', 'SELECT 1',
                  '--query-file', str(tmp_path / 'q.sql')])

    def test_query_required(self, cli_config):
        with pytest.raises(SystemExit):
            main(['export', 'local', '--config', cli_config])


class TestKeyCommands:

    def test_generate_key(self, capsys):
        assert main(['generate-key']) == 0
        key = capsys.readouterr().out.strip()

        from cryptography.fernet import Fernet
        Fernet(key.encode())

    def test_encrypt_password(self, capsys):
        assert main(['encrypt-password', 'pw']) == 0
        assert capsys.readouterr().out.startswith('gAAAA')

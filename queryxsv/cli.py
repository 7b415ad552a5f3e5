# queryxsv/cli.py

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .cursors import validate_fetch_size
from .exceptions import ConfigurationError
from .export import QueryExporter
from .logging_utils import errors_logged, setup_logging
from .writers import OutputType, resolve_output_type

logger = logging.getLogger(__name__)

_TRUE = {'true', 't', 'yes', 'y', '1'}
_FALSE = {'false', 'f', 'no', 'n', '0'}


def _parse_bool(value: str) -> bool:
    """argparse type for true/false options."""
    token = value.strip().lower()
    if token in _TRUE:
        return True
    if token in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def _positive_int(value: str) -> int:
    """argparse type for the fetch size."""
    try:
        return validate_fetch_size(int(value))
    except (ValueError, ConfigurationError):
        raise argparse.ArgumentTypeError(f"must be a positive integer, got '{value}'")


def _output_type(value: str) -> str:
    try:
        return OutputType.parse(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='queryxsv',
        description='Stream the results of a SQL query to a CSV or TSV file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # export
    export_parser = subparsers.add_parser('export', help='Run a query and write its results')
    export_parser.add_argument('connection', help='Connection name from the config file')
    export_parser.add_argument('--config', dest='config_file',
                               help='Config file (default: ./queryxsv.yml or ~/.config/queryxsv.yml)')
    query_group = export_parser.add_mutually_exclusive_group(required=True)
    query_group.add_argument('--query', help='Text of the SQL query to run')
    query_group.add_argument('--query-file', type=Path, help='File containing the SQL query to run')
    export_parser.add_argument('--output-file', type=Path,
                               help='Output file. If absent, output is written to standard output')
    export_parser.add_argument('--fetch-size', type=_positive_int, default=None,
                               help='Rows fetched per round-trip (default: 100)')
    export_parser.add_argument('--output-type', type=_output_type, default=None,
                               help="'csv' or 'tsv'. Defaults to the output file extension if "
                                    "recognized, else csv")
    export_parser.add_argument('--header', type=_parse_bool, default=None,
                               help='Write a column header line: true or false (default: true)')
    export_parser.add_argument('--log-dir', help='Write log files to this directory')
    export_parser.add_argument('--log-level', default=None,
                               choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                               help='Logging level (default: INFO)')

    # generate-key
    subparsers.add_parser('generate-key', help='Generate encryption key')

    # store-key
    key_parser = subparsers.add_parser('store-key',
                                       help='Store encryption key in system keyring (generate if not provided)')
    key_parser.add_argument('key', nargs='?', default=None,
                            help='Encryption key to store. If omitted, a new key is generated and stored.')
    key_parser.add_argument('--force', action='store_true',
                            help='Overwrite existing encryption key in system keyring')

    # encrypt-password
    pwd_parser = subparsers.add_parser('encrypt-password', help='Encrypt a password for the config file')
    pwd_parser.add_argument('password', nargs='?', help='Password to encrypt (prompted if omitted)')

    return parser


def _read_query(args) -> str:
    if args.query is not None:
        sql = args.query
    else:
        if not args.query_file.is_file():
            raise ConfigurationError(f"SQL file was not found: {args.query_file}")
        sql = args.query_file.read_text(encoding='utf-8-sig')
    if not sql.strip():
        raise ConfigurationError("SQL query text is empty")
    return sql


def run_export(args) -> int:
    """Resolve options, connect and export. Returns the number of rows written."""
    if args.log_dir:
        setup_logging('queryxsv', log_dir=args.log_dir, level=args.log_level)
    elif args.log_level:
        logging.basicConfig(level=args.log_level, stream=sys.stderr,
                            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # everything that can be checked without a connection is checked first
    if args.config_file:
        config.set_config_file(args.config_file)
    sql = _read_query(args)
    fetch_size = validate_fetch_size(args.fetch_size or config.get_setting('default_fetch_size', 100))
    output_type = resolve_output_type(args.output_type, args.output_file)
    include_header = args.header if args.header is not None else config.get_setting('include_header', True)

    with config.connect(args.connection) as db:
        exporter = QueryExporter(db, fetch_size=fetch_size, output_type=output_type,
                                 include_header=include_header)
        return exporter.export(sql, args.output_file)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'export':
            run_export(args)
        elif args.command == 'generate-key':
            print(config.generate_encryption_key())
        elif args.command == 'store-key':
            config.store_key(args.key, force=args.force)
            print("Stored encryption key in system keyring")
        elif args.command == 'encrypt-password':
            password = args.password
            if password is None:
                import getpass
                password = getpass.getpass("Enter password to encrypt: ")
            print(config.encrypt_password(password))
    except Exception as e:
        message = str(e).splitlines()[0] if str(e) else type(e).__name__
        logger.error(f"{args.command} failed: {message}")
        logger.debug("Command failed", exc_info=True)
        if getattr(args, 'log_dir', None):
            error_log = errors_logged()
            if error_log:
                message = f"{message} (details in {error_log})"
        print(message, file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == '__main__':
    run()

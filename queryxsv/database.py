# queryxsv/database.py
"""
Database connection wrapper that provides a uniform interface
to different DB-API database adapters.
"""

import importlib
import importlib.util
import logging
import os
from typing import Any, List, Optional

from .cursors import Cursor
from .defaults import settings

logger = logging.getLogger(__name__)


DRIVERS = {
    # PostgreSQL Drivers
    'psycopg2': {
        'database_type': 'postgres',
        'priority': 11,
        'param_map': {'database': 'dbname'},
        'required_params': [{'host', 'database', 'user'}],
        'optional_params': {'port', 'password', 'sslmode', 'connect_timeout', 'application_name',
                            'client_encoding', 'options', 'sslcert', 'sslkey', 'sslrootcert'},
        'connection_method': 'connection_string',
        'server_side_cursor': True,
        'default_port': 5432,
    },
    'psycopg': {  # psycopg3
        'database_type': 'postgres',
        'priority': 12,
        'param_map': {'database': 'dbname'},
        'required_params': [{'host', 'database', 'user'}],
        'optional_params': {'port', 'password', 'sslmode', 'connect_timeout', 'application_name',
                            'client_encoding', 'options', 'sslcert', 'sslkey', 'sslrootcert'},
        'connection_method': 'connection_string',
        'server_side_cursor': True,
        'default_port': 5432,
    },

    # Oracle Drivers
    'oracledb': {
        'database_type': 'oracle',
        'priority': 11,
        'param_map': {'database': 'service_name'},
        'required_params': [{'dsn', 'user'}, {'host', 'port', 'database', 'user'}],
        'optional_params': {'password', 'mode', 'config_dir', 'wallet_location', 'wallet_password'},
        'connection_method': 'dsn',
        'default_port': 1521
    },
    'cx_Oracle': {
        'database_type': 'oracle',
        'priority': 12,
        'param_map': {'database': 'service_name'},
        'required_params': [{'dsn', 'user'}, {'host', 'port', 'database', 'user'}],
        'optional_params': {'password', 'mode', 'encoding', 'nencoding', 'edition'},
        'connection_method': 'dsn',
        'default_port': 1521
    },

    # MySQL Drivers
    'pymysql': {
        'database_type': 'mysql',
        'priority': 11,
        'param_map': {'database': 'db', 'password': 'passwd'},
        'required_params': [{'host', 'database', 'user'}],
        'optional_params': {'port', 'password', 'charset', 'connect_timeout', 'read_timeout',
                            'unix_socket'},
        'connection_method': 'kwargs',
        'default_port': 3306
    },
    'mysql.connector': {
        'database_type': 'mysql',
        'priority': 12,
        'param_map': {},
        'required_params': [{'host', 'database', 'user'}],
        'optional_params': {'port', 'password', 'charset', 'collation', 'time_zone',
                            'connection_timeout'},
        'connection_method': 'kwargs',
        'default_port': 3306
    },

    # SQL Server Drivers
    'pyodbc': {
        'database_type': 'sqlserver',
        'priority': 11,
        'param_map': {'database': 'DATABASE', 'user': 'UID', 'password': 'PWD'},
        'required_params': [{'host', 'database', 'user'}],
        'optional_params': {'password', 'port', 'trusted_connection', 'encrypt', 'trustservercertificate'},
        'connection_method': 'odbc_string',
        'odbc_driver_name': 'ODBC Driver 17 for SQL Server',
        'default_port': 1433
    },
    'pymssql': {
        'database_type': 'sqlserver',
        'priority': 12,
        'param_map': {},
        'required_params': [{'host', 'database', 'user'}],
        'optional_params': {'password', 'port', 'timeout', 'login_timeout', 'charset', 'appname'},
        'connection_method': 'kwargs',
        'default_port': 1433
    },

    # SQLite Driver
    'sqlite3': {
        'database_type': 'sqlite',
        'priority': 1,
        'param_map': {},
        'required_params': [{'database'}],
        'optional_params': {'timeout', 'detect_types', 'isolation_level', 'uri'},
        'connection_method': 'kwargs'
    }
}


def get_drivers_for_database(db_type: str, valid_only: bool = True) -> List[str]:
    """
    Gets a list of drivers available for the specified database type,
    sorted by priority (lowest first).

    Parameters:
        db_type (str): The type of database for which to retrieve drivers.
        valid_only (bool): Only include drivers that are importable (default is True).
    """
    available_drivers = []
    for driver_name, info in DRIVERS.items():
        if info['database_type'] != db_type:
            continue
        if valid_only:
            # find_spec raises on dotted names whose parent package is missing
            try:
                spec = importlib.util.find_spec(driver_name)
            except ModuleNotFoundError:
                spec = None
            if spec is None:
                continue
        available_drivers.append(driver_name)

    available_drivers.sort(key=lambda d: DRIVERS[d]['priority'])
    return available_drivers


def get_params_for_database(db_type: str, driver: str = None) -> set:
    """Get all valid parameters for a database type from DRIVERS metadata."""
    valid_params = set()
    for driver_name, driver_info in DRIVERS.items():
        if driver_info['database_type'] != db_type:
            continue
        if driver and driver_name != driver:
            continue
        for param_set in driver_info['required_params']:
            valid_params.update(param_set)
        valid_params.update(driver_info.get('optional_params', set()))
    return valid_params


def get_supported_db_types() -> set:
    """Get all supported database types."""
    return {info['database_type'] for info in DRIVERS.values()}


def validate_connection_params(driver_name: str, **params) -> dict:
    """
    Validate connection parameters against driver requirements.

    Args:
        driver_name: Name of the database driver
        **params: Connection parameters

    Returns:
        Dict of validated parameters, renamed for the driver, with extras removed

    Raises:
        ValueError: If the driver is unknown or required parameters are missing
    """
    if driver_name not in DRIVERS:
        raise ValueError(f"Unknown driver: {driver_name}")

    driver_info = DRIVERS[driver_name]

    if 'port' not in params and driver_info.get('default_port'):
        params['port'] = driver_info['default_port']

    if not any(required.issubset(params.keys()) for required in driver_info['required_params']):
        raise ValueError(f"Missing required parameters. Need one of: {driver_info['required_params']}")

    all_valid_params = set()
    for req_set in driver_info['required_params']:
        all_valid_params.update(req_set)
    all_valid_params.update(driver_info.get('optional_params', set()))

    param_map = driver_info.get('param_map', {})
    return {param_map.get(key, key): value
            for key, value in params.items() if key in all_valid_params}


def get_connection_string(**kwargs) -> str:
    """Get libpq style connection string from keyword arguments."""
    return " ".join([f"{key}={value}" for key, value in kwargs.items() if value is not None])


def get_odbc_connection_string(odbc_driver_name: Optional[str] = None, **kwargs) -> str:
    """Get connection string for ODBC from keyword arguments."""
    host = kwargs.pop('host', 'localhost')
    port = kwargs.pop('port', None)
    params = {'SERVER': f'{host},{port}' if port else host}
    params.update({key.upper(): value for key, value in kwargs.items() if value is not None})
    conn_str = ";".join([f"{key}={value}" for key, value in params.items()])
    if odbc_driver_name:
        return f"DRIVER={{{odbc_driver_name}}};" + conn_str
    return conn_str


class Database:
    """
    Database connection wrapper that provides a uniform interface
    across different database adapters.

    Attribute access not handled here is delegated to the underlying
    DB-API connection, so ``commit()``, ``close()`` etc. work as usual.
    """

    # Attributes stored locally, others delegated to _connection
    _local_attrs = ['_connection', 'server_type', 'database_name', 'interface', 'server_side_cursor']

    def __init__(self, connection, interface, database_name: Optional[str] = None):
        """
        Initialize Database wrapper.

        Args:
            connection: Underlying database connection object
            interface: Database adapter module (psycopg2, oracledb, sqlite3, etc.)
            database_name: Name of the database
        """
        self._connection = connection
        self.interface = interface
        self.database_name = database_name

        driver_info = DRIVERS.get(interface.__name__)
        if driver_info:
            self.server_type = driver_info['database_type']
            self.server_side_cursor = driver_info.get('server_side_cursor', False)
        else:
            self.server_type = 'unknown'
            self.server_side_cursor = False

    def __getattr__(self, key: str) -> Any:
        """Delegate attribute access to underlying connection."""
        return getattr(self._connection, key)

    def __setattr__(self, key: str, value: Any) -> None:
        """Set attributes locally or delegate to connection."""
        if key in self._local_attrs:
            self.__dict__[key] = value
        else:
            setattr(self._connection, key, value)

    def __str__(self) -> str:
        if self.database_name:
            return f'Database({self.database_name}:{self.server_type})'
        else:
            return f'Database({self.server_type})'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close connection."""
        self.close()

    def cursor(self, fetch_size: Optional[int] = None, **kwargs) -> Cursor:
        """
        Create a streaming cursor.

        Args:
            fetch_size: Rows requested per round-trip. Defaults to settings['default_fetch_size'].
            **kwargs: Additional arguments passed to the underlying cursor

        Example:
            with db.cursor(fetch_size=500) as cursor:
                cursor.execute("SELECT * FROM big_table")
                for batch in cursor.batches():
                    ...
        """
        if fetch_size is None:
            fetch_size = settings.get('default_fetch_size', 100)
        return Cursor(self, fetch_size=fetch_size, server_side=self.server_side_cursor, **kwargs)

    @classmethod
    def create(cls, db_type: str, driver: str = None, **kwargs) -> 'Database':
        """
        Factory method to create database connections.

        Args:
            db_type: Database type ('postgres', 'oracle', 'mysql', 'sqlserver', 'sqlite')
            driver: Specific driver module to use. Defaults to the best installed one.
            **kwargs: Connection parameters

        Returns:
            Database instance
        """
        db_driver = None
        driver_name = None
        if driver:
            if driver not in DRIVERS:
                raise ValueError(f"Unknown driver: {driver}")
            if DRIVERS[driver]['database_type'] != db_type:
                raise ValueError(f"Driver '{driver}' is not compatible with database type '{db_type}'")
            try:
                db_driver = importlib.import_module(driver)
                driver_name = driver
            except ImportError:
                logger.warning(f"Driver '{driver}' not available, falling back to default")

        if db_driver is None:
            for candidate in get_drivers_for_database(db_type):
                try:
                    db_driver = importlib.import_module(candidate)
                    driver_name = candidate
                    break
                except ImportError:
                    pass

        if db_driver is None:
            raise ImportError(f"No database driver found for database type '{db_type}'")

        database_name = kwargs.get('database')
        params = validate_connection_params(driver_name, **kwargs)
        driver_conf = DRIVERS[driver_name]
        method = driver_conf['connection_method']
        logger.debug(f"Connecting with {driver_name} ({method})")

        if method == 'kwargs':
            connection = db_driver.connect(**params)
        elif method == 'connection_string':
            connection = db_driver.connect(get_connection_string(**params))
        elif method == 'dsn':
            if hasattr(db_driver, 'makedsn') and 'dsn' not in params:
                host = params.pop('host', 'localhost')
                port = params.pop('port', driver_conf.get('default_port'))
                service_name = params.pop('service_name', None)
                params['dsn'] = db_driver.makedsn(host, port, service_name=service_name)
            connection = db_driver.connect(**params)
        elif method == 'odbc_string':
            connection = db_driver.connect(
                get_odbc_connection_string(driver_conf.get('odbc_driver_name'), **params))
        else:
            raise ValueError(f"Unsupported connection method: {method}")

        return cls(connection, db_driver, database_name)


def postgres(user: str, password: Optional[str] = None, database: str = 'postgres',
             host: str = 'localhost', port: int = 5432, driver: str = None, **kwargs) -> Database:
    """Create PostgreSQL connection."""
    return Database.create('postgres', user=user, password=password, database=database,
                           host=host, port=port, driver=driver, **kwargs)


def oracle(user: str, password: Optional[str] = None, database: str = None,
           host: Optional[str] = None, port: int = 1521, driver: str = None, **kwargs) -> Database:
    """Create Oracle connection."""
    return Database.create('oracle', user=user, password=password, database=database,
                           host=host, port=port, driver=driver, **kwargs)


def mysql(user: str, password: Optional[str] = None, database: str = 'mysql',
          host: str = 'localhost', port: int = 3306, driver: str = None, **kwargs) -> Database:
    """Create MySQL connection."""
    return Database.create('mysql', user=user, password=password, database=database,
                           host=host, port=port, driver=driver, **kwargs)


def sqlserver(user: str, password: Optional[str] = None, database: str = None,
              host: str = 'localhost', port: int = 1433, driver: str = None, **kwargs) -> Database:
    """Create SQL Server connection."""
    return Database.create('sqlserver', user=user, password=password, database=database,
                           host=host, port=port, driver=driver, **kwargs)


def sqlite(database: str, **kwargs) -> Database:
    """Create SQLite connection."""
    import sqlite3

    connection = sqlite3.connect(database, **kwargs)
    return Database(connection, sqlite3, os.path.basename(database))

# queryxsv/config.py
"""
Configuration management for database connections.
Supports YAML configuration files with optional password encryption and global settings.
"""

import logging
import os
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, Optional

from .defaults import settings  # noqa: F401
from .database import DRIVERS, Database, get_params_for_database, get_supported_db_types
from .exceptions import ConfigurationError
from .utils import reset_format_cache

try:
    import yaml
except ImportError:
    raise ImportError("PyYAML is required. Install with: pip install PyYAML")

try:
    from cryptography.fernet import Fernet
    HAS_CRYPTO = True
except ImportError:
    HAS_CRYPTO = False

try:
    import keyring
    HAS_KEYRING = True
except ImportError:
    HAS_KEYRING = False

logger = logging.getLogger(__name__)

KEY_ENV_VAR = 'QUERYXSV_ENCRYPTION_KEY'
KEYRING_SERVICE = 'queryxsv'


def _valid_fernet(key: str) -> bool:
    try:
        Fernet(key.encode())
        return True
    except Exception:
        return False


class ConfigManager:
    """
    Manage queryxsv configuration from YAML files.

    Configuration File Structure
    ----------------------------
    ::

        # queryxsv.yml
        settings:
          default_fetch_size: 500
          line_terminator: "\\r\\n"

        connections:
          warehouse:
            type: postgres
            host: db.example.com
            database: sales
            user: report
            encrypted_password: gAAAAABh...
          local:
            type: sqlite
            database: ./data.db

    Configuration Locations
    -----------------------
    1. File specified in config_file parameter
    2. ``./queryxsv.yml`` then ``./queryxsv.yaml``
    3. ``~/.config/queryxsv.yml`` then ``~/.config/queryxsv.yaml``

    Passwords may be given in plain text, as ``${ENV_VAR}``, or encrypted with
    Fernet as ``encrypted_password``. The encryption key is read from the
    QUERYXSV_ENCRYPTION_KEY environment variable or the system keyring.

    Parameters
    ----------
    config_file : str or Path, optional
        Path to YAML config file. If None, searches standard locations.

    Raises
    ------
    FileNotFoundError
        If no config file is found
    ConfigurationError
        If the config file is invalid or a connection lacks 'type' and 'driver'
    """

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()
        self._fernet = None

        self._apply_settings()

    def _find_config_file(self, config_file: Optional[str]) -> Path:
        """Find the configuration file."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
            return path

        candidates = [
            Path("queryxsv.yml"),
            Path("queryxsv.yaml"),
            Path.home() / ".config" / "queryxsv.yml",
            Path.home() / ".config" / "queryxsv.yaml"
        ]

        for candidate in candidates:
            if candidate.exists():
                return candidate

        raise FileNotFoundError(
            "No config file found. Looked in: " +
            ", ".join(str(c) for c in candidates)
        )

    def _load_config(self) -> Dict[str, Any]:
        """Load and validate configuration file."""
        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
            if not isinstance(config, dict):
                raise ValueError("top level must be a mapping")

            connections = config.get('connections', {})
            if not isinstance(connections, dict):
                raise ValueError("'connections' must be a dictionary")
            for name, conn in connections.items():
                if not isinstance(conn, dict) or ('type' not in conn and 'driver' not in conn):
                    raise ValueError(f"connection '{name}': 'type' or 'driver' is required")

            if not isinstance(config.get('settings', {}), dict):
                raise ValueError("'settings' must be a dictionary")

            logger.info(f"Loaded config from {self.config_file}")
            return config
        except Exception as e:
            raise ConfigurationError(f"Failed to load config file {self.config_file}: {e}")

    def _apply_settings(self) -> None:
        """Apply global settings from config."""
        config_settings = self.config.get('settings', {})
        if config_settings:
            settings.update(config_settings)
            reset_format_cache()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value from the config.

        Args:
            key: Setting key (supports dot notation like 'logging.level')
            default: Default value if key not found

        Example:
            fetch_size = config.get_setting('default_fetch_size', 100)
        """
        value = self.config.get('settings', {})
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def _get_encryption_key(self) -> bytes:
        """Get encryption key from environment variable or keyring."""
        key_str = os.environ.get(KEY_ENV_VAR)
        if key_str:
            logger.debug(f"Using {KEY_ENV_VAR} from environment")
            return key_str.encode()

        if HAS_KEYRING:
            try:
                key_str = keyring.get_password(KEYRING_SERVICE, 'encryption_key')
            except Exception as e:
                logger.warning(f"Keyring access failed: {e}")
                key_str = None
            if key_str:
                logger.debug("Using encryption key from keyring")
                return key_str.encode()

        if not HAS_CRYPTO:
            raise ConfigurationError("Encryption not available. Install cryptography package to enable encryption.")
        if HAS_KEYRING:
            msg = dedent("""\
            Encryption key not found in environment or keyring.
            Run `queryxsv store-key` to generate and store a new encryption key in the keyring.""")
        else:
            msg = dedent(f"""\
            Encryption key not found in environment.
            Run `queryxsv generate-key` to generate a new encryption key
            then set it in the {KEY_ENV_VAR} environment variable.""")
        raise ConfigurationError(msg)

    def _get_fernet(self) -> 'Fernet':
        """Get or create Fernet instance for encryption/decryption."""
        if self._fernet is None:
            self._fernet = Fernet(self._get_encryption_key())
        return self._fernet

    def decrypt_password(self, encrypted_password: str) -> str:
        """Decrypt an encrypted password."""
        try:
            return self._get_fernet().decrypt(encrypted_password.encode()).decode()
        except Exception as e:
            raise ConfigurationError(f"Failed to decrypt password: {e}")

    def encrypt_password(self, password: str) -> str:
        """Encrypt a password for storage."""
        try:
            return self._get_fernet().encrypt(password.encode()).decode()
        except Exception as e:
            raise ConfigurationError(f"Failed to encrypt password: {e}")

    def get_connection_config(self, name: str) -> Dict[str, Any]:
        """Get configuration for a named connection, with the password resolved."""
        connections = self.config.get('connections', {})

        if name not in connections:
            available = list(connections.keys())
            raise ConfigurationError(
                f"Connection '{name}' not found in config. "
                f"Available connections: {available}"
            )

        config = connections[name].copy()

        if 'encrypted_password' in config:
            config['password'] = self.decrypt_password(config.pop('encrypted_password'))

        password = config.get('password')
        if isinstance(password, str) and password.startswith('${') and password.endswith('}'):
            env_var = password[2:-1]
            config['password'] = os.environ.get(env_var)
            if config['password'] is None:
                raise ConfigurationError(f"Environment variable {env_var} not set")

        return config

    def list_connections(self) -> list:
        """List all available connection names."""
        return list(self.config.get('connections', {}).keys())


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def _get_manager(config_file: Optional[str] = None) -> ConfigManager:
    global _config_manager
    if config_file:
        return ConfigManager(config_file)
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def set_config_file(config_file: str) -> None:
    """Set the configuration file to use globally."""
    global _config_manager
    _config_manager = ConfigManager(config_file)


def connect(name: str, password: str = None, config_file: Optional[str] = None) -> Database:
    """
    Connect to a named database from configuration.

    Args:
        name: Connection name from config file
        password: Optional password if not stored in config
        config_file: Optional path to config file

    Returns:
        Database connection instance

    Example:
        with connect('warehouse') as db:
            export_query(db, "SELECT * FROM users", 'users.csv')
    """
    config = _get_manager(config_file).get_connection_config(name)
    if password:
        config['password'] = password
    info = {key: val for key, val in config.items() if key != 'password'}
    logger.debug(f"Connecting to database {name} with config: {info}")

    driver = config.pop('driver', None)
    db_type = config.pop('type', None)
    if not db_type:
        if driver not in DRIVERS:
            raise ConfigurationError(f"Connection '{name}': unknown driver '{driver}'")
        db_type = DRIVERS[driver]['database_type']
    if db_type not in get_supported_db_types():
        raise ConfigurationError(
            f"Connection '{name}': unsupported type '{db_type}'. "
            f"Must be one of: {sorted(get_supported_db_types())}"
        )

    # remove any params that are not allowed for the database type
    allowed_params = get_params_for_database(db_type)
    config = {key: val for key, val in config.items() if key in allowed_params}

    return Database.create(db_type, driver=driver, **config)


def get_setting(key: str, default: Any = None, config_file: Optional[str] = None) -> Any:
    """
    Get a setting value from configuration.

    Config file settings are merged over the built-in defaults; when no
    config file can be found the defaults alone are used.

    Example:
        level = get_setting('logging.level', 'INFO')
    """
    try:
        _get_manager(config_file)
    except FileNotFoundError:
        logger.debug("No config file found, using default settings")

    value = settings
    for k in key.split('.'):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default
    return value


def generate_encryption_key() -> str:
    """
    Generate a random Fernet encryption key.

    Store it in the QUERYXSV_ENCRYPTION_KEY environment variable or in the
    system keyring with `queryxsv store-key <key>`.
    """
    if not HAS_CRYPTO:
        raise ConfigurationError("Encryption not available. Install cryptography package to enable encryption.")
    return Fernet.generate_key().decode()


def store_key(key: Optional[str] = None, force: bool = False) -> str:
    """Store an encryption key in the system keyring, generating one if not given."""
    if not HAS_KEYRING:
        raise ConfigurationError("Keyring not available. Install keyring package to store key in system keyring.")

    try:
        current_key = keyring.get_password(KEYRING_SERVICE, 'encryption_key')
    except Exception:
        current_key = None

    if current_key and not force:
        raise ConfigurationError("Encryption key already stored in system keyring. Use --force to overwrite.")
    if current_key:
        logger.warning("Overwriting encryption key in system keyring")

    if key is None:
        key = generate_encryption_key()
    elif not _valid_fernet(key):
        raise ConfigurationError("Invalid encryption key. Must be 32 url-safe base64-encoded bytes.")

    keyring.set_password(KEYRING_SERVICE, 'encryption_key', key)
    logger.info("Stored encryption key in system keyring")
    return key


def encrypt_password(password: str, encryption_key: Optional[str] = None) -> str:
    """
    Encrypt a password for use as ``encrypted_password`` in the config file.

    Args:
        password: Password to encrypt
        encryption_key: Optional encryption key. If None, uses the environment or keyring key
    """
    if encryption_key:
        return Fernet(encryption_key.encode()).encrypt(password.encode()).decode()
    temp_config = ConfigManager.__new__(ConfigManager)
    temp_config._fernet = None
    return temp_config.encrypt_password(password)

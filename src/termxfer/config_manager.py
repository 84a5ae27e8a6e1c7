"""Configuration management module.

This module handles persistent configuration storage using TOML format.
Stores user preferences like where bookmarks live, transfer chunk size and
the default protocol.

Security:
- Config file permissions: 0600 (owner read/write only)
- Path validation
"""

import logging
import os
import tempfile
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import tomli
import tomlkit

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".termxfer"


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass
class TermxferConfig:
    """termxfer configuration data."""

    bookmarks_file: str = str(DEFAULT_CONFIG_DIR / "bookmarks.toml")
    key_file: str = str(DEFAULT_CONFIG_DIR / ".bookmarks.key")
    chunk_size: int = 64 * 1024
    connect_timeout: float = 30.0
    default_protocol: str = "sftp"
    log_level: str = "WARNING"

    @property
    def bookmarks_path(self) -> Path:
        return Path(self.bookmarks_file).expanduser()

    @property
    def key_path(self) -> Path:
        return Path(self.key_file).expanduser()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = asdict(self)
        # Filter out None values as TOML doesn't support them
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TermxferConfig":
        """Create from dictionary, ignoring unknown keys.

        Raises:
            ConfigError: If a known key holds a value of the wrong type
        """
        known = {f.name for f in fields(cls)}
        for key in data.keys() - known:
            logger.warning(f"Unknown config key: {key}")
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            # Integers are accepted where a float is expected
            expected = (int, float) if f.type is float else (f.type,)
            if isinstance(value, bool) or not isinstance(value, expected):
                raise ConfigError(
                    f"Invalid type for {f.name}: expected {f.type.__name__}, got {type(value).__name__}"
                )
        return cls(**{k: v for k, v in data.items() if k in known})


class ConfigManager:
    """Manage termxfer configuration file.

    Configuration is stored at ~/.termxfer/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = DEFAULT_CONFIG_DIR
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def _validate_config_path(cls, path: Path) -> Path:
        """Validate configuration file path for security.

        Args:
            path: Path to validate

        Returns:
            Resolved path

        Raises:
            ConfigError: If path is outside allowed directories
        """
        resolved_path = path.resolve()

        # ~/.termxfer, the working directory, and the temp dir (pytest tmp_path)
        allowed_dirs = [
            cls.DEFAULT_CONFIG_DIR.resolve(),
            Path.cwd().resolve(),
            Path(tempfile.gettempdir()).resolve(),
        ]

        for allowed_dir in allowed_dirs:
            try:
                resolved_path.relative_to(allowed_dir)
                return resolved_path
            except ValueError:
                continue

        raise ConfigError(
            f"Config path outside allowed directories: {resolved_path}\n"
            f"Allowed directories:\n"
            f"  - {cls.DEFAULT_CONFIG_DIR}\n"
            f"  - {Path.cwd()}\n"
            "This restriction prevents path traversal attacks."
        )

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            Path to config file

        Raises:
            ConfigError: If path is invalid or outside allowed directories
        """
        if custom_path:
            path = cls._validate_config_path(Path(custom_path).expanduser())
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure config directory exists with secure permissions.

        Raises:
            ConfigError: If directory creation fails
        """
        try:
            cls.DEFAULT_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

            # Owner only: rwx------
            os.chmod(cls.DEFAULT_CONFIG_DIR, 0o700)

            logger.debug(f"Config directory ready: {cls.DEFAULT_CONFIG_DIR}")
            return cls.DEFAULT_CONFIG_DIR

        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> TermxferConfig:
        """Load configuration from file, falling back to defaults.

        Raises:
            ConfigError: If loading fails
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return TermxferConfig()

        try:
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:
                logger.warning(f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600...")
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)

            logger.debug(f"Loaded config from: {config_path}")
            return TermxferConfig.from_dict(data)

        except (OSError, tomli.TOMLDecodeError, TypeError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def save_config(cls, config: TermxferConfig, custom_path: str | None = None) -> None:
        """Save configuration to file.

        Raises:
            ConfigError: If saving fails or path is outside allowed directories
        """
        temp_path: Path | None = None
        try:
            if custom_path:
                config_path = cls._validate_config_path(Path(custom_path).expanduser())
                config_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls.ensure_config_dir()
                config_path = cls.DEFAULT_CONFIG_FILE

            # tomlkit keeps comments and formatting of an existing file
            temp_path = config_path.with_suffix(".tmp")
            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()
            for key, value in config.to_dict().items():
                doc[key] = value

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)

            os.chmod(temp_path, 0o600)
            temp_path.replace(config_path)

            logger.debug(f"Saved config to: {config_path}")

        except OSError as e:
            if temp_path and temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def update_config(cls, custom_path: str | None = None, **updates: Any) -> TermxferConfig:
        """Update configuration values.

        Raises:
            ConfigError: If update fails
        """
        current = cls.load_config(custom_path)
        config = TermxferConfig.from_dict({**current.to_dict(), **updates})

        cls.save_config(config, custom_path)
        return config

"""Configuration Management

Handles loading and validation of application configuration from YAML files
and environment variables. Uses Pydantic for type validation and settings management.

Configuration priority (highest to lowest):
1. Environment variables (VOD_DASHBOARD_*)
2. config.yaml file
3. Default values
"""

import os
from pathlib import Path
from typing import Optional, List
import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """HTTP server configuration"""

    host: str = Field(
        default="127.0.0.1",
        description="Interface to bind the dashboard to"
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Server port number"
    )

    model_config = SettingsConfigDict(
        env_prefix="VOD_DASHBOARD_SERVER_",
        case_sensitive=False
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject hosts given as URLs"""
        v = v.strip()
        if not v:
            raise ValueError("host cannot be empty")
        if "://" in v:
            raise ValueError("host should not include a scheme")
        return v


class StorageConfig(BaseSettings):
    """Local storage configuration

    Layout:
        {data_directory}/
          servers/      # one JSON file per server record
          activity/     # daily activity log files (JSON lines)
          exports/      # export history records
    """

    data_directory: str = Field(
        default="~/.vod-dashboard",
        description="Root directory for server records, activity log and export history"
    )

    model_config = SettingsConfigDict(
        env_prefix="VOD_DASHBOARD_STORAGE_",
        case_sensitive=False
    )

    @field_validator("data_directory")
    @classmethod
    def validate_data_directory(cls, v: str) -> str:
        """Expand user home directory in path"""
        return os.path.expanduser(v)

    @property
    def servers_directory(self) -> str:
        return str(Path(self.data_directory) / "servers")

    @property
    def activity_directory(self) -> str:
        return str(Path(self.data_directory) / "activity")

    @property
    def exports_directory(self) -> str:
        return str(Path(self.data_directory) / "exports")


class XtreamConfig(BaseSettings):
    """Remote Xtream API client configuration"""

    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Timeout in seconds for each player_api.php request"
    )
    user_agent: str = Field(
        default="XCIPTV",
        description="User-Agent header sent with API requests"
    )
    check_on_create: bool = Field(
        default=True,
        description="Probe a server with get_server_info when it is added"
    )

    model_config = SettingsConfigDict(
        env_prefix="VOD_DASHBOARD_XTREAM_",
        case_sensitive=False
    )

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("user_agent cannot be empty")
        return v.strip()


class SearchConfig(BaseSettings):
    """Catalog search configuration"""

    threshold: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Fuzzy match threshold (0.0 = exact match only, 1.0 = match anything)"
    )

    model_config = SettingsConfigDict(
        env_prefix="VOD_DASHBOARD_SEARCH_",
        case_sensitive=False
    )


class LoggingConfig(BaseSettings):
    """Logging configuration"""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    file: str = Field(
        default="logs/dashboard.log",
        description="Path to log file"
    )
    max_size: str = Field(
        default="10MB",
        description="Maximum log file size before rotation"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of backup log files to keep"
    )

    model_config = SettingsConfigDict(
        env_prefix="VOD_DASHBOARD_LOG_",
        case_sensitive=False
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("max_size")
    @classmethod
    def validate_max_size(cls, v: str) -> str:
        """Validate max_size format"""
        v_upper = v.upper()
        # Accept formats like "10MB", "100KB", "1GB"
        if not any(v_upper.endswith(suffix) for suffix in ["B", "KB", "MB", "GB"]):
            raise ValueError("max_size must end with B, KB, MB, or GB")
        try:
            number_part = v_upper.rstrip("KMGB")
            float(number_part)
        except ValueError:
            raise ValueError("max_size must start with a valid number")
        return v_upper

    def get_max_bytes(self) -> int:
        """Convert max_size to bytes"""
        max_size_upper = self.max_size.upper()
        number = float(max_size_upper.rstrip("KMGB"))

        if max_size_upper.endswith("GB"):
            return int(number * 1024 * 1024 * 1024)
        elif max_size_upper.endswith("MB"):
            return int(number * 1024 * 1024)
        elif max_size_upper.endswith("KB"):
            return int(number * 1024)
        else:  # Bytes
            return int(number)


class Config(BaseSettings):
    """Main application configuration

    Loads configuration from:
    1. config.yaml file (if exists)
    2. Environment variables (VOD_DASHBOARD_*)
    3. Default values

    Environment variables take precedence over config file.
    """

    server: ServerConfig = Field(default_factory=lambda: ServerConfig(_env_file=None))
    storage: StorageConfig = Field(default_factory=lambda: StorageConfig(_env_file=None))
    xtream: XtreamConfig = Field(default_factory=lambda: XtreamConfig(_env_file=None))
    search: SearchConfig = Field(default_factory=lambda: SearchConfig(_env_file=None))
    logging: LoggingConfig = Field(default_factory=lambda: LoggingConfig(_env_file=None))

    model_config = SettingsConfigDict(
        env_prefix="VOD_DASHBOARD_",
        case_sensitive=False,
        env_nested_delimiter="__"
    )

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """Load configuration from YAML file

        Args:
            config_path: Path to config.yaml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file is invalid
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return cls(
            server=ServerConfig(**config_data.get('server', {})),
            storage=StorageConfig(**config_data.get('storage', {})),
            xtream=XtreamConfig(**config_data.get('xtream', {})),
            search=SearchConfig(**config_data.get('search', {})),
            logging=LoggingConfig(**config_data.get('logging', {}))
        )

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration with automatic fallback

        Tries to load from:
        1. Provided config_path
        2. config/config.yaml (default location)
        3. Environment variables only (if no file found)

        Args:
            config_path: Optional path to config file

        Returns:
            Config instance
        """
        if config_path:
            return cls.from_yaml(config_path)

        default_path = Path("config/config.yaml")
        if default_path.exists():
            return cls.from_yaml(str(default_path))

        return cls()

    def save_to_yaml(self, config_path: str):
        """Save current configuration to YAML file

        Args:
            config_path: Path where to save config.yaml
        """
        config_data = {
            'server': {
                'host': self.server.host,
                'port': self.server.port,
            },
            'storage': {
                'data_directory': self.storage.data_directory,
            },
            'xtream': {
                'timeout': self.xtream.timeout,
                'user_agent': self.xtream.user_agent,
                'check_on_create': self.xtream.check_on_create,
            },
            'search': {
                'threshold': self.search.threshold,
            },
            'logging': {
                'level': self.logging.level,
                'file': self.logging.file,
                'max_size': self.logging.max_size,
                'backup_count': self.logging.backup_count,
            }
        }

        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            yaml.dump(config_data, f, default_flow_style=False, sort_keys=False)

    def validate_paths(self) -> List[str]:
        """Validate that required directories exist, creating them if possible

        Returns:
            List of validation errors (empty if all valid)
        """
        errors = []

        for label, directory in (
            ("servers", self.storage.servers_directory),
            ("activity log", self.storage.activity_directory),
            ("exports", self.storage.exports_directory),
            ("log", str(Path(self.logging.file).parent)),
        ):
            path = Path(directory)
            if not path.exists():
                try:
                    path.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    errors.append(f"Cannot create {label} directory: {e}")

        return errors


# Global configuration instance
_config: Optional[Config] = None


def get_config(config_path: Optional[str] = None, reload: bool = False) -> Config:
    """Get global configuration instance

    Args:
        config_path: Optional path to config file
        reload: Force reload configuration

    Returns:
        Config instance
    """
    global _config

    if _config is None or reload:
        _config = Config.load(config_path)

    return _config


def set_config(config: Config):
    """Set global configuration instance (mainly for testing)

    Args:
        config: Config instance to set
    """
    global _config
    _config = config

"""Unit Tests for Configuration System

Tests configuration loading, validation, environment variable overrides,
and Pydantic model validation.
"""

import pytest
import os
import tempfile
import yaml
from pathlib import Path

from vod_dashboard.core.config import (
    Config,
    ServerConfig,
    StorageConfig,
    XtreamConfig,
    SearchConfig,
    LoggingConfig,
    get_config,
    set_config,
)


class TestServerConfig:
    """Test ServerConfig model"""

    def test_default_values(self):
        """Test default server configuration"""
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8080

    def test_port_validation(self):
        """Test port number validation"""
        ServerConfig(port=1)
        ServerConfig(port=65535)

        with pytest.raises(ValueError):
            ServerConfig(port=0)
        with pytest.raises(ValueError):
            ServerConfig(port=65536)

    def test_host_validation(self):
        """Test host must be a bare interface name"""
        assert ServerConfig(host=" 0.0.0.0 ").host == "0.0.0.0"

        with pytest.raises(ValueError, match="scheme"):
            ServerConfig(host="http://localhost")
        with pytest.raises(ValueError, match="empty"):
            ServerConfig(host="  ")


class TestStorageConfig:
    """Test StorageConfig model"""

    def test_default_values(self):
        """Test default data directory is expanded"""
        config = StorageConfig()

        assert "~" not in config.data_directory
        assert config.data_directory.endswith(".vod-dashboard")

    def test_sub_directories(self, tmp_path):
        """Test derived storage folders"""
        config = StorageConfig(data_directory=str(tmp_path))

        assert config.servers_directory == str(tmp_path / "servers")
        assert config.activity_directory == str(tmp_path / "activity")
        assert config.exports_directory == str(tmp_path / "exports")


class TestXtreamConfig:
    """Test XtreamConfig model"""

    def test_default_values(self):
        """Test default client configuration"""
        config = XtreamConfig()

        assert config.timeout == 30
        assert config.user_agent == "XCIPTV"
        assert config.check_on_create is True

    def test_timeout_validation(self):
        """Test timeout bounds"""
        XtreamConfig(timeout=1)
        XtreamConfig(timeout=300)

        with pytest.raises(ValueError):
            XtreamConfig(timeout=0)
        with pytest.raises(ValueError):
            XtreamConfig(timeout=301)

    def test_blank_user_agent(self):
        """Test user agent cannot be blank"""
        with pytest.raises(ValueError, match="cannot be empty"):
            XtreamConfig(user_agent="   ")


class TestSearchConfig:
    """Test SearchConfig model"""

    def test_default_threshold(self):
        assert SearchConfig().threshold == 0.4

    def test_threshold_range(self):
        """Test threshold must stay within 0.0-1.0"""
        SearchConfig(threshold=0.0)
        SearchConfig(threshold=1.0)

        with pytest.raises(ValueError):
            SearchConfig(threshold=-0.1)
        with pytest.raises(ValueError):
            SearchConfig(threshold=1.5)


class TestLoggingConfig:
    """Test LoggingConfig model"""

    def test_default_values(self):
        """Test default logging configuration"""
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.file == "logs/dashboard.log"
        assert config.max_size == "10MB"
        assert config.backup_count == 5

    def test_log_level_validation(self):
        """Test log level validation"""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            assert LoggingConfig(level=level).level == level

        # Case insensitive
        assert LoggingConfig(level="debug").level == "DEBUG"

        with pytest.raises(ValueError, match="must be one of"):
            LoggingConfig(level="INVALID")

    def test_max_size_validation(self):
        """Test max_size validation"""
        LoggingConfig(max_size="10B")
        LoggingConfig(max_size="100KB")
        LoggingConfig(max_size="1GB")

        assert LoggingConfig(max_size="10mb").max_size == "10MB"

        with pytest.raises(ValueError):
            LoggingConfig(max_size="10")
        with pytest.raises(ValueError):
            LoggingConfig(max_size="invalid")

    def test_get_max_bytes(self):
        """Test converting max_size to bytes"""
        assert LoggingConfig(max_size="10B").get_max_bytes() == 10
        assert LoggingConfig(max_size="5KB").get_max_bytes() == 5 * 1024
        assert LoggingConfig(max_size="10MB").get_max_bytes() == 10 * 1024 * 1024


class TestConfigLoading:
    """Test Config loading from various sources"""

    def test_default_config(self):
        """Test loading default configuration"""
        config = Config()

        assert config.server.port == 8080
        assert config.xtream.timeout == 30
        assert config.search.threshold == 0.4
        assert config.logging.level == "INFO"

    def test_load_from_yaml(self, tmp_path):
        """Test loading configuration from YAML file"""
        config_data = {
            'server': {'port': 9000},
            'storage': {'data_directory': str(tmp_path / "data")},
            'xtream': {'timeout': 10, 'check_on_create': False},
            'search': {'threshold': 0.2},
            'logging': {'level': 'DEBUG'},
        }
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump(config_data))

        config = Config.from_yaml(str(config_path))

        assert config.server.port == 9000
        assert config.storage.data_directory == str(tmp_path / "data")
        assert config.xtream.timeout == 10
        assert config.xtream.check_on_create is False
        assert config.search.threshold == 0.2
        assert config.logging.level == "DEBUG"

        # Unspecified values should use defaults
        assert config.server.host == "127.0.0.1"
        assert config.xtream.user_agent == "XCIPTV"

    def test_load_from_yaml_empty_file(self):
        """Test loading from empty YAML file"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("")
            config_path = f.name

        try:
            config = Config.from_yaml(config_path)
            assert config.server.port == 8080
        finally:
            os.unlink(config_path)

    def test_load_from_nonexistent_file(self):
        """Test loading from non-existent file"""
        with pytest.raises(FileNotFoundError):
            Config.from_yaml("/nonexistent/config.yaml")

    def test_save_to_yaml(self, tmp_path):
        """Test saving configuration to YAML file"""
        config = Config(
            server=ServerConfig(port=9001),
            search=SearchConfig(threshold=0.3),
            logging=LoggingConfig(level="DEBUG")
        )
        config_path = tmp_path / "nested" / "config.yaml"

        config.save_to_yaml(str(config_path))
        loaded_config = Config.from_yaml(str(config_path))

        assert loaded_config.server.port == 9001
        assert loaded_config.search.threshold == 0.3
        assert loaded_config.logging.level == "DEBUG"

    def test_environment_override(self, monkeypatch):
        """Test environment variables override defaults"""
        monkeypatch.setenv("VOD_DASHBOARD_XTREAM_TIMEOUT", "12")
        monkeypatch.setenv("VOD_DASHBOARD_SEARCH_THRESHOLD", "0.25")

        assert XtreamConfig().timeout == 12
        assert SearchConfig().threshold == 0.25


class TestConfigValidation:
    """Test configuration validation"""

    def test_validate_paths_creates_directories(self, tmp_path):
        """Test path validation creates missing storage folders"""
        config = Config(
            storage=StorageConfig(data_directory=str(tmp_path / "data")),
            logging=LoggingConfig(file=str(tmp_path / "logs" / "test.log"))
        )

        errors = config.validate_paths()

        assert errors == []
        assert Path(config.storage.servers_directory).is_dir()
        assert Path(config.storage.activity_directory).is_dir()
        assert Path(config.storage.exports_directory).is_dir()
        assert (tmp_path / "logs").is_dir()


class TestGlobalConfig:
    """Test get_config/set_config"""

    def test_set_config(self):
        """Test replacing the global configuration"""
        original = get_config()
        custom = Config(server=ServerConfig(port=9999))

        try:
            set_config(custom)
            assert get_config() is custom
            assert get_config().server.port == 9999
        finally:
            set_config(original)

"""Logging Configuration

Sets up structured logging with rotation for the application.
"""

import logging
import re
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from vod_dashboard.core.config import get_config


def setup_logging():
    """Setup application logging with rotation

    Configures:
    - Console output (INFO and above)
    - File output with rotation (configurable level)
    - Structured format with timestamps
    """
    config = get_config()

    log_file = Path(config.logging.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    root_logger.handlers = []

    # Console handler (always INFO or above)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler with rotation
    file_handler = RotatingFileHandler(
        filename=str(log_file),
        maxBytes=config.logging.get_max_bytes(),
        backupCount=config.logging.backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info("Logging system initialized")
    logger.info(f"Log file: {log_file}")
    logger.info(f"Log level: {config.logging.level}")


_PASSWORD_PARAM = re.compile(r'(password=)[^&\s]*')
_MOVIE_PATH = re.compile(r'(/movie/[^/\s]+/)[^/\s]+(/)')


def mask_credentials(url: str) -> str:
    """Hide the password in a player_api.php or /movie/ URL before logging it

    Args:
        url: URL that may embed a plaintext password

    Returns:
        URL with the password replaced by ***
    """
    masked = _PASSWORD_PARAM.sub(r'\1***', url)
    return _MOVIE_PATH.sub(r'\1***\2', masked)

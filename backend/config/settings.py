"""
Application configuration

Values come from environment variables, optionally loaded from a .env file.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

# Load environment variables
load_dotenv()

from utils.paths import get_writable_dir


def _env_number(name: str, default, cast=int):
    """Read a numeric variable, keeping the default on bad input"""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, using {default}")
        return default
    return value


class Settings:
    """
    Runtime settings

    - RULES_BASE_URL: base URL that rule document paths are joined to
    - RULES_INDEX_PATH: path of the index document
    - FETCH_TIMEOUT / FETCH_WORKERS: rule fetch timeout and pool size
    - CHARACTER_DATA_DIR: where character records are stored
    - LOG_LEVEL / LOG_FILTER: console logging
    """

    def __init__(self):
        self.rules_base_url: str = ''
        self.rules_index_path: str = 'index.json'
        self.fetch_timeout: float = 10.0
        self.fetch_workers: int = 4
        self.character_data_dir: Optional[Path] = None
        self.log_level: str = 'INFO'
        self.log_filter: str = ''
        self._load_config()

    def _load_config(self):
        """Load configuration from environment variables."""
        self.rules_base_url = os.getenv('RULES_BASE_URL', self.rules_base_url).strip()
        self.rules_index_path = os.getenv('RULES_INDEX_PATH', '').strip() or self.rules_index_path
        self.fetch_timeout = _env_number('FETCH_TIMEOUT', self.fetch_timeout, float)
        self.fetch_workers = _env_number('FETCH_WORKERS', self.fetch_workers, int)
        self.log_level = os.getenv('LOG_LEVEL', self.log_level).upper()
        self.log_filter = os.getenv('LOG_FILTER', self.log_filter)

        env_data_dir = os.getenv('CHARACTER_DATA_DIR')
        if env_data_dir:
            self.character_data_dir = Path(env_data_dir)
        else:
            self.character_data_dir = get_writable_dir('characters')


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, created on first use"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

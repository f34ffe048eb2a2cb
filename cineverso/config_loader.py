"""
Configuration loader for CineVerso.

Supports loading configuration from:
1. config.ini file (recommended)
2. Environment variables (for automation/Docker)
"""

import configparser
import os
from dataclasses import dataclass

from cineverso.models import TmdbConfig


@dataclass
class SyncSettings:
    """Settings for list and watch-history synchronization."""

    # Largest number of nested field paths sent in one remote update
    watch_history_chunk_size: int = 20


class ConfigLoader:
    """Load configuration from various sources."""

    def __init__(self, config_file: str = "config.ini"):
        """
        Initialize config loader.

        Args:
            config_file: Path to config file (default: config.ini)
        """
        self.config_file = config_file
        self.config = None

    def load_from_file(self) -> bool:
        """
        Load configuration from INI file.

        Returns:
            True if file was loaded successfully, False otherwise
        """
        if not os.path.exists(self.config_file):
            return False

        self.config = configparser.ConfigParser()
        self.config.read(self.config_file)
        return True

    def get_tmdb_config(self) -> TmdbConfig:
        """
        Get TMDB API configuration.

        Returns:
            TmdbConfig built from the config file or the environment

        Raises:
            ValueError: If configuration is missing or invalid
        """
        if self.config and self.config.has_section('TMDB'):
            try:
                api_key = self.config.get('TMDB', 'api_key')
                language = self.config.get('TMDB', 'language', fallback='pt-BR')
                timeout = self.config.getfloat('TMDB', 'timeout', fallback=10.0)
            except (configparser.NoOptionError, ValueError) as e:
                raise ValueError(f"Invalid config file: {e}")

            if 'YOUR_API_KEY' in api_key:
                raise ValueError(
                    "Please update config.ini with your actual TMDB API key!\n"
                    "Replace 'YOUR_API_KEY_HERE' with your key from themoviedb.org."
                )
            return TmdbConfig(api_key=api_key, language=language, timeout=timeout)

        env_key = os.getenv('TMDB_API_KEY')
        if env_key:
            return TmdbConfig(
                api_key=env_key,
                language=os.getenv('TMDB_LANGUAGE', 'pt-BR'),
                timeout=float(os.getenv('TMDB_TIMEOUT', '10')),
            )

        raise ValueError(
            "No TMDB configuration found!\n\n"
            "Please create a config.ini file with a [TMDB] section:\n"
            "  api_key = <your key>\n"
            "  language = pt-BR\n\n"
            "Or set environment variables:\n"
            "  TMDB_API_KEY, (Optional) TMDB_LANGUAGE, TMDB_TIMEOUT"
        )

    def get_settings(self) -> SyncSettings:
        """
        Get synchronization settings.

        Returns:
            SyncSettings with configured values
        """
        settings = SyncSettings()

        if self.config and self.config.has_section('Sync'):
            settings.watch_history_chunk_size = self.config.getint('Sync', 'chunk_size', fallback=20)
        else:
            settings.watch_history_chunk_size = int(os.getenv('WATCH_HISTORY_CHUNK_SIZE', '20'))

        if settings.watch_history_chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        return settings

"""
Configuration management for smart-playlist

This module handles loading, validation, and management of application settings
from YAML files and environment variables. It provides a centralized configuration
system shared by the catalog client, the retrieval pipeline, the enrichment
service and the generation orchestrator.

The configuration is organized into logical sections using dataclasses:
- Spotify API settings (market, request pacing, timeouts)
- Retrieval settings (page sizes, concurrent page prefetch, default sources)
- Generation settings (preview size, playlist description banner)
- Enrichment settings (image probing limits and concurrency)
- Presentation settings (preview image selection)
- Logging settings

The engine never stores credentials: the bearer access token is handed to the
client per request by the session layer, so nothing here is secret.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from ..exceptions import ConfigError

# Load environment variables from .env file if present
load_dotenv()

logger = logging.getLogger(__name__)

VALID_SOURCES = ['saved tracks', 'playlists', 'albums', 'followed artists']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class SpotifyConfig:
    """
    Spotify Web API client settings

    The market is used for endpoints that require a country (artist top
    tracks). The request interval throttles calls to stay clear of 429s.
    """
    market: str = "US"
    min_request_interval: float = 0.1  # 100ms between requests (10 req/sec max)
    request_timeout: int = 10
    max_rate_limit_wait: int = 30


@dataclass
class RetrievalConfig:
    """
    Track pool retrieval settings

    Spotify caps most library endpoints at 50 items per page and playlist
    items at 100. Pages after the first may be prefetched concurrently.
    """
    page_size: int = 50
    playlist_items_page_size: int = 100
    max_concurrent_pages: int = 4
    sources: List[str] = field(default_factory=lambda: ["saved tracks"])
    max_candidates: int = 10000


@dataclass
class GenerationConfig:
    """
    Smart playlist generation settings

    Controls the size of preview samples and how created playlists are
    described on Spotify.
    """
    preview_size: int = 25
    description_prefix: str = "Smart playlist created with smart-playlist!"
    add_tracks_batch_size: int = 100


@dataclass
class EnrichmentConfig:
    """
    Image dimension probing settings

    Probes only download the first bytes of an image, enough for Pillow to
    read the header. Failures are logged and skipped.
    """
    enabled: bool = True
    timeout: int = 10
    max_workers: int = 8
    chunk_size: int = 1024
    max_probe_bytes: int = 256 * 1024


@dataclass
class PresentationConfig:
    """
    Preview presentation settings

    The preview picks the smallest album image whose sides are both at
    least ``min_image_size`` pixels, and falls back to ``default_image_path``.
    """
    min_image_size: int = 64
    default_image_path: str = "/images/question.png"


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from multiple sources (YAML files, environment variables)
    and provides a unified interface for accessing configuration throughout
    the application.

    The class handles:
    - Loading configuration from YAML files
    - Overriding with environment variables
    - Validating configuration values
    - Saving configuration back to files
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".smart-playlist"

        # Initialize all configuration objects with default values
        self.spotify = SpotifyConfig()
        self.retrieval = RetrievalConfig()
        self.generation = GenerationConfig()
        self.enrichment = EnrichmentConfig()
        self.presentation = PresentationConfig()
        self.logging = LoggingConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()

    def _sections(self) -> Dict[str, Any]:
        return {
            'spotify': self.spotify,
            'retrieval': self.retrieval,
            'generation': self.generation,
            'enrichment': self.enrichment,
            'presentation': self.presentation,
            'logging': self.logging
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist in both the config file and the dataclass
        definition are updated; unknown sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        if not isinstance(config_data, dict):
            logger.warning("Ignoring config file: top level is not a mapping")
            return

        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load configuration overrides from environment variables

        Environment variables take precedence over file-based configuration,
        which keeps deployments configurable without editing YAML files.
        """
        env_mappings = {
            'SPOTIFY_MARKET': lambda v: setattr(self.spotify, 'market', v),
            'SMART_PLAYLIST_PREVIEW_SIZE': lambda v: setattr(self.generation, 'preview_size', int(v)),
            'SMART_PLAYLIST_LOG_LEVEL': lambda v: setattr(self.logging, 'level', v.upper()),
            'SMART_PLAYLIST_LOG_FILE': lambda v: setattr(self.logging, 'file', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                try:
                    setter(value)
                except ValueError:
                    logger.warning(f"Ignoring invalid value for {env_var}: {value}")

    def get_config_directory(self) -> Path:
        """
        Get the expanded config directory path

        Returns:
            Path object for the configuration directory
        """
        return self.config_dir.expanduser()

    def save_config(self, path: Optional[str] = None) -> Path:
        """
        Save current configuration to file

        Args:
            path: Custom path to save config, defaults to user config directory

        Returns:
            Path the configuration was written to

        Raises:
            ConfigError: If the configuration cannot be saved
        """
        target = Path(path) if path else self.get_config_directory() / "config.yaml"

        config_data = {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save config to {target}: {e}", details={'file_path': str(target)})

        return target

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        """Convert dataclass to dictionary for YAML output"""
        return {key: (list(value) if isinstance(value, list) else value) for key, value in obj.__dict__.items()}

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of human-readable validation errors (empty if valid)
        """
        errors = []

        if self.retrieval.page_size < 1 or self.retrieval.page_size > 50:
            errors.append(f"retrieval.page_size must be between 1 and 50: {self.retrieval.page_size}")

        if self.retrieval.playlist_items_page_size < 1 or self.retrieval.playlist_items_page_size > 100:
            errors.append(
                f"retrieval.playlist_items_page_size must be between 1 and 100: "
                f"{self.retrieval.playlist_items_page_size}"
            )

        if self.retrieval.max_concurrent_pages < 1:
            errors.append(f"retrieval.max_concurrent_pages must be positive: {self.retrieval.max_concurrent_pages}")

        invalid_sources = [source for source in self.retrieval.sources if source not in VALID_SOURCES]
        if invalid_sources:
            errors.append(f"Invalid retrieval sources: {', '.join(invalid_sources)}")

        if self.generation.preview_size < 1:
            errors.append(f"generation.preview_size must be positive: {self.generation.preview_size}")

        if not 1 <= self.generation.add_tracks_batch_size <= 100:
            errors.append(
                f"generation.add_tracks_batch_size must be between 1 and 100: "
                f"{self.generation.add_tracks_batch_size}"
            )

        if self.enrichment.max_workers < 1:
            errors.append(f"enrichment.max_workers must be positive: {self.enrichment.max_workers}")

        if self.logging.level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"Invalid logging level: {self.logging.level}")

        for error in errors:
            logger.warning(f"Configuration validation error: {error}")

        return errors

    def __str__(self) -> str:
        sections = [
            f"Market: {self.spotify.market}",
            f"Sources: {', '.join(self.retrieval.sources)}",
            f"Preview: {self.generation.preview_size}",
            f"Enrichment: {'enabled' if self.enrichment.enabled else 'disabled'}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance for singleton pattern
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings

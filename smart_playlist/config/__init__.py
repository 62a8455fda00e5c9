"""
Configuration package for smart-playlist

Centralized settings management with YAML and environment variable support.

Usage:

    from smart_playlist.config import get_settings

    settings = get_settings()
    preview_size = settings.generation.preview_size

Configuration Sources (in order of precedence):
1. Environment variables (SPOTIFY_MARKET, SMART_PLAYLIST_PREVIEW_SIZE, ...)
2. YAML configuration files
3. Default values
"""

from .settings import get_settings, reload_settings, Settings

__all__ = [
    'get_settings',      # Factory function for singleton settings access
    'reload_settings',   # Function to reload settings from files
    'Settings'           # Settings class for direct instantiation
]

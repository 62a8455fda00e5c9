"""
smart-playlist: rule-based smart playlist generation for Spotify

A smart playlist is not a fixed list of tracks but the result of evaluating
a rule set, an ordering and a size limit against a pool of tracks pulled from
the user's Spotify library.

## Core Architecture

**Configuration Management (`smart_playlist/config/`)**
- Centralized settings management with YAML and environment variable support

**Spotify Integration (`smart_playlist/spotify/`)**
- Bearer-token Spotify Web API client with request pacing
- Data models for tracks, albums, artists, images, playlists and pages

**Generation Engine (`smart_playlist/smart/`)**
- Rule evaluation, comparator-driven ordered insertion, count and duration limits
- Multi-source track retrieval with offset and cursor paging
- Best-effort image dimension enrichment
- Generation orchestrator producing previews or created playlists

**Utilities (`smart_playlist/utils/`)**
- Logging setup and small value helpers

## Usage

    from smart_playlist.smart import SmartPlaylistGenerator, SmartPlaylistRequest

    request = SmartPlaylistRequest.from_form(form_data)
    generator = SmartPlaylistGenerator(access_token)
    preview = generator.preview(request)
"""

__version__ = "0.1.0"
__author__ = "smart-playlist contributors"
__description__ = "Rule-based smart playlist generation for Spotify"

__all__ = [
    '__version__',
    '__author__',
    '__description__',
]

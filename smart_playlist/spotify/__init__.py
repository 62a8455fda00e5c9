"""
Spotify integration package

Client and data models for the Spotify Web API.

1. Client Module (client.py):
   - Bearer-token spotipy client with request pacing and 429 handling
   - One method per paged collection, returning normalized pages
   - Playlist creation, fetch, delete and restore

2. Models Module (models.py):
   - Data classes for Spotify entities (tracks, artists, albums, images, playlists)
   - SpotifyPage for offset and cursor paged responses

Usage Example:

    from smart_playlist.spotify import SpotifyClient, SpotifyTrack

    client = SpotifyClient(access_token)
    page = client.get_saved_tracks_page()
    tracks = [SpotifyTrack.from_spotify_data(item) for item in page.items]
"""

from .client import SpotifyClient
from .models import (
    SpotifyImage,
    SpotifyArtist,
    SpotifyAlbum,
    SpotifyTrack,
    SpotifyPlaylist,
    SpotifyPage,
    select_best_image
)

__all__ = [
    'SpotifyClient',

    'SpotifyImage',
    'SpotifyArtist',
    'SpotifyAlbum',
    'SpotifyTrack',
    'SpotifyPlaylist',
    'SpotifyPage',
    'select_best_image'
]

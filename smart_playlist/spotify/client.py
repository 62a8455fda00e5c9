"""
Spotify API client for smart playlist retrieval and creation

This module wraps spotipy with the request pacing and error translation the
smart playlist engine relies on. It is the only place that talks to the
Spotify Web API.

Architecture Overview:

1. **Rate Limiting Layer**: Request throttling to respect Spotify API limits
   - Configurable minimum interval between requests (default: 100ms)
   - A 429 response is waited out once, honouring the Retry-After header
   - The pacing state is guarded by a lock, since pages may be prefetched
     from worker threads

2. **Authentication**: The client is handed an opaque bearer access token by
   the session layer. It never refreshes tokens: a 401 is surfaced as
   SpotifyAPIError with ``is_auth_error`` set.

3. **Paged Fetches**: One method per collection, each returning a single
   normalized SpotifyPage. Offset paging (saved tracks, playlists, playlist
   items, saved albums, album tracks) and cursor paging (followed artists)
   are both supported; walking the pages belongs to the retrieval pipeline.

4. **Playlist Management**: create a playlist and add tracks to it, fetch a
   single playlist, delete (unfollow) and restore (follow) a playlist.

Usage Examples:

    client = SpotifyClient(access_token)

    page = client.get_saved_tracks_page(offset=0, limit=50)
    for item in page.items:
        track = SpotifyTrack.from_spotify_data(item)

    playlist = client.create_playlist("Road trip", description="Loud songs")
    client.add_tracks_to_playlist(playlist.id, uris)
"""

import threading
import time
from typing import Any, Dict, List, Optional

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from ..config.settings import Settings, get_settings
from ..exceptions import SpotifyAPIError
from ..utils.helpers import chunked
from ..utils.logger import get_logger
from .models import SpotifyPage, SpotifyPlaylist

PLAYLIST_INFO_FIELDS = (
    'id,name,description,owner,public,collaborative,tracks(total),'
    'uri,images,followers,snapshot_id'
)


class SpotifyClient:
    """
    Rate-limited Spotify Web API client bound to one bearer access token

    Each generation request owns its own client, so nothing here is shared
    across users. The underlying spotipy connection is created lazily on the
    first API call.
    """

    def __init__(self, access_token: str, settings: Optional[Settings] = None):
        """
        Initialize Spotify API client

        Args:
            access_token: OAuth bearer token supplied by the session layer
            settings: Application settings, defaults to the global instance
        """
        self.access_token = access_token
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)
        self._client: Optional[spotipy.Spotify] = None

        self.market = self.settings.spotify.market
        self.min_request_interval = self.settings.spotify.min_request_interval
        self.last_request_time = 0.0
        self._rate_lock = threading.Lock()

    @property
    def client(self) -> spotipy.Spotify:
        """Lazily created spotipy client using the bearer token"""
        if self._client is None:
            self._client = spotipy.Spotify(
                auth=self.access_token,
                requests_timeout=self.settings.spotify.request_timeout,
                # 429s are handled by _make_request
                status_retries=0
            )
        return self._client

    def _rate_limit(self) -> None:
        """
        Throttle requests to the configured minimum interval

        Safe to call from several threads: callers queue on the lock and
        each one leaves at least ``min_request_interval`` after the last.
        """
        with self._rate_lock:
            time_since_last = time.time() - self.last_request_time

            if time_since_last < self.min_request_interval:
                time.sleep(self.min_request_interval - time_since_last)

            self.last_request_time = time.time()

    def _make_request(self, func, *args, **kwargs) -> Any:
        """
        Rate-limited API request wrapper with error translation

        Args:
            func: Spotify API method to call
            *args: Positional arguments for the API method
            **kwargs: Keyword arguments for the API method

        Returns:
            API response data from the Spotify endpoint

        Raises:
            SpotifyAPIError: For any failed request. A 429 is retried once
                after the Retry-After delay; a 401 is never retried.
        """
        self._rate_limit()

        try:
            return func(*args, **kwargs)
        except SpotifyException as e:
            if e.http_status != 429:
                raise self._translate_error(e)

            retry_after = self._retry_after(e)
            if retry_after > self.settings.spotify.max_rate_limit_wait:
                raise self._translate_error(e)

            self.logger.warning(f"Rate limited, waiting {retry_after} seconds...")
            time.sleep(retry_after)
        except requests.exceptions.RequestException as e:
            raise SpotifyAPIError(f"Spotify request failed: {e}", details={'error': type(e).__name__})

        # Single retry after the mandated wait
        self._rate_limit()
        try:
            return func(*args, **kwargs)
        except SpotifyException as e:
            raise self._translate_error(e)
        except requests.exceptions.RequestException as e:
            raise SpotifyAPIError(f"Spotify request failed: {e}", details={'error': type(e).__name__})

    @staticmethod
    def _retry_after(error: SpotifyException) -> int:
        headers = error.headers or {}
        try:
            return max(int(headers.get('Retry-After', 1)), 0)
        except (TypeError, ValueError):
            return 1

    @staticmethod
    def _translate_error(error: SpotifyException) -> SpotifyAPIError:
        status = error.http_status
        if status == 401:
            message = "Spotify rejected the access token"
        elif status == 429:
            message = "Spotify rate limit exceeded"
        else:
            message = f"Spotify API error ({status}): {error.msg}"

        return SpotifyAPIError(
            message,
            details={'status': status, 'reason': getattr(error, 'reason', None)},
            status=status,
            is_auth_error=status == 401,
            is_rate_limit=status == 429
        )

    # Paged collection fetches

    def get_saved_tracks_page(self, offset: int = 0, limit: int = 50) -> SpotifyPage:
        """Fetch one page of the user's liked songs (offset paging)"""
        results = self._make_request(self.client.current_user_saved_tracks, limit=limit, offset=offset)
        return SpotifyPage.from_offset_response(results)

    def get_playlists_page(self, offset: int = 0, limit: int = 50) -> SpotifyPage:
        """Fetch one page of the playlists owned or followed by the user"""
        results = self._make_request(self.client.current_user_playlists, limit=limit, offset=offset)
        return SpotifyPage.from_offset_response(results)

    def get_playlist_items_page(self, playlist_id: str, offset: int = 0, limit: int = 100) -> SpotifyPage:
        """
        Fetch one page of a playlist's items

        Podcast episodes are excluded; items keep their 'added_at' timestamp.
        """
        results = self._make_request(
            self.client.playlist_items,
            playlist_id,
            limit=limit,
            offset=offset,
            additional_types=('track',)
        )
        return SpotifyPage.from_offset_response(results)

    def get_saved_albums_page(self, offset: int = 0, limit: int = 50) -> SpotifyPage:
        """Fetch one page of the user's saved albums (items wrap 'album')"""
        results = self._make_request(self.client.current_user_saved_albums, limit=limit, offset=offset)
        return SpotifyPage.from_offset_response(results)

    def get_album_tracks_page(self, album_id: str, offset: int = 0, limit: int = 50) -> SpotifyPage:
        """Fetch one page of an album's (simplified) track listing"""
        results = self._make_request(self.client.album_tracks, album_id, limit=limit, offset=offset)
        return SpotifyPage.from_offset_response(results)

    def get_followed_artists_page(self, after: Optional[str] = None, limit: int = 50) -> SpotifyPage:
        """
        Fetch one page of followed artists

        This collection is cursor based: pass the previous page's ``cursor``
        as ``after`` to continue.
        """
        results = self._make_request(self.client.current_user_followed_artists, limit=limit, after=after)
        return SpotifyPage.from_cursor_response((results or {}).get('artists') or {})

    def get_artist_top_tracks(self, artist_id: str) -> List[Dict[str, Any]]:
        """Fetch an artist's top tracks in the configured market (not paged)"""
        results = self._make_request(self.client.artist_top_tracks, artist_id, country=self.market)
        return (results or {}).get('tracks') or []

    # Single resource operations

    def get_current_user_id(self) -> str:
        user = self._make_request(self.client.current_user)
        return user['id']

    def create_playlist(
        self,
        name: str,
        description: Optional[str] = None,
        public: bool = False,
        collaborative: bool = False
    ) -> SpotifyPlaylist:
        """
        Create an empty playlist for the current user

        The description is prefixed with the configured banner. Spotify does
        not allow a playlist to be both public and collaborative, so public
        wins.

        Args:
            name: Playlist title
            description: Optional user description
            public: Visibility flag
            collaborative: Whether followers may edit the playlist

        Returns:
            The created SpotifyPlaylist
        """
        prefix = self.settings.generation.description_prefix
        full_description = f"{prefix} {description}" if description else prefix

        if public and collaborative:
            self.logger.debug("Playlist cannot be public and collaborative, dropping collaborative")
            collaborative = False

        user_id = self.get_current_user_id()
        playlist_data = self._make_request(
            self.client.user_playlist_create,
            user_id,
            name,
            public=public,
            collaborative=collaborative,
            description=full_description
        )

        playlist = SpotifyPlaylist.from_spotify_data(playlist_data)
        self.logger.info(f"Created playlist '{playlist.name}' ({playlist.id})")
        return playlist

    def add_tracks_to_playlist(self, playlist_id: str, track_uris: List[str]) -> int:
        """
        Append tracks to a playlist in batches

        Args:
            playlist_id: Target playlist
            track_uris: Track URIs in the order they should appear

        Returns:
            Number of URIs submitted
        """
        batch_size = self.settings.generation.add_tracks_batch_size
        added = 0
        for batch in chunked(track_uris, batch_size):
            self._make_request(self.client.playlist_add_items, playlist_id, batch)
            added += len(batch)
            self.logger.debug(f"Added {added}/{len(track_uris)} tracks to playlist {playlist_id}")

        return added

    def get_playlist_info(self, playlist_id: str) -> SpotifyPlaylist:
        """Fetch playlist metadata (no track content)"""
        self.logger.info(f"Fetching playlist info for {playlist_id}")

        playlist_data = self._make_request(self.client.playlist, playlist_id, fields=PLAYLIST_INFO_FIELDS)
        playlist = SpotifyPlaylist.from_spotify_data(playlist_data)

        self.logger.info(f"Retrieved playlist: '{playlist.name}' by {playlist.owner_name} ({playlist.total_tracks} tracks)")
        return playlist

    def delete_playlist(self, playlist_id: str) -> None:
        """Delete a playlist, which on Spotify means unfollowing it"""
        self._make_request(self.client.current_user_unfollow_playlist, playlist_id)
        self.logger.info(f"Deleted playlist {playlist_id}")

    def restore_playlist(self, playlist_id: str) -> None:
        """Restore a deleted playlist by following it again"""
        self._make_request(self.client.current_user_follow_playlist, playlist_id)
        self.logger.info(f"Restored playlist {playlist_id}")

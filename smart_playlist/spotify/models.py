"""
Data models for Spotify tracks, albums, playlists and paged responses

This module defines the data structures the smart playlist engine works on.
Every model is built from raw Spotify Web API JSON through a
``from_spotify_data()`` factory that tolerates the partial objects Spotify
returns from different endpoints (simplified album tracks have no album or
popularity, playlist images often have no dimensions, local files have no
ids).

Architecture Overview:

1. **Catalog entities**: SpotifyImage, SpotifyArtist, SpotifyAlbum,
   SpotifyTrack, SpotifyPlaylist. Tracks are treated as immutable once
   fetched; the only mutation ever applied is the enrichment service filling
   in missing image width/height.

2. **Paging**: SpotifyPage normalizes both paging styles used by the API
   into one shape. Offset-based collections (saved tracks, playlists, albums)
   report ``offset``; cursor-based collections (followed artists) report the
   ``cursor`` to request the next page with.

3. **Presentation**: SpotifyTrack.to_preview_dict() renders the plain
   structure handed to the presentation layer for previews.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..utils.helpers import format_duration, parse_release_date


@dataclass
class SpotifyImage:
    """
    Image descriptor attached to albums and playlists

    Width and height are optional: Spotify leaves them null for most
    user-uploaded playlist covers. The enrichment service fills them in.
    """
    url: str
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'SpotifyImage':
        return cls(
            url=data.get('url', ''),
            width=data.get('width') or None,
            height=data.get('height') or None
        )

    @property
    def has_dimensions(self) -> bool:
        """True when both width and height are known"""
        return bool(self.width) and bool(self.height)

    def to_dict(self) -> Dict[str, Any]:
        return {'url': self.url, 'width': self.width, 'height': self.height}


def _images_from_data(images: Optional[List[Dict[str, Any]]]) -> List[SpotifyImage]:
    return [SpotifyImage.from_spotify_data(image) for image in images or [] if image]


def select_best_image(images: List[SpotifyImage], min_size: int, default_path: str) -> str:
    """
    Pick the image to display for a track or playlist

    Chooses the smallest image whose width and height are both at least
    ``min_size`` pixels, so previews do not download full-size artwork.
    Images without known dimensions never qualify.

    Args:
        images: Candidate image descriptors
        min_size: Minimum pixels per side
        default_path: Fallback path used when no image qualifies

    Returns:
        URL of the selected image, or ``default_path``
    """
    suitable = [
        image for image in images
        if image.url and image.has_dimensions and image.width >= min_size and image.height >= min_size
    ]
    if not suitable:
        return default_path

    return min(suitable, key=lambda image: image.width * image.height).url


@dataclass
class SpotifyArtist:
    """
    Artist reference as embedded in track and album objects

    Attributes:
        id: Spotify's unique artist identifier (None for local files)
        name: Artist display name
        uri: Spotify URI (spotify:artist:id)
        genres: Genre classifications (only present on full artist objects)
        popularity: Popularity score 0-100 (only present on full artist objects)
    """
    id: Optional[str]
    name: str
    uri: Optional[str] = None
    genres: List[str] = field(default_factory=list)
    popularity: Optional[int] = None

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'SpotifyArtist':
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            uri=data.get('uri'),
            genres=data.get('genres') or [],
            popularity=data.get('popularity')
        )


@dataclass
class SpotifyAlbum:
    """
    Album metadata providing release and artwork context for a track

    Attributes:
        id: Spotify's unique album identifier
        name: Album title as published
        album_type: Classification (album, single, compilation)
        release_date: Release date string ("1967", "1967-06" or "1967-06-01")
        release_date_precision: Granularity of release date (year, month, day)
        total_tracks: Number of tracks on the album
        artists: Album artists
        uri: Spotify URI (spotify:album:id)
        images: Album artwork in multiple resolutions
    """
    id: Optional[str]
    name: str
    album_type: str = "album"
    release_date: str = ""
    release_date_precision: str = "day"
    total_tracks: int = 0
    artists: List[SpotifyArtist] = field(default_factory=list)
    uri: Optional[str] = None
    images: List[SpotifyImage] = field(default_factory=list)

    @classmethod
    def from_spotify_data(cls, data: Optional[Dict[str, Any]]) -> 'SpotifyAlbum':
        """
        Factory method for constructing SpotifyAlbum from API response data

        Args:
            data: Raw album data (full or simplified); None yields an empty album

        Returns:
            SpotifyAlbum instance
        """
        data = data or {}
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            album_type=data.get('album_type') or 'album',
            release_date=data.get('release_date') or '',
            release_date_precision=data.get('release_date_precision') or 'day',
            total_tracks=data.get('total_tracks') or 0,
            artists=[SpotifyArtist.from_spotify_data(artist) for artist in data.get('artists') or []],
            uri=data.get('uri'),
            images=_images_from_data(data.get('images'))
        )

    @property
    def release(self) -> Optional[date]:
        """Release date parsed to a date, honouring the reported precision"""
        return parse_release_date(self.release_date, self.release_date_precision)

    @property
    def release_year(self) -> Optional[int]:
        """Four digit release year, or None when unknown"""
        release = self.release
        return release.year if release else None

    def get_best_image(self, min_size: int = 64, default_path: str = "") -> str:
        """Select album artwork for display (see select_best_image)"""
        return select_best_image(self.images, min_size, default_path)


@dataclass
class SpotifyTrack:
    """
    Track metadata as used by the smart playlist engine

    Represents one candidate in the track pool. Built from saved-track
    items, playlist items, album track listings or artist top tracks.

    Attributes:
        id: Spotify's unique track identifier
        name: Track title
        artists: Contributing artists, in Spotify's attribution order
        album: Album context with release date and artwork
        duration_ms: Track length in milliseconds
        popularity: Popularity score (0-100); 0 when the endpoint omits it
        explicit: Content advisory flag
        track_number: Position within the album tracklist
        disc_number: Disc number for multi-disc releases
        uri: Spotify URI used when adding the track to a playlist
        is_local: Flag indicating locally uploaded user content
        is_playable: Availability status in user's market
        added_at: When the track (or its album) was added to the library
    """
    id: str
    name: str
    artists: List[SpotifyArtist]
    album: SpotifyAlbum
    duration_ms: int
    popularity: int = 0
    explicit: bool = False
    track_number: int = 0
    disc_number: int = 1
    uri: Optional[str] = None
    is_local: bool = False
    is_playable: bool = True
    added_at: Optional[datetime] = None

    @classmethod
    def from_spotify_data(
        cls,
        data: Dict[str, Any],
        added_at: Optional[str] = None,
        album: Optional[SpotifyAlbum] = None
    ) -> 'SpotifyTrack':
        """
        Factory method for constructing SpotifyTrack from various API response formats

        Handles saved-track and playlist items (track nested under 'track'
        with a sibling 'added_at'), full track objects, and simplified
        album tracks, for which the caller passes the album context.

        Args:
            data: Raw track or item data from Spotify API response
            added_at: ISO timestamp when the track was added to the library
            album: Album context for simplified tracks that carry none

        Returns:
            SpotifyTrack instance

        Raises:
            KeyError: If the track has no id or name
        """
        # Playlist items wrap the track; full track objects may carry a boolean 'track' flag
        nested = data.get('track')
        track_data = nested if isinstance(nested, dict) else data

        if added_at is None and track_data is not data:
            added_at = data.get('added_at')

        return cls(
            id=track_data['id'],
            name=track_data['name'],
            artists=[SpotifyArtist.from_spotify_data(artist) for artist in track_data.get('artists') or []],
            album=album if album is not None else SpotifyAlbum.from_spotify_data(track_data.get('album')),
            duration_ms=track_data.get('duration_ms') or 0,
            popularity=track_data.get('popularity') or 0,
            explicit=bool(track_data.get('explicit', False)),
            track_number=track_data.get('track_number') or 0,
            disc_number=track_data.get('disc_number') or 1,
            uri=track_data.get('uri'),
            is_local=bool(track_data.get('is_local', False)),
            is_playable=track_data.get('is_playable', True) is not False,
            added_at=parse_added_at(added_at)
        )

    @property
    def artist_names(self) -> List[str]:
        """Ordered artist names"""
        return [artist.name for artist in self.artists]

    @property
    def primary_artist(self) -> str:
        return self.artists[0].name if self.artists else "Unknown Artist"

    @property
    def all_artists(self) -> str:
        """Comma-separated artist names for display"""
        return ", ".join(self.artist_names)

    @property
    def duration_str(self) -> str:
        return format_duration(self.duration_ms)

    @property
    def images(self) -> List[SpotifyImage]:
        return self.album.images

    def to_preview_dict(self, min_image_size: int = 64, default_image_path: str = "") -> Dict[str, Any]:
        """
        Plain structure for the preview table of the presentation layer

        Args:
            min_image_size: Minimum pixels per side for the album art
            default_image_path: Fallback image path

        Returns:
            Dictionary with id, uri, title, artists, album, duration and image
        """
        return {
            'id': self.id,
            'uri': self.uri,
            'title': self.name,
            'artists': self.all_artists,
            'album': self.album.name,
            'duration': self.duration_str,
            'image': self.album.get_best_image(min_image_size, default_image_path)
        }


def parse_added_at(added_at: Optional[str]) -> Optional[datetime]:
    """
    Parse Spotify's ISO 8601 'added_at' timestamp

    Args:
        added_at: Timestamp such as "2023-01-01T12:00:00Z"

    Returns:
        Timezone-aware datetime, or None if missing or malformed
    """
    if not added_at:
        return None
    try:
        # Handle both 'Z' and '+00:00' timezone formats from API
        return datetime.fromisoformat(added_at.replace('Z', '+00:00'))
    except (TypeError, ValueError):
        return None


@dataclass
class SpotifyPlaylist:
    """
    Playlist metadata (without track content)

    Attributes:
        id: Spotify's unique playlist identifier
        name: Playlist title
        description: Playlist description text
        owner_id: Spotify user ID of playlist owner
        owner_name: Display name of playlist owner
        public: Visibility flag
        collaborative: Flag indicating multiple users can edit
        total_tracks: Total number of tracks in playlist
        uri: Spotify URI (spotify:playlist:id)
        images: Playlist artwork (dimensions frequently missing)
        followers: Number of followers, when reported
        snapshot_id: Version identifier
    """
    id: str
    name: str
    description: str = ""
    owner_id: str = ""
    owner_name: str = ""
    public: bool = False
    collaborative: bool = False
    total_tracks: int = 0
    uri: Optional[str] = None
    images: List[SpotifyImage] = field(default_factory=list)
    followers: Optional[int] = None
    snapshot_id: Optional[str] = None

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'SpotifyPlaylist':
        owner = data.get('owner') or {}
        tracks = data.get('tracks')
        followers = data.get('followers')

        return cls(
            id=data['id'],
            name=data.get('name') or '',
            description=data.get('description') or '',
            owner_id=owner.get('id', ''),
            # Handle missing display names gracefully, fallback to user ID
            owner_name=owner.get('display_name') or owner.get('id', ''),
            public=bool(data.get('public', False)),
            collaborative=bool(data.get('collaborative', False)),
            total_tracks=(tracks.get('total') or 0) if isinstance(tracks, dict) else 0,
            uri=data.get('uri'),
            images=_images_from_data(data.get('images')),
            followers=followers.get('total') if isinstance(followers, dict) else None,
            snapshot_id=data.get('snapshot_id')
        )

    def get_best_image(self, min_size: int = 64, default_path: str = "") -> str:
        return select_best_image(self.images, min_size, default_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'owner_id': self.owner_id,
            'owner_name': self.owner_name,
            'public': self.public,
            'collaborative': self.collaborative,
            'total_tracks': self.total_tracks,
            'uri': self.uri,
            'images': [image.to_dict() for image in self.images],
            'followers': self.followers,
        }


@dataclass
class SpotifyPage:
    """
    One page of a paged Spotify collection, normalized

    Offset-based collections report ``offset``; cursor-based collections
    (followed artists) report ``cursor``, the value to pass as ``after`` to
    fetch the next page.

    Attributes:
        items: Raw item objects of this page
        total: Total number of items in the collection, when reported
        limit: Page size requested
        offset: Offset of this page (offset paging only)
        cursor: Cursor for the next page (cursor paging only)
        has_next: Whether Spotify reports a following page
    """
    items: List[Dict[str, Any]]
    total: Optional[int]
    limit: int
    offset: Optional[int] = None
    cursor: Optional[str] = None
    has_next: bool = False

    @classmethod
    def from_offset_response(cls, data: Dict[str, Any]) -> 'SpotifyPage':
        items = data.get('items') or []
        return cls(
            items=items,
            total=data.get('total'),
            limit=data.get('limit') or len(items),
            offset=data.get('offset') or 0,
            has_next=bool(data.get('next'))
        )

    @classmethod
    def from_cursor_response(cls, data: Dict[str, Any]) -> 'SpotifyPage':
        items = data.get('items') or []
        cursor = (data.get('cursors') or {}).get('after')
        return cls(
            items=items,
            total=data.get('total'),
            limit=data.get('limit') or len(items),
            cursor=cursor,
            has_next=bool(data.get('next')) and cursor is not None
        )

    @property
    def next_offset(self) -> int:
        """Offset of the page following this one"""
        return (self.offset or 0) + len(self.items)

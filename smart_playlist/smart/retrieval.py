"""
Data retrieval pipeline: build the candidate track pool from the user's library

Tracks are pulled lazily, page by page, from one or more sources:

    saved tracks      offset paging over the user's liked songs
    playlists         offset paging over the user's playlists, then over
                      each playlist's items
    albums            offset paging over saved albums; each album's track
                      listing continues with offset paging
    followed artists  cursor paging over followed artists, then each
                      artist's top tracks

Everything is a generator, so the orchestrator can stop consuming as soon
as the result is settled and no further pages are requested. Offset pages
after the first may be fetched concurrently, but they are always yielded in
offset order so the track order is reproducible.

Retrieval is not best-effort: a failed page aborts its source with a
RetrievalError naming the source.
"""

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..config.settings import Settings, get_settings
from ..exceptions import RetrievalError, SpotifyAPIError
from ..spotify.client import SpotifyClient
from ..spotify.models import SpotifyAlbum, SpotifyPage, SpotifyTrack
from ..utils.helpers import chunked
from ..utils.logger import get_logger

logger = get_logger(__name__)

OffsetPageFetcher = Callable[[int, int], SpotifyPage]
CursorPageFetcher = Callable[[Optional[str], int], SpotifyPage]


class TrackSource(Enum):
    SAVED_TRACKS = "saved tracks"
    PLAYLISTS = "playlists"
    ALBUMS = "albums"
    FOLLOWED_ARTISTS = "followed artists"


def iter_offset_pages(
    fetch_page: OffsetPageFetcher,
    page_size: int,
    max_concurrent_pages: int = 1,
    first_page: Optional[SpotifyPage] = None
) -> Iterator[SpotifyPage]:
    """
    Walk an offset-paged collection

    The first page is fetched alone to learn the total. When the total is
    known and ``max_concurrent_pages`` > 1, the remaining pages are fetched
    in bounded concurrent batches; pages are still yielded in offset order.

    Args:
        fetch_page: Callable taking (offset, limit) and returning a SpotifyPage
        page_size: Items per page
        max_concurrent_pages: Upper bound on pages in flight at once
        first_page: Already fetched first page (e.g. embedded in a parent object)

    Yields:
        SpotifyPage objects in offset order
    """
    page = first_page if first_page is not None else fetch_page(0, page_size)
    yield page

    if not page.has_next or not page.items:
        return

    step = page.limit or page_size

    if max_concurrent_pages <= 1 or page.total is None:
        while page.has_next and page.items:
            page = fetch_page(page.next_offset, step)
            yield page
        return

    offsets = list(range(page.next_offset, page.total, step))
    executor = ThreadPoolExecutor(max_workers=max_concurrent_pages)
    try:
        for batch in chunked(offsets, max_concurrent_pages):
            futures = [executor.submit(fetch_page, offset, step) for offset in batch]
            for future in futures:
                page = future.result()
                yield page
                if not page.items:
                    return
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def iter_cursor_pages(fetch_page: CursorPageFetcher, page_size: int) -> Iterator[SpotifyPage]:
    """
    Walk a cursor-paged collection

    Args:
        fetch_page: Callable taking (cursor, limit); the first call gets None
        page_size: Items per page

    Yields:
        SpotifyPage objects in order
    """
    cursor = None
    while True:
        page = fetch_page(cursor, page_size)
        yield page

        if not page.has_next or not page.items:
            break
        cursor = page.cursor


def tracks_from_items(
    items: Iterable[Dict[str, Any]],
    album: Optional[SpotifyAlbum] = None,
    added_at: Optional[str] = None
) -> Iterator[SpotifyTrack]:
    """
    Convert raw track or item objects to SpotifyTrack, skipping unusable ones

    Removed tracks come back as null, and local files have no id; neither
    can be added to a playlist.
    """
    for item in items:
        if not item:
            continue

        nested = item.get('track')
        track_data = nested if isinstance(nested, dict) else item
        if not track_data.get('id') or track_data.get('is_local'):
            logger.debug(f"Skipping unavailable or local track: {track_data.get('name')!r}")
            continue

        try:
            yield SpotifyTrack.from_spotify_data(item, added_at=added_at, album=album)
        except (KeyError, TypeError) as e:
            logger.warning(f"Failed to parse track {track_data.get('id')}: {e}")


class TrackRetriever:
    """
    Streams candidate tracks from the selected sources

    Tracks are yielded in retrieval order, deduplicated by id across sources
    (the first occurrence wins), and capped at ``retrieval.max_candidates``.
    """

    def __init__(self, client: SpotifyClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or get_settings()
        self.page_size = self.settings.retrieval.page_size
        self.playlist_items_page_size = self.settings.retrieval.playlist_items_page_size
        self.max_concurrent_pages = self.settings.retrieval.max_concurrent_pages
        self.max_candidates = self.settings.retrieval.max_candidates

        self._source_iterators: Dict[TrackSource, Callable[[], Iterator[SpotifyTrack]]] = {
            TrackSource.SAVED_TRACKS: self._iter_saved_tracks,
            TrackSource.PLAYLISTS: self._iter_playlist_tracks,
            TrackSource.ALBUMS: self._iter_album_tracks,
            TrackSource.FOLLOWED_ARTISTS: self._iter_followed_artist_tracks,
        }

    def iter_tracks(self, sources: Iterable[TrackSource]) -> Iterator[SpotifyTrack]:
        """
        Yield candidate tracks from every source, in order

        Args:
            sources: Sources to read, in the order they should be read

        Raises:
            RetrievalError: If any page of any source fails
        """
        seen = set()
        yielded = 0

        for source in sources:
            logger.info(f"Retrieving tracks from {source.value}")
            source_count = 0

            for track in self._iter_source(source):
                if track.id in seen:
                    continue
                seen.add(track.id)
                source_count += 1
                yielded += 1
                yield track

                if self.max_candidates and yielded >= self.max_candidates:
                    logger.warning(f"Candidate pool capped at {self.max_candidates} tracks")
                    return

            logger.info(f"Retrieved {source_count} new tracks from {source.value}")

    def _iter_source(self, source: TrackSource) -> Iterator[SpotifyTrack]:
        try:
            yield from self._source_iterators[source]()
        except SpotifyAPIError as e:
            logger.error(f"Failed to retrieve {source.value}: {e}")
            raise RetrievalError(
                f"Failed to retrieve {source.value}: {e}",
                source=source.value,
                details={'status': e.status, 'is_auth_error': e.is_auth_error}
            ) from e

    def _offset_pages(self, fetch_page: OffsetPageFetcher, page_size: int,
                      first_page: Optional[SpotifyPage] = None) -> Iterator[SpotifyPage]:
        return iter_offset_pages(fetch_page, page_size, self.max_concurrent_pages, first_page)

    def _iter_saved_tracks(self) -> Iterator[SpotifyTrack]:
        for page in self._offset_pages(self.client.get_saved_tracks_page, self.page_size):
            yield from tracks_from_items(page.items)

    def _iter_playlist_tracks(self) -> Iterator[SpotifyTrack]:
        for page in self._offset_pages(self.client.get_playlists_page, self.page_size):
            for playlist_data in page.items:
                if not playlist_data or not playlist_data.get('id'):
                    continue

                logger.debug(f"Reading playlist {playlist_data.get('name')!r}")
                fetch_items = partial(self.client.get_playlist_items_page, playlist_data['id'])
                for item_page in self._offset_pages(fetch_items, self.playlist_items_page_size):
                    yield from tracks_from_items(item_page.items)

    def _iter_album_tracks(self) -> Iterator[SpotifyTrack]:
        for page in self._offset_pages(self.client.get_saved_albums_page, self.page_size):
            for item in page.items:
                album_data = (item or {}).get('album')
                if not album_data or not album_data.get('id'):
                    continue

                album = SpotifyAlbum.from_spotify_data(album_data)
                embedded = album_data.get('tracks')
                first_page = SpotifyPage.from_offset_response(embedded) if embedded else None
                fetch_tracks = partial(self.client.get_album_tracks_page, album.id)

                for track_page in self._offset_pages(fetch_tracks, self.page_size, first_page):
                    yield from tracks_from_items(track_page.items, album=album, added_at=item.get('added_at'))

    def _iter_followed_artist_tracks(self) -> Iterator[SpotifyTrack]:
        for page in iter_cursor_pages(self.client.get_followed_artists_page, self.page_size):
            for artist in page.items:
                if not artist or not artist.get('id'):
                    continue
                yield from tracks_from_items(self.client.get_artist_top_tracks(artist['id']))

    def get_tracks(self, sources: Iterable[TrackSource]) -> List[SpotifyTrack]:
        """Eagerly collect every candidate track"""
        return list(self.iter_tracks(sources))

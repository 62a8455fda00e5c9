"""Test the data retrieval pipeline"""

import threading
import time

import pytest

from smart_playlist.exceptions import RetrievalError, SpotifyAPIError
from smart_playlist.spotify.models import SpotifyPage
from smart_playlist.smart.retrieval import (
    TrackRetriever,
    TrackSource,
    iter_cursor_pages,
    iter_offset_pages,
    tracks_from_items
)


def offset_fetcher(total, page_size_hint=None):
    """Fake offset-paged collection of integers"""
    calls = []
    lock = threading.Lock()

    def fetch(offset, limit):
        with lock:
            calls.append(offset)
        # Later pages complete first
        time.sleep(0.001 * max(0, 5 - offset // limit))
        items = [{'n': n} for n in range(offset, min(offset + limit, total))]
        return SpotifyPage(
            items=items,
            total=total,
            limit=limit,
            offset=offset,
            has_next=offset + limit < total
        )

    return fetch, calls


class TestPaging:
    """Test the generic paging generators"""

    def test_offset_pages_sequential(self):
        """Test sequential offset paging visits every page once"""
        fetch, calls = offset_fetcher(total=5)

        pages = list(iter_offset_pages(fetch, page_size=2))

        assert calls == [0, 2, 4]
        assert [item['n'] for page in pages for item in page.items] == [0, 1, 2, 3, 4]

    def test_offset_pages_concurrent_keep_order(self):
        """Test prefetched pages are yielded in offset order"""
        fetch, calls = offset_fetcher(total=11)

        pages = list(iter_offset_pages(fetch, page_size=2, max_concurrent_pages=3))

        assert [page.offset for page in pages] == [0, 2, 4, 6, 8, 10]
        assert [item['n'] for page in pages for item in page.items] == list(range(11))
        assert sorted(calls) == [0, 2, 4, 6, 8, 10]

    def test_offset_pages_stop_when_abandoned(self):
        """Test no further pages are fetched once the consumer stops"""
        fetch, calls = offset_fetcher(total=100)

        pages = iter_offset_pages(fetch, page_size=10)
        next(pages)
        next(pages)
        pages.close()

        assert calls == [0, 10]

    def test_offset_pages_with_first_page(self):
        """Test an already fetched first page is not fetched again"""
        fetch, calls = offset_fetcher(total=4)
        first = SpotifyPage(items=[{'n': 0}, {'n': 1}], total=4, limit=2, offset=0, has_next=True)

        pages = list(iter_offset_pages(fetch, page_size=2, first_page=first))

        assert calls == [2]
        assert len(pages) == 2

    def test_cursor_pages(self):
        """Test cursor paging passes each page's cursor to the next fetch"""
        cursors = []
        pages_by_cursor = {
            None: SpotifyPage(items=[{'id': 'a'}], total=3, limit=1, cursor='a', has_next=True),
            'a': SpotifyPage(items=[{'id': 'b'}], total=3, limit=1, cursor='b', has_next=True),
            'b': SpotifyPage(items=[{'id': 'c'}], total=3, limit=1, cursor=None, has_next=False),
        }

        def fetch(cursor, limit):
            cursors.append(cursor)
            return pages_by_cursor[cursor]

        pages = list(iter_cursor_pages(fetch, page_size=1))

        assert cursors == [None, 'a', 'b']
        assert [page.items[0]['id'] for page in pages] == ['a', 'b', 'c']


class TestTracksFromItems:
    """Test conversion of raw items"""

    def test_skips_removed_and_local_tracks(self, make_track_data):
        """Test null tracks and local files are skipped"""
        local = dict(make_track_data('local'), is_local=True)
        local['id'] = None
        items = [
            {'added_at': '2020-01-01T00:00:00Z', 'track': make_track_data('t1')},
            {'added_at': '2020-01-01T00:00:00Z', 'track': None},
            {'added_at': '2020-01-01T00:00:00Z', 'track': local},
            None,
        ]

        assert [track.id for track in tracks_from_items(items)] == ['t1']


class TestTrackRetriever:
    """Test multi-source retrieval"""

    @pytest.fixture
    def saved_items(self, make_track_data):
        def factory(*track_ids):
            return [{'added_at': '2022-05-01T00:00:00Z', 'track': make_track_data(track_id)} for track_id in track_ids]
        return factory

    def test_saved_tracks(self, mock_client, test_settings, make_page, saved_items):
        """Test saved tracks are paged and converted"""
        test_settings.retrieval.page_size = 2
        pages = {
            0: make_page(saved_items('t1', 't2'), offset=0, limit=2, total=3, has_next=True),
            2: make_page(saved_items('t3'), offset=2, limit=2, total=3),
        }
        mock_client.get_saved_tracks_page.side_effect = lambda offset, limit: pages[offset]

        tracks = TrackRetriever(mock_client, test_settings).get_tracks([TrackSource.SAVED_TRACKS])

        assert [track.id for track in tracks] == ['t1', 't2', 't3']
        assert tracks[0].added_at.year == 2022

    def test_playlists(self, mock_client, test_settings, make_page, saved_items):
        """Test every playlist's items are read, deduplicated by id"""
        mock_client.get_playlists_page.return_value = make_page([
            {'id': 'pl1', 'name': 'One'},
            {'id': 'pl2', 'name': 'Two'},
        ])
        playlist_items = {'pl1': saved_items('t1', 't2'), 'pl2': saved_items('t2', 't3')}
        mock_client.get_playlist_items_page.side_effect = \
            lambda playlist_id, offset, limit: make_page(playlist_items[playlist_id])

        tracks = TrackRetriever(mock_client, test_settings).get_tracks([TrackSource.PLAYLISTS])

        assert [track.id for track in tracks] == ['t1', 't2', 't3']

    def test_albums(self, mock_client, test_settings, make_page, make_track_data):
        """Test album tracks continue past the embedded first page with album context"""
        simplified = [{k: v for k, v in make_track_data(f'a{n}').items() if k != 'album'} for n in range(3)]
        mock_client.get_saved_albums_page.return_value = make_page([{
            'added_at': '2019-02-03T00:00:00Z',
            'album': {
                'id': 'al1',
                'name': 'Currents',
                'release_date': '2015-07-17',
                'images': [],
                'tracks': {'items': simplified[:2], 'total': 3, 'limit': 2, 'offset': 0, 'next': 'more'}
            }
        }])
        mock_client.get_album_tracks_page.return_value = make_page(simplified[2:], offset=2, limit=2, total=3)

        tracks = TrackRetriever(mock_client, test_settings).get_tracks([TrackSource.ALBUMS])

        assert [track.id for track in tracks] == ['a0', 'a1', 'a2']
        assert all(track.album.name == 'Currents' for track in tracks)
        assert tracks[2].added_at.year == 2019
        mock_client.get_album_tracks_page.assert_called_once_with('al1', 2, 2)

    def test_followed_artists(self, mock_client, test_settings, make_track_data):
        """Test followed artists are cursor paged and their top tracks read"""
        mock_client.get_followed_artists_page.side_effect = [
            SpotifyPage(items=[{'id': 'ar1'}], total=2, limit=1, cursor='ar1', has_next=True),
            SpotifyPage(items=[{'id': 'ar2'}], total=2, limit=1, cursor=None, has_next=False),
        ]
        mock_client.get_artist_top_tracks.side_effect = lambda artist_id: [make_track_data(f'{artist_id}-top')]

        tracks = TrackRetriever(mock_client, test_settings).get_tracks([TrackSource.FOLLOWED_ARTISTS])

        assert [track.id for track in tracks] == ['ar1-top', 'ar2-top']
        assert mock_client.get_followed_artists_page.call_args_list[1].args[0] == 'ar1'

    def test_dedupes_across_sources(self, mock_client, test_settings, make_page, saved_items, make_track_data):
        """Test the first occurrence of a track wins across sources"""
        mock_client.get_saved_tracks_page.return_value = make_page(saved_items('t1', 't2'))
        mock_client.get_followed_artists_page.return_value = SpotifyPage(items=[{'id': 'ar1'}], total=1, limit=50)
        mock_client.get_artist_top_tracks.return_value = [make_track_data('t2'), make_track_data('t9')]

        tracks = TrackRetriever(mock_client, test_settings).get_tracks(
            [TrackSource.SAVED_TRACKS, TrackSource.FOLLOWED_ARTISTS]
        )

        assert [track.id for track in tracks] == ['t1', 't2', 't9']

    def test_page_failure_raises_retrieval_error(self, mock_client, test_settings, make_page, saved_items):
        """Test a failed page aborts the source with a RetrievalError"""
        mock_client.get_saved_tracks_page.side_effect = [
            make_page(saved_items('t1'), total=2, limit=1, has_next=True),
            SpotifyAPIError("Spotify rejected the access token", status=401, is_auth_error=True),
        ]
        retriever = TrackRetriever(mock_client, test_settings)

        with pytest.raises(RetrievalError) as exc_info:
            list(retriever.iter_tracks([TrackSource.SAVED_TRACKS]))

        assert exc_info.value.source == 'saved tracks'
        assert exc_info.value.details['is_auth_error'] is True

    def test_candidate_cap(self, mock_client, test_settings, make_page, saved_items):
        """Test retrieval stops at max_candidates"""
        test_settings.retrieval.max_candidates = 2
        mock_client.get_saved_tracks_page.return_value = make_page(saved_items('t1', 't2', 't3'))

        tracks = TrackRetriever(mock_client, test_settings).get_tracks([TrackSource.SAVED_TRACKS])

        assert len(tracks) == 2

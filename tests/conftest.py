"""Test configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path
from unittest.mock import Mock

from smart_playlist.config.settings import Settings
from smart_playlist.spotify.client import SpotifyClient
from smart_playlist.spotify.models import SpotifyImage, SpotifyPage, SpotifyTrack


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def test_settings(monkeypatch, tmp_path):
    """Fresh settings with defaults, isolated from user config files and environment"""
    for var in ('SPOTIFY_MARKET', 'SMART_PLAYLIST_PREVIEW_SIZE', 'SMART_PLAYLIST_LOG_LEVEL', 'SMART_PLAYLIST_LOG_FILE'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.chdir(tmp_path)

    settings = Settings()
    settings.spotify.min_request_interval = 0
    settings.retrieval.max_concurrent_pages = 1
    return settings


@pytest.fixture
def mock_client():
    """Spotify client mock with the real client's interface"""
    return Mock(spec=SpotifyClient)


@pytest.fixture
def sample_track_data():
    """Sample saved-track item for testing"""
    return {
        'added_at': '2023-03-04T10:00:00Z',
        'track': {
            'id': 'test_track_123',
            'name': 'Test Song',
            'artists': [{'id': 'artist_123', 'name': 'Test Artist'}],
            'album': {
                'id': 'album_123',
                'name': 'Test Album',
                'album_type': 'album',
                'total_tracks': 12,
                'release_date': '2023-01-01',
                'release_date_precision': 'day',
                'artists': [{'id': 'artist_123', 'name': 'Test Artist'}],
                'images': [
                    {'url': 'https://i.scdn.co/image/large', 'width': 640, 'height': 640},
                    {'url': 'https://i.scdn.co/image/medium', 'width': 300, 'height': 300},
                    {'url': 'https://i.scdn.co/image/small', 'width': 64, 'height': 64}
                ]
            },
            'duration_ms': 210000,  # 3:30
            'explicit': False,
            'popularity': 75,
            'track_number': 3,
            'uri': 'spotify:track:test_track_123'
        }
    }


def build_track_data(
    track_id,
    name=None,
    artists=('Test Artist',),
    album='Test Album',
    release_date='2020-01-01',
    duration_ms=200000,
    popularity=50,
    images=None
):
    """Raw Spotify track object"""
    return {
        'id': track_id,
        'name': name or f'Song {track_id}',
        'artists': [{'id': f'artist_{index}', 'name': artist} for index, artist in enumerate(artists)],
        'album': {
            'id': f'album_{album}',
            'name': album,
            'release_date': release_date,
            'release_date_precision': 'day',
            'images': images or []
        },
        'duration_ms': duration_ms,
        'popularity': popularity,
        'uri': f'spotify:track:{track_id}'
    }


@pytest.fixture
def make_track_data():
    """Factory building raw Spotify track objects"""
    return build_track_data


@pytest.fixture
def make_track():
    """Factory building SpotifyTrack objects"""
    def factory(track_id='t1', added_at=None, **kwargs):
        return SpotifyTrack.from_spotify_data(build_track_data(track_id, **kwargs), added_at=added_at)
    return factory


@pytest.fixture
def make_page():
    """Factory building offset pages of saved-track items"""
    def factory(items, offset=0, limit=50, total=None, has_next=False):
        return SpotifyPage(
            items=items,
            total=total if total is not None else len(items),
            limit=limit,
            offset=offset,
            has_next=has_next
        )
    return factory


@pytest.fixture
def image_without_dimensions():
    return SpotifyImage(url='https://mosaic.scdn.co/cover')

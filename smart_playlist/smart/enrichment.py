"""
Enrichment service: fill in missing image dimensions

Spotify leaves width and height null for many images, mostly user-uploaded
playlist covers. Presentation needs them to pick the best image, so the
service probes each such image: it streams only the first bytes of the file
and lets Pillow's incremental parser read the size from the header.

Enrichment is best-effort. A failed probe is logged as a warning and the
image keeps its url with missing dimensions; generation always proceeds.
Only missing values are written, so running enrichment twice changes
nothing the second time.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Tuple

import requests
from PIL import ImageFile

from .. import __version__
from ..config.settings import Settings, get_settings
from ..exceptions import EnrichmentError
from ..spotify.models import SpotifyImage, SpotifyPlaylist, SpotifyTrack
from ..utils.logger import get_logger

logger = get_logger(__name__)

Dimensions = Tuple[int, int]


class ImageDimensionProber:
    """Reads image dimensions from the first bytes of a remote image"""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.timeout = self.settings.enrichment.timeout
        self.chunk_size = self.settings.enrichment.chunk_size
        self.max_probe_bytes = self.settings.enrichment.max_probe_bytes

        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': f'smart-playlist/{__version__}'})

    def probe(self, url: str) -> Dimensions:
        """
        Determine an image's width and height

        Args:
            url: Image URL

        Returns:
            (width, height) in pixels

        Raises:
            EnrichmentError: If the image cannot be fetched or its header parsed
                within ``max_probe_bytes``
        """
        parser = ImageFile.Parser()
        received = 0

        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()

                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    parser.feed(chunk)
                    received += len(chunk)

                    if parser.image is not None:
                        return parser.image.size
                    if received >= self.max_probe_bytes:
                        break
        except requests.exceptions.RequestException as e:
            raise EnrichmentError(f"Failed to fetch image: {e}", url=url, details={'error': type(e).__name__})
        except OSError as e:
            raise EnrichmentError(f"Failed to parse image: {e}", url=url, details={'bytes_read': received})

        raise EnrichmentError(
            f"Could not read image size from the first {received} bytes",
            url=url,
            details={'bytes_read': received}
        )


class EnrichmentService:
    """
    Best-effort image dimension enrichment for tracks and playlists

    Probes run concurrently, one per distinct url, and results are written
    back in input order.
    """

    def __init__(self, settings: Optional[Settings] = None, prober: Optional[ImageDimensionProber] = None):
        self.settings = settings or get_settings()
        self.enabled = self.settings.enrichment.enabled
        self.max_workers = self.settings.enrichment.max_workers
        self.prober = prober or ImageDimensionProber(self.settings)

    def _safe_probe(self, url: str) -> Optional[Dimensions]:
        try:
            return self.prober.probe(url)
        except EnrichmentError as e:
            logger.warning(f"Could not determine dimensions of image {url}: {e}")
            return None

    def enrich_images(self, images: Iterable[SpotifyImage]) -> int:
        """
        Fill in missing width/height of images in place

        Args:
            images: Image descriptors; those with a url but missing
                dimensions are probed

        Returns:
            Number of images that received dimensions
        """
        if not self.enabled:
            return 0

        pending = [image for image in images if image.url and not image.has_dimensions]
        if not pending:
            return 0

        urls = list(dict.fromkeys(image.url for image in pending))
        logger.debug(f"Probing {len(urls)} images for dimensions")

        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(urls)))) as executor:
            probed: Dict[str, Optional[Dimensions]] = dict(zip(urls, executor.map(self._safe_probe, urls)))

        enriched = 0
        for image in pending:
            dimensions = probed.get(image.url)
            if dimensions is None:
                continue

            width, height = dimensions
            if not image.width:
                image.width = width
            if not image.height:
                image.height = height
            enriched += 1

        logger.info(f"Enriched {enriched}/{len(pending)} images with missing dimensions")
        return enriched

    def enrich_tracks(self, tracks: Iterable[SpotifyTrack]) -> int:
        """Enrich the album artwork of tracks"""
        images: List[SpotifyImage] = []
        for track in tracks:
            images.extend(track.images)
        return self.enrich_images(images)

    def enrich_playlists(self, playlists: Iterable[SpotifyPlaylist]) -> int:
        """Enrich playlist covers"""
        images: List[SpotifyImage] = []
        for playlist in playlists:
            images.extend(playlist.images)
        return self.enrich_images(images)

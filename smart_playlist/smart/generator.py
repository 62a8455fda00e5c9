"""
Generation orchestrator: turn a smart playlist request into tracks

The pipeline is a linear state machine with no back-edges:

    RETRIEVE -> FILTER -> ORDER -> LIMIT -> ENRICH -> DONE

with FAILED entered from any stage. Retrieval, filtering and ordering stream
per track: each retrieved track is checked against the rules and, if it
matches, inserted into the ordered sequence right away. When the result
keeps retrieval order, paging stops as soon as the limit (or preview size)
can no longer change.

Creating the playlist adds a CREATE stage between ENRICH and DONE.

Failures are never retried here. A failed stage raises GenerationError
carrying the stage and the original error, and no partial playlist is
returned. A request that matches nothing is not a failure: it yields an
empty result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config.settings import Settings, get_settings
from ..exceptions import GenerationError
from ..spotify.client import SpotifyClient
from ..spotify.models import SpotifyPlaylist, SpotifyTrack
from ..utils.logger import create_operation_logger, get_logger
from .enrichment import EnrichmentService
from .limits import apply_limit, is_limit_reached
from .ordering import OrderedTrackSequence
from .request import SmartPlaylistRequest
from .retrieval import TrackRetriever
from .rules import matches

logger = get_logger(__name__)


class GenerationStage(Enum):
    RETRIEVE = "retrieve"
    FILTER = "filter"
    ORDER = "order"
    LIMIT = "limit"
    ENRICH = "enrich"
    CREATE = "create"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationResult:
    """
    Outcome of one generation

    Attributes:
        tracks: Final tracks, ordered and limited
        candidates_retrieved: Tracks pulled from the library
        candidates_matched: Tracks that satisfied every rule
        stage_history: Stages entered, in order
        is_preview: True when the result was capped to the preview size
        playlist: The created playlist, for create requests
    """
    tracks: List[SpotifyTrack] = field(default_factory=list)
    candidates_retrieved: int = 0
    candidates_matched: int = 0
    stage_history: List[GenerationStage] = field(default_factory=list)
    is_preview: bool = False
    playlist: Optional[SpotifyPlaylist] = None

    @property
    def is_empty(self) -> bool:
        return not self.tracks

    @property
    def track_uris(self) -> List[str]:
        return [track.uri for track in self.tracks if track.uri]

    @property
    def total_duration_ms(self) -> int:
        return sum(track.duration_ms for track in self.tracks)

    def to_preview_items(self, settings: Optional[Settings] = None) -> List[Dict[str, Any]]:
        """
        Plain structures for the presentation layer

        Each item carries title, joined artist names, album, duration and the
        best album image (see SpotifyAlbum.get_best_image).
        """
        settings = settings or get_settings()
        return [
            track.to_preview_dict(
                settings.presentation.min_image_size,
                settings.presentation.default_image_path
            )
            for track in self.tracks
        ]


class _StageTracker:
    """Records stage transitions for one run"""

    def __init__(self):
        self.current = GenerationStage.RETRIEVE
        self.history: List[GenerationStage] = [GenerationStage.RETRIEVE]

    def enter(self, stage: GenerationStage) -> None:
        self.current = stage
        if stage not in self.history:
            self.history.append(stage)


class SmartPlaylistGenerator:
    """
    Runs smart playlist requests against one user's library

    Usage:
        generator = SmartPlaylistGenerator(access_token)
        preview = generator.preview(request)
        created = generator.create_playlist(request)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        settings: Optional[Settings] = None,
        client: Optional[SpotifyClient] = None,
        retriever: Optional[TrackRetriever] = None,
        enrichment: Optional[EnrichmentService] = None
    ):
        """
        Args:
            access_token: Bearer token, used when no client is given
            settings: Application settings, defaults to the global instance
            client: Spotify client to use instead of creating one
            retriever: Track retriever to use instead of creating one
            enrichment: Enrichment service to use instead of creating one
        """
        self.settings = settings or get_settings()

        if client is None:
            if access_token is None:
                raise ValueError("Either an access token or a client is required")
            client = SpotifyClient(access_token, self.settings)

        self.client = client
        self.retriever = retriever or TrackRetriever(client, self.settings)
        self.enrichment = enrichment or EnrichmentService(self.settings)

    def generate(self, request: SmartPlaylistRequest, max_tracks: Optional[int] = None) -> GenerationResult:
        """
        Produce the full ordered, limited track list for a request

        Args:
            request: Validated request
            max_tracks: Optional cap applied after the limit (used for previews)

        Returns:
            GenerationResult; empty if nothing matched

        Raises:
            GenerationError: If any stage fails
        """
        operation = create_operation_logger(__name__, "smart playlist generation")
        operation.start(f"Generating smart playlist '{request.name}'")

        stages = _StageTracker()
        sequence = OrderedTrackSequence(request.order)
        retrieved = 0
        candidates = self.retriever.iter_tracks(request.sources)

        try:
            for track in candidates:
                retrieved += 1

                stages.enter(GenerationStage.FILTER)
                if not matches(track, request.rules):
                    stages.current = GenerationStage.RETRIEVE
                    continue

                stages.enter(GenerationStage.ORDER)
                sequence.add(track)
                stages.current = GenerationStage.RETRIEVE

                if self._result_is_settled(sequence, request, max_tracks):
                    logger.debug(f"Result settled after {retrieved} candidates, stopping retrieval")
                    break

            stages.enter(GenerationStage.FILTER)
            stages.enter(GenerationStage.ORDER)
            operation.progress("candidates processed", len(sequence), retrieved)

            stages.enter(GenerationStage.LIMIT)
            tracks = apply_limit(sequence.tracks(), request.limit)
            if max_tracks is not None:
                tracks = tracks[:max_tracks]

            stages.enter(GenerationStage.ENRICH)
            self.enrichment.enrich_tracks(tracks)
        except Exception as e:
            failed_stage = stages.current
            stages.enter(GenerationStage.FAILED)
            operation.error(f"{failed_stage.value} stage failed: {e}", e)
            raise GenerationError(
                f"Smart playlist generation failed during {failed_stage.value}: {e}",
                stage=failed_stage,
                original_error=e
            ) from e
        finally:
            candidates.close()

        stages.enter(GenerationStage.DONE)
        operation.complete(
            f"Smart playlist '{request.name}': {len(tracks)} tracks "
            f"({len(sequence)} of {retrieved} candidates matched)"
        )

        return GenerationResult(
            tracks=tracks,
            candidates_retrieved=retrieved,
            candidates_matched=len(sequence),
            stage_history=stages.history,
            is_preview=max_tracks is not None
        )

    @staticmethod
    def _result_is_settled(sequence: OrderedTrackSequence, request: SmartPlaylistRequest,
                           max_tracks: Optional[int]) -> bool:
        # With an active order a later track may still sort first
        if request.order.enabled:
            return False
        if max_tracks is None and not request.limit.enabled:
            return False
        if max_tracks is not None and len(sequence) >= max_tracks:
            return True
        return is_limit_reached(len(sequence), sequence.total_duration_ms, request.limit)

    def preview(self, request: SmartPlaylistRequest) -> GenerationResult:
        """Generate a sample capped at the configured preview size"""
        return self.generate(request, max_tracks=self.settings.generation.preview_size)

    def create_playlist(self, request: SmartPlaylistRequest) -> GenerationResult:
        """
        Generate the playlist and create it on Spotify

        Nothing is created when no track matches; the returned result is
        then empty and has no playlist.

        Raises:
            GenerationError: If generation or creation fails
        """
        result = self.generate(request)
        if result.is_empty:
            logger.console_info(f"No tracks matched, playlist '{request.name}' was not created")
            return result

        history = [stage for stage in result.stage_history if stage is not GenerationStage.DONE]
        history.append(GenerationStage.CREATE)

        try:
            playlist = self.client.create_playlist(
                request.name,
                description=request.description,
                public=request.public,
                collaborative=request.collaborative
            )
            self.client.add_tracks_to_playlist(playlist.id, result.track_uris)
        except Exception as e:
            logger.error(f"Failed to create playlist '{request.name}': {e}")
            raise GenerationError(
                f"Failed to create playlist '{request.name}': {e}",
                stage=GenerationStage.CREATE,
                original_error=e
            ) from e

        playlist.total_tracks = len(result.track_uris)
        history.append(GenerationStage.DONE)
        result.stage_history = history
        result.playlist = playlist

        logger.console_info(f"Created playlist '{playlist.name}' with {playlist.total_tracks} tracks")
        return result

"""
Exception classes for smart-playlist.

This module defines the custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional ``details``
dictionary so callers can tell the different failure modes apart.

Exception Hierarchy:
    SmartPlaylistError (base)
        ConfigError - Configuration file issues
        SpotifyAPIError - Spotify Web API call failures
        RetrievalError - Paging through a track source failed
        EnrichmentError - Probing an image for its dimensions failed
        GenerationError - A generation stage failed

Only RetrievalError and GenerationError ever reach the caller of a
generation request. EnrichmentError is always caught per image and logged,
and invalid user input never raises at all: it is defaulted to a disabled
order, limit or rule instead.
"""

from typing import Optional


class SmartPlaylistError(Exception):
    """
    Base exception for all smart-playlist errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every smart-playlist error with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g. source, URL).
    """

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SmartPlaylistError):
    """
    Raised when the configuration file cannot be read or written.

    Common causes:
        - config.yaml has invalid YAML syntax
        - Permission denied when saving the configuration
    """
    pass


class SpotifyAPIError(SmartPlaylistError):
    """
    Raised when a Spotify Web API call fails.

    Authorization failures are surfaced as-is: the engine never refreshes
    the bearer token itself, that belongs to the session layer.

    Attributes:
        status: HTTP status code returned by Spotify, if any.
        is_auth_error: True for 401 responses (expired or invalid token).
        is_rate_limit: True for 429 responses that persisted after one wait.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        status: Optional[int] = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        super().__init__(message, details)
        self.status = status
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit


class RetrievalError(SmartPlaylistError):
    """
    Raised when a page of a track source cannot be fetched.

    Retrieval is not best-effort: one failed page aborts the whole source,
    and the orchestrator turns it into a failed generation.

    Attributes:
        source: Name of the track source being paged (e.g. "saved tracks").
    """

    def __init__(self, message: str, source: str, details: Optional[dict] = None) -> None:
        super().__init__(message, details)
        self.source = source


class EnrichmentError(SmartPlaylistError):
    """
    Raised by the image prober when dimensions cannot be determined.

    Never propagates out of the enrichment service.
    """

    def __init__(self, message: str, url: str, details: Optional[dict] = None) -> None:
        super().__init__(message, details)
        self.url = url


class GenerationError(SmartPlaylistError):
    """
    Raised when a smart playlist generation stage fails.

    Attributes:
        stage: The GenerationStage that was running when the failure happened.
        original_error: The exception raised by that stage.
    """

    def __init__(self, message: str, stage, original_error: Optional[Exception] = None) -> None:
        super().__init__(message, {'stage': getattr(stage, 'value', stage)})
        self.stage = stage
        self.original_error = original_error

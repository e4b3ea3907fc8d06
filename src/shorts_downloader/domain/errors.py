"""Classified failures raised while turning a URL into a video summary.

Every failure surfaced to HTTP clients is one of the ``ErrorKind`` members. The
exception message is the human-readable detail string sent back as ``details``.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Enumeration of failure kinds.

    Notes
    -----
    - ``INVALID_URL`` is the only client error; every other kind maps to a 500.
    """

    INVALID_URL = "InvalidUrl"
    VIDEO_UNAVAILABLE = "VideoUnavailable"
    NO_SUITABLE_FORMAT = "NoSuitableFormat"
    INVALID_VIDEO_INFO = "InvalidVideoInfo"
    EXTRACTION_FAILED = "ExtractionFailed"


class VideoError(Exception):
    """Base class for classified video processing failures."""

    kind: ErrorKind = ErrorKind.EXTRACTION_FAILED
    status_code: int = 500

    def __init__(self, details: str) -> None:
        super().__init__(details)
        self.details: str = details


class InvalidUrlError(VideoError):
    """The supplied URL could not be canonicalized to a video id."""

    kind = ErrorKind.INVALID_URL
    status_code = 400


class VideoUnavailableError(VideoError):
    """The video is private, deleted, region-locked or age-restricted."""

    kind = ErrorKind.VIDEO_UNAVAILABLE


class NoSuitableFormatError(VideoError):
    """No progressive MP4 rendition was offered by the extraction tool."""

    kind = ErrorKind.NO_SUITABLE_FORMAT


class InvalidVideoInfoError(VideoError):
    """Title or download URL could not be populated from the metadata."""

    kind = ErrorKind.INVALID_VIDEO_INFO


class ExtractionFailedError(VideoError):
    """Any other failure reported by the extraction tool."""

    kind = ErrorKind.EXTRACTION_FAILED

"""Extraction adapter using yt-dlp to fetch raw video metadata."""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from yt_dlp import YoutubeDL
from yt_dlp.version import __version__ as yt_dlp_version

from shorts_downloader.core.config import Settings, get_settings
from shorts_downloader.domain.errors import ExtractionFailedError, VideoError, VideoUnavailableError
from shorts_downloader.domain.video import RawVideoInfo, VideoSummary
from shorts_downloader.services.normalizer import normalize, to_format_source
from shorts_downloader.services.urls import canonicalize_url

logger: logging.Logger = logging.getLogger(__name__)

# Substrings yt-dlp uses when a video exists but cannot be served to us.
_UNAVAILABLE_RE: re.Pattern[str] = re.compile(
    r"video unavailable"
    r"|private video"
    r"|this video (?:has been removed|is no longer available|is not available)"
    r"|sign in to confirm your age"
    r"|age[- ]restricted"
    r"|inappropriate for some users"
    r"|members[- ]only"
    r"|join this channel"
    r"|not available in your country",
    re.IGNORECASE,
)


def _clean_message(message: str) -> str:
    """Strip yt-dlp's ``ERROR:`` prefix and surrounding whitespace."""

    text: str = message.strip()
    if text.upper().startswith("ERROR:"):
        text = text[len("ERROR:"):].strip()
    return text or "Extraction failed"


def classify_error(exc: BaseException) -> VideoError:
    """Map an extraction failure to a classified ``VideoError``.

    Notes
    -----
    - Already-classified errors are returned unchanged.
    - Matching is done on the tool's message text; anything unrecognized becomes
      ``ExtractionFailedError`` with the message passed through.
    """

    if isinstance(exc, VideoError):
        return exc
    message: str = _clean_message(str(exc))
    if _UNAVAILABLE_RE.search(message):
        return VideoUnavailableError(message)
    return ExtractionFailedError(message)


def _build_opts(settings: Settings) -> dict[str, Any]:
    return {
        "quiet": True,
        "no_warnings": True,
        "noplaylist": True,
        "skip_download": True,
        "format": settings.format_selector,
        "socket_timeout": settings.socket_timeout,
    }


def extract_info(url: str, settings: Optional[Settings] = None) -> RawVideoInfo:
    """Fetch raw metadata for an already canonicalized URL.

    Parameters
    ----------
    url: str
        Canonical watch URL.
    settings: Optional[Settings]
        Settings to use; the cached application settings when omitted.

    Returns
    -------
    RawVideoInfo
        The info dict produced by yt-dlp.

    Raises
    ------
    VideoError
        A classified failure; yt-dlp exceptions never escape unclassified.
    """

    settings = settings or get_settings()
    try:
        with YoutubeDL(_build_opts(settings)) as ydl:
            info: Optional[dict[str, Any]] = ydl.extract_info(url, download=False)
    except Exception as ex:  # noqa: BLE001 - every tool failure is classified
        raise classify_error(ex) from ex
    if not info:
        raise ExtractionFailedError("Failed to fetch video information")
    return info


def fetch_summary(url: str, settings: Optional[Settings] = None) -> VideoSummary:
    """Canonicalize a user URL, extract metadata and normalize it.

    Notes
    -----
    - Blocking: performs network I/O through yt-dlp; call from a worker thread.
    """

    canonical: str = canonicalize_url(url)
    logger.info("Processing URL", extra={"url": url, "canonicalUrl": canonical})
    info: RawVideoInfo = extract_info(canonical, settings)
    summary: VideoSummary = normalize(info, to_format_source(info))
    logger.info(
        "Video info resolved",
        extra={"title": summary.title, "quality": summary.quality, "format": summary.format},
    )
    return summary


def tool_version() -> str:
    """Return the installed yt-dlp version string."""

    return yt_dlp_version

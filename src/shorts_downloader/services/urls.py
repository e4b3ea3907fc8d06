"""URL canonicalization for YouTube watch, Shorts and short-link URLs."""
from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import parse_qs, urlparse

from shorts_downloader.domain.errors import InvalidUrlError

WATCH_URL: str = "https://www.youtube.com/watch?v={video_id}"

# Ids are 11 chars in practice; accept any run of the URL-safe alphabet.
_VIDEO_ID_RE: re.Pattern[str] = re.compile(r"^[A-Za-z0-9_-]+$")


def _shorts_id(url: str) -> Optional[str]:
    """Return the id following ``/shorts/`` up to ``?``, ``/``, ``&`` or ``#``."""

    if "/shorts/" not in url:
        return None
    tail: str = url.split("/shorts/", 1)[1]
    return re.split(r"[?/&#]", tail, maxsplit=1)[0] or None


def _query_id(url: str) -> Optional[str]:
    """Return the ``v=`` query parameter when present."""

    values: list[str] = parse_qs(urlparse(url).query).get("v", [])
    if values:
        return values[0].strip() or None
    # Tolerate scheme-less input such as ``youtube.com/watch?v=abc``
    match = re.search(r"[?&]v=([^&#]+)", url)
    return match.group(1) if match else None


def _short_link_id(url: str) -> Optional[str]:
    """Return the first path segment of a ``youtu.be/<id>`` link."""

    parsed = urlparse(url if "://" in url else f"https://{url}")
    host: str = (parsed.hostname or "").lower()
    if host not in {"youtu.be", "www.youtu.be"}:
        return None
    return parsed.path.strip("/").split("/", 1)[0] or None


def extract_video_id(url: str) -> str:
    """Isolate the video id from a supported URL shape.

    Notes
    -----
    - ``/shorts/<id>`` wins over a ``v=`` parameter; ``youtu.be`` links are tried last.
    - The URL is not otherwise validated for well-formedness.

    Raises
    ------
    InvalidUrlError
        If no usable id can be found.
    """

    candidate: str = (url or "").strip()
    if not candidate:
        raise InvalidUrlError("URL is required")

    for finder in (_shorts_id, _query_id, _short_link_id):
        video_id: Optional[str] = finder(candidate)
        if video_id and _VIDEO_ID_RE.match(video_id):
            return video_id
    raise InvalidUrlError(f"Could not find a YouTube video id in URL: {candidate}")


def canonicalize_url(url: str) -> str:
    """Rewrite a YouTube/Shorts URL to ``https://www.youtube.com/watch?v=<id>``.

    Parameters
    ----------
    url: str
        User-supplied URL.

    Returns
    -------
    str
        The canonical watch URL used as extraction input.
    """

    return WATCH_URL.format(video_id=extract_video_id(url))


def validate_media_url(url: str, allowed_hosts: Iterable[str]) -> str:
    """Check that a proxy URL is http(s) and served by an allowed host.

    Notes
    -----
    - A host matches an entry when it equals it or is a subdomain of it, so
      ``googlevideo.com`` admits ``rr3---sn-abc.googlevideo.com``.
    - Rejecting early keeps yt-dlp's generic extractor away from arbitrary hosts.

    Raises
    ------
    InvalidUrlError
        If the scheme or host is not acceptable.
    """

    parsed = urlparse(url)
    host: str = (parsed.hostname or "").lower().rstrip(".")
    if parsed.scheme not in {"http", "https"} or not host:
        raise InvalidUrlError("Invalid URL: only http(s) URLs are supported")
    for allowed in allowed_hosts:
        domain: str = allowed.lower().lstrip(".")
        if host == domain or host.endswith(f".{domain}"):
            return url
    raise InvalidUrlError(f"Downloads from host {host} are not allowed")

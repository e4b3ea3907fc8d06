"""Format selection and metadata normalization over yt-dlp info dicts.

Everything in this module is a pure function of its inputs: no I/O, no caching,
no shared state. The extraction adapter supplies the raw info dict; the HTTP
layer serializes the returned ``VideoSummary``.
"""
from __future__ import annotations

import math
from typing import Any, Optional, Union

from shorts_downloader.domain.errors import InvalidVideoInfoError, NoSuitableFormatError
from shorts_downloader.domain.video import (
    FormatList,
    FormatSource,
    RawFormat,
    RawVideoInfo,
    SingleFormat,
    VideoSummary,
)

UNKNOWN: str = "Unknown"


def _finite(value: Any) -> Optional[Union[int, float]]:
    """Return ``value`` when it is a real, finite number; ``None`` otherwise."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def _positive_int(value: Any) -> Optional[int]:
    """Coerce a loosely-typed numeric field to a positive ``int`` or ``None``."""

    finite: Optional[Union[int, float]] = _finite(value)
    if finite is None:
        return None
    number: int = int(finite)
    return number if number > 0 else None


def _positive_number(value: Any) -> Optional[Union[int, float]]:
    finite: Optional[Union[int, float]] = _finite(value)
    return finite if finite is not None and finite > 0 else None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _has_stream(codec: Any) -> bool:
    """Return whether a codec field denotes a present stream.

    Notes
    -----
    - yt-dlp uses the literal ``"none"`` for an absent track; a missing codec is
      treated the same way since the rendition cannot be proven progressive.
    """

    return bool(codec) and codec != "none"


def is_progressive_mp4(fmt: RawFormat) -> bool:
    """Return whether a rendition is an MP4 carrying both audio and video."""

    return fmt.get("ext") == "mp4" and _has_stream(fmt.get("acodec")) and _has_stream(fmt.get("vcodec"))


def to_format_source(info: RawVideoInfo) -> FormatSource:
    """Classify raw metadata as a format list or a single pre-selected rendition.

    Notes
    -----
    - A present ``formats`` key holding a list (even an empty one) yields ``FormatList``.
    - Anything else means the tool inlined its chosen rendition on the top-level object.
    """

    formats: Any = info.get("formats")
    if isinstance(formats, list):
        return FormatList(formats=[f for f in formats if isinstance(f, dict)])
    return SingleFormat(format=info)


def select_format(formats: list[RawFormat]) -> RawFormat:
    """Pick the tallest progressive MP4 rendition.

    Parameters
    ----------
    formats: list[RawFormat]
        Candidate formats in the tool's order.

    Returns
    -------
    RawFormat
        The first rendition of maximum height; ties keep the tool's order.

    Raises
    ------
    NoSuitableFormatError
        If no candidate is a progressive MP4.
    """

    candidates: list[RawFormat] = [f for f in formats if is_progressive_mp4(f)]
    if not candidates:
        raise NoSuitableFormatError("No MP4 format with both audio and video is available")
    # sorted() is stable, so equal heights keep their original order
    ranked: list[RawFormat] = sorted(candidates, key=lambda f: -(_positive_int(f.get("height")) or 0))
    return ranked[0]


def format_duration(seconds: Any) -> str:
    """Render a duration in seconds as ``MM:SS``.

    Notes
    -----
    - Minutes are not wrapped into hours, so 3725 seconds renders as ``62:05``.
    - Fractional seconds are truncated; missing, negative or non-finite values give ``"Unknown"``.
    """

    finite: Optional[Union[int, float]] = _finite(seconds)
    if finite is None or finite < 0:
        return UNKNOWN
    total: int = int(finite)
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def build_resolution(fmt: RawFormat) -> str:
    """Return the tool's resolution label or a synthesized ``WIDTHxHEIGHT``.

    Notes
    -----
    - When only one dimension is known the other is rendered as ``0``.
    - ``"Unknown"`` only when neither dimension nor a label is available.
    """

    label: str = _text(fmt.get("resolution")).strip()
    if label:
        return label
    width: Optional[int] = _positive_int(fmt.get("width"))
    height: Optional[int] = _positive_int(fmt.get("height"))
    if width is None and height is None:
        return UNKNOWN
    return f"{width or 0}x{height or 0}"


def _height_label(fmt: RawFormat) -> Optional[str]:
    height: Optional[int] = _positive_int(fmt.get("height"))
    return f"{height}p" if height else None


def _format_label(fmt: RawFormat) -> str:
    return _text(fmt.get("format_note")).strip() or _height_label(fmt) or UNKNOWN


def _quality_label(fmt: RawFormat) -> str:
    return _height_label(fmt) or _text(fmt.get("format_note")).strip() or UNKNOWN


def _download_url(chosen: RawFormat, info: RawVideoInfo) -> str:
    for candidate in (chosen.get("url"), info.get("url"), info.get("webpage_url")):
        text: str = _text(candidate).strip()
        if text:
            return text
    return ""


def _choose(source: FormatSource) -> RawFormat:
    if isinstance(source, FormatList):
        return select_format(source.formats)
    if isinstance(source, SingleFormat):
        return source.format
    raise TypeError(f"Unsupported format source: {type(source).__name__}")


def normalize(info: RawVideoInfo, source: Optional[FormatSource] = None) -> VideoSummary:
    """Select a rendition and build the normalized video summary.

    Parameters
    ----------
    info: RawVideoInfo
        Top-level metadata returned by the extraction tool.
    source: Optional[FormatSource]
        Candidate renditions; derived from ``info`` with ``to_format_source`` when omitted.

    Returns
    -------
    VideoSummary
        Summary with every field populated or defaulted.

    Raises
    ------
    NoSuitableFormatError
        If a format list holds no progressive MP4.
    InvalidVideoInfoError
        If the title or download URL cannot be populated.
    """

    chosen: RawFormat = _choose(source if source is not None else to_format_source(info))

    download_url: str = _download_url(chosen, info)
    if not download_url:
        raise InvalidVideoInfoError("Invalid video information received: no download URL")

    fps: Optional[Union[int, float]] = _positive_number(chosen.get("fps")) or _positive_number(info.get("fps"))
    filesize: int = _positive_int(chosen.get("filesize")) or _positive_int(chosen.get("filesize_approx")) or 0

    summary: VideoSummary = VideoSummary(
        title=_text(info.get("title")).strip(),
        downloadUrl=download_url,
        format=_format_label(chosen),
        isAudioIncluded=True,
        duration=format_duration(info.get("duration")),
        thumbnail=_text(info.get("thumbnail")),
        description=_text(info.get("description")),
        uploadDate=_text(info.get("upload_date")),
        filesize=filesize,
        views=_positive_int(info.get("view_count")) or 0,
        resolution=build_resolution(chosen),
        fps=fps if fps is not None else UNKNOWN,
        quality=_quality_label(chosen),
    )

    # The tool occasionally returns partial data; never emit a summary without these
    if not summary.title or not summary.downloadUrl:
        raise InvalidVideoInfoError("Invalid video information received: missing title or download URL")
    return summary

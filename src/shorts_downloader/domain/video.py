"""Domain models for video metadata requests and normalized summaries.

Raw metadata from yt-dlp is kept as plain mappings; only the normalized output
and the API payloads are modeled with pydantic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

RawFormat = dict[str, Any]
RawVideoInfo = dict[str, Any]


@dataclass(frozen=True)
class FormatList:
    """Metadata carried an explicit list of candidate formats."""

    formats: list[RawFormat] = field(default_factory=list)


@dataclass(frozen=True)
class SingleFormat:
    """Metadata was pre-resolved by the tool to one inlined rendition."""

    format: RawFormat


FormatSource = Union[FormatList, SingleFormat]


class DownloadRequest(BaseModel):
    """Request payload to resolve a video URL into a downloadable summary.

    Notes
    -----
    - ``url`` is optional at the schema level so a missing value yields the
      service's own 400 body instead of a generic 422 validation error.
    """

    url: Optional[str] = Field(default=None, description="YouTube or YouTube Shorts URL")


class VideoSummary(BaseModel):
    """Normalized, UI-ready summary of a video and its chosen rendition.

    Notes
    -----
    - Every field is always present; missing metadata degrades to the documented
      defaults (``""``, ``0`` or ``"Unknown"``).
    - ``title`` and ``downloadUrl`` are guaranteed non-empty by the normalizer.
    """

    title: str = Field(description="Video title")
    downloadUrl: str = Field(description="Direct media URL of the chosen rendition")
    format: str = Field(description="Human label of the chosen rendition, e.g. 720p")
    isAudioIncluded: bool = Field(default=True, description="Whether the rendition carries audio")
    duration: str = Field(description="Duration as MM:SS or 'Unknown'")
    thumbnail: str = Field(default="", description="Thumbnail URL")
    description: str = Field(default="", description="Video description")
    uploadDate: str = Field(default="", description="Upload date as YYYYMMDD")
    filesize: int = Field(default=0, description="Size in bytes, 0 when unknown")
    views: int = Field(default=0, description="View count, 0 when unknown")
    resolution: str = Field(default="Unknown", description="WIDTHxHEIGHT or the tool's label")
    fps: Union[int, float, str] = Field(default="Unknown", description="Frames per second or 'Unknown'")
    quality: str = Field(default="Unknown", description="Height label such as 1080p")


class ErrorResponse(BaseModel):
    """Error body returned for failed requests."""

    error: str = Field(description="Short error summary")
    details: Optional[str] = Field(default=None, description="Classified failure detail")

"""Download proxy staging media through yt-dlp into per-request temp directories."""
from __future__ import annotations

import logging
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from yt_dlp import YoutubeDL

from shorts_downloader.core.config import Settings, get_settings
from shorts_downloader.domain.errors import ExtractionFailedError
from shorts_downloader.services.extractor import classify_error

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_FILENAME: str = "video"

_DISALLOWED_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9 _.-]")
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")


def sanitize_filename(title: Optional[str], max_length: int = 100) -> str:
    """Reduce a video title to a conservative attachment filename stem.

    Notes
    -----
    - Keeps ASCII letters, digits, ``_``, ``.`` and ``-``; whitespace runs become ``_``.
    - Leading/trailing separators are stripped and the result is capped at ``max_length``.
    - The result is safe to embed in a quoted ``Content-Disposition`` filename.
    """

    stem: str = _WHITESPACE_RE.sub("_", (title or "").strip())
    stem = _DISALLOWED_RE.sub("", stem)
    stem = stem[: max(max_length, 1)].strip("._-")
    return stem or DEFAULT_FILENAME


def content_disposition(title: Optional[str], max_length: int = 100) -> str:
    """Build the attachment header value for an MP4 named after ``title``."""

    return f'attachment; filename="{sanitize_filename(title, max_length)}.mp4"'


@dataclass
class StagedDownload:
    """A media file fetched into a temp directory owned by one request.

    Notes
    -----
    - ``cleanup`` removes the whole directory and is safe to call more than once.
    """

    path: Path
    workdir: Path

    def cleanup(self) -> None:
        shutil.rmtree(self.workdir, ignore_errors=True)


def _find_output(workdir: Path) -> Optional[Path]:
    """Return the file yt-dlp produced in ``workdir``, preferring ``.mp4`` then size."""

    files: list[Path] = [
        p for p in workdir.iterdir() if p.is_file() and not p.name.endswith((".part", ".ytdl"))
    ]
    if not files:
        return None
    return max(files, key=lambda p: (p.suffix.lower() == ".mp4", p.stat().st_size))


def fetch_to_tempfile(url: str, settings: Optional[Settings] = None) -> StagedDownload:
    """Download ``url`` with yt-dlp into a fresh temp directory.

    Parameters
    ----------
    url: str
        Direct media URL (a summary's ``downloadUrl``) or a watch URL. Watch URLs
        go through ``settings.format_selector`` so only a single audio+video file is fetched.
    settings: Optional[Settings]
        Settings providing the staging base directory and timeouts.

    Returns
    -------
    StagedDownload
        The produced file and the directory to remove once it has been sent.

    Raises
    ------
    VideoError
        A classified failure; the temp directory is removed before raising.
    """

    settings = settings or get_settings()
    base: Optional[str] = str(settings.temp_dir.expanduser()) if settings.temp_dir else None
    workdir: Path = Path(tempfile.mkdtemp(prefix="shd_", dir=base))

    ydl_opts: dict[str, Any] = {
        "quiet": True,
        "no_warnings": True,
        "noplaylist": True,
        "format": settings.format_selector,
        "merge_output_format": "mp4",
        "outtmpl": str(workdir / "video.%(ext)s"),
        "socket_timeout": settings.socket_timeout,
    }

    try:
        with YoutubeDL(ydl_opts) as ydl:
            ydl.download([url])
    except Exception as ex:  # noqa: BLE001 - classified below
        shutil.rmtree(workdir, ignore_errors=True)
        error = classify_error(ex)
        logger.warning("Proxy download failed", extra={"kind": error.kind.value, "details": error.details})
        raise error from ex

    output: Optional[Path] = _find_output(workdir)
    if output is None:
        shutil.rmtree(workdir, ignore_errors=True)
        raise ExtractionFailedError("Download produced no file")

    logger.info("Proxy download staged", extra={"bytes": output.stat().st_size})
    return StagedDownload(path=output, workdir=workdir)

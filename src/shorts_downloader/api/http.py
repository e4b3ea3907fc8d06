"""HTTP API routes for the Shorts Downloader service."""
from __future__ import annotations

import logging
from typing import Any, Optional, Union
from urllib.parse import unquote

from fastapi import APIRouter, Query, Request
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask

from shorts_downloader.core.config import Settings, get_settings
from shorts_downloader.domain.errors import VideoError
from shorts_downloader.domain.video import DownloadRequest, ErrorResponse, VideoSummary
from shorts_downloader.services.extractor import fetch_summary, tool_version
from shorts_downloader.services.proxy import StagedDownload, content_disposition, fetch_to_tempfile
from shorts_downloader.services.urls import validate_media_url

logger: logging.Logger = logging.getLogger(__name__)

router: APIRouter = APIRouter(prefix="/api", tags=["api"])

PROCESSING_FAILED: str = "Failed to process video"


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body: ErrorResponse = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def video_error_handler(request: Request, exc: VideoError) -> JSONResponse:
    """Translate a classified ``VideoError`` into the JSON error body.

    Notes
    -----
    - ``InvalidUrl`` is a 400; every other kind is a 500.
    - The body is always ``{"error": "Failed to process video", "details": <message>}``.
    """

    if exc.status_code < 500:
        logger.warning("Rejected request", extra={"kind": exc.kind.value, "details": exc.details, "path": request.url.path})
    else:
        logger.error("Video processing failed", extra={"kind": exc.kind.value, "details": exc.details, "path": request.url.path})
    return _error(exc.status_code, PROCESSING_FAILED, exc.details)


def _decode_param(value: str) -> str:
    """Undo the extra percent-encoding layer browsers add around query values.

    Notes
    -----
    - The frontend encodes values before building the query string, so they
      arrive encoded once more. Values already carrying a scheme are left as-is.
    """

    if "://" in value:
        return value
    return unquote(value)


@router.post(
    "/download",
    response_model=VideoSummary,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def post_download(payload: DownloadRequest) -> Union[VideoSummary, JSONResponse]:
    """Resolve a YouTube/Shorts URL into a normalized, downloadable summary.

    Parameters
    ----------
    payload: DownloadRequest
        The request payload containing the video URL.

    Returns
    -------
    VideoSummary
        The normalized metadata and direct media URL of the best progressive MP4.

    Notes
    -----
    - Declared synchronous so FastAPI runs the blocking yt-dlp call in its threadpool.
    - Classified failures propagate to ``video_error_handler``.
    """

    if not payload.url or not payload.url.strip():
        return _error(400, "URL is required")
    return fetch_summary(payload.url)


@router.get("/download-video", response_model=None, responses={400: {"model": ErrorResponse}})
def get_download_video(
    url: Optional[str] = Query(default=None, description="Media URL from a video summary"),
    title: Optional[str] = Query(default=None, description="Video title used for the filename"),
) -> Union[FileResponse, JSONResponse]:
    """Fetch media through yt-dlp and send it back as an MP4 attachment.

    Notes
    -----
    - The file is staged in a per-request temp directory which is removed by a
      background task once the response has been sent.
    - ``Content-Disposition`` carries the sanitized title.
    - Only hosts in ``settings.allowed_media_hosts`` are fetched; others are a 400.
    """

    if not url or not url.strip():
        return _error(400, "URL is required")

    settings: Settings = get_settings()
    media_url: str = validate_media_url(_decode_param(url.strip()), settings.allowed_media_hosts)
    staged: StagedDownload = fetch_to_tempfile(media_url, settings)
    headers: dict[str, str] = {
        "Content-Disposition": content_disposition(
            _decode_param(title) if title else None, settings.max_filename_length
        ),
    }
    return FileResponse(
        path=staged.path,
        media_type="video/mp4",
        headers=headers,
        background=BackgroundTask(staged.cleanup),
    )


@router.get("/test-ytdl")
def get_test_ytdl() -> dict[str, Any]:
    """Report the installed extraction tool version."""

    version: str = tool_version()
    logger.info("yt-dlp version check", extra={"version": version})
    return {"success": True, "version": version}

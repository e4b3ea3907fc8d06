"""FastAPI application entrypoint for the Shorts Downloader service."""
from __future__ import annotations

from typing import Final

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shorts_downloader.api.http import router as api_router
from shorts_downloader.api.http import video_error_handler
from shorts_downloader.core.config import Settings, get_settings
from shorts_downloader.core.logging_cfg import setup_logging
from shorts_downloader.domain.errors import VideoError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Notes
    -----
    - CORS is restricted to ``settings.cors_origins`` for GET/POST with credentials,
      matching what the browser frontend needs.
    - Classified ``VideoError`` failures are rendered by a single exception handler.
    - Logging is configured up front based on settings; settings are loaded once.

    Returns
    -------
    FastAPI
        The configured FastAPI application.
    """

    settings: Settings = get_settings()
    setup_logging(settings)

    app: FastAPI = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(VideoError, video_error_handler)
    app.include_router(api_router)

    @app.get("/health", tags=["system"])
    def health() -> dict[str, str]:
        """Health check endpoint.

        Notes
        -----
        - Lightweight liveness probe; does not call yt-dlp or the network.
        """

        return {"status": "ok", "app": settings.app_name}

    return app


app: Final[FastAPI] = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("shorts_downloader.main:app", host="127.0.0.1", port=3000, reload=True)

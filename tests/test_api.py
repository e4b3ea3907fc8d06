"""API tests for the Shorts Downloader service using a mocked yt-dlp.

Exercises the FastAPI app in-memory with TestClient; no network access is needed.
"""
from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch
from urllib.parse import quote

from fastapi.testclient import TestClient
from yt_dlp.utils import DownloadError

from shorts_downloader.core.config import get_settings
from shorts_downloader.main import create_app

_SAMPLE_INFO: dict[str, Any] = {
    "title": "Sample",
    "duration": 90,
    "thumbnail": "https://i.ytimg.com/vi/abc123/hq.jpg",
    "upload_date": "20240131",
    "view_count": 10,
    "formats": [
        {"ext": "mp4", "acodec": "aac", "vcodec": "h264", "height": 480, "url": "u1"},
        {"ext": "mp4", "acodec": "aac", "vcodec": "h264", "height": 1080, "url": "u2"},
    ],
}


class TestApi(unittest.TestCase):
    """Tests for the HTTP surface and its error mapping."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.staging: Path = Path(self._tmp.name)
        os.environ["SHD_TEMP_DIR"] = str(self.staging)
        get_settings.cache_clear()  # type: ignore[attr-defined]
        self.client: TestClient = TestClient(create_app())

    def tearDown(self) -> None:
        try:
            self.client.close()
        except Exception:
            pass
        os.environ.pop("SHD_TEMP_DIR", None)
        get_settings.cache_clear()  # type: ignore[attr-defined]
        self._tmp.cleanup()

    def test_health_endpoint(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json().get("status"), "ok")

    def test_download_requires_url(self) -> None:
        """Missing or blank URL gives a 400 with the fixed error message."""
        for body in ({}, {"url": ""}, {"url": "   "}):
            with self.subTest(body=body):
                resp = self.client.post("/api/download", json=body)
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json().get("error"), "URL is required")

    @patch("shorts_downloader.services.extractor.YoutubeDL")
    def test_download_rejects_unrecognized_url(self, ydl_mock: MagicMock) -> None:
        resp = self.client.post("/api/download", json={"url": "https://example.com/clip"})
        self.assertEqual(resp.status_code, 400)
        data: dict[str, Any] = resp.json()
        self.assertEqual(data["error"], "Failed to process video")
        self.assertIn("video id", data["details"])
        ydl_mock.assert_not_called()

    @patch("shorts_downloader.services.extractor.YoutubeDL")
    def test_download_returns_summary(self, ydl_mock: MagicMock) -> None:
        """A shorts URL resolves to the tallest progressive MP4."""
        inst: MagicMock = ydl_mock.return_value.__enter__.return_value
        inst.extract_info.return_value = _SAMPLE_INFO

        resp = self.client.post("/api/download", json={"url": "https://www.youtube.com/shorts/abc123?foo=bar"})

        self.assertEqual(resp.status_code, 200, msg=resp.text)
        data: dict[str, Any] = resp.json()
        self.assertEqual(data["title"], "Sample")
        self.assertEqual(data["downloadUrl"], "u2")
        self.assertEqual(data["quality"], "1080p")
        self.assertEqual(data["duration"], "01:30")
        self.assertTrue(data["isAudioIncluded"])
        self.assertEqual(data["uploadDate"], "20240131")
        self.assertEqual(data["views"], 10)
        self.assertEqual(data["fps"], "Unknown")
        inst.extract_info.assert_called_once_with("https://www.youtube.com/watch?v=abc123", download=False)

    @patch("shorts_downloader.services.extractor.YoutubeDL")
    def test_unavailable_video_is_500(self, ydl_mock: MagicMock) -> None:
        inst: MagicMock = ydl_mock.return_value.__enter__.return_value
        inst.extract_info.side_effect = DownloadError("ERROR: [youtube] abc123: Private video")
        resp = self.client.post("/api/download", json={"url": "https://www.youtube.com/watch?v=abc123"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Failed to process video", "details": "[youtube] abc123: Private video"})

    @patch("shorts_downloader.services.extractor.YoutubeDL")
    def test_no_progressive_format_is_500(self, ydl_mock: MagicMock) -> None:
        inst: MagicMock = ydl_mock.return_value.__enter__.return_value
        inst.extract_info.return_value = {
            "title": "Split",
            "formats": [{"ext": "mp4", "acodec": "none", "vcodec": "avc1", "height": 1080, "url": "v"}],
        }
        resp = self.client.post("/api/download", json={"url": "https://www.youtube.com/watch?v=abc123"})
        self.assertEqual(resp.status_code, 500)
        self.assertIn("audio and video", resp.json()["details"])

    def test_download_video_requires_url(self) -> None:
        resp = self.client.get("/api/download-video")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json().get("error"), "URL is required")

    @patch("shorts_downloader.services.proxy.YoutubeDL")
    def test_download_video_streams_attachment(self, ydl_mock: MagicMock) -> None:
        """Double-encoded params are decoded; the staged file is sent then removed."""
        inst: MagicMock = ydl_mock.return_value.__enter__.return_value

        def _write(urls: list[str]) -> None:
            outtmpl: str = ydl_mock.call_args[0][0]["outtmpl"]
            Path(outtmpl.replace("%(ext)s", "mp4")).write_bytes(b"\x00\x00\x00\x18ftypmp42")

        inst.download.side_effect = _write
        media_url: str = "https://rr1.googlevideo.com/videoplayback?id=1&itag=22"

        resp = self.client.get(
            "/api/download-video",
            params={"url": quote(media_url, safe=""), "title": quote("My Clip!", safe="")},
        )

        self.assertEqual(resp.status_code, 200, msg=resp.text)
        self.assertEqual(resp.content, b"\x00\x00\x00\x18ftypmp42")
        self.assertEqual(resp.headers["content-type"], "video/mp4")
        self.assertEqual(resp.headers["content-disposition"], 'attachment; filename="My_Clip.mp4"')
        inst.download.assert_called_once_with([media_url])
        self.assertEqual(list(self.staging.iterdir()), [])

    @patch("shorts_downloader.services.proxy.YoutubeDL")
    def test_download_video_failure_is_json(self, ydl_mock: MagicMock) -> None:
        inst: MagicMock = ydl_mock.return_value.__enter__.return_value
        inst.download.side_effect = DownloadError("ERROR: HTTP Error 403: Forbidden")
        resp = self.client.get(
            "/api/download-video", params={"url": "https://rr1.googlevideo.com/videoplayback?id=2"}
        )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["details"], "HTTP Error 403: Forbidden")

    @patch("shorts_downloader.services.proxy.YoutubeDL")
    def test_download_video_rejects_foreign_host(self, ydl_mock: MagicMock) -> None:
        """URLs outside the allowed media hosts are a 400 and never reach yt-dlp."""
        resp = self.client.get("/api/download-video", params={"url": "http://169.254.169.254/latest/meta-data"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Failed to process video")
        self.assertIn("not allowed", resp.json()["details"])
        ydl_mock.assert_not_called()

    def test_test_ytdl_reports_version(self) -> None:
        resp = self.client.get("/api/test-ytdl")
        self.assertEqual(resp.status_code, 200)
        data: dict[str, Any] = resp.json()
        self.assertTrue(data["success"])
        self.assertIsInstance(data["version"], str)

    def test_cors_preflight_allows_dev_origin(self) -> None:
        resp = self.client.options(
            "/api/download",
            headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers.get("access-control-allow-origin"), "http://localhost:5173")


if __name__ == "__main__":
    unittest.main()

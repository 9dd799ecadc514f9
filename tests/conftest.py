"""Pytest configuration and shared fixtures."""

import io
import json
import threading
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest
from PIL import Image

from podarchive.config import PathSettings
from podarchive.fetch import ContentCache, FetchClient
from podarchive.models import Episode, Podcast
from podarchive.paths import PathProvider
from podarchive.storage import PodcastStore


class FakeWeb:
    """Serves canned responses through httpx.MockTransport and records requests."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, str]] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def add(
        self,
        url: str,
        content: bytes | str = b"",
        status: int = 200,
        content_type: str = "application/octet-stream",
    ) -> None:
        if isinstance(content, str):
            content = content.encode()
        self.routes[url] = (status, content, content_type)

    def add_json(self, url: str, data: Any, status: int = 200) -> None:
        self.add(url, json.dumps(data), status=status, content_type="application/json")

    def count(self, url: str, method: str = "GET") -> int:
        with self._lock:
            return self.calls.count((method, url))

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.calls.append((request.method, url))
        if url not in self.routes:
            return httpx.Response(404, request=request)
        status, content, content_type = self.routes[url]
        body = b"" if request.method == "HEAD" else content
        return httpx.Response(
            status, content=body, headers={"content-type": content_type}, request=request
        )

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler), follow_redirects=True)


@pytest.fixture
def web() -> FakeWeb:
    """Fake web with no routes; unknown URLs answer 404."""
    return FakeWeb()


@pytest.fixture
def path_settings(tmp_path) -> PathSettings:
    return PathSettings(cache_dir=tmp_path / "cache", output_dir=tmp_path / "output")


@pytest.fixture
def paths(path_settings: PathSettings) -> PathProvider:
    return PathProvider(path_settings)


@pytest.fixture
def cache(paths: PathProvider, web: FakeWeb) -> ContentCache:
    return ContentCache(paths.http_dir, client=web.client())


@pytest.fixture
def fetch_client(cache: ContentCache) -> FetchClient:
    return FetchClient(cache)


@pytest.fixture
def store(paths: PathProvider) -> PodcastStore:
    return PodcastStore(paths.podcasts_dir)


@pytest.fixture
def make_episode():
    """Factory for episodes with overridable fields."""

    def _make(**overrides: Any) -> Episode:
        data: dict[str, Any] = {
            "id": "ep-1",
            "title": "Lorem ipsum dolor sit amet",
            "description": "<p>Episode notes</p>",
            "audio_url": "https://cdn.example.com/audio/ep-1.mp3",
            "audio_file_size": 2048,
            "duration": 1800,
            "season": 1,
            "number": 1,
            "published_at": datetime(2020, 1, 1, 12, 0, tzinfo=UTC),
        }
        data.update(overrides)
        return Episode(**data)

    return _make


@pytest.fixture
def sample_podcast(make_episode) -> Podcast:
    """Podcast with two seasons and an unnumbered season-less bonus episode."""
    return Podcast(
        id="abc",
        guid="2f1c7a0e-9d47-4b8e-8d2e-0b6d6e8d7f10",
        title="Example Show",
        description="An example podcast.",
        language="en-us",
        author="Example Media",
        link="https://example.com/",
        created_at=datetime(2019, 12, 1, tzinfo=UTC),
        episodes=[
            make_episode(),
            make_episode(
                id="ep-2",
                title="Second episode",
                audio_url="https://cdn.example.com/audio/ep-2.mp3",
                number=2,
                published_at=datetime(2021, 3, 4, tzinfo=UTC),
            ),
            make_episode(
                id="ep-3",
                title="Season two opener",
                audio_url="https://cdn.example.com/audio/ep-3.mp3",
                season=2,
                number=1,
                published_at=datetime(2021, 6, 1, tzinfo=UTC),
            ),
            make_episode(
                id="ep-bonus",
                title="Bonus: behind the scenes",
                audio_url="https://cdn.example.com/audio/bonus.mp3",
                season=None,
                number=None,
                episode_type="bonus",
                published_at=datetime(2020, 5, 5, tzinfo=UTC),
            ),
        ],
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A small 2:1 PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (200, 100), "red").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_feed_xml() -> bytes:
    """Podcast RSS feed with two usable items and one without an enclosure."""
    return b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Example Show</title>
    <link>https://example.com/</link>
    <description>An example podcast.</description>
    <language>en-us</language>
    <copyright>2020 Example Media</copyright>
    <itunes:author>Example Media</itunes:author>
    <itunes:type>serial</itunes:type>
    <itunes:explicit>yes</itunes:explicit>
    <itunes:image href="https://example.com/cover.jpg"/>
    <itunes:category text="Technology"/>
    <item>
      <title>Second Episode</title>
      <guid isPermaLink="false">ep-2</guid>
      <pubDate>Thu, 02 Jan 2020 10:00:00 +0000</pubDate>
      <description>Second</description>
      <enclosure url="https://cdn.example.com/ep2.mp3" length="4096" type="audio/mpeg"/>
      <itunes:duration>1:02:03</itunes:duration>
      <itunes:season>1</itunes:season>
      <itunes:episode>2</itunes:episode>
      <itunes:episodeType>full</itunes:episodeType>
    </item>
    <item>
      <title>Trailer</title>
      <guid isPermaLink="false">ep-1</guid>
      <pubDate>Wed, 01 Jan 2020 10:00:00 +0000</pubDate>
      <description>First</description>
      <enclosure url="https://cdn.example.com/trailer.m4a" length="1024" type="audio/x-m4a"/>
      <itunes:duration>95</itunes:duration>
      <itunes:episodeType>trailer</itunes:episodeType>
    </item>
    <item>
      <title>Announcement</title>
      <guid isPermaLink="false">post-1</guid>
      <pubDate>Tue, 31 Dec 2019 10:00:00 +0000</pubDate>
      <description>No audio here</description>
    </item>
  </channel>
</rss>
"""

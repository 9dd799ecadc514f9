"""RSS feed parser for podcast episode extraction.

Parses podcast RSS/Atom documents and maps the channel and its items onto
the internal Podcast and Episode models.
"""

from datetime import UTC, datetime
from time import struct_time
from typing import Any

import feedparser
import structlog
from pydantic import ValidationError as PydanticValidationError

from podarchive.errors import MappingError, ParseError
from podarchive.models import Episode, EpisodeType, Podcast, PodcastType

logger = structlog.get_logger(__name__)

_EXPLICIT_VALUES = {"yes", "true", "explicit"}


class RSSParser:
    """Maps a podcast feed document to a Podcast."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="rss_parser")

    def parse_feed(self, content: bytes, feed_url: str, podcast_id: str) -> Podcast:
        """Parse a feed document.

        Args:
            content: Raw feed document.
            feed_url: URL the document was fetched from.
            podcast_id: Local archive id assigned to the podcast.

        Returns:
            Podcast: Parsed podcast with episodes in document order.

        Raises:
            ParseError: If the document is not a readable feed.
            MappingError: If required channel data is missing.
        """
        self.logger.info("Parsing RSS feed", url=feed_url)

        feed = feedparser.parse(content)

        if feed.bozo and not feed.entries and not feed.feed.get("title"):
            raise ParseError(feed_url, str(feed.get("bozo_exception", "not a feed")))

        feed_info = feed.feed
        title = (feed_info.get("title") or "").strip()
        if not title:
            raise MappingError(f"Feed has no title: {feed_url}")

        episodes: list[Episode] = []
        seen: set[str] = set()
        for entry in feed.entries:
            episode = self._parse_episode(entry)
            if episode is None:
                continue
            if episode.id in seen:
                self.logger.warning("Skipping repeated entry guid", guid=episode.id)
                continue
            seen.add(episode.id)
            episodes.append(episode)

        skipped = len(feed.entries) - len(episodes)
        if skipped:
            self.logger.warning("Skipped feed entries", skipped=skipped)

        created_at = (
            min(episode.published_at for episode in episodes)
            if episodes
            else self._parse_date(feed_info.get("published_parsed") or feed_info.get("updated_parsed"))
            or datetime.now(UTC)
        )

        try:
            podcast = Podcast(
                id=podcast_id,
                guid=feed_info.get("podcast_guid") or feed_url,
                title=title,
                description=feed_info.get("summary") or feed_info.get("subtitle") or "",
                image_url=self._extract_image_url(feed_info),
                language=feed_info.get("language") or "en",
                category=self._extract_category(feed_info),
                explicit=self._parse_explicit(feed_info.get("itunes_explicit")),
                author=feed_info.get("author") or feed_info.get("itunes_author"),
                link=feed_info.get("link") or feed_url,
                podcast_type=PodcastType.parse(feed_info.get("itunes_type")),
                copyright=feed_info.get("rights"),
                created_at=created_at,
                episodes=episodes,
            )
        except PydanticValidationError as e:
            raise MappingError(f"Unable to map feed channel: {feed_url}") from e

        self.logger.info(
            "Parsed feed successfully",
            podcast=podcast.title,
            episode_count=len(podcast.episodes),
        )

        return podcast

    def _parse_episode(self, entry: dict[str, Any]) -> Episode | None:
        """Parse a single episode entry from the feed.

        Args:
            entry: Feed entry dictionary from feedparser.

        Returns:
            Episode if valid, None if missing required fields.
        """
        audio_url = None
        audio_size = 0
        audio_type = "audio/mpeg"

        for enclosure in entry.get("enclosures", []):
            if enclosure.get("type", "").startswith("audio/") or not audio_url:
                audio_url = enclosure.get("href") or enclosure.get("url")
                audio_size = self._safe_int(enclosure.get("length")) or 0
                audio_type = enclosure.get("type") or audio_type
                if audio_type.startswith("audio/"):
                    break

        if not audio_url:
            self.logger.warning("Skipping episode without audio URL", title=entry.get("title"))
            return None

        published = self._parse_date(entry.get("published_parsed") or entry.get("updated_parsed"))
        if published is None:
            self.logger.warning("Skipping episode without publish date", title=entry.get("title"))
            return None

        try:
            return Episode(
                id=entry.get("id") or entry.get("guid") or audio_url,
                title=entry.get("title") or "Untitled Episode",
                description=self._extract_description(entry),
                audio_url=audio_url,
                audio_file_size=audio_size,
                audio_content_type=audio_type,
                duration=self._parse_duration(entry.get("itunes_duration")),
                image_url=(entry.get("image") or {}).get("href"),
                explicit=self._parse_explicit(entry.get("itunes_explicit")),
                episode_type=EpisodeType.parse(entry.get("itunes_episodetype")),
                season=self._safe_int(entry.get("itunes_season")),
                number=self._safe_int(entry.get("itunes_episode")),
                published_at=published,
            )
        except PydanticValidationError as e:
            self.logger.warning("Skipping invalid episode", title=entry.get("title"), error=str(e))
            return None

    def _extract_description(self, entry: dict[str, Any]) -> str:
        """Prefer full content over the summary."""
        for content in entry.get("content", []):
            if content.get("value"):
                return content["value"]
        return entry.get("summary") or entry.get("description") or ""

    def _parse_date(self, value: struct_time | None) -> datetime | None:
        if not value:
            return None
        try:
            return datetime(*value[:6], tzinfo=UTC)
        except (TypeError, ValueError):
            return None

    def _parse_duration(self, duration_str: str | None) -> int | None:
        """Parse iTunes duration string to seconds."""
        if not duration_str:
            return None

        duration_str = str(duration_str).strip()

        # Try pure integer (seconds)
        if duration_str.isdigit():
            return int(duration_str)

        # Try HH:MM:SS or MM:SS format
        parts = duration_str.split(":")
        try:
            if len(parts) == 3:
                h, m, s = map(int, parts)
                return h * 3600 + m * 60 + s
            elif len(parts) == 2:
                m, s = map(int, parts)
                return m * 60 + s
        except ValueError:
            pass

        return None

    def _parse_explicit(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in _EXPLICIT_VALUES
        return False

    def _extract_image_url(self, feed_info: dict[str, Any]) -> str | None:
        """Extract podcast artwork URL from feed info."""
        image = feed_info.get("image") or {}
        return image.get("href") or image.get("url")

    def _extract_category(self, feed_info: dict[str, Any]) -> str | None:
        for tag in feed_info.get("tags", []):
            if tag.get("term"):
                return tag["term"]
        return None

    def _safe_int(self, value: Any) -> int | None:
        """Safely convert value to int."""
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

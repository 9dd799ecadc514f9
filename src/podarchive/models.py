"""Internal podcast and episode model.

Both discovery paths convert their source data into these models, and every
archive operation (download, feeds, cover) reads them back from the store.
"""

import re
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, HttpUrl

DEFAULT_AUDIO_EXTENSION = "mp3"

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_title(title: str) -> str:
    """Make a title safe to use as part of a file name."""
    clean = _CONTROL_CHARS.sub(" ", title)
    clean = _INVALID_FILENAME_CHARS.sub("", clean)
    clean = _WHITESPACE.sub(" ", clean)
    # Trailing dots and spaces are stripped by some filesystems
    return clean.strip().rstrip(".").strip()


def url_extension(url: str) -> str | None:
    """Return the lower-cased file extension of a URL path, if any."""
    suffix = PurePosixPath(urlsplit(url).path).suffix
    if len(suffix) < 2:
        return None
    return suffix[1:].lower()


def format_season(season: int | None) -> str:
    """Format a season number as a directory name, ``S00`` when absent."""
    return f"S{season or 0:02d}"


class EpisodeType(str, Enum):
    """Episode type as understood by Apple Podcasts."""

    FULL = "full"
    TRAILER = "trailer"
    BONUS = "bonus"

    @classmethod
    def parse(cls, value: str | None) -> "EpisodeType":
        if not value:
            return cls.FULL
        value = value.strip().lower()
        if value == "full":
            return cls.FULL
        if value == "trailer":
            return cls.TRAILER
        return cls.BONUS


class PodcastType(str, Enum):
    """Episodic shows are listed newest first, serial shows oldest first."""

    EPISODIC = "episodic"
    SERIAL = "serial"

    @classmethod
    def parse(cls, value: str | None) -> "PodcastType":
        if value and value.strip().lower() == "serial":
            return cls.SERIAL
        return cls.EPISODIC


class Episode(BaseModel):
    """Represents a single podcast episode."""

    id: str = Field(description="Episode GUID, unique within a podcast")
    title: str = Field(description="Episode title")
    description: str = Field(default="", description="HTML formatted description")
    audio_url: HttpUrl = Field(description="URL of the media file")
    audio_file_size: int = Field(default=0, description="Size of the audio file in bytes")
    audio_content_type: str = Field(default="audio/mpeg", description="Mime type of the audio file")
    duration: int | None = Field(default=None, description="Duration in seconds")
    image_url: HttpUrl | None = Field(default=None, description="Episode artwork URL")
    explicit: bool = Field(default=False, description="Parental advisory flag")
    episode_type: EpisodeType = Field(default=EpisodeType.FULL, description="Episode type")
    season: int | None = Field(default=None, description="Season number")
    number: int | None = Field(default=None, description="Episode number")
    published_at: datetime = Field(description="Date and time the episode was released")

    @property
    def file_stem(self) -> str:
        """Deterministic archive file name without extension.

        ``{date} {number} {title}`` where a missing number is ``____``.
        """
        date = self.published_at.strftime("%Y-%m-%d")
        number = f"{self.number:04d}" if self.number is not None else "____"
        return f"{date} {number} {sanitize_title(self.title)}"

    @property
    def formatted_season(self) -> str:
        return format_season(self.season)

    @property
    def year(self) -> int:
        return self.published_at.year

    @property
    def audio_extension(self) -> str:
        return url_extension(str(self.audio_url)) or DEFAULT_AUDIO_EXTENSION

    def __str__(self) -> str:
        return self.file_stem


class Podcast(BaseModel):
    """Represents a podcast (RSS channel) with metadata and episodes."""

    id: str = Field(description="Local archive id, chosen by the caller")
    guid: str = Field(description="Source GUID of the podcast")
    title: str = Field(description="Podcast title")
    description: str = Field(default="", description="HTML formatted description")
    image_url: HttpUrl | None = Field(default=None, description="Podcast artwork URL")
    language: str = Field(default="en", description="ISO 639 language code")
    category: str | None = Field(default=None, description="Apple Podcasts category")
    sub_category: str | None = Field(default=None, description="Apple Podcasts sub-category")
    explicit: bool = Field(default=False, description="Parental advisory flag")
    author: str | None = Field(default=None, description="Group responsible for the show")
    link: HttpUrl = Field(description="Podcast website")
    podcast_type: PodcastType = Field(default=PodcastType.EPISODIC, description="Episodic or serial")
    copyright: str | None = Field(default=None, description="Copyright details")
    created_at: datetime = Field(description="When the podcast was created at the source")
    episodes: list[Episode] = Field(default_factory=list, description="List of episodes")

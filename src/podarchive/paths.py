"""Filesystem layout of the cache and the archive."""

from pathlib import Path, PurePosixPath
from urllib.parse import quote, urljoin

from podarchive.config import PathSettings
from podarchive.models import Episode, format_season

HTTP_DIR = "http"
PODCASTS_DIR = "podcasts"
FEED_FILE_NAME = "feed.xml"
COVER_FILE_STEM = "cover"
BANNER_FILE_STEM = "banner"


class PathProvider:
    """Resolves every path the application reads or writes.

    Archive layout::

        {output}/{podcast_id}/S{season}/{year}/{date} {number} {title}.{ext}
        {output}/{podcast_id}[/S{season}][/{year}]/feed.xml
    """

    def __init__(self, settings: PathSettings | None = None) -> None:
        self.settings = settings or PathSettings()

    @property
    def cache_dir(self) -> Path:
        return self.settings.cache_dir

    @property
    def http_dir(self) -> Path:
        return self.cache_dir / HTTP_DIR

    @property
    def podcasts_dir(self) -> Path:
        return self.cache_dir / PODCASTS_DIR

    @property
    def output_dir(self) -> Path:
        return self.settings.output_dir

    def audio_sub_path(self, podcast_id: str, episode: Episode) -> PurePosixPath:
        """Archive path of an episode relative to the output directory."""
        return (
            PurePosixPath(podcast_id)
            / episode.formatted_season
            / str(episode.year)
            / f"{episode.file_stem}.{episode.audio_extension}"
        )

    def audio_path(self, podcast_id: str, episode: Episode) -> Path:
        return self.output_dir / self.audio_sub_path(podcast_id, episode)

    def audio_url(self, podcast_id: str, episode: Episode) -> str:
        """Public URL of an archived episode.

        Uses the configured server base when set, otherwise a file URL.
        """
        sub_path = self.audio_sub_path(podcast_id, episode)
        if self.settings.server_base:
            base = self.settings.server_base
            if not base.endswith("/"):
                base += "/"
            return urljoin(base, quote(str(sub_path)))
        return self.audio_path(podcast_id, episode).resolve().as_uri()

    def feed_path(
        self,
        podcast_id: str,
        season: int | None = None,
        year: int | None = None,
    ) -> Path:
        if not podcast_id:
            raise ValueError("podcast id should not be empty")
        path = self.output_dir / podcast_id
        if season is None and year is None:
            return path / FEED_FILE_NAME
        path = path / format_season(season)
        if year is not None:
            path = path / str(year)
        return path / FEED_FILE_NAME

    def cover_path(self, podcast_id: str) -> Path:
        """Cover image path; the extension is chosen by the image format."""
        return self.output_dir / podcast_id / COVER_FILE_STEM

    def banner_path(self, podcast_id: str) -> Path:
        return self.output_dir / podcast_id / BANNER_FILE_STEM

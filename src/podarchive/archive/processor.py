"""Download, tag and archive podcast episodes."""

import os
import shutil
import tempfile
from pathlib import Path

import structlog
from mutagen import MutagenError

from podarchive.errors import PodarchiveError, ProcessError
from podarchive.fetch import FetchClient
from podarchive.media import ImageResizer, Picture, Tagger
from podarchive.models import Episode, Podcast
from podarchive.paths import PathProvider
from podarchive.pipeline import DEFAULT_CONCURRENCY, BatchObserver, BatchResult, LoggingObserver, run_batch
from podarchive.storage import PodcastStore

logger = structlog.get_logger(__name__)

DEFAULT_IMAGE_SIZE = 720


class EpisodeProcessor:
    """Archives a single episode.

    The audio is copied to a hidden temporary file next to its archive path
    and only renamed into place once tagging succeeded, so an existing
    archive file always means a fully processed episode.
    """

    def __init__(
        self,
        client: FetchClient,
        paths: PathProvider,
        tagger: Tagger | None = None,
        image_size: int = DEFAULT_IMAGE_SIZE,
    ) -> None:
        self.client = client
        self.paths = paths
        self.tagger = tagger or Tagger()
        self.image_size = image_size
        self.logger = logger.bind(component="episode_processor")

    def process(self, podcast: Podcast, episode: Episode) -> Path:
        """Download, tag and archive an episode.

        Args:
            podcast: Owning podcast, used for tag metadata.
            episode: Episode to archive.

        Returns:
            Final archive path of the audio file.

        Raises:
            ProcessError: If any stage fails. Nothing is left at the archive path.
        """
        stem = episode.file_stem
        target = self.paths.audio_path(podcast.id, episode)

        try:
            source = self.client.get_path(str(episode.audio_url), episode.audio_extension)
        except PodarchiveError as e:
            raise ProcessError(stem, "download audio", str(e)) from e

        temp_path = self._copy_to_temp(stem, source, target)
        try:
            cover = self._get_cover(stem, episode)
            try:
                self.tagger.tag(temp_path, podcast, episode, cover)
            except (MutagenError, OSError) as e:
                raise ProcessError(stem, "tag audio", str(e)) from e
            try:
                os.replace(temp_path, target)
            except OSError as e:
                raise ProcessError(stem, "move audio", str(e)) from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        self.logger.debug("Archived episode", episode=stem, path=str(target))
        return target

    def _copy_to_temp(self, stem: str, source: Path, target: Path) -> Path:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=".", suffix=target.suffix)
            os.close(fd)
        except OSError as e:
            raise ProcessError(stem, "copy audio", str(e)) from e
        temp_path = Path(temp_name)
        try:
            shutil.copyfile(source, temp_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise ProcessError(stem, "copy audio", str(e)) from e
        return temp_path

    def _get_cover(self, stem: str, episode: Episode) -> Picture | None:
        if episode.image_url is None:
            return None
        try:
            path = self.client.get_path(str(episode.image_url))
        except PodarchiveError as e:
            raise ProcessError(stem, "download image", str(e)) from e
        try:
            return ImageResizer(path).to_picture(self.image_size, self.image_size)
        except PodarchiveError as e:
            raise ProcessError(stem, "resize image", str(e)) from e


class DownloadCommand:
    """Archives every episode of a stored podcast that is not archived yet."""

    def __init__(
        self,
        store: PodcastStore,
        processor: EpisodeProcessor,
        concurrency: int = DEFAULT_CONCURRENCY,
        observer: BatchObserver | None = None,
    ) -> None:
        self.store = store
        self.processor = processor
        self.concurrency = concurrency
        self.observer = observer or LoggingObserver("download")
        self.logger = logger.bind(component="download")

    def execute(self, podcast_id: str, year: int | None = None) -> BatchResult[Path]:
        """Download a podcast's episodes.

        Args:
            podcast_id: Id of a previously scraped podcast.
            year: Only process episodes published in this year.

        Returns:
            BatchResult with archived paths and per-episode failures.

        Raises:
            NotFoundError: If the podcast has not been scraped.
        """
        podcast = self.store.get(podcast_id)
        paths = self.processor.paths

        episodes = [e for e in podcast.episodes if year is None or e.year == year]
        pending = [e for e in episodes if not paths.audio_path(podcast.id, e).exists()]
        already = len(episodes) - len(pending)
        if already:
            self.logger.info("Skipping archived episodes", count=already)
        if not pending:
            self.logger.info("No episodes to download", podcast_id=podcast_id)

        result = run_batch(
            pending,
            lambda episode: self.processor.process(podcast, episode),
            key=lambda episode: episode.file_stem,
            concurrency=self.concurrency,
            observer=self.observer,
        )

        self.logger.info(f"Downloaded {len(result.succeeded)}", podcast_id=podcast_id)
        if result.failed:
            self.logger.warning(f"Skipped {len(result.failed)} due to failures", podcast_id=podcast_id)
        return result

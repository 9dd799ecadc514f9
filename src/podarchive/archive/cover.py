"""Podcast cover and banner images."""

from pathlib import Path

import structlog

from podarchive.errors import MappingError
from podarchive.fetch import FetchClient
from podarchive.media import BANNER_SIZE, COVER_SIZE, ImageResizer
from podarchive.paths import PathProvider
from podarchive.storage import PodcastStore

logger = structlog.get_logger(__name__)


class CoverCommand:
    """Writes a square cover and a 16:9 banner from the podcast artwork."""

    def __init__(self, store: PodcastStore, client: FetchClient, paths: PathProvider) -> None:
        self.store = store
        self.client = client
        self.paths = paths
        self.logger = logger.bind(component="cover")

    def execute(self, podcast_id: str) -> tuple[Path, Path]:
        """Create the cover and banner images.

        Returns:
            Paths of the cover and the banner.

        Raises:
            NotFoundError: If the podcast has not been scraped.
            MappingError: If the podcast has no image.
        """
        podcast = self.store.get(podcast_id)
        if podcast.image_url is None:
            raise MappingError(f"Podcast does not have an image: {podcast_id}")
        source = self.client.get_path(str(podcast.image_url))
        resizer = ImageResizer(source)
        cover = resizer.to_file(self.paths.cover_path(podcast_id), *COVER_SIZE)
        banner = resizer.to_file(self.paths.banner_path(podcast_id), *BANNER_SIZE)
        self.logger.info("Created cover and banner images", podcast_id=podcast_id)
        self.logger.debug("Image paths", cover=str(cover), banner=str(banner))
        return cover, banner

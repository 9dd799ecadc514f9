"""Persistence of podcast records as YAML files."""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from podarchive.errors import FilesystemError, NotFoundError, ParseError
from podarchive.models import Podcast

logger = structlog.get_logger(__name__)

RECORD_EXTENSION = "yml"


class PodcastStore:
    """Stores one record per podcast id under a directory.

    Every put overwrites the previous record; there is no merging.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.logger = logger.bind(component="podcast_store")

    def path(self, podcast_id: str) -> Path:
        return self.directory / f"{podcast_id}.{RECORD_EXTENSION}"

    def exists(self, podcast_id: str) -> bool:
        return self.path(podcast_id).is_file()

    def get(self, podcast_id: str) -> Podcast:
        """Load a stored podcast.

        Raises:
            NotFoundError: If no record exists for the id.
            ParseError: If the record is not a valid podcast.
            FilesystemError: If the record cannot be read.
        """
        path = self.path(podcast_id)
        if not path.is_file():
            raise NotFoundError(podcast_id)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise FilesystemError(path, str(e)) from e
        except yaml.YAMLError as e:
            raise ParseError(path, str(e)) from e
        try:
            podcast = Podcast.model_validate(data)
        except PydanticValidationError as e:
            raise ParseError(path, str(e)) from e
        self.logger.debug("Loaded podcast", podcast_id=podcast_id, episodes=len(podcast.episodes))
        return podcast

    def put(self, podcast: Podcast) -> Path:
        """Write a podcast record, replacing any existing one.

        Returns:
            Path of the written record.
        """
        path = self.path(podcast.id)
        data = podcast.model_dump(mode="json")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise FilesystemError(path, str(e)) from e
        self.logger.info("Saved podcast", podcast_id=podcast.id, path=str(path))
        return path

"""ID3 tagging of archived episodes with mutagen."""

from pathlib import Path

import structlog
from mutagen import apev2, id3
from mutagen.id3 import APIC, COMM, ID3, TALB, TDRC, TIT2, TPE1, TPOS, TRCK

from podarchive.media.images import Picture
from podarchive.models import Episode, Podcast

logger = structlog.get_logger(__name__)

TAGGABLE_EXTENSIONS = frozenset({"mp3"})

# ID3 text encoding: UTF-8
UTF8 = 3


def build_tags(podcast: Podcast, episode: Episode, cover: Picture | None = None) -> ID3:
    """Map podcast and episode metadata to ID3 frames."""
    tags = ID3()
    tags.add(TIT2(encoding=UTF8, text=episode.title.strip()))
    tags.add(TPE1(encoding=UTF8, text=podcast.title))
    if episode.season is not None:
        tags.add(TALB(encoding=UTF8, text=f"Season {episode.season}"))
    tags.add(TPOS(encoding=UTF8, text=str(episode.season or 0)))
    tags.add(TDRC(encoding=UTF8, text=str(episode.year)))
    if episode.number is not None:
        tags.add(TRCK(encoding=UTF8, text=str(episode.number)))
    if episode.description:
        tags.add(COMM(encoding=UTF8, lang="eng", desc="", text=episode.description))
    if cover is not None:
        tags.add(
            APIC(
                encoding=UTF8,
                mime=cover.mime_type,
                type=3,  # Cover (front)
                desc="Cover",
                data=cover.data,
            )
        )
    return tags


class Tagger:
    """Replaces every existing tag of an audio file with fresh ID3 tags."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="tagger")

    def supports(self, path: Path) -> bool:
        return path.suffix.lstrip(".").lower() in TAGGABLE_EXTENSIONS

    def tag(self, path: Path, podcast: Podcast, episode: Episode, cover: Picture | None = None) -> bool:
        """Tag a file in place.

        Returns:
            False if the format is not taggable and the file was left untouched.

        Raises:
            mutagen.MutagenError: If the tags cannot be written.
        """
        if not self.supports(path):
            self.logger.debug("Skipping tags for unsupported format", path=str(path))
            return False
        apev2.delete(path)
        id3.delete(path)
        build_tags(podcast, episode, cover).save(path)
        self.logger.debug("Tagged episode", path=str(path))
        return True

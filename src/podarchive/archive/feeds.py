"""RSS feed generation for archived podcasts."""

import xml.etree.ElementTree as ET
from collections import defaultdict
from collections.abc import Callable
from email.utils import format_datetime
from pathlib import Path

import structlog

from podarchive.errors import FilesystemError
from podarchive.models import Episode, Podcast
from podarchive.paths import PathProvider
from podarchive.storage import PodcastStore

logger = structlog.get_logger(__name__)

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"

ET.register_namespace("itunes", ITUNES_NS)


def _itunes(name: str) -> str:
    return f"{{{ITUNES_NS}}}{name}"


def _text(parent: ET.Element, tag: str, value: str | None) -> ET.Element | None:
    if value is None:
        return None
    element = ET.SubElement(parent, tag)
    element.text = value
    return element


def _flag(value: bool) -> str:
    return "true" if value else "false"


def build_feed(podcast: Podcast, enclosure_url: Callable[[Episode], str]) -> ET.ElementTree:
    """Build an RSS 2.0 document with the iTunes extension.

    Args:
        podcast: Podcast whose episodes become items, in stored order.
        enclosure_url: Callable mapping an Episode to its enclosure URL.
    """
    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")
    _text(channel, "title", podcast.title)
    _text(channel, "link", str(podcast.link))
    _text(channel, "description", podcast.description)
    _text(channel, "language", podcast.language)
    _text(channel, "copyright", podcast.copyright)
    _text(channel, _itunes("author"), podcast.author)
    _text(channel, _itunes("summary"), podcast.description)
    _text(channel, _itunes("explicit"), _flag(podcast.explicit))
    _text(channel, _itunes("type"), podcast.podcast_type.value)
    if podcast.image_url is not None:
        ET.SubElement(channel, _itunes("image"), {"href": str(podcast.image_url)})
    if podcast.category:
        category = ET.SubElement(channel, _itunes("category"), {"text": podcast.category})
        if podcast.sub_category:
            ET.SubElement(category, _itunes("category"), {"text": podcast.sub_category})

    for episode in podcast.episodes:
        _add_item(channel, episode, enclosure_url(episode))

    tree = ET.ElementTree(rss)
    ET.indent(tree)
    return tree


def _add_item(channel: ET.Element, episode: Episode, url: str) -> None:
    item = ET.SubElement(channel, "item")
    _text(item, "title", episode.title)
    _text(item, "link", str(episode.audio_url))
    guid = _text(item, "guid", episode.id)
    guid.set("isPermaLink", "false")
    _text(item, "description", episode.description)
    _text(item, "pubDate", format_datetime(episode.published_at))
    ET.SubElement(
        item,
        "enclosure",
        {
            "url": url,
            "length": str(episode.audio_file_size),
            "type": episode.audio_content_type,
        },
    )
    if episode.duration is not None:
        _text(item, _itunes("duration"), str(episode.duration))
    _text(item, _itunes("explicit"), _flag(episode.explicit))
    if episode.image_url is not None:
        ET.SubElement(item, _itunes("image"), {"href": str(episode.image_url)})
    if episode.number is not None:
        _text(item, _itunes("episode"), str(episode.number))
    if episode.season is not None:
        _text(item, _itunes("season"), str(episode.season))
    _text(item, _itunes("episodeType"), episode.episode_type.value)
    _text(item, _itunes("summary"), episode.description)


def group_by_season(episodes: list[Episode]) -> dict[int, list[Episode]]:
    """Group episodes by season; episodes without one fall in season 0."""
    groups: dict[int, list[Episode]] = defaultdict(list)
    for episode in episodes:
        groups[episode.season or 0].append(episode)
    return dict(sorted(groups.items()))


def group_by_year(episodes: list[Episode]) -> dict[int, list[Episode]]:
    groups: dict[int, list[Episode]] = defaultdict(list)
    for episode in episodes:
        groups[episode.year].append(episode)
    return dict(sorted(groups.items()))


class FeedsCommand:
    """Writes the podcast, per-season and per-season-per-year feeds."""

    def __init__(self, store: PodcastStore, paths: PathProvider) -> None:
        self.store = store
        self.paths = paths
        self.logger = logger.bind(component="feeds")

    def execute(self, podcast_id: str) -> list[Path]:
        """Create every feed of a stored podcast.

        Returns:
            Paths of the written feeds.

        Raises:
            NotFoundError: If the podcast has not been scraped.
            FilesystemError: If a feed cannot be written.
        """
        podcast = self.store.get(podcast_id)
        written = [self.save_feed(podcast)]
        for season, season_episodes in group_by_season(podcast.episodes).items():
            season_podcast = podcast.model_copy(update={"episodes": season_episodes})
            written.append(self.save_feed(season_podcast, season))
            for year, year_episodes in group_by_year(season_episodes).items():
                year_podcast = podcast.model_copy(update={"episodes": year_episodes})
                written.append(self.save_feed(year_podcast, season, year))
        self.logger.info(f"Created {len(written)} rss feeds", podcast_id=podcast_id)
        return written

    def save_feed(self, podcast: Podcast, season: int | None = None, year: int | None = None) -> Path:
        path = self.paths.feed_path(podcast.id, season, year)
        tree = build_feed(podcast, lambda episode: self.paths.audio_url(podcast.id, episode))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tree.write(path, encoding="utf-8", xml_declaration=True)
        except OSError as e:
            raise FilesystemError(path, str(e)) from e
        self.logger.debug("Wrote feed", path=str(path), episodes=len(podcast.episodes))
        return path

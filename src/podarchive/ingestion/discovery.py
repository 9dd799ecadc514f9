"""Seed URL to Podcast discovery.

A seed URL is sniffed with a HEAD request. Feed documents are parsed
directly; anything else is treated as a web page embedding a Simplecast
player, whose episode id leads to the show and its paginated playlist.
"""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

import structlog
from bs4 import BeautifulSoup

from podarchive.errors import DiscoveryError
from podarchive.fetch import FetchClient
from podarchive.fetch.cache import XML_EXTENSION
from podarchive.ingestion.rss_parser import RSSParser
from podarchive.ingestion.simplecast import (
    PLAYER_HOSTS,
    SimplecastEpisode,
    SimplecastPlaylist,
    SimplecastPlaylistEpisode,
    SimplecastPodcast,
    convert_episode,
    convert_podcast,
    episode_url,
    playlist_url,
    podcast_url,
)
from podarchive.models import Episode, Podcast
from podarchive.pipeline import DEFAULT_CONCURRENCY, BatchObserver, LoggingObserver, run_batch
from podarchive.storage import PodcastStore

logger = structlog.get_logger(__name__)

FEED_CONTENT_TYPES = frozenset(
    {
        "application/rss+xml",
        "application/atom+xml",
        "application/xml",
        "text/xml",
    }
)
DEFAULT_MAX_PLAYLIST_PAGES = 1000


@dataclass(frozen=True)
class FeedSource:
    """Seed URL serves a feed document."""

    url: str


@dataclass(frozen=True)
class PlayerSource:
    """Seed URL serves a page that embeds a player."""

    url: str


Source = FeedSource | PlayerSource


def is_feed_content_type(content_type: str) -> bool:
    if content_type in FEED_CONTENT_TYPES:
        return True
    return content_type.endswith("+xml") and content_type != "application/xhtml+xml"


def select_source(url: str, content_type: str) -> Source:
    """Choose the discovery route for a seed URL from its content type."""
    if is_feed_content_type(content_type):
        return FeedSource(url)
    return PlayerSource(url)


def find_player_episode_id(soup: BeautifulSoup) -> str | None:
    """Return the episode id of the first embedded Simplecast player.

    Every ``iframe`` ``src`` is checked before any ``data-src``.
    """
    iframes = soup.find_all("iframe")
    candidates = [iframe.get("src") for iframe in iframes]
    candidates += [iframe.get("data-src") for iframe in iframes]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            parts = urlsplit(candidate)
        except ValueError:
            logger.warning("Unable to parse iframe URL", url=candidate)
            continue
        if parts.hostname not in PLAYER_HOSTS:
            continue
        segments = [s for s in parts.path.split("/") if s]
        if segments:
            return segments[0]
    return None


class Discovery:
    """Builds a Podcast from a seed URL."""

    def __init__(
        self,
        client: FetchClient,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_playlist_pages: int = DEFAULT_MAX_PLAYLIST_PAGES,
        observer: BatchObserver | None = None,
    ) -> None:
        """Initialize discovery.

        Args:
            client: Cache-backed fetch client.
            concurrency: Episode records fetched in parallel.
            max_playlist_pages: Upper bound on playlist pages followed.
            observer: Progress receiver for the episode fetch batch.
        """
        self.client = client
        self.concurrency = concurrency
        self.max_playlist_pages = max_playlist_pages
        self.observer = observer or LoggingObserver("episodes")
        self.parser = RSSParser()
        self.logger = logger.bind(component="discovery")

    def discover(self, seed_url: str, podcast_id: str, refresh: bool = False) -> Podcast:
        """Discover a podcast and all of its episodes.

        Args:
            seed_url: Feed URL or web page embedding a player.
            podcast_id: Local archive id to assign.
            refresh: Re-fetch playlist pages instead of reading them from cache.

        Returns:
            Podcast with episodes in source order.
        """
        content_type = self.client.head(seed_url)
        source = select_source(seed_url, content_type)
        self.logger.debug(
            "Selected source",
            url=seed_url,
            content_type=content_type,
            source=type(source).__name__,
        )
        match source:
            case FeedSource(url=url):
                return self._discover_feed(url, podcast_id)
            case PlayerSource(url=url):
                return self._discover_player(url, podcast_id, refresh)

    def _discover_feed(self, url: str, podcast_id: str) -> Podcast:
        content = self.client.get_bytes(url, XML_EXTENSION)
        podcast = self.parser.parse_feed(content, url, podcast_id)
        self.logger.info("Found episodes", count=len(podcast.episodes), podcast=podcast.title)
        return podcast

    def _discover_player(self, url: str, podcast_id: str, refresh: bool) -> Podcast:
        player_id = self._get_player_id(url)
        seed_episode = self.client.get_json(episode_url(player_id), SimplecastEpisode)
        show_id = seed_episode.podcast.id
        self.logger.debug("Fetching podcast", podcast=seed_episode.podcast.title, show_id=show_id)
        show = self.client.get_json(podcast_url(show_id), SimplecastPodcast)
        playlist = self.get_playlist(show_id, refresh)
        self.logger.info("Found episodes", count=len(playlist), podcast=show.title)

        episodes = self.get_episodes(playlist)
        skipped = len(playlist) - len(episodes)
        if skipped:
            self.logger.warning("Skipped episodes due to failures", skipped=skipped)
        return convert_podcast(podcast_id, show, episodes)

    def _get_player_id(self, url: str) -> str:
        soup = self.client.get_html(url)
        player_id = find_player_episode_id(soup)
        if player_id is None:
            raise DiscoveryError(url, "Page does not contain a Simplecast player")
        self.logger.debug("Found Simplecast player", episode_id=player_id)
        return player_id

    def get_playlist(self, show_id: str, refresh: bool = False) -> list[SimplecastPlaylistEpisode]:
        """Follow playlist pages until there is no next link.

        Traversal also stops, keeping what was accumulated, when a next link
        repeats or the page cap is reached.
        """
        url: str | None = playlist_url(show_id)
        visited: set[str] = set()
        seen_ids: set[str] = set()
        summaries: list[SimplecastPlaylistEpisode] = []
        while url is not None:
            if url in visited:
                self.logger.warning("Playlist next link repeats, stopping", url=url)
                break
            if len(visited) >= self.max_playlist_pages:
                self.logger.warning(
                    "Playlist page limit reached, stopping",
                    limit=self.max_playlist_pages,
                )
                break
            visited.add(url)
            page = self.client.get_json(url, SimplecastPlaylist, refresh=refresh)
            for summary in page.episodes.collection:
                if summary.id in seen_ids:
                    self.logger.debug("Skipping repeated playlist episode", episode_id=summary.id)
                    continue
                seen_ids.add(summary.id)
                summaries.append(summary)
            url = page.next_url
        self.logger.debug("Fetched playlist", pages=len(visited), episodes=len(summaries))
        return summaries

    def get_episodes(self, playlist: list[SimplecastPlaylistEpisode]) -> list[Episode]:
        """Fetch and convert every listed episode, dropping failures.

        Returns:
            Converted episodes in playlist order.
        """
        self.logger.debug("Fetching episode metadata", count=len(playlist))
        result = run_batch(
            playlist,
            self._get_episode,
            key=lambda summary: summary.id,
            concurrency=self.concurrency,
            observer=self.observer,
        )
        order = {summary.id: index for index, summary in enumerate(playlist)}
        return sorted(result.succeeded, key=lambda episode: order.get(episode.id, len(order)))

    def _get_episode(self, summary: SimplecastPlaylistEpisode) -> Episode:
        record = self.client.get_json(episode_url(summary.id), SimplecastEpisode)
        return convert_episode(record)


class ScrapeCommand:
    """Discovers a podcast and saves its record."""

    def __init__(self, discovery: Discovery, store: PodcastStore) -> None:
        self.discovery = discovery
        self.store = store
        self.logger = logger.bind(component="scrape")

    def execute(self, podcast_id: str, url: str, refresh: bool = False) -> Path:
        """Scrape a podcast.

        Returns:
            Path of the saved podcast record.
        """
        podcast = self.discovery.discover(url, podcast_id, refresh=refresh)
        path = self.store.put(podcast)
        self.logger.info(
            "Scraped podcast",
            podcast_id=podcast_id,
            title=podcast.title,
            episodes=len(podcast.episodes),
        )
        return path

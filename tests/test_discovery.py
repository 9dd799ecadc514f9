"""Tests for seed URL discovery."""

from datetime import UTC, datetime, timedelta

import pytest
from bs4 import BeautifulSoup

from podarchive.errors import DiscoveryError
from podarchive.fetch import FetchClient
from podarchive.ingestion.discovery import (
    Discovery,
    FeedSource,
    PlayerSource,
    ScrapeCommand,
    find_player_episode_id,
    is_feed_content_type,
    select_source,
)
from podarchive.ingestion.simplecast import episode_url, playlist_url, podcast_url
from podarchive.models import PodcastType
from podarchive.storage import PodcastStore

SHOW_ID = "show-1"
SEED_URL = "https://example.com/show"


def episode_id(index: int) -> str:
    return f"e{index:03d}"


def page_url(page: int) -> str:
    base = playlist_url(SHOW_ID)
    return base if page == 1 else f"{base}?page={page}"


def add_playlist_page(web, page: int, ids: list[str], next_url: str | None) -> None:
    web.add_json(
        page_url(page),
        {
            "title": "Show",
            "episodes": {
                "pages": {"current": page, "next": {"href": next_url} if next_url else None},
                "collection": [{"id": i, "title": f"Episode {i}"} for i in ids],
            },
        },
    )


def add_episode(web, index: int, status: int = 200) -> None:
    web.add_json(
        episode_url(episode_id(index)),
        {
            "id": episode_id(index),
            "title": f"Episode {index}",
            "description": "Short",
            "long_description": "<p>Long notes</p>",
            "type": "full",
            "number": index + 1,
            "season": {"number": 1},
            "enclosure_url": f"https://cdn.simplecast.com/audio/{episode_id(index)}.mp3",
            "audio_file_size": 1000 + index,
            "duration": 600,
            "published_at": (datetime(2020, 1, 1, tzinfo=UTC) + timedelta(days=index)).isoformat(),
            "podcast": {"id": SHOW_ID, "title": "Show"},
        },
        status=status,
    )


def setup_player(web, page_sizes: list[int], failing: tuple[int, ...] = ()) -> list[str]:
    """Serve a player page, a show and a paginated playlist; returns all ids."""
    web.add(
        SEED_URL,
        f'<html><body><iframe src="https://player.simplecast.com/{episode_id(0)}?dark=true">'
        "</iframe></body></html>",
        content_type="text/html; charset=utf-8",
    )
    web.add_json(
        podcast_url(SHOW_ID),
        {
            "id": SHOW_ID,
            "title": "Show",
            "description": "About the show",
            "image_url": "https://cdn.simplecast.com/images/show.jpg",
            "type": "serial",
            "language": "en-us",
            "authors": {"collection": [{"name": "Host One"}, {"name": "Host Two"}]},
            "site": {"subdomain": "show"},
        },
    )
    ids: list[str] = []
    start = 0
    for page, size in enumerate(page_sizes, start=1):
        page_ids = [episode_id(i) for i in range(start, start + size)]
        next_url = page_url(page + 1) if page < len(page_sizes) else None
        add_playlist_page(web, page, page_ids, next_url)
        for i in range(start, start + size):
            add_episode(web, i, status=500 if i in failing else 200)
        ids.extend(page_ids)
        start += size
    return ids


class TestRouteSelection:
    """Tests for content-type based route selection."""

    @pytest.mark.parametrize(
        "content_type",
        ["application/rss+xml", "application/atom+xml", "application/xml", "text/xml", "application/x-rss+xml"],
    )
    def test_feed_types(self, content_type: str) -> None:
        assert is_feed_content_type(content_type)
        assert select_source(SEED_URL, content_type) == FeedSource(SEED_URL)

    @pytest.mark.parametrize("content_type", ["text/html", "application/xhtml+xml", "", "application/json"])
    def test_player_types(self, content_type: str) -> None:
        assert not is_feed_content_type(content_type)
        assert select_source(SEED_URL, content_type) == PlayerSource(SEED_URL)


class TestFindPlayerEpisodeId:
    """Tests for embedded player detection."""

    def test_src(self) -> None:
        soup = BeautifulSoup(
            '<iframe src="https://www.youtube.com/embed/x"></iframe>'
            '<iframe src="https://player.simplecast.com/abc-123?dark=false"></iframe>',
            "html.parser",
        )

        assert find_player_episode_id(soup) == "abc-123"

    def test_data_src_and_embed_host(self) -> None:
        soup = BeautifulSoup(
            '<iframe data-src="https://embed.simplecast.com/def-456"></iframe>', "html.parser"
        )

        assert find_player_episode_id(soup) == "def-456"

    def test_no_player(self) -> None:
        soup = BeautifulSoup('<iframe src=""></iframe><p>Nothing</p>', "html.parser")

        assert find_player_episode_id(soup) is None


class TestPlayerDiscovery:
    """Tests for the Simplecast player path."""

    def test_follows_all_playlist_pages(self, fetch_client: FetchClient, web) -> None:
        """Test that pages of 50, 50 and 7 yield 107 episodes in playlist order."""
        ids = setup_player(web, [50, 50, 7])

        podcast = Discovery(fetch_client).discover(SEED_URL, "abc")

        assert len(podcast.episodes) == 107
        assert [e.id for e in podcast.episodes] == ids
        assert web.count(page_url(3)) == 1
        assert web.count(episode_url(episode_id(0))) == 1

    def test_podcast_fields(self, fetch_client: FetchClient, web) -> None:
        setup_player(web, [2])

        podcast = Discovery(fetch_client).discover(SEED_URL, "abc")

        assert podcast.id == "abc"
        assert podcast.guid == SHOW_ID
        assert podcast.title == "Show"
        assert str(podcast.link) == "https://show.simplecast.com/"
        assert podcast.author == "Host One, Host Two"
        assert podcast.podcast_type == PodcastType.SERIAL
        assert podcast.created_at == datetime(2020, 1, 1, tzinfo=UTC)

        first = podcast.episodes[0]
        assert first.description == "<p>Long notes</p>"
        assert first.season == 1
        assert first.number == 1
        assert str(first.audio_url) == "https://cdn.simplecast.com/audio/e000.mp3"

    def test_failed_episodes_are_dropped(self, fetch_client: FetchClient, web) -> None:
        """Test that per-episode failures do not abort discovery."""
        ids = setup_player(web, [10], failing=(4, 7))

        podcast = Discovery(fetch_client, concurrency=3).discover(SEED_URL, "abc")

        expected = [i for i in ids if i not in (episode_id(4), episode_id(7))]
        assert [e.id for e in podcast.episodes] == expected

    def test_missing_player(self, fetch_client: FetchClient, web) -> None:
        web.add(SEED_URL, "<html><body>No player</body></html>", content_type="text/html")

        with pytest.raises(DiscoveryError):
            Discovery(fetch_client).discover(SEED_URL, "abc")

    def test_repeated_next_link_stops(self, fetch_client: FetchClient, web) -> None:
        setup_player(web, [3, 3])
        add_playlist_page(web, 2, [episode_id(3), episode_id(4), episode_id(5)], page_url(1))

        playlist = Discovery(fetch_client).get_playlist(SHOW_ID)

        assert len(playlist) == 6
        assert web.count(page_url(1)) == 1

    def test_overlapping_pages_are_deduplicated(self, fetch_client: FetchClient, web) -> None:
        """Test that an id listed on two pages appears once, at its first position."""
        setup_player(web, [3, 2])
        add_playlist_page(web, 2, [episode_id(2), episode_id(3), episode_id(4)], None)

        podcast = Discovery(fetch_client).discover(SEED_URL, "abc")

        assert [e.id for e in podcast.episodes] == [episode_id(i) for i in range(5)]
        assert web.count(episode_url(episode_id(2))) == 1

    def test_page_cap_stops(self, fetch_client: FetchClient, web) -> None:
        setup_player(web, [2, 2, 2])

        playlist = Discovery(fetch_client, max_playlist_pages=2).get_playlist(SHOW_ID)

        assert len(playlist) == 4
        assert web.count(page_url(3)) == 0

    def test_refresh_refetches_playlist_only(self, fetch_client: FetchClient, web) -> None:
        setup_player(web, [2, 2])
        discovery = Discovery(fetch_client)

        discovery.discover(SEED_URL, "abc")
        discovery.discover(SEED_URL, "abc")
        assert web.count(page_url(1)) == 1

        discovery.discover(SEED_URL, "abc", refresh=True)
        assert web.count(page_url(1)) == 2
        assert web.count(page_url(2)) == 2
        assert web.count(episode_url(episode_id(3))) == 1
        assert web.count(SEED_URL) == 1


class TestFeedDiscovery:
    """Tests for the direct feed path."""

    def test_feed_is_parsed(self, fetch_client: FetchClient, web, sample_feed_xml: bytes) -> None:
        url = "https://example.com/feed.xml"
        web.add(url, sample_feed_xml, content_type="application/rss+xml; charset=utf-8")

        podcast = Discovery(fetch_client).discover(url, "example")

        assert podcast.title == "Example Show"
        assert [e.id for e in podcast.episodes] == ["ep-2", "ep-1"]
        assert web.count(url, "HEAD") == 1
        assert web.count(url) == 1


def test_scrape_command_saves_record(fetch_client: FetchClient, store: PodcastStore, web) -> None:
    setup_player(web, [3])

    path = ScrapeCommand(Discovery(fetch_client), store).execute("abc", SEED_URL)

    assert path == store.path("abc")
    assert [e.id for e in store.get("abc").episodes] == [episode_id(i) for i in range(3)]

"""Tests for RSS feed generation."""

import xml.etree.ElementTree as ET

import feedparser
import pytest

from podarchive.archive import FeedsCommand
from podarchive.archive.feeds import ITUNES_NS, group_by_season, group_by_year
from podarchive.config import PathSettings
from podarchive.errors import NotFoundError
from podarchive.paths import PathProvider
from podarchive.storage import PodcastStore


@pytest.fixture
def served_paths(tmp_path) -> PathProvider:
    return PathProvider(
        PathSettings(
            cache_dir=tmp_path / "cache",
            output_dir=tmp_path / "output",
            server_base="https://archive.example.com/podcasts",
        )
    )


class TestFeedsCommand:
    """Tests for feed writing."""

    def test_writes_all_feed_levels(self, store: PodcastStore, paths: PathProvider, sample_podcast) -> None:
        store.put(sample_podcast)

        written = FeedsCommand(store, paths).execute("abc")

        root = paths.output_dir / "abc"
        assert set(written) == {
            root / "feed.xml",
            root / "S00" / "feed.xml",
            root / "S00" / "2020" / "feed.xml",
            root / "S01" / "feed.xml",
            root / "S01" / "2020" / "feed.xml",
            root / "S01" / "2021" / "feed.xml",
            root / "S02" / "feed.xml",
            root / "S02" / "2021" / "feed.xml",
        }
        assert all(path.is_file() for path in written)

    def test_root_feed_has_every_episode(self, store, paths, sample_podcast) -> None:
        store.put(sample_podcast)
        FeedsCommand(store, paths).execute("abc")

        feed = feedparser.parse((paths.output_dir / "abc" / "feed.xml").read_bytes())

        assert feed.bozo == 0
        assert feed.feed.title == "Example Show"
        assert [entry.id for entry in feed.entries] == [e.id for e in sample_podcast.episodes]

    def test_season_year_feed_is_filtered(self, store, paths, sample_podcast) -> None:
        store.put(sample_podcast)
        FeedsCommand(store, paths).execute("abc")

        tree = ET.parse(paths.feed_path("abc", 1, 2021))
        guids = [guid.text for guid in tree.getroot().iter("guid")]

        assert guids == ["ep-2"]

    def test_enclosure_points_at_archive(self, served_paths, sample_podcast) -> None:
        store = PodcastStore(served_paths.podcasts_dir)
        store.put(sample_podcast)
        FeedsCommand(store, served_paths).execute("abc")

        tree = ET.parse(served_paths.feed_path("abc"))
        item = tree.getroot().find("channel/item")
        enclosure = item.find("enclosure")

        assert enclosure.get("url") == (
            "https://archive.example.com/podcasts/abc/S01/2020/"
            "2020-01-01%200001%20Lorem%20ipsum%20dolor%20sit%20amet.mp3"
        )
        assert enclosure.get("length") == "2048"
        assert enclosure.get("type") == "audio/mpeg"
        assert item.find("link").text == "https://cdn.example.com/audio/ep-1.mp3"
        assert item.find("guid").get("isPermaLink") == "false"
        assert item.find(f"{{{ITUNES_NS}}}season").text == "1"
        assert item.find(f"{{{ITUNES_NS}}}episodeType").text == "full"

    def test_file_enclosure_without_server_base(self, store, paths, sample_podcast) -> None:
        store.put(sample_podcast)
        FeedsCommand(store, paths).execute("abc")

        tree = ET.parse(paths.feed_path("abc"))

        urls = [e.get("url") for e in tree.getroot().iter("enclosure")]
        assert all(url.startswith("file://") for url in urls)

    def test_unknown_podcast(self, store, paths) -> None:
        with pytest.raises(NotFoundError):
            FeedsCommand(store, paths).execute("missing")


def test_grouping(sample_podcast) -> None:
    seasons = group_by_season(sample_podcast.episodes)

    assert list(seasons) == [0, 1, 2]
    assert [e.id for e in seasons[0]] == ["ep-bonus"]
    assert list(group_by_year(seasons[1])) == [2020, 2021]

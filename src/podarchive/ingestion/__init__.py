"""Podcast discovery from feeds and embedded Simplecast players."""

from podarchive.ingestion.discovery import (
    Discovery,
    FeedSource,
    PlayerSource,
    ScrapeCommand,
    select_source,
)
from podarchive.ingestion.rss_parser import RSSParser

__all__ = ["Discovery", "FeedSource", "PlayerSource", "RSSParser", "ScrapeCommand", "select_source"]

"""Podcast record persistence."""

from podarchive.storage.podcasts import PodcastStore

__all__ = ["PodcastStore"]

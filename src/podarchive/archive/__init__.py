"""Archive commands: download, feeds and cover."""

from podarchive.archive.cover import CoverCommand
from podarchive.archive.feeds import FeedsCommand
from podarchive.archive.processor import DownloadCommand, EpisodeProcessor

__all__ = ["CoverCommand", "DownloadCommand", "EpisodeProcessor", "FeedsCommand"]

"""Cache-backed HTTP fetching."""

from podarchive.fetch.cache import ContentCache
from podarchive.fetch.client import FetchClient

__all__ = ["ContentCache", "FetchClient"]

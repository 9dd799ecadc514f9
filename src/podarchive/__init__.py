"""Podarchive - Podcast Discovery and Archiving Pipeline.

Discovers podcast episodes from hosted web players or RSS feeds, archives
audio and artwork locally with corrected metadata, and regenerates feeds.
"""

__version__ = "0.1.0"

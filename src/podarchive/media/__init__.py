"""Artwork resizing and audio tagging."""

from podarchive.media.images import BANNER_SIZE, COVER_SIZE, ImageResizer, Picture
from podarchive.media.tags import Tagger, build_tags

__all__ = ["BANNER_SIZE", "COVER_SIZE", "ImageResizer", "Picture", "Tagger", "build_tags"]

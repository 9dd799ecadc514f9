"""Typed accessors over the content cache."""

import json
from pathlib import Path
from typing import Any, TypeVar

import structlog
from bs4 import BeautifulSoup
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from podarchive.errors import FilesystemError, ParseError
from podarchive.fetch.cache import HTML_EXTENSION, JSON_EXTENSION, ContentCache

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class FetchClient:
    """Fetches raw bytes, HTML, JSON and content types through the cache."""

    def __init__(self, cache: ContentCache) -> None:
        self.cache = cache
        self.logger = logger.bind(component="fetch_client")

    def get_path(self, url: str, extension: str | None = None) -> Path:
        return self.cache.fetch(url, extension)

    def get_bytes(self, url: str, extension: str | None = None) -> bytes:
        path = self.cache.fetch(url, extension)
        return _read_bytes(path)

    def get_html(self, url: str) -> BeautifulSoup:
        """Fetch a page and parse it.

        The raw page stays cached; parsing is repeated on every call.
        """
        path = self.cache.fetch(url, HTML_EXTENSION)
        return BeautifulSoup(_read_bytes(path), "html.parser")

    def get_json(
        self,
        url: str,
        model: type[ModelT] | None = None,
        refresh: bool = False,
    ) -> ModelT | Any:
        """Fetch and deserialize a JSON document.

        Args:
            url: URL of the document.
            model: Optional pydantic model to validate the document against.
            refresh: Invalidate any cached copy before fetching.

        Returns:
            The validated model, or the decoded JSON value if no model is given.

        Raises:
            ParseError: If the document is not valid JSON or does not match the
                model. The cache entry is removed first so the next call
                fetches a fresh copy.
        """
        if refresh:
            self.cache.invalidate(url, JSON_EXTENSION)
        path = self.cache.fetch(url, JSON_EXTENSION)
        content = _read_bytes(path)
        try:
            if model is not None:
                return model.model_validate_json(content)
            return json.loads(content)
        except (PydanticValidationError, ValueError) as e:
            self.logger.debug("Invalid JSON, removing cache entry", url=url, path=str(path))
            self.cache.invalidate(url, JSON_EXTENSION)
            raise ParseError(path, str(e)) from e

    def head(self, url: str) -> str:
        return self.cache.head(url)

    def close(self) -> None:
        self.cache.close()

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FilesystemError(path, str(e)) from e

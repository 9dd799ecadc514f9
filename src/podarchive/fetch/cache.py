"""Content-addressable on-disk cache for HTTP responses.

Every response is stored at a path derived from its URL and content kind.
The existence of that file is the only cache state: a present file is
authoritative and is never re-fetched unless it is explicitly invalidated.
"""

import hashlib
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlsplit

import httpx
import structlog

from podarchive.errors import FilesystemError, RequestError, StatusError

logger = structlog.get_logger(__name__)

HEAD_EXTENSION = "head"
HTML_EXTENSION = "html"
JSON_EXTENSION = "json"
XML_EXTENSION = "xml"
MP3_EXTENSION = "mp3"
RAW_EXTENSION = "raw"

UNKNOWN_DOMAIN = "__unknown"
ROOT_SEGMENT = "__root"
QUERY_HASH_LENGTH = 32


def normalize_content_type(value: str | None) -> str:
    """Lower-case a Content-Type header and strip its parameters."""
    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()


class ContentCache:
    """Maps URLs to files under a cache root, fetching on a miss."""

    def __init__(
        self,
        root: Path,
        client: httpx.Client | None = None,
        timeout_seconds: float = 60.0,
        user_agent: str | None = None,
        chunk_size: int = 65536,
    ) -> None:
        """Initialize the cache.

        Args:
            root: Directory holding cached responses.
            client: HTTP client to use (created if None).
            timeout_seconds: Request timeout for a created client.
            user_agent: User-Agent header for a created client.
            chunk_size: Chunk size for streaming downloads.
        """
        self.root = root
        if client is None:
            headers = {"User-Agent": user_agent} if user_agent else None
            client = httpx.Client(timeout=timeout_seconds, follow_redirects=True, headers=headers)
        self.client = client
        self.chunk_size = chunk_size
        self.logger = logger.bind(component="content_cache")

    def resolve(self, url: str, extension: str | None = None) -> Path:
        """Compute the cache path of a URL without doing any I/O.

        ``{root}/{domain}/{segments}[-{query_hash}].{extension}``

        The extension is always appended. Raw fetches without a kind use
        ``raw``, which no content kind uses.
        """
        parts = urlsplit(url)
        domain = parts.hostname or UNKNOWN_DOMAIN
        if parts.port:
            domain = f"{domain}_{parts.port}"
        segments = [s for s in parts.path.split("/") if s and s not in (".", "..")]
        if not segments:
            segments = [ROOT_SEGMENT]
        file_name = segments[-1]
        if parts.query:
            digest = hashlib.sha256(parts.query.encode()).hexdigest()[:QUERY_HASH_LENGTH]
            file_name = f"{file_name}-{digest}"
        file_name = f"{file_name}.{extension or RAW_EXTENSION}"
        return self.root.joinpath(domain, *segments[:-1], file_name)

    def exists(self, url: str, extension: str | None = None) -> bool:
        return self.resolve(url, extension).is_file()

    def fetch(self, url: str, extension: str | None = None) -> Path:
        """Return the cache path of a URL, downloading it on a miss.

        Raises:
            RequestError: If the request could not be completed.
            StatusError: If the server answered with a non-2xx status.
            FilesystemError: If the response could not be written.
        """
        path = self.resolve(url, extension)
        if path.is_file():
            self.logger.debug("Cache hit", url=url)
            return path
        self.logger.debug("Cache miss", url=url)
        self._download(url, path)
        return path

    def head(self, url: str) -> str:
        """Return the normalized Content-Type of a URL, cached separately from GET.

        Only a 2xx answer is cached; an error answer's type is returned as is.
        """
        path = self.resolve(url, HEAD_EXTENSION)
        if path.is_file():
            self.logger.debug("HEAD cache hit", url=url)
            try:
                return path.read_text(encoding="utf-8")
            except OSError as e:
                raise FilesystemError(path, str(e)) from e
        self.logger.debug("HEAD cache miss", url=url)
        try:
            response = self.client.head(url)
        except httpx.HTTPError as e:
            raise RequestError(url, str(e)) from e
        content_type = normalize_content_type(response.headers.get("content-type"))
        if not response.is_success:
            self.logger.debug("HEAD not cached", url=url, status=response.status_code)
            return content_type
        self._write_atomic(path, [content_type.encode()])
        return content_type

    def invalidate(self, url: str, extension: str | None = None) -> bool:
        """Delete the cache entry of a URL.

        Returns:
            True if an entry existed and was removed.
        """
        path = self.resolve(url, extension)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            self.logger.debug("Failed to remove cache entry", path=str(path), error=str(e))
            return False
        self.logger.debug("Removed cache entry", path=str(path))
        return True

    def close(self) -> None:
        self.client.close()

    def _download(self, url: str, path: Path) -> None:
        """Stream a GET response into the cache."""
        self.logger.debug("Downloading", url=url, path=str(path))
        try:
            with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise StatusError(url, response.status_code, response.reason_phrase)
                self._write_atomic(path, response.iter_bytes(chunk_size=self.chunk_size))
        except httpx.HTTPError as e:
            raise RequestError(url, str(e)) from e

    def _write_atomic(self, path: Path, chunks: Iterable[bytes]) -> None:
        """Write chunks to a temporary sibling, then rename it into place.

        Concurrent writers of the same path each rename a complete file, so
        the entry is never observed half-written.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
        except OSError as e:
            raise FilesystemError(path.parent, str(e)) from e
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                for chunk in chunks:
                    f.write(chunk)
            os.replace(temp_path, path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise FilesystemError(path, str(e)) from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

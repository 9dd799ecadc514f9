"""Exception hierarchy shared across the fetch, discovery and archive layers."""

from pathlib import Path


class PodarchiveError(Exception):
    """Base class for all errors raised by podarchive."""


class TransportError(PodarchiveError):
    """Raised when a network request cannot be completed."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class RequestError(TransportError):
    """Raised on connection, timeout or protocol failures."""

    def __init__(self, url: str, reason: str = "") -> None:
        message = f"Request failed: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(url, message)


class StatusError(TransportError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        status = f"{status_code} {reason}".strip()
        super().__init__(url, f"Unexpected response status {status}: {url}")
        self.status_code = status_code


class ParseError(PodarchiveError):
    """Raised when a fetched HTML, JSON or feed document cannot be parsed."""

    def __init__(self, source: str | Path, reason: str = "") -> None:
        message = f"Unable to parse {source}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.source = source


class DiscoveryError(PodarchiveError):
    """Raised when a page lacks the marker needed to continue discovery."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message}: {url}")
        self.url = url


class FilesystemError(PodarchiveError):
    """Raised when reading or writing a local file fails."""

    def __init__(self, path: Path, reason: str = "") -> None:
        message = f"An I/O error occurred: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = path


class MappingError(PodarchiveError):
    """Raised when source data cannot be converted to the internal model."""


class NotFoundError(PodarchiveError):
    """Raised when no stored record exists for a podcast id."""

    def __init__(self, podcast_id: str) -> None:
        super().__init__(f"Podcast not found: {podcast_id}")
        self.podcast_id = podcast_id


class ProcessError(PodarchiveError):
    """Raised when one stage of processing a single episode fails."""

    def __init__(self, stem: str, stage: str, reason: str = "") -> None:
        message = f"Unable to {stage} for episode: {stem}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.stem = stem
        self.stage = stage


class ValidationError(PodarchiveError):
    """Raised when configuration or environment expectations are not met."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


class MediaError(PodarchiveError):
    """Raised when an image cannot be decoded, resized or encoded."""

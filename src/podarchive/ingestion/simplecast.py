"""Simplecast JSON API models and their conversion to the internal model.

Only the fields podarchive reads are declared; everything else in the API
responses is ignored.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from podarchive.errors import MappingError
from podarchive.models import Episode, EpisodeType, Podcast, PodcastType

API_BASE = "https://api.simplecast.com"
PLAYER_HOSTS = frozenset({"player.simplecast.com", "embed.simplecast.com"})


def episode_url(episode_id: str) -> str:
    return f"{API_BASE}/episodes/{episode_id}"


def podcast_url(podcast_id: str) -> str:
    return f"{API_BASE}/podcasts/{podcast_id}"


def playlist_url(podcast_id: str) -> str:
    return f"{API_BASE}/podcasts/{podcast_id}/playlist"


class SimplecastModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SimplecastLink(SimplecastModel):
    href: str


class SimplecastCount(SimplecastModel):
    count: int = 0


class SimplecastSeason(SimplecastModel):
    number: int | None = None


class SimplecastAuthor(SimplecastModel):
    name: str


class SimplecastAuthors(SimplecastModel):
    collection: list[SimplecastAuthor] = Field(default_factory=list)


class SimplecastSite(SimplecastModel):
    subdomain: str | None = None
    external_website: str | None = None


class SimplecastEpisodePodcast(SimplecastModel):
    """Owning show summary embedded in an episode record."""

    id: str
    title: str = ""
    episodes: SimplecastCount | None = None


class SimplecastEpisode(SimplecastModel):
    """Full episode record from ``/episodes/{id}``."""

    id: str
    title: str
    description: str | None = None
    long_description: str | None = None
    type: str | None = None
    number: int | None = None
    season: SimplecastSeason | None = None
    image_url: str | None = None
    enclosure_url: str
    audio_file_size: int | None = None
    audio_content_type: str | None = None
    duration: int | None = None
    is_explicit: bool = False
    published_at: datetime
    podcast: SimplecastEpisodePodcast


class SimplecastPodcast(SimplecastModel):
    """Show record from ``/podcasts/{id}``."""

    id: str
    title: str
    description: str | None = None
    image_url: str | None = None
    language: str | None = None
    copyright: str | None = None
    type: str | None = None
    is_explicit: bool = False
    created_at: datetime | None = None
    authors: SimplecastAuthors | None = None
    site: SimplecastSite | None = None
    episodes: SimplecastCount | None = None


class SimplecastPages(SimplecastModel):
    total: int | None = None
    limit: int | None = None
    current: int | None = None
    previous: SimplecastLink | None = None
    next: SimplecastLink | None = None


class SimplecastPlaylistEpisode(SimplecastModel):
    """Episode summary listed on a playlist page."""

    id: str
    title: str = ""
    type: str | None = None
    number: int | None = None
    season_number: int | None = None
    enclosure_url: str | None = None
    duration: int | None = None


class SimplecastPlaylistEpisodes(SimplecastModel):
    pages: SimplecastPages = Field(default_factory=SimplecastPages)
    collection: list[SimplecastPlaylistEpisode] = Field(default_factory=list)


class SimplecastPlaylist(SimplecastModel):
    """One page of ``/podcasts/{id}/playlist``."""

    title: str = ""
    episodes: SimplecastPlaylistEpisodes = Field(default_factory=SimplecastPlaylistEpisodes)

    @property
    def next_url(self) -> str | None:
        link = self.episodes.pages.next
        return link.href if link else None


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def convert_episode(episode: SimplecastEpisode) -> Episode:
    """Map an API episode record to an Episode.

    Raises:
        MappingError: If the record holds values the model rejects.
    """
    try:
        return Episode(
            id=episode.id,
            title=episode.title,
            description=episode.long_description or episode.description or "",
            audio_url=episode.enclosure_url,
            audio_file_size=episode.audio_file_size or 0,
            audio_content_type=episode.audio_content_type or "audio/mpeg",
            duration=episode.duration,
            image_url=episode.image_url or None,
            explicit=episode.is_explicit,
            episode_type=EpisodeType.parse(episode.type),
            season=episode.season.number if episode.season else None,
            number=episode.number,
            published_at=_aware(episode.published_at),
        )
    except PydanticValidationError as e:
        raise MappingError(f"Unable to map Simplecast episode: {episode.id}") from e


def convert_podcast(
    podcast_id: str,
    podcast: SimplecastPodcast,
    episodes: list[Episode],
) -> Podcast:
    """Map a show record and its converted episodes to a Podcast.

    Args:
        podcast_id: Local archive id assigned by the caller.
        podcast: Show record.
        episodes: Converted episodes, already in playlist order.

    Raises:
        MappingError: If the show cannot be mapped.
    """
    site = podcast.site or SimplecastSite()
    if site.external_website:
        link = site.external_website
    elif site.subdomain:
        link = f"https://{site.subdomain}.simplecast.com"
    else:
        raise MappingError(f"Simplecast podcast has no website: {podcast.id}")

    converted = list(episodes)
    if podcast.created_at is not None:
        created_at = _aware(podcast.created_at)
    elif converted:
        created_at = min(episode.published_at for episode in converted)
    else:
        created_at = datetime.now(UTC)

    authors = podcast.authors.collection if podcast.authors else []
    try:
        return Podcast(
            id=podcast_id,
            guid=podcast.id,
            title=podcast.title,
            description=podcast.description or "",
            image_url=podcast.image_url or None,
            language=podcast.language or "en",
            explicit=podcast.is_explicit,
            author=", ".join(author.name for author in authors) or None,
            link=link,
            podcast_type=PodcastType.parse(podcast.type),
            copyright=podcast.copyright,
            created_at=created_at,
            episodes=converted,
        )
    except PydanticValidationError as e:
        raise MappingError(f"Unable to map Simplecast podcast: {podcast.id}") from e

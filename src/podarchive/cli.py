"""Command-line interface for podarchive.

Provides commands to scrape a podcast, archive its episodes, and publish
feeds and artwork for the archive.
"""

import argparse
import sys

import structlog

from podarchive.archive import CoverCommand, DownloadCommand, EpisodeProcessor, FeedsCommand
from podarchive.config import Settings, get_settings
from podarchive.errors import PodarchiveError
from podarchive.fetch import ContentCache, FetchClient
from podarchive.ingestion import Discovery, ScrapeCommand
from podarchive.logging import setup_logging, verbosity_to_level
from podarchive.network import check_network
from podarchive.paths import PathProvider
from podarchive.storage import PodcastStore

logger = structlog.get_logger(__name__)


def _open_client(settings: Settings, paths: PathProvider) -> FetchClient:
    cache = ContentCache(
        paths.http_dir,
        timeout_seconds=settings.http.timeout_seconds,
        user_agent=settings.http.user_agent,
    )
    return FetchClient(cache)


def _store(paths: PathProvider) -> PodcastStore:
    return PodcastStore(paths.podcasts_dir)


def cmd_scrape(args: argparse.Namespace) -> int:
    """Discover a podcast from a feed or web page and save it."""
    settings = get_settings()
    paths = PathProvider(settings.paths)

    with _open_client(settings, paths) as client:
        check_network(client, settings.network)
        discovery = Discovery(
            client,
            concurrency=settings.pipeline.concurrency,
            max_playlist_pages=settings.pipeline.max_playlist_pages,
        )
        path = ScrapeCommand(discovery, _store(paths)).execute(
            args.podcast_id, args.url, refresh=args.refresh
        )

    print(f"Saved podcast to: {path}")
    return 0


def cmd_download(args: argparse.Namespace) -> int:
    """Archive the episodes of a scraped podcast."""
    settings = get_settings()
    paths = PathProvider(settings.paths)

    with _open_client(settings, paths) as client:
        check_network(client, settings.network)
        processor = EpisodeProcessor(client, paths, image_size=settings.pipeline.image_size)
        command = DownloadCommand(
            _store(paths), processor, concurrency=settings.pipeline.concurrency
        )
        result = command.execute(args.podcast_id, year=args.year)

    print(f"Downloaded {len(result.succeeded)}")
    if result.failed:
        print(f"Skipped {len(result.failed)} due to failures")
    return 0


def cmd_feeds(args: argparse.Namespace) -> int:
    """Write RSS feeds for an archived podcast."""
    settings = get_settings()
    paths = PathProvider(settings.paths)

    written = FeedsCommand(_store(paths), paths).execute(args.podcast_id)

    print(f"Created {len(written)} rss feeds")
    return 0


def cmd_cover(args: argparse.Namespace) -> int:
    """Write cover and banner images for a podcast."""
    settings = get_settings()
    paths = PathProvider(settings.paths)

    with _open_client(settings, paths) as client:
        check_network(client, settings.network)
        cover, banner = CoverCommand(_store(paths), client, paths).execute(args.podcast_id)

    print(f"Cover: {cover}")
    print(f"Banner: {banner}")
    return 0


def report_error(error: BaseException) -> None:
    """Log an error followed by every exception in its cause chain."""
    logger.error(str(error), error_type=type(error).__name__)
    cause = error.__cause__
    while cause is not None:
        logger.error(f"Caused by: {cause}", error_type=type(cause).__name__)
        cause = cause.__cause__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podarchive",
        description="Podcast archiver - scrape, download, tag and republish podcasts",
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase log detail (repeatable)"
    )
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # scrape command
    sc_parser = subparsers.add_parser("scrape", help="Scrape a podcast from a feed or web page")
    sc_parser.add_argument("podcast_id", help="Local id to archive the podcast under")
    sc_parser.add_argument("url", help="RSS feed URL or page embedding a Simplecast player")
    sc_parser.add_argument(
        "--refresh", action="store_true", help="Re-fetch playlist pages instead of using the cache"
    )
    sc_parser.set_defaults(func=cmd_scrape)

    # download command
    dl_parser = subparsers.add_parser("download", help="Download and tag episodes")
    dl_parser.add_argument("podcast_id", help="Id of a scraped podcast")
    dl_parser.add_argument("--year", "-y", type=int, help="Only episodes published in this year")
    dl_parser.set_defaults(func=cmd_download)

    # feeds command
    fd_parser = subparsers.add_parser("feeds", help="Write RSS feeds for the archive")
    fd_parser.add_argument("podcast_id", help="Id of a scraped podcast")
    fd_parser.set_defaults(func=cmd_feeds)

    # cover command
    cv_parser = subparsers.add_parser("cover", help="Write cover and banner images")
    cv_parser.add_argument("podcast_id", help="Id of a scraped podcast")
    cv_parser.set_defaults(func=cmd_cover)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    log_level = verbosity_to_level(args.verbose) if args.verbose else get_settings().log_level
    setup_logging(log_level=log_level, json_format=args.json_logs)

    try:
        return args.func(args)
    except PodarchiveError as e:
        report_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

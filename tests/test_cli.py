"""Tests for the command-line interface."""

from unittest.mock import patch

import pytest

from podarchive import cli
from podarchive.config import get_settings
from podarchive.errors import FilesystemError, NotFoundError
from podarchive.pipeline import BatchFailure, BatchResult


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary directory and reset the settings cache."""
    monkeypatch.setenv("PODARCHIVE_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("PODARCHIVE_OUTPUT_DIR", str(tmp_path / "output"))
    monkeypatch.delenv("PODARCHIVE_SERVER_BASE", raising=False)
    monkeypatch.delenv("NETWORK_EXPECT_IP", raising=False)
    monkeypatch.delenv("NETWORK_EXPECT_COUNTRY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestParser:
    """Tests for argument parsing."""

    def test_scrape_arguments(self) -> None:
        args = cli.build_parser().parse_args(["-vv", "scrape", "abc", "https://example.com/feed", "--refresh"])

        assert args.command == "scrape"
        assert args.podcast_id == "abc"
        assert args.url == "https://example.com/feed"
        assert args.refresh is True
        assert args.verbose == 2

    def test_download_year(self) -> None:
        args = cli.build_parser().parse_args(["download", "abc", "--year", "2021"])

        assert args.year == 2021

    def test_no_command(self) -> None:
        assert cli.main([]) == 1


class TestCommands:
    """Tests for command dispatch and exit codes."""

    def test_scrape(self, tmp_path, capsys) -> None:
        with patch("podarchive.cli.ScrapeCommand") as scrape:
            scrape.return_value.execute.return_value = tmp_path / "cache" / "podcasts" / "abc.yml"

            code = cli.main(["scrape", "abc", "https://example.com/show"])

        assert code == 0
        scrape.return_value.execute.assert_called_once_with("abc", "https://example.com/show", refresh=False)
        assert "abc.yml" in capsys.readouterr().out

    def test_download_reports_partial_failure(self, capsys) -> None:
        result = BatchResult(
            succeeded=["a.mp3", "b.mp3"],
            failed=[BatchFailure(key="2020-01-01 0003 Broken", error=RuntimeError("boom"))],
        )
        with patch("podarchive.cli.DownloadCommand") as download:
            download.return_value.execute.return_value = result

            code = cli.main(["download", "abc", "--year", "2020"])

        assert code == 0
        download.return_value.execute.assert_called_once_with("abc", year=2020)
        out = capsys.readouterr().out
        assert "Downloaded 2" in out
        assert "Skipped 1 due to failures" in out

    def test_feeds_for_unknown_podcast(self) -> None:
        """Test that a fatal error exits non-zero."""
        assert cli.main(["feeds", "missing"]) == 1

    def test_cover_failure(self) -> None:
        with patch("podarchive.cli.CoverCommand") as cover:
            cover.return_value.execute.side_effect = NotFoundError("abc")

            assert cli.main(["cover", "abc"]) == 1

    def test_verbose_sets_debug(self) -> None:
        with patch("podarchive.cli.setup_logging") as setup, patch("podarchive.cli.FeedsCommand"):
            cli.main(["-v", "--json-logs", "feeds", "abc"])

        setup.assert_called_once_with(log_level="DEBUG", json_format=True)


def test_report_error_logs_cause_chain() -> None:
    try:
        try:
            raise OSError("disk full")
        except OSError as e:
            raise FilesystemError("out.mp3", "disk full") from e
    except FilesystemError as error:
        with patch("podarchive.cli.logger") as logger:
            cli.report_error(error)

    assert logger.error.call_count == 2
    assert "disk full" in logger.error.call_args_list[1].args[0]

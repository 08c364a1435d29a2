# ABOUTME: End-to-end tests for the `bookscout search` command.
# ABOUTME: Drives the CLI through Click's CliRunner with the search service swapped for fakes.

from datetime import date

import httpx
import pytest
from click.testing import CliRunner
from rich.console import Console

from bookscout.acquisition.config import API_KEY_ENV, TIMEOUT_ENV, SearchSettings
from bookscout.acquisition.service import BookSearchService
from bookscout.cli import cli
from bookscout.cli.commands import search_cmd
from tests.fixtures.fakes import FakeProvider, make_record


@pytest.fixture
def use_service(monkeypatch: pytest.MonkeyPatch):
    """Route the CLI to a fake-backed service and record the settings it was given."""
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.delenv(TIMEOUT_ENV, raising=False)
    monkeypatch.setattr(search_cmd, "console", Console(width=200))
    captured: list[SearchSettings] = []

    def _install(*providers: FakeProvider) -> list[SearchSettings]:
        def _create(settings: SearchSettings, client: httpx.AsyncClient) -> BookSearchService:
            captured.append(settings)
            return BookSearchService(
                list(providers), relevance_threshold=settings.relevance_threshold
            )

        monkeypatch.setattr(search_cmd, "_create_service", _create)
        return captured

    return _install


class TestSearchCommand:
    """E2e tests for `bookscout search`."""

    def test_shows_results_table(self, use_service) -> None:
        use_service(
            FakeProvider(
                "googlebooks",
                [
                    make_record(
                        isbn="9780441172719",
                        publisher="Ace",
                        published_date=date(1965, 1, 1),
                    )
                ],
            )
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune", "--author", "Frank Herbert"])

        assert result.exit_code == 0
        assert "Dune" in result.output
        assert "Frank Herbert" in result.output
        assert "1965" in result.output
        assert "1 result(s)" in result.output

    def test_no_results(self, use_service) -> None:
        use_service(FakeProvider("googlebooks"))
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune"])

        assert result.exit_code == 0
        assert "No matching books found" in result.output

    def test_requires_a_search_term(self, use_service) -> None:
        use_service()
        runner = CliRunner()
        result = runner.invoke(cli, ["search"])

        assert result.exit_code == 2
        assert "TITLE" in result.output

    def test_options_reach_settings(self, use_service) -> None:
        captured = use_service(FakeProvider("googlebooks"))
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["search", "Dune", "--api-key", "abc", "--threshold", "0.5", "--no-enrich"],
        )

        assert result.exit_code == 0
        settings = captured[0]
        assert settings.google_books_api_key == "abc"
        assert settings.relevance_threshold == 0.5
        assert settings.enrich_descriptions is False

    def test_api_key_from_environment(self, use_service, monkeypatch: pytest.MonkeyPatch) -> None:
        captured = use_service(FakeProvider("googlebooks"))
        monkeypatch.setenv(API_KEY_ENV, "from-env")
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune"])

        assert result.exit_code == 0
        assert captured[0].google_books_api_key == "from-env"

    def test_deadline_cancels_search(self, use_service) -> None:
        use_service(FakeProvider("stuck", [make_record()], delay=10))
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune", "--deadline", "0.05"])

        assert result.exit_code == 0
        assert "deadline reached" in result.output

    def test_bad_timeout_environment(self, use_service, monkeypatch: pytest.MonkeyPatch) -> None:
        use_service(FakeProvider("googlebooks"))
        monkeypatch.setenv(TIMEOUT_ENV, "soon")
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_limit_rejected(self, use_service) -> None:
        use_service()
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune", "--limit", "0"])

        assert result.exit_code == 2

    def test_description_column(self, use_service) -> None:
        use_service(FakeProvider("googlebooks", [make_record(description="Arrakis.")]))
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune", "--descriptions"])

        assert result.exit_code == 0
        assert "Arrakis." in result.output


class TestCliGroup:
    def test_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "bookscout" in result.output


class TestResultsTable:
    def test_missing_fields_show_unknown(self, use_service) -> None:
        use_service(FakeProvider("googlebooks", [make_record()]))
        runner = CliRunner()
        result = runner.invoke(cli, ["search", "Dune"])

        assert result.exit_code == 0
        assert result.output.count("unknown") == 3

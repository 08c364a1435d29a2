# ABOUTME: Unit tests for the OpenLibraryProvider with mocked HTTP.
# ABOUTME: Validates ISBN lookup, title/author search, fallback, descriptions, and error mapping.

from collections.abc import Callable

import httpx
import pytest

from bookscout.acquisition.dedupe import dedupe
from bookscout.acquisition.openlibrary import OpenLibraryProvider
from bookscout.acquisition.provider import (
    BookProvider,
    DescriptionSource,
    ProviderError,
    ProviderErrorKind,
)
from bookscout.acquisition.retry import RetryExecutor
from bookscout.acquisition.types import Provenance, SearchQuery
from tests.fixtures.fakes import RecordingSleep, Router
from tests.fixtures.openlibrary_responses import (
    BOOKS_API_RESPONSE,
    BOOKS_API_RESPONSE_EMPTY,
    SEARCH_RESPONSE,
    SEARCH_RESPONSE_EMPTY,
    SEARCH_RESPONSE_NO_ISBNS,
    WORKS_RESPONSE_DICT_DESCRIPTION,
    WORKS_RESPONSE_NO_DESCRIPTION,
)

MakeExecutor = Callable[[Router], RetryExecutor]


def _provider(make_executor: MakeExecutor, router: Router, **kwargs) -> OpenLibraryProvider:
    return OpenLibraryProvider(make_executor(router), **kwargs)


class TestProtocol:
    def test_satisfies_both_protocols(self, make_executor: MakeExecutor) -> None:
        provider = _provider(make_executor, Router())
        assert isinstance(provider, BookProvider)
        assert isinstance(provider, DescriptionSource)
        assert provider.name == "openlibrary"
        assert provider.provenance is Provenance.OPEN_LIBRARY


class TestSearchByIsbn:
    """Tests for ISBN lookups through the Books API."""

    async def test_isbn_lookup(self, make_executor: MakeExecutor) -> None:
        router = Router({"/api/books": httpx.Response(200, json=BOOKS_API_RESPONSE)})
        provider = _provider(make_executor, router)

        results = await provider.search(SearchQuery(isbn="978-0-15-600131-1"))

        assert len(results) == 1
        assert results[0].title == "The Name of the Rose"
        request = router.requests[0]
        assert request.url.params["bibkeys"] == "ISBN:9780156001311"
        assert request.url.params["jscmd"] == "data"
        assert router.count("search.json") == 0

    async def test_unknown_isbn_without_text_is_empty(self, make_executor: MakeExecutor) -> None:
        router = Router({"/api/books": httpx.Response(200, json=BOOKS_API_RESPONSE_EMPTY)})
        provider = _provider(make_executor, router)

        assert await provider.search(SearchQuery(isbn="9780000000000")) == []
        assert router.count("search.json") == 0

    async def test_unknown_isbn_falls_back_to_text(self, make_executor: MakeExecutor) -> None:
        """An unknown ISBN plus title text runs the title/author search."""
        router = Router(
            {
                "/api/books": httpx.Response(200, json=BOOKS_API_RESPONSE_EMPTY),
                "search.json": httpx.Response(200, json=SEARCH_RESPONSE),
            }
        )
        provider = _provider(make_executor, router)

        results = await provider.search(
            SearchQuery(title="The Name of the Rose", isbn="9780000000000")
        )

        assert len(results) == 2
        assert router.count("search.json") == 1

    async def test_fallback_does_not_copy_isbn_onto_docs(
        self, make_executor: MakeExecutor
    ) -> None:
        """Works found by the text fallback keep their own (missing) ISBNs."""
        router = Router(
            {
                "/api/books": httpx.Response(200, json=BOOKS_API_RESPONSE_EMPTY),
                "search.json": httpx.Response(200, json=SEARCH_RESPONSE_NO_ISBNS),
            }
        )
        provider = _provider(make_executor, router)

        results = await provider.search(
            SearchQuery(title="Dune", author="Frank Herbert", isbn="9999999999")
        )

        assert [r.isbn for r in results] == [None, None, None]
        assert len(dedupe(results)) == 3


class TestSearchByTitleAuthor:
    """Tests for search.json queries."""

    async def test_title_and_author_params(self, make_executor: MakeExecutor) -> None:
        router = Router({"search.json": httpx.Response(200, json=SEARCH_RESPONSE)})
        provider = _provider(make_executor, router)

        results = await provider.search(
            SearchQuery(title="The Name of the Rose", author="Umberto Eco", limit=5)
        )

        assert [r.provenance for r in results] == [Provenance.OPEN_LIBRARY] * 2
        params = router.requests[0].url.params
        assert params["title"] == "The Name of the Rose"
        assert params["author"] == "Umberto Eco"
        assert params["limit"] == "5"
        assert params["page"] == "1"

    async def test_empty_fields_left_out(self, make_executor: MakeExecutor) -> None:
        """An author-only query sends no title parameter."""
        router = Router({"search.json": httpx.Response(200, json=SEARCH_RESPONSE_EMPTY)})
        provider = _provider(make_executor, router)

        assert await provider.search(SearchQuery(author="Umberto Eco")) == []
        params = router.requests[0].url.params
        assert "title" not in params
        assert params["author"] == "Umberto Eco"

    async def test_no_text_is_empty_query(self, make_executor: MakeExecutor) -> None:
        router = Router()
        provider = _provider(make_executor, router)

        with pytest.raises(ProviderError) as exc_info:
            await provider.search_by_title_author(SearchQuery())

        assert exc_info.value.kind is ProviderErrorKind.EMPTY_QUERY
        assert router.requests == []


class TestErrorMapping:
    """Tests for executor failures surfacing as ProviderError."""

    async def test_rate_limited(
        self, make_executor: MakeExecutor, recording_sleep: RecordingSleep
    ) -> None:
        router = Router({"search.json": httpx.Response(429)})
        provider = _provider(make_executor, router, max_attempts=2)

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(SearchQuery(title="Dune"))

        assert exc_info.value.kind is ProviderErrorKind.RATE_LIMITED
        assert "openlibrary" in str(exc_info.value)
        assert router.count("search.json") == 2
        assert len(recording_sleep.delays) == 1

    async def test_not_found_is_bad_response(self, make_executor: MakeExecutor) -> None:
        router = Router({"search.json": httpx.Response(404)})
        provider = _provider(make_executor, router)

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(SearchQuery(title="Dune"))

        assert exc_info.value.kind is ProviderErrorKind.BAD_RESPONSE

    async def test_network_error(self, make_executor: MakeExecutor) -> None:
        router = Router({"search.json": httpx.ConnectError("refused")})
        provider = _provider(make_executor, router)

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(SearchQuery(title="Dune"))

        assert exc_info.value.kind is ProviderErrorKind.NETWORK
        assert router.count("search.json") == 2


class TestFetchDescription:
    """Tests for works/edition description lookups."""

    async def test_fetches_works_description(self, make_executor: MakeExecutor) -> None:
        router = Router(
            {"/works/OL456W.json": httpx.Response(200, json=WORKS_RESPONSE_DICT_DESCRIPTION)}
        )
        provider = _provider(make_executor, router)

        desc = await provider.fetch_description("/works/OL456W")

        assert desc == "A mystery set in a medieval Italian monastery."

    async def test_key_without_leading_slash(self, make_executor: MakeExecutor) -> None:
        router = Router(
            {"/works/OL456W.json": httpx.Response(200, json=WORKS_RESPONSE_DICT_DESCRIPTION)}
        )
        provider = _provider(make_executor, router)

        assert await provider.fetch_description("works/OL456W") is not None

    async def test_missing_description_is_none_and_not_retried(
        self, make_executor: MakeExecutor
    ) -> None:
        router = Router({"/works/": httpx.Response(200, json=WORKS_RESPONSE_NO_DESCRIPTION)})
        provider = _provider(make_executor, router)

        assert await provider.fetch_description("/works/OL456W") is None
        assert router.count("/works/") == 1

    async def test_description_uses_its_own_attempt_budget(
        self, make_executor: MakeExecutor
    ) -> None:
        router = Router({"/works/": httpx.Response(503)})
        provider = _provider(make_executor, router, max_attempts=1, description_max_attempts=3)

        with pytest.raises(ProviderError):
            await provider.fetch_description("/works/OL456W")

        assert router.count("/works/") == 3

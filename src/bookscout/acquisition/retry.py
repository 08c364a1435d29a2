# ABOUTME: Retry/backoff executor for a single provider request-and-parse operation.
# ABOUTME: Classifies each attempt as success, retryable, or terminal and backs off exponentially.

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 0.5
DEFAULT_BACKOFF_FACTOR = 1.5

# Upper bound on a server-requested Retry-After pause, in seconds.
_MAX_RETRY_AFTER = 30.0


class FetchErrorKind(Enum):
    """Why a fetch ultimately failed."""

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    REQUEST_FAILED = "request_failed"
    SERVER_ERROR = "server_error"
    EMPTY_RESPONSE = "empty_response"
    PARSING_FAILED = "parsing_failed"


class FetchError(Exception):
    """Raised when a fetch terminates without a usable result."""

    def __init__(
        self,
        kind: FetchErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.attempts = attempts


@dataclass
class RetryableOperation(Generic[T]):
    """Mutable state of one execute() call: attempt counter and current delay."""

    url: str
    parse: Callable[[Any], T | None]
    params: dict[str, str] | None
    max_attempts: int
    delay: float
    backoff_factor: float
    attempt: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


class _Outcome(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass
class _AttemptResult(Generic[T]):
    outcome: _Outcome
    value: T | None = None
    error: FetchError | None = None
    retry_after: float | None = None


class RetryExecutor:
    """Runs GET-and-parse operations with bounded retries and exponential backoff.

    Outcomes per attempt:
      - 2xx with a parseable payload: success.
      - 2xx where parse returns None: retried, PARSING_FAILED once exhausted.
      - 2xx with an empty body or undecodable JSON: terminal.
      - 429: retried, RATE_LIMITED once exhausted.
      - other 4xx: terminal REQUEST_FAILED, never retried.
      - 5xx: retried, SERVER_ERROR once exhausted.
      - transport errors and timeouts: retried, NETWORK once exhausted.

    The sleep function is injectable so tests can observe backoff without
    waiting on a real clock.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._sleep = sleep

    async def execute(
        self,
        url: str,
        parse: Callable[[Any], T | None],
        *,
        params: dict[str, str] | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    ) -> T:
        """Fetch url and parse its JSON body, retrying transient failures.

        Args:
            url: The URL to request.
            parse: Converts the decoded JSON payload into a result. Returning
                None means "no usable result" and triggers a retry. Raising
                ValueError, KeyError or TypeError is a terminal parse failure.
            params: Query parameters; httpx percent-encodes them.
            max_attempts: Total attempts including the first (minimum 1).
            initial_delay: Seconds to wait before the first retry.
            backoff_factor: Multiplier applied to the delay after each retry.

        Returns:
            The parsed result.

        Raises:
            FetchError: On a terminal failure or exhausted retries.
        """
        operation: RetryableOperation[T] = RetryableOperation(
            url=url,
            parse=parse,
            params=params,
            max_attempts=max(1, max_attempts),
            delay=initial_delay,
            backoff_factor=backoff_factor,
        )

        while True:
            operation.attempt += 1
            result = await self._attempt(operation)

            if result.outcome is _Outcome.SUCCESS:
                return result.value  # type: ignore[return-value]

            assert result.error is not None
            if result.outcome is _Outcome.TERMINAL or operation.exhausted:
                raise result.error

            pause = operation.delay
            if result.retry_after is not None:
                pause = max(pause, result.retry_after)
            logger.warning(
                "%s, retrying in %.2fs (attempt %d/%d)",
                result.error,
                pause,
                operation.attempt,
                operation.max_attempts,
            )
            await self._sleep(pause)
            operation.delay *= operation.backoff_factor

    async def _attempt(self, operation: RetryableOperation[T]) -> _AttemptResult[T]:
        """Perform one GET and classify the outcome."""
        attempt = operation.attempt
        try:
            response = await self._client.get(operation.url, params=operation.params)
        except httpx.HTTPError as exc:
            error = FetchError(
                FetchErrorKind.NETWORK,
                f"Request failed: {operation.url}: {exc!r}",
                attempts=attempt,
            )
            error.__cause__ = exc
            return _AttemptResult(_Outcome.RETRYABLE, error=error)

        status = response.status_code

        if 200 <= status < 300:
            return self._parse_response(operation, response)

        if status == 429:
            error = FetchError(
                FetchErrorKind.RATE_LIMITED,
                f"HTTP 429 (rate limited) from {operation.url}",
                status_code=status,
                attempts=attempt,
            )
            return _AttemptResult(
                _Outcome.RETRYABLE,
                error=error,
                retry_after=_retry_after_seconds(response),
            )

        if 500 <= status < 600:
            error = FetchError(
                FetchErrorKind.SERVER_ERROR,
                f"HTTP {status} from {operation.url}",
                status_code=status,
                attempts=attempt,
            )
            return _AttemptResult(_Outcome.RETRYABLE, error=error)

        # Remaining 4xx and any unexpected status are terminal.
        error = FetchError(
            FetchErrorKind.REQUEST_FAILED,
            f"HTTP {status} from {operation.url}",
            status_code=status,
            attempts=attempt,
        )
        return _AttemptResult(_Outcome.TERMINAL, error=error)

    @staticmethod
    def _parse_response(
        operation: RetryableOperation[T], response: httpx.Response
    ) -> _AttemptResult[T]:
        attempt = operation.attempt
        if not response.content.strip():
            return _AttemptResult(
                _Outcome.TERMINAL,
                error=FetchError(
                    FetchErrorKind.EMPTY_RESPONSE,
                    f"Empty response body from {operation.url}",
                    status_code=response.status_code,
                    attempts=attempt,
                ),
            )

        try:
            payload = response.json()
            value = operation.parse(payload)
        except (ValueError, KeyError, TypeError) as exc:
            error = FetchError(
                FetchErrorKind.PARSING_FAILED,
                f"Could not parse response from {operation.url}: {exc}",
                status_code=response.status_code,
                attempts=attempt,
            )
            error.__cause__ = exc
            return _AttemptResult(_Outcome.TERMINAL, error=error)

        if value is None:
            return _AttemptResult(
                _Outcome.RETRYABLE,
                error=FetchError(
                    FetchErrorKind.PARSING_FAILED,
                    f"No usable result in response from {operation.url}",
                    status_code=response.status_code,
                    attempts=attempt,
                ),
            )
        return _AttemptResult(_Outcome.SUCCESS, value=value)


def _retry_after_seconds(response: httpx.Response) -> float | None:
    """Read a numeric Retry-After header, capped at _MAX_RETRY_AFTER."""
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    if seconds < 0:
        return None
    return min(seconds, _MAX_RETRY_AFTER)

# ABOUTME: Shared pytest fixtures for Bookscout tests.
# ABOUTME: Provides a recording sleep and a factory for retry executors over routed mock transports.

from collections.abc import Callable

import pytest

from bookscout.acquisition.retry import RetryExecutor
from tests.fixtures.fakes import RecordingSleep, Router, client_for


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """A sleep function that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def make_executor(recording_sleep: RecordingSleep) -> Callable[[Router], RetryExecutor]:
    """Factory for a RetryExecutor whose HTTP traffic is served by a Router."""

    def _make(router: Router) -> RetryExecutor:
        return RetryExecutor(client_for(router), sleep=recording_sleep)

    return _make

"""Shared test fixtures for httpstash.

Provides an isolated cache root, a controllable clock for expiry tests,
and automatic reset of the global output manager and library logging
between tests.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from httpstash.cache import ExpiryStore, ObjectCache
from httpstash.output import reset_output


class FakeClock:
    """Callable returning a settable epoch time."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_output_between_tests():
    """Reset the global OutputManager and drop CLI log handlers after every test.

    Handlers installed by ``--verbose`` hold a console bound to the
    CliRunner's captured stream, which is closed once the test ends.
    """
    yield
    reset_output()
    logger = logging.getLogger("httpstash")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    root = tmp_path / "cache"
    root.mkdir()
    return root


@pytest.fixture
def expiry_store(tmp_path: Path):
    store = ExpiryStore(tmp_path / "expiry")
    yield store
    store.close()


@pytest.fixture
def cache(cache_root: Path, expiry_store: ExpiryStore, clock: FakeClock):
    """An ObjectCache with a 600 s TTL, a fake clock and an injected expiry store."""
    c = ObjectCache(
        cache_root,
        ttl_seconds=600,
        namespace="Test_",
        clear_on_init=False,
        expiry_store=expiry_store,
        clock=clock,
    )
    yield c
    c.close()

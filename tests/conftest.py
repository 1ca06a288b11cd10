"""Shared fixtures."""

import httpx
import pytest
import respx

from geo_analyzer.crawlers.signal_extractor import SignalExtractor


@pytest.fixture
def extractor() -> SignalExtractor:
    return SignalExtractor()


@pytest.fixture
def router():
    """respx router; every request in a test must hit a declared route."""
    with respx.mock(assert_all_called=False) as mock_router:
        yield mock_router


@pytest.fixture
async def client():
    async with httpx.AsyncClient(follow_redirects=True, timeout=5.0) as http_client:
        yield http_client

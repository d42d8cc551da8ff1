"""Integration test fixtures — a live MeiliSearch instance.

Expects MeiliSearch to be running locally, for example:
    docker run -p 7700:7700 -e MEILI_MASTER_KEY=test-master-key getmeili/meilisearch

Tests are skipped when the instance is not reachable.
"""

from __future__ import annotations

import os
import time

import httpx
import pytest

MEILISEARCH_HOST = os.environ.get("OPENSCOUT_TEST_MEILISEARCH_HOST", "http://localhost:7700")
MEILISEARCH_KEY = os.environ.get("OPENSCOUT_TEST_MEILISEARCH_KEY", "test-master-key")

def _wait_for_service(url: str, timeout: float = 10.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=5)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(1)
    return False


@pytest.fixture(scope="session")
def meilisearch_ready() -> str:
    """Ensure MeiliSearch is running."""
    if not _wait_for_service(f"{MEILISEARCH_HOST}/health"):
        pytest.skip(f"MeiliSearch not available at {MEILISEARCH_HOST}")
    return MEILISEARCH_HOST

@pytest.fixture(scope="session")
def meilisearch_key() -> str:
    return MEILISEARCH_KEY

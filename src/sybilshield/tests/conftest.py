"""
Pytest configuration and shared fixtures for Sybil Shield tests.
"""

import httpx
import pytest

from sybilshield.resolution.ledger import EvidenceLedger
from sybilshield.resolution.union_find import DisjointSet
from sybilshield.review.store import ReviewStore


@pytest.fixture
def forest_factory():
    """Build a fresh forest and ledger over the given actors."""

    def _make(actors=()):
        return DisjointSet(actors), EvidenceLedger()

    return _make


@pytest.fixture
def review_store(tmp_path) -> ReviewStore:
    """Review store backed by a temporary SQLite file."""
    return ReviewStore(tmp_path / "reviews.db")


@pytest.fixture
def scripted_client():
    """
    Real httpx.AsyncClient over a MockTransport.

    Serves the given responses in order and records every request made.
    """

    def _make(*responses):
        queue = list(responses)
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return queue.pop(0)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return client, requests

    return _make


"""Shared pytest fixtures for Search Detective tests."""

import json
import sys
from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

# Ensure project root is on sys.path so 'search_detective' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


@pytest.fixture(autouse=True)
def _reset_db_engine():
    """Autouse fixture: reset the global DB engine before and after every test.

    This prevents cross-test pollution when tests create their own in-memory
    databases.
    """
    from search_detective.database import reset_engine
    reset_engine()
    yield
    reset_engine()


@pytest.fixture()
def test_db():
    """Provide an in-memory SQLite database with all tables created.

    Yields a database URL string. The engine is automatically torn down
    after the test by the autouse ``_reset_db_engine`` fixture.
    """
    from search_detective.database import reset_engine, init_db
    reset_engine()
    db_url = "sqlite:///:memory:"
    init_db(database_url=db_url, echo=False)
    yield db_url


class FakeKeywordsEverywhere:
    """Stand-in for the Keywords Everywhere API behind ``httpx.MockTransport``.

    ``metrics`` maps keyword -> raw record fields (without ``keyword``).
    Keywords missing from ``metrics`` are left out of the response, the
    way the provider omits phrases it knows nothing about.
    """

    def __init__(self):
        self.metrics: dict[str, dict] = {}
        self.extra_records: list[dict] = []
        self.status_code = 200
        self.error_body: dict = {"message": "error"}
        self.credits_remaining = 10000
        self.requests: list[dict] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append({
            "url": str(request.url),
            "headers": dict(request.headers),
            "body": body,
        })
        if self.status_code != 200:
            return httpx.Response(self.status_code, json=self.error_body)
        data = [
            {"keyword": kw, **self.metrics[kw]}
            for kw in body["kw"]
            if kw in self.metrics
        ]
        data.extend(self.extra_records)
        return httpx.Response(
            200, json={"data": data, "credits_remaining": self.credits_remaining},
        )


@pytest.fixture()
def fake_provider():
    """A scriptable fake Keywords Everywhere API."""
    return FakeKeywordsEverywhere()


@pytest.fixture()
def sleeps():
    """Collects every pause the fetcher asks for."""
    return []


@pytest.fixture()
def make_client(fake_provider, sleeps):
    """Factory for a KeywordsEverywhereClient wired to ``fake_provider``."""
    from search_detective.integrations.keywords_everywhere import KeywordsEverywhereClient

    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def _make(**kwargs):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_provider.handler))
        return KeywordsEverywhereClient(http_client=http_client, sleep=record_sleep, **kwargs)

    return _make


@pytest.fixture()
def hvac_industry():
    """A minimal industry with two base keywords."""
    return SimpleNamespace(name="hvac", keywords=["AC repair", "furnace repair"])

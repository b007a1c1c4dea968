"""Pytest fixtures for the NexSearch backend tests."""

import pytest
from fastapi.testclient import TestClient

from nexsearch.core.config import ProviderCapabilities
from nexsearch.main import app
from nexsearch.api.routes_search import get_search_pipeline

from tests.fixtures.search_fixtures import ALL_KEYS, make_settings


@pytest.fixture
def settings():
    """Settings with every provider credential present."""
    return make_settings(**ALL_KEYS)


@pytest.fixture
def bare_settings():
    """Settings with no provider credentials at all."""
    return make_settings()


@pytest.fixture
def capabilities(settings):
    return ProviderCapabilities.from_settings(settings)


@pytest.fixture
def api_client():
    """
    TestClient factory bound to a given pipeline.

    The lifespan is not entered, so no real provider clients are created.
    """
    def _make(pipeline):
        app.dependency_overrides[get_search_pipeline] = lambda: pipeline
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()

"""Test fixtures for API tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from studybuilder.api.v1 import api_router
from studybuilder.api.v1.dependencies import (
    clear_caches,
    get_catalog,
    get_draft_store,
    get_study_client,
    get_template_registry,
    get_validation_engine,
)
from studybuilder.api.v1.error_handlers import register_error_handlers
from studybuilder.domain.study import SubmissionError


class StubStudyClient:
    """Study client that fails the way a configured error says."""

    def __init__(self, error: SubmissionError):
        self.error = error

    async def create_study(self, payload):
        raise self.error


@pytest.fixture
def app(catalog, registry, engine, draft_store, study_client) -> FastAPI:
    """Create test FastAPI application backed by the seed catalog."""
    clear_caches()

    test_app = FastAPI(title="Test API")
    register_error_handlers(test_app)
    test_app.include_router(api_router)

    test_app.dependency_overrides[get_catalog] = lambda: catalog
    test_app.dependency_overrides[get_template_registry] = lambda: registry
    test_app.dependency_overrides[get_validation_engine] = lambda: engine
    test_app.dependency_overrides[get_draft_store] = lambda: draft_store
    test_app.dependency_overrides[get_study_client] = lambda: study_client

    yield test_app

    test_app.dependency_overrides.clear()
    clear_caches()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def failing_client_factory(app: FastAPI):
    """Swap in a study client that raises the given SubmissionError."""
    def install(error: SubmissionError) -> None:
        app.dependency_overrides[get_study_client] = lambda: StubStudyClient(error)
    return install

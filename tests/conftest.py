import os

os.environ.setdefault("API_KEY", "test-api-key")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from app.main import app
from app.core.config import Settings, get_settings
from app.core.dependencies import get_ocr_service
from app.modules.ocr.service import OcrService

from tests.helpers import TEST_API_KEY


@pytest.fixture
def scratch_dir(tmp_path):
    directory = tmp_path / "scratch"
    directory.mkdir()
    return directory


@pytest.fixture
def test_settings(scratch_dir):
    return Settings(API_KEY=TEST_API_KEY, SCRATCH_DIR=str(scratch_dir))


@pytest.fixture
def mock_ocr_service():
    return AsyncMock(spec=OcrService)


@pytest.fixture
def client(test_settings, mock_ocr_service):
    """TestClient with settings pinned and the OCR service mocked."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_ocr_service] = lambda: mock_ocr_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_pipeline_client(test_settings):
    """Builds a TestClient wired to the real OCR service with overridden settings."""

    def _make(**overrides):
        settings = test_settings.model_copy(update=overrides)
        app.dependency_overrides[get_settings] = lambda: settings
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()

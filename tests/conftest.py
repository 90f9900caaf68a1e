"""
Global test configuration.
"""

import copy

import pytest

from bug_reader.images import normalize_image
from bug_reader.models import AnalysisResult
from tests.helpers import SAMPLE_PAYLOAD, make_png


@pytest.fixture(autouse=True)
def isolate_gemini_env(monkeypatch):
    """Tests only see the API key they set themselves."""
    for name in (
        "GEMINI_API_KEY",
        "API_KEY",
        "GEMINI_MODEL",
        "MAX_IMAGE_MB",
        "ALLOWED_ORIGINS",
        "PORT",
        "MAX_SESSIONS",
        "SESSION_TTL_MINUTES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def png_record(png_bytes):
    return normalize_image(png_bytes, "image/png", "ticket.png")


@pytest.fixture
def sample_payload() -> dict:
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_result(sample_payload) -> AnalysisResult:
    return AnalysisResult.model_validate(sample_payload)

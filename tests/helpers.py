"""Test doubles and sample data shared by the test modules."""

from __future__ import annotations

import asyncio
import io
import json
from types import SimpleNamespace

from PIL import Image

SAMPLE_PAYLOAD = {
    "analysisA": {
        "bugId": "LVM-31313",
        "vendorTask": "RING_2024_P0042",
        "parentID": "LOC-1234",
        "priority": "Critical",
        "xtmProject": "98765",
        "language": "de-DE",
        "stringIds": ["RingCentral.app.title", "RingCentral.app.subtitle"],
        "sourceString": "Contact Center",
        "currentTranslation": "Kontakt Zentrum",
        "finalTranslation": "Contact Center",
        "issueDescription": "Inconsistent terminology\nfor Contact Center.",
    },
    "analysisB": {
        "impactAssessment": 'The <span class="kw-problem">inconsistent</span> term affects <span class="kw-entity">Contact Center</span>.',
        "globalChecking": "No",
        "rootCauseInference": 'Missing <span class="kw-entity">termbase</span> entry.',
        "enhancedTranslationDiff": '<span class="diff-removed">Kontakt Zentrum</span> <span class="diff-added">Contact Center</span>',
        "uniqueProjectName": "app",
        "involvedProjects": "app",
        "actionableRecommendations": ["Update termbase"],
    },
}


def make_png(size=(8, 6), color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeModels:
    def __init__(self, text=None, exc=None):
        self.text = text
        self.exc = exc
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(text=self.text)


class FakeGenaiClient:
    """Stands in for google.genai.Client; only client.aio.models is used."""

    def __init__(self, text=None, exc=None):
        self.models_api = FakeModels(text=text, exc=exc)
        self.aio = SimpleNamespace(models=self.models_api)

    @classmethod
    def returning(cls, payload) -> "FakeGenaiClient":
        return cls(text=json.dumps(payload))

    @property
    def calls(self):
        return self.models_api.calls


class FakeAnalysisClient:
    """
    AnalysisClient double. When `gated` is set, analyze() blocks until
    release() so tests can observe the Analyzing phase.
    """

    def __init__(self, result=None, error=None, gated=False):
        self.result = result
        self.error = error
        self.gated = gated
        self.calls = 0
        self.started = asyncio.Event()
        self._release = asyncio.Event()

    def release(self):
        self._release.set()

    async def analyze(self, image):
        self.calls += 1
        self.started.set()
        if self.gated:
            await self._release.wait()
        if self.error is not None:
            raise self.error
        return self.result

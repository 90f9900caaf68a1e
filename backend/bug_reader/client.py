from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from .config import DEFAULT_MODEL, Settings
from .errors import AnalysisServiceError, InvalidResponseError
from .images import ImageRecord
from .models import AnalysisResult
from .prompts import ANALYSIS_PROMPT, ANALYSIS_SCHEMA

logger = logging.getLogger(__name__)

SCHEMA_MISMATCH_MESSAGE = (
    "Failed to get a valid analysis from the AI. The response did not match the expected format."
)


@dataclass
class ModelCallResult:
    raw_text: str
    latency_ms: int


# =========================
# Parsing / Validation
# =========================
def parse_analysis_json(raw_text: Optional[str]) -> AnalysisResult:
    """
    The model must return exactly one JSON object with analysisA and
    analysisB. Nothing is repaired: fenced or partial output is rejected.
    """
    text = (raw_text or "").strip()
    if not text:
        raise InvalidResponseError()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Model output is not valid JSON: %s. Output preview: %s", e, text[:500])
        raise InvalidResponseError() from e

    if not isinstance(data, dict):
        logger.warning("Model JSON is not an object. Output preview: %s", text[:500])
        raise InvalidResponseError(SCHEMA_MISMATCH_MESSAGE)

    missing = [key for key in ("analysisA", "analysisB") if key not in data]
    if missing:
        logger.warning("Missing key(s) in model JSON: %s", ", ".join(missing))
        raise InvalidResponseError(SCHEMA_MISMATCH_MESSAGE)

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.warning("Model JSON failed validation: %s", e)
        raise InvalidResponseError(SCHEMA_MISMATCH_MESSAGE) from e


# =========================
# Gemini client
# =========================
def get_client(settings: Settings) -> genai.Client:
    return genai.Client(api_key=settings.require_api_key())


def build_request(image: ImageRecord) -> Dict[str, Any]:
    """The keyword arguments for generate_content, minus the model name."""
    contents: List[Any] = [
        types.Part.from_bytes(data=image.raw_bytes(), mime_type=image.mime_type),
        ANALYSIS_PROMPT,
    ]
    config = types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=ANALYSIS_SCHEMA,
    )
    return {"contents": contents, "config": config}


class AnalysisClient:
    """Sends one screenshot to Gemini and returns the parsed analysis."""

    def __init__(self, genai_client: Any, model: str = DEFAULT_MODEL):
        self._client = genai_client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisClient":
        return cls(get_client(settings), model=settings.model)

    async def _generate(self, image: ImageRecord) -> ModelCallResult:
        t0 = time.time()
        resp = await self._client.aio.models.generate_content(model=self.model, **build_request(image))
        latency_ms = int((time.time() - t0) * 1000)
        return ModelCallResult(raw_text=(resp.text or "").strip(), latency_ms=latency_ms)

    async def analyze(self, image: ImageRecord) -> AnalysisResult:
        try:
            call = await self._generate(image)
        except Exception as e:
            logger.exception("Error calling Gemini API (model=%s)", self.model)
            raise AnalysisServiceError() from e

        logger.info("Gemini responded in %d ms (%d chars)", call.latency_ms, len(call.raw_text))
        return parse_analysis_json(call.raw_text)

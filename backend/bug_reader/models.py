from __future__ import annotations

import json
from typing import Annotated, Any, Dict, Literal, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# Sentinel for a field that is missing or unreadable in the screenshot.
BLANK = "blank"


def _blank_if_missing(value: Any) -> Any:
    if value is None:
        return BLANK
    if isinstance(value, str) and not value.strip():
        return BLANK
    return value


def _tuple_or_empty(value: Any) -> Any:
    return () if value is None else value


def _yes_no(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().rstrip(".").capitalize()
    return value


BlankStr = Annotated[str, BeforeValidator(_blank_if_missing)]
# Dumps as a JSON array.
StrList = Annotated[Tuple[str, ...], BeforeValidator(_tuple_or_empty)]


class AnalysisA(BaseModel):
    """Fields extracted verbatim from the ticket screenshot."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    bugId: BlankStr = BLANK
    vendorTask: BlankStr = BLANK
    parentID: BlankStr = BLANK
    priority: BlankStr = BLANK
    xtmProject: BlankStr = BLANK
    language: BlankStr = BLANK
    stringIds: StrList = ()
    sourceString: BlankStr = BLANK
    currentTranslation: BlankStr = BLANK
    finalTranslation: BlankStr = BLANK
    issueDescription: BlankStr = BLANK


class AnalysisB(BaseModel):
    """Expert diagnosis. The HTML fields carry kw-*/diff-* span markup."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    impactAssessment: BlankStr = BLANK
    globalChecking: Annotated[Literal["Yes", "No"], BeforeValidator(_yes_no)]
    rootCauseInference: BlankStr = BLANK
    enhancedTranslationDiff: BlankStr = BLANK
    uniqueProjectName: BlankStr = BLANK
    involvedProjects: BlankStr = BLANK
    actionableRecommendations: StrList = ()


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    analysisA: AnalysisA
    analysisB: AnalysisB

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Canonical JSON; the field names are a stable contract for page scrapers."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

"""Screenshot-to-analysis tool for JIRA localization bug tickets."""

from .client import AnalysisClient
from .images import ImageRecord, normalize_image
from .models import BLANK, AnalysisA, AnalysisB, AnalysisResult
from .session import AnalysisSession, Phase

__version__ = "0.1.0"

__all__ = [
    "AnalysisA",
    "AnalysisB",
    "AnalysisClient",
    "AnalysisResult",
    "AnalysisSession",
    "BLANK",
    "ImageRecord",
    "Phase",
    "normalize_image",
]

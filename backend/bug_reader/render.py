from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from markupsafe import Markup, escape

from .models import AnalysisResult
from .prompts import DIFF_CLASSES, KEYWORD_CLASSES
from .session import AnalysisSession

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

ALLOWED_SPAN_CLASSES = KEYWORD_CLASSES + DIFF_CLASSES

# Matched against already-escaped text: markupsafe turns " into &#34; and ' into &#39;.
_QUOTE = r"(?:&#34;|&#39;)"
_TAG_RE = re.compile(
    r"&lt;span\s+class=" + _QUOTE + r"(?P<cls>" + "|".join(map(re.escape, ALLOWED_SPAN_CLASSES)) + r")" + _QUOTE + r"\s*&gt;"
    r"|(?P<close>&lt;/span\s*&gt;)"
    r"|(?P<br>&lt;br\s*/?&gt;)",
    re.IGNORECASE,
)

_JSON_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "'": "\\u0027",
}


def sanitize_rich_text(value: Optional[str]) -> Markup:
    """
    Escape model HTML except for <span class="kw-*|diff-*">, </span> and <br>.
    Unmatched closing tags stay escaped; unclosed spans are closed at the end.
    """
    escaped = str(escape(value or ""))
    depth = 0

    def restore(m: "re.Match[str]") -> str:
        nonlocal depth
        if m.group("cls"):
            depth += 1
            return f'<span class="{m.group("cls").lower()}">'
        if m.group("close"):
            if depth == 0:
                return m.group(0)
            depth -= 1
            return "</span>"
        return "<br>"

    out = _TAG_RE.sub(restore, escaped)
    return Markup(out + "</span>" * depth)


def script_json(result: AnalysisResult) -> Markup:
    """to_json() made safe to embed inside a <script> element."""
    text = result.to_json()
    for char, repl in _JSON_SCRIPT_ESCAPES.items():
        text = text.replace(char, repl)
    return Markup(text)


def build_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["rich"] = sanitize_rich_text
    return templates


def page_context(request: Request, session: AnalysisSession) -> Dict[str, Any]:
    result = session.result
    return {
        "request": request,
        "phase": session.phase.value,
        "image": session.image,
        "result": result,
        "a": result.analysisA if result else None,
        "b": result.analysisB if result else None,
        "result_json": script_json(result) if result else None,
        "error": session.error,
        "analyzing": session.is_analyzing,
    }

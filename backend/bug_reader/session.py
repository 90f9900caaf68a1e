from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import AnalysisError, InvalidTransitionError
from .images import ImageRecord
from .models import AnalysisResult

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    IMAGE_LOADED = "image_loaded"
    ANALYZING = "analyzing"
    RESOLVED = "resolved"
    FAILED = "failed"


class AnalysisSession:
    """
    One browser session's controller.

    Idle -> ImageLoaded -> Analyzing -> Resolved | Failed, with reset back to
    Idle from anywhere. Each analysis request and each image load is tagged
    with a generation number; an outcome whose number is no longer current
    (the user reset, or picked another image) is dropped.
    """

    def __init__(self, client: Any):
        self._client = client
        self.phase = Phase.IDLE
        self.image: Optional[ImageRecord] = None
        self.result: Optional[AnalysisResult] = None
        self.error: Optional[str] = None
        self._generation = 0
        self._load_generation = 0

    @property
    def is_analyzing(self) -> bool:
        return self.phase is Phase.ANALYZING

    # ---- image ----
    def load_image(self, record: ImageRecord) -> None:
        if self.is_analyzing:
            raise InvalidTransitionError("Cannot load a new image while an analysis is running.")
        self.image = record
        self.result = None
        self.error = None
        self.phase = Phase.IMAGE_LOADED

    def begin_image_load(self) -> int:
        self._load_generation += 1
        return self._load_generation

    def complete_image_load(self, token: int, record: ImageRecord) -> bool:
        if token != self._load_generation:
            logger.info("discarding stale image load %d (current %d)", token, self._load_generation)
            return False
        self.load_image(record)
        return True

    # ---- analysis ----
    async def analyze(self) -> bool:
        """
        Returns False without calling the service when there is nothing to
        analyze or a request is already in flight.
        """
        if self.image is None or self.phase not in (Phase.IMAGE_LOADED, Phase.FAILED):
            return False

        self._generation += 1
        generation = self._generation
        image = self.image
        self.phase = Phase.ANALYZING
        self.result = None
        self.error = None

        try:
            result = await self._client.analyze(image)
        except AnalysisError as e:
            self._settle(generation, error=e.message)
        except Exception:
            logger.exception("unexpected error during analysis")
            self._settle(generation, error="An unknown error occurred during analysis.")
        else:
            self._settle(generation, result=result)
        return True

    def _settle(
        self,
        generation: int,
        result: Optional[AnalysisResult] = None,
        error: Optional[str] = None,
    ) -> None:
        if generation != self._generation or not self.is_analyzing:
            logger.info("discarding stale analysis %d (current %d)", generation, self._generation)
            return
        if error is not None:
            self.error = error
            self.phase = Phase.FAILED
        else:
            self.result = result
            self.phase = Phase.RESOLVED

    # ---- user actions ----
    def dismiss_error(self) -> None:
        if self.phase is not Phase.FAILED:
            return
        self.error = None
        self.phase = Phase.IMAGE_LOADED if self.image is not None else Phase.IDLE

    def reset(self) -> None:
        self._generation += 1
        self._load_generation += 1
        self.image = None
        self.result = None
        self.error = None
        self.phase = Phase.IDLE

    def snapshot(self) -> Dict[str, Any]:
        image = None
        if self.image is not None:
            image = {
                "filename": self.image.filename,
                "mimeType": self.image.mime_type,
                "size": self.image.size,
                "url": self.image.display_ref,
            }
        return {
            "phase": self.phase.value,
            "image": image,
            "result": self.result.to_dict() if self.result is not None else None,
            "error": self.error,
        }


class SessionStore:
    """
    In-memory sessions keyed by the session cookie. Sessions idle longer
    than `idle_ttl` seconds are discarded, and past `max_sessions` the least
    recently used one is discarded, so abandoned cookies do not pin images.
    """

    def __init__(
        self,
        client: Any,
        max_sessions: int = 200,
        idle_ttl: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self.max_sessions = max_sessions
        self.idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: "OrderedDict[str, AnalysisSession]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[AnalysisSession]:
        if not session_id or session_id not in self._sessions:
            return None
        if self._clock() - self._last_seen[session_id] > self.idle_ttl:
            self.discard(session_id)
            return None
        self._touch(session_id)
        return self._sessions[session_id]

    def create(self) -> Tuple[str, AnalysisSession]:
        self.sweep()
        while self._sessions and len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("evicting least recently used session %s", oldest[:8])
            self.discard(oldest)

        session_id = uuid.uuid4().hex
        session = AnalysisSession(self._client)
        self._sessions[session_id] = session
        self._touch(session_id)
        return session_id, session

    def sweep(self) -> int:
        """Discard every session idle past the TTL. Returns how many went."""
        now = self._clock()
        expired = [sid for sid, seen in self._last_seen.items() if now - seen > self.idle_ttl]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.info("discarded %d idle session(s)", len(expired))
        return len(expired)

    def discard(self, session_id: str) -> None:
        self._last_seen.pop(session_id, None)
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.reset()

    def _touch(self, session_id: str) -> None:
        self._last_seen[session_id] = self._clock()
        self._sessions.move_to_end(session_id)

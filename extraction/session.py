import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from . import config
from .core import analyze
from .exceptions import AnalysisError
from .models import ScrapedData

logger = logging.getLogger(__name__)

# cosmetic phase notices; they are not tied to what the model is actually doing
PROGRESS_MESSAGES = (
    "Fetching page content...",
    "Analyzing page structure...",
    "Identifying core entity...",
    "Extracting facts...",
    "Verifying with grounding search...",
)

UNKNOWN_ERROR = "An unknown error occurred during analysis."

Analyzer = Callable[..., Awaitable[ScrapedData]]


class SessionStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


class AnalysisSession:
    """
    Lifecycle of one caller's analyses: idle -> analyzing -> complete | error.

    A new analyze() call always restarts the session. Results of a superseded
    call are dropped when they arrive; each call is tagged with a generation
    number and only the latest generation may write state.
    """

    def __init__(
        self,
        analyzer: Optional[Analyzer] = None,
        progress_interval: Optional[float] = None,
        on_log: Optional[Callable[[str], None]] = None,
    ):
        self._analyzer = analyzer or analyze
        self._interval = config.PROGRESS_INTERVAL if progress_interval is None else progress_interval
        self._on_log = on_log

        self.status = SessionStatus.IDLE
        self.data: Optional[ScrapedData] = None
        self.error: Optional[str] = None
        self.logs: list[str] = []

        self._generation = 0
        self._ticker: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    async def analyze(self, url: str, image_url: Optional[str] = None) -> bool:
        """
        Run one analysis. Returns True if its outcome was applied to the
        session, False if a newer call superseded it before it finished.
        """
        self._generation += 1
        generation = self._generation

        previous = self._cancel_ticker()
        self.status = SessionStatus.ANALYZING
        self.data = None
        self.error = None
        self.logs = []
        self._ticker = asyncio.create_task(self._emit_progress(generation))
        if previous is not None:
            await asyncio.wait([previous])

        try:
            result = await self._analyzer(url, image_url)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._cancel_ticker()
                self._apply(SessionStatus.ERROR, None, "Analysis was cancelled.")
            raise
        except AnalysisError as exc:
            return await self._finish(generation, None, exc.message)
        except Exception:
            # internal detail stays in the log, the caller only sees the generic message
            logger.exception("Unexpected failure analyzing %s", url)
            return await self._finish(generation, None, UNKNOWN_ERROR)

        return await self._finish(generation, result, None)

    def snapshot(self) -> dict:
        return {
            "status": self.status.value,
            "data": self.data.to_dict() if self.data is not None else None,
            "error": self.error,
            "logs": list(self.logs),
        }

    async def _finish(self, generation: int, data: Optional[ScrapedData], error: Optional[str]) -> bool:
        if generation != self._generation:
            logger.info("Discarding stale analysis result (generation %d, current %d)", generation, self._generation)
            return False

        ticker = self._cancel_ticker()
        if error is None:
            self._apply(SessionStatus.COMPLETE, data, None)
        else:
            self._apply(SessionStatus.ERROR, None, error)

        if ticker is not None:
            await asyncio.wait([ticker])
        return True

    def _apply(self, status: SessionStatus, data: Optional[ScrapedData], error: Optional[str]) -> None:
        self.status = status
        self.data = data
        self.error = error
        self.logs = []

    def _cancel_ticker(self) -> Optional[asyncio.Task]:
        ticker, self._ticker = self._ticker, None
        if ticker is not None and not ticker.done():
            ticker.cancel()
        return ticker

    async def _emit_progress(self, generation: int) -> None:
        for i, message in enumerate(PROGRESS_MESSAGES):
            if i:
                await asyncio.sleep(self._interval)
            if generation != self._generation or self.status is not SessionStatus.ANALYZING:
                return
            self.logs.append(message)
            if self._on_log is not None:
                self._on_log(message)

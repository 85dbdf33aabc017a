from __future__ import annotations

import asyncio
import enum
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from posturai.logic.accumulator import SessionAccumulator
from posturai.logic.keypoints import extract
from posturai.logic.rules import RuleEngine
from posturai.utils.structures import FrameResult, Mode, SessionStats, SessionSummary, Violation

DEFAULT_ASSUMED_FPS = 10.0

ViolationListener = Callable[[Violation], None]


class SessionState(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class SessionStateError(RuntimeError):
    pass


class SessionAlreadyRunningError(RuntimeError):
    pass


class SessionNotRunningError(RuntimeError):
    pass


class PostureSession:
    """One monitoring session: feeds frames through extraction, rules and accumulation.

    Lifecycle is ``idle -> active <-> paused -> ended``. The mode is fixed at
    construction; a different mode needs a new session.
    """

    def __init__(
        self,
        mode: Mode | str,
        assumed_fps: float = DEFAULT_ASSUMED_FPS,
        session_id: Optional[str] = None,
    ) -> None:
        self._mode = Mode(mode)
        self.session_id = session_id or str(uuid.uuid4())
        self.assumed_fps = max(float(assumed_fps), 1e-6)
        self.state = SessionState.IDLE
        self._engine = RuleEngine()
        self._accumulator = SessionAccumulator()
        self._listeners: List[ViolationListener] = []

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def stats(self) -> SessionStats:
        return self._accumulator.stats

    def add_listener(self, listener: ViolationListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        self._transition({SessionState.IDLE}, SessionState.ACTIVE)
        logger.info("Session {} started mode={}", self.session_id, self.mode.value)

    def pause(self) -> None:
        self._transition({SessionState.ACTIVE}, SessionState.PAUSED)
        logger.info("Session {} paused", self.session_id)

    def resume(self) -> None:
        self._transition({SessionState.PAUSED}, SessionState.ACTIVE)
        logger.info("Session {} resumed", self.session_id)

    def end(self) -> SessionSummary:
        self._transition({SessionState.ACTIVE, SessionState.PAUSED}, SessionState.ENDED)
        stats = self._accumulator.stats
        summary = SessionSummary(
            session_id=self.session_id,
            mode=self.mode,
            stats=stats,
            duration_seconds=int(stats.total_frames // self.assumed_fps),
        )
        self._accumulator.reset()
        logger.info(
            "Session {} ended | frames={} violating={} accuracy={}%",
            self.session_id,
            stats.total_frames,
            stats.violating_frames,
            stats.accuracy_percent,
        )
        return summary

    def process(self, landmarks: Optional[Sequence[Any]]) -> Optional[FrameResult]:
        """Evaluate one frame; ``None`` means the frame was dropped and not counted."""
        if self.state in (SessionState.IDLE, SessionState.ENDED):
            raise SessionStateError(f"Cannot process frames while session is {self.state.value}")
        if self.state is SessionState.PAUSED:
            return None
        keypoints = extract(landmarks)
        if keypoints is None:
            logger.debug("Session {}: frame skipped, pose landmarks unavailable", self.session_id)
            return None
        violations = self._engine.evaluate(self.mode, keypoints)
        stats = self._accumulator.record(bool(violations))
        for violation in violations:
            self._emit(violation)
        return FrameResult(violations=violations, stats=stats)

    def _emit(self, violation: Violation) -> None:
        for listener in self._listeners:
            try:
                listener(violation)
            except Exception as exc:
                logger.exception("Violation listener failed: {}", exc)

    def _transition(self, allowed: set, target: SessionState) -> None:
        if self.state not in allowed:
            raise SessionStateError(f"Cannot move session from {self.state.value} to {target.value}")
        self.state = target


class SessionManager:
    """Async-aware holder of the single live session served by the API."""

    def __init__(self, assumed_fps: float = DEFAULT_ASSUMED_FPS) -> None:
        self.assumed_fps = assumed_fps
        self._async_lock = asyncio.Lock()
        self._session: Optional[PostureSession] = None
        self._history: List[SessionSummary] = []

    @property
    def session(self) -> Optional[PostureSession]:
        return self._session

    async def start(self, mode: Mode | str) -> PostureSession:
        async with self._async_lock:
            if self._session is not None:
                raise SessionAlreadyRunningError("A session is already running")
            session = PostureSession(mode, assumed_fps=self.assumed_fps)
            session.start()
            self._session = session
            return session

    async def pause(self) -> PostureSession:
        async with self._async_lock:
            session = self._require_session()
            session.pause()
            return session

    async def resume(self) -> PostureSession:
        async with self._async_lock:
            session = self._require_session()
            session.resume()
            return session

    async def stop(self) -> SessionSummary:
        async with self._async_lock:
            session = self._require_session()
            summary = session.end()
            self._history.append(summary)
            self._session = None
            return summary

    async def process(self, landmarks: Optional[Sequence[Any]]) -> Optional[FrameResult]:
        async with self._async_lock:
            return self._require_session().process(landmarks)

    def get_status(self) -> Dict[str, object]:
        session = self._session
        if session is None:
            return {"running": False, "state": SessionState.IDLE.value}
        return {
            "running": session.state is SessionState.ACTIVE,
            "state": session.state.value,
            "session_id": session.session_id,
            "mode": session.mode.value,
            "stats": session.stats.to_dict(),
        }

    def history(self, limit: int = 20) -> List[SessionSummary]:
        return list(reversed(self._history))[:limit]

    def _require_session(self) -> PostureSession:
        if self._session is None:
            raise SessionNotRunningError("No active session")
        return self._session


session_manager = SessionManager()

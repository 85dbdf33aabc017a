from __future__ import annotations

import json
import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import ValidationError

from posturai.logic.keypoints import extract
from posturai.logic.rules import RuleEngine, rules_for
from posturai.server.logging_utils import configure_logging
from posturai.server.models.schemas import (
    EvaluateRequest,
    EvaluateResponse,
    FrameIn,
    FrameResultOut,
    RuleCatalogResponse,
    RuleOut,
    SessionListResponse,
    SessionStartResponse,
    SessionStateResponse,
    SessionStatusResponse,
    SessionStopResponse,
    SessionSummaryOut,
    StartSessionRequest,
    ViolationOut,
)
from posturai.server.session import (
    SessionAlreadyRunningError,
    SessionNotRunningError,
    SessionStateError,
    session_manager,
)
from posturai.utils.config import DEFAULT_RUNTIME_CONFIG, load_runtime_config
from posturai.utils.structures import FrameResult, Mode, SessionSummary, Violation

RUNTIME_CONFIG_ENV = "POSTURAI_RUNTIME_CONFIG"

runtime_cfg = load_runtime_config(os.getenv(RUNTIME_CONFIG_ENV, str(DEFAULT_RUNTIME_CONFIG)))
app = FastAPI(title="PosturAI Rule Engine", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=runtime_cfg.server.get("cors_origins", ["*"]),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(runtime_cfg.log_level)
    session_manager.assumed_fps = runtime_cfg.assumed_fps


def _violation_out(violation: Violation) -> ViolationOut:
    return ViolationOut(**violation.to_dict())


def _summary_out(summary: SessionSummary) -> SessionSummaryOut:
    return SessionSummaryOut(
        session_id=summary.session_id,
        mode=summary.mode,
        stats=summary.stats.to_dict(),
        duration_seconds=summary.duration_seconds,
    )


def _frame_out(result: Optional[FrameResult]) -> FrameResultOut:
    if result is None:
        return FrameResultOut(processed=False)
    return FrameResultOut(
        processed=True,
        violations=[_violation_out(v) for v in result.violations],
        stats=result.stats.to_dict(),
    )


@app.get("/api/rules/{mode}", response_model=RuleCatalogResponse)
async def rule_catalog(mode: Mode) -> RuleCatalogResponse:
    rules: List[RuleOut] = [
        RuleOut(name=rule.name, title=rule.title, description=rule.description, required=list(rule.required))
        for rule in rules_for(mode)
    ]
    return RuleCatalogResponse(mode=mode, rules=rules)


@app.post("/api/evaluate", response_model=EvaluateResponse)
async def evaluate_frame(request: EvaluateRequest) -> EvaluateResponse:
    keypoints = extract(request.landmarks)
    if keypoints is None:
        return EvaluateResponse(available=False)
    violations = RuleEngine().evaluate(request.mode, keypoints)
    return EvaluateResponse(available=True, violations=[_violation_out(v) for v in violations])


@app.post("/api/session/start", response_model=SessionStartResponse)
async def start_session(request: StartSessionRequest) -> SessionStartResponse:
    try:
        session = await session_manager.start(request.mode)
    except SessionAlreadyRunningError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStartResponse(status=session.state.value, session_id=session.session_id, mode=session.mode)


@app.post("/api/session/pause", response_model=SessionStateResponse)
async def pause_session() -> SessionStateResponse:
    try:
        session = await session_manager.pause()
    except (SessionNotRunningError, SessionStateError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStateResponse(status=session.state.value, session_id=session.session_id)


@app.post("/api/session/resume", response_model=SessionStateResponse)
async def resume_session() -> SessionStateResponse:
    try:
        session = await session_manager.resume()
    except (SessionNotRunningError, SessionStateError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStateResponse(status=session.state.value, session_id=session.session_id)


@app.post("/api/session/stop", response_model=SessionStopResponse)
async def stop_session() -> SessionStopResponse:
    try:
        summary = await session_manager.stop()
    except SessionNotRunningError:
        return SessionStopResponse(status="idle")
    return SessionStopResponse(status="stopped", summary=_summary_out(summary))


@app.get("/api/session/status", response_model=SessionStatusResponse)
async def session_status() -> SessionStatusResponse:
    return SessionStatusResponse(**session_manager.get_status())


@app.get("/api/sessions/history", response_model=SessionListResponse)
async def session_history(limit: int = 20) -> SessionListResponse:
    return SessionListResponse(sessions=[_summary_out(s) for s in session_manager.history(limit)])


@app.websocket("/ws/stream")
async def stream(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError as exc:
                await websocket.send_json({"processed": False, "error": f"invalid json: {exc.msg}"})
                continue
            try:
                frame = FrameIn.model_validate(message)
            except ValidationError as exc:
                await websocket.send_json({"processed": False, "error": f"invalid frame: {exc.error_count()} errors"})
                continue
            try:
                result = await session_manager.process(frame.landmarks)
            except (SessionNotRunningError, SessionStateError) as exc:
                await websocket.send_json({"processed": False, "error": str(exc)})
                continue
            await websocket.send_json(_frame_out(result).model_dump(mode="json"))
    except WebSocketDisconnect:  # pragma: no cover - client initiated
        logger.debug("Stream client disconnected")

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from posturai.utils.structures import Mode


class LandmarkIn(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: float = Field(default=0.0, ge=0.0, le=1.0)


# A landmark may arrive as an object or as a bare [x, y, z, visibility] list.
LandmarkPayload = Union[LandmarkIn, List[float]]


class FrameIn(BaseModel):
    landmarks: List[LandmarkPayload]


class EvaluateRequest(FrameIn):
    mode: Mode


class StartSessionRequest(BaseModel):
    mode: Mode = Mode.DESK


class ViolationOut(BaseModel):
    type: str
    severity: str
    message: str
    rule: str
    angle: Optional[float] = None
    threshold: Optional[float] = None


class SessionStatsOut(BaseModel):
    total_frames: int
    violating_frames: int
    accuracy_percent: int = Field(ge=0, le=100)


class FrameResultOut(BaseModel):
    processed: bool
    violations: List[ViolationOut] = Field(default_factory=list)
    stats: Optional[SessionStatsOut] = None


class EvaluateResponse(BaseModel):
    available: bool
    violations: List[ViolationOut] = Field(default_factory=list)


class RuleOut(BaseModel):
    name: str
    title: str
    description: str
    required: List[str]


class RuleCatalogResponse(BaseModel):
    mode: Mode
    rules: List[RuleOut]


class SessionStartResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    session_id: str
    mode: Mode


class SessionStateResponse(BaseModel):
    status: str
    session_id: Optional[str] = None


class SessionStatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    running: bool
    state: str
    session_id: Optional[str] = None
    mode: Optional[Mode] = None
    stats: Optional[SessionStatsOut] = None


class SessionSummaryOut(BaseModel):
    session_id: str
    mode: Mode
    stats: SessionStatsOut
    duration_seconds: int


class SessionStopResponse(BaseModel):
    status: str
    summary: Optional[SessionSummaryOut] = None


class SessionListResponse(BaseModel):
    sessions: List[SessionSummaryOut]

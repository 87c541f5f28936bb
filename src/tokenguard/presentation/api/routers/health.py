"""Liveness and readiness probes."""
from __future__ import annotations

import time

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

router = APIRouter(tags=["health"])


class LivenessResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = Field(description="ok | unavailable")
    uptime_seconds: float
    providers: list[str] = Field(default_factory=list)
    public_key_id: str = ""
    schema_version: str = ""


@router.get(
    "/healthz",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
)
async def liveness() -> LivenessResponse:
    return LivenessResponse()


@router.get(
    "/readyz",
    response_model=ReadinessResponse,
    summary="Readiness probe",
)
async def readiness(request: Request) -> ReadinessResponse:
    """Ready once the lifespan has built the pipeline and attestor."""
    state = request.app.state
    pipeline = getattr(state, "pipeline", None)
    started_at: float = getattr(state, "started_at", time.monotonic())
    if pipeline is None:
        return ReadinessResponse(status="unavailable", uptime_seconds=0.0)
    return ReadinessResponse(
        status="ok",
        uptime_seconds=round(time.monotonic() - started_at, 3),
        providers=[a.provider_id for a in pipeline.adapters],
        public_key_id=state.attestor.key_id,
        schema_version=state.settings.schema_version,
    )

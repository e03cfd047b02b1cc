# AI router: placeholder until the LLM routes land.
# Created: 2026-10-19

from __future__ import annotations

from fastapi import APIRouter

from cortex.server.schemas import AiStatus

router = APIRouter(prefix="/ai", tags=["AI"])


@router.get("/status", response_model=AiStatus)
async def get_ai_status():
    return AiStatus(available=False, message="AI routes not yet implemented")

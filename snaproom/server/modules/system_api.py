from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["System"])


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok", "message": "SnapRoom signaling server running"}

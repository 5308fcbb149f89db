from __future__ import annotations

from fastapi import APIRouter

from app.backend.response import now_iso


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def get_health():
	return {
		"success": True,
		"status": "ok",
		"timestamp": now_iso(),
	}

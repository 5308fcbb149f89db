from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi.responses import JSONResponse

from app.backend.errors import RateLimited, RecallServiceError


def now_iso() -> str:
	return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def json_response(
	payload: Mapping[str, Any],
	*,
	status_code: int = 200,
	headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
	return JSONResponse(status_code=status_code, content=dict(payload), headers=headers)


def error_payload(message: str, **extra: Any) -> Dict[str, Any]:
	payload: Dict[str, Any] = {
		"success": False,
		"error": message,
	}
	payload.update(extra)
	return payload


def error_parts(exc: RecallServiceError) -> Tuple[Dict[str, Any], Dict[str, str]]:
	if isinstance(exc, RateLimited):
		seconds = exc.retry_after_seconds
		return error_payload(exc.message, retryAfterSeconds=seconds), {"Retry-After": str(seconds)}
	return error_payload(exc.message), {}


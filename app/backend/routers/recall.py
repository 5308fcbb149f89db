from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.backend.response import json_response
from app.backend.services import recall_service
from app.backend.services.request_gate import GateRequest, decode_body


router = APIRouter(tags=["recall"])

_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


async def _handle(request: Request) -> JSONResponse:
	raw_text, parsed, valid = decode_body(await request.body())
	gate_request = GateRequest(
		method=request.method,
		headers=dict(request.headers.items()),
		query=dict(request.query_params.items()),
		raw_body=raw_text,
		body=parsed,
		body_valid=valid,
	)
	peer = request.client.host if request.client else None
	result = await run_in_threadpool(recall_service.run, gate_request, peer=peer)
	return json_response(result.payload, status_code=result.status_code, headers=result.headers or None)


@router.api_route("/generatePanicCues", methods=_METHODS)
async def generate_panic_cues(request: Request):
	return await _handle(request)


@router.api_route("/api/recall/cues", methods=_METHODS)
async def recall_cues(request: Request):
	return await _handle(request)

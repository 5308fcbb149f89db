from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.backend import constants
from app.backend.middleware import RequestContextMiddleware
from app.backend.response import error_payload, json_response
from app.backend.routers import health, recall
from app.backend.settings import get_settings


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
	app = FastAPI(
		title=constants.APP_NAME,
		version=constants.APP_VERSION,
	)
	_register_middleware(app)
	_register_handlers(app)
	_register_routers(app)
	return app


def _register_middleware(app: FastAPI) -> None:
	app.add_middleware(RequestContextMiddleware)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=list(get_settings().cors_allow_origins),
		allow_methods=["GET", "POST", "OPTIONS"],
		allow_headers=["*"],
	)


def _register_routers(app: FastAPI) -> None:
	app.include_router(recall.router)
	app.include_router(health.router)


def _register_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
		return json_response(error_payload(_exc_message(exc.detail)), status_code=exc.status_code)

	@app.exception_handler(Exception)
	async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
		logger.exception("recall.unhandled_error path=%s", request.url.path)
		return json_response(error_payload(str(exc) or "Internal server error."), status_code=500)


def _exc_message(detail: Any) -> str:
	if isinstance(detail, str):
		return detail
	if detail is None:
		return "Request failed."
	return str(detail)


app = create_app()

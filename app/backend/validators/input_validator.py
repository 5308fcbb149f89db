from __future__ import annotations

import re
from typing import Any, Optional

from app.backend import constants
from app.backend.errors import InputValidationError
from app.backend.schemas import RecallRequest
from app.backend.services.request_gate import is_truthy


_LANGUAGE_RE = re.compile(r"^[a-z]{2}(-[a-z]{2})?$")


def _enum_field(body: dict, name: str, allowed: tuple, default: str) -> str:
	if name not in body or body[name] is None:
		return default
	value = body[name]
	if isinstance(value, str):
		value = value.strip().lower()
		if not value:
			return default
	if value not in allowed:
		raise InputValidationError(f"Invalid {name}. Use one of: {', '.join(allowed)}.")
	return value


def _language(body: dict) -> str:
	value = body.get("language")
	if value is None:
		return constants.DEFAULT_LANGUAGE
	if not isinstance(value, str):
		raise InputValidationError("Invalid language. Use an ISO-639-1 code such as 'en' or 'pt-br'.")
	value = value.strip().lower()
	if not value:
		return constants.DEFAULT_LANGUAGE
	if not _LANGUAGE_RE.match(value):
		raise InputValidationError("Invalid language. Use an ISO-639-1 code such as 'en' or 'pt-br'.")
	return value


def _optional_text(body: dict, name: str) -> Optional[str]:
	value = body.get(name)
	if not isinstance(value, str):
		return None
	return value.strip() or None


def validate_recall_request(body: Any, *, warmup: bool = False) -> Optional[RecallRequest]:
	"""Normalize a decoded request body into a ``RecallRequest``.

	Returns ``None`` when a request already flagged as warmup carries no usable
	text, which the caller treats as one more warmup signal.
	"""
	if body is None:
		body = {}
	if not isinstance(body, dict):
		raise InputValidationError("Request body must be a JSON object.")

	text = body.get("text")
	if not isinstance(text, str) or len(text.strip()) < constants.MIN_TEXT_LENGTH:
		if warmup:
			return None
		raise InputValidationError("Input text too short for recall generation")

	return RecallRequest(
		text=text.strip(),
		panic_level=_enum_field(body, "panicLevel", constants.PANIC_LEVELS, constants.DEFAULT_PANIC_LEVEL),
		mode=_enum_field(body, "mode", constants.MODES, constants.DEFAULT_MODE),
		language=_language(body),
		one_breath=is_truthy(body.get("oneBreath")),
		verification_token=_optional_text(body, "recaptchaToken"),
		requested_model=_optional_text(body, "model"),
	)

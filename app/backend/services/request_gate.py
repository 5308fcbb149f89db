"""Warmup classification and method gating for the cue endpoint.

Warmup probes keep an instance initialized and must succeed even when the body
is empty or malformed, so no signal below depends on JSON parsing succeeding.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple

from app.backend.errors import MethodNotAllowed


_TRUTHY_STRINGS = {"1", "true", "yes", "on"}
_RAW_WARMUP_RE = re.compile(r'"warmup"\s*:\s*(true|"true"|1|"1"|"yes"|"on")', re.IGNORECASE)


@dataclass(frozen=True)
class GateRequest:
	method: str
	headers: Mapping[str, str]
	query: Mapping[str, str]
	raw_body: str = ""
	body: Optional[Any] = None
	body_valid: bool = True

	def header(self, name: str) -> Optional[str]:
		target = name.lower()
		for key, value in self.headers.items():
			if key.lower() == target:
				return value
		return None


@dataclass(frozen=True)
class GateDecision:
	warmup: bool
	signal: Optional[str] = None


def is_truthy(value: Any) -> bool:
	if isinstance(value, bool):
		return value
	if isinstance(value, (int, float)):
		return value != 0
	if isinstance(value, str):
		return value.strip().lower() in _TRUTHY_STRINGS
	return False


def _body_field(request: GateRequest, name: str) -> Tuple[bool, Any]:
	if isinstance(request.body, dict) and name in request.body:
		return True, request.body[name]
	return False, None


# Explicit opt-in from load balancers and uptime checks.
def _header_flag(request: GateRequest) -> bool:
	return is_truthy(request.header("x-warmup"))


# Cron pings carry no JSON body at all.
def _cron_header(request: GateRequest) -> bool:
	return request.header("x-appengine-cron") is not None


# `?warmup` with no value counts; so does `?warmup=1`.
def _query_flag(request: GateRequest) -> bool:
	if "warmup" not in request.query:
		return False
	value = request.query.get("warmup")
	return value is None or value.strip() == "" or is_truthy(value)


# Proxies have been seen stripping values, leaving `{"warmup": null}` or `""`.
def _body_flag(request: GateRequest) -> bool:
	present, value = _body_field(request, "warmup")
	if not present:
		return False
	return value is None or value == "" or is_truthy(value)


# Body failed to parse but still carries a warmup marker.
def _raw_body_flag(request: GateRequest) -> bool:
	if request.body_valid:
		return False
	return bool(request.raw_body) and _RAW_WARMUP_RE.search(request.raw_body) is not None


def _warmup_mode(request: GateRequest) -> bool:
	present, value = _body_field(request, "mode")
	return present and isinstance(value, str) and value.strip().lower() == "warmup"


WARMUP_SIGNALS: List[Tuple[str, Callable[[GateRequest], bool]]] = [
	("header", _header_flag),
	("cron_header", _cron_header),
	("query", _query_flag),
	("body_field", _body_flag),
	("raw_body", _raw_body_flag),
	("mode", _warmup_mode),
]


def detect_warmup(request: GateRequest) -> Optional[str]:
	for name, check in WARMUP_SIGNALS:
		if check(request):
			return name
	return None


def classify(request: GateRequest) -> GateDecision:
	"""Return the warmup decision or raise ``MethodNotAllowed``.

	POST always passes through. Any other method is accepted only when it is a
	GET carrying a warmup signal.
	"""
	method = request.method.upper()
	signal = detect_warmup(request)
	if method == "POST":
		return GateDecision(warmup=signal is not None, signal=signal)
	if method == "GET" and signal is not None:
		return GateDecision(warmup=True, signal=signal)
	raise MethodNotAllowed("Method not allowed")


def decode_body(raw: bytes) -> Tuple[str, Any, bool]:
	"""Decode a raw request body into ``(text, parsed, valid)``.

	An empty body decodes to ``None`` and counts as valid; undecodable JSON
	yields ``None`` with ``valid`` false so warmup detection can still inspect
	the raw text.
	"""
	text = raw.decode("utf-8", errors="replace") if raw else ""
	if not text.strip():
		return text, None, True
	try:
		return text, json.loads(text), True
	except ValueError:
		return text, None, False

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from app.backend import constants


RateWindow = Tuple[int, int]

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
	openai_api_key: str
	openai_base_url: str | None
	default_model: str
	generation_timeout_s: float
	recaptcha_secret: str
	recaptcha_min_score: float
	recaptcha_verify_url: str
	telemetry_enabled: bool
	telemetry_project: str
	rate_limits: Tuple[RateWindow, ...]
	trusted_proxy_hops: int
	cors_allow_origins: Tuple[str, ...]


def _str_env(name: str, default: str = "") -> str:
	return os.getenv(name, default).strip() or default


def _bool_env(name: str, default: bool = False) -> bool:
	raw = os.getenv(name, "").strip().lower()
	if not raw:
		return default
	return raw in _TRUTHY


def _float_env(name: str, default: float, minimum: float = 0.0) -> float:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = float(raw)
	except ValueError:
		return default
	return value if value >= minimum else default


def _int_env(name: str, default: int, minimum: int = 0) -> int:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = int(raw)
	except ValueError:
		return default
	return value if value >= minimum else default


def parse_rate_limits(raw: str) -> Tuple[RateWindow, ...]:
	"""Parse ``"1000:1,3600000:30"`` into ``((1000, 1), (3600000, 30))``.

	Malformed or non-positive entries are skipped; an empty result falls back
	to the built-in window table.
	"""
	windows: list[RateWindow] = []
	for item in raw.split(","):
		duration, _, limit = item.strip().partition(":")
		try:
			duration_ms = int(duration)
			max_requests = int(limit)
		except ValueError:
			continue
		if duration_ms > 0 and max_requests > 0:
			windows.append((duration_ms, max_requests))
	return tuple(windows) or constants.DEFAULT_RATE_LIMITS


def load_settings() -> Settings:
	raw_limits = os.getenv("RECALL_RATE_LIMITS", "").strip()
	raw_origins = os.getenv("RECALL_CORS_ORIGINS", "").strip()
	origins = tuple(item.strip() for item in raw_origins.split(",") if item.strip())
	return Settings(
		openai_api_key=_str_env("OPENAI_API_KEY"),
		openai_base_url=_str_env("OPENAI_BASE_URL") or None,
		default_model=_str_env("RECALL_MODEL", constants.DEFAULT_MODEL),
		generation_timeout_s=_float_env(
			"RECALL_GENERATION_TIMEOUT_S",
			constants.DEFAULT_GENERATION_TIMEOUT_S,
			minimum=0.001,
		),
		recaptcha_secret=_str_env("RECAPTCHA_SECRET"),
		recaptcha_min_score=_float_env("RECAPTCHA_MIN_SCORE", constants.DEFAULT_RECAPTCHA_MIN_SCORE),
		recaptcha_verify_url=_str_env("RECAPTCHA_VERIFY_URL", constants.DEFAULT_RECAPTCHA_VERIFY_URL),
		telemetry_enabled=_bool_env("RECALL_TELEMETRY_ENABLED"),
		telemetry_project=_str_env("RECALL_TELEMETRY_PROJECT", "recallbridge"),
		rate_limits=parse_rate_limits(raw_limits) if raw_limits else constants.DEFAULT_RATE_LIMITS,
		trusted_proxy_hops=_int_env("RECALL_TRUSTED_PROXY_HOPS", 0),
		cors_allow_origins=origins or tuple(constants.DEFAULT_CORS_ALLOW_ORIGINS),
	)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
	return load_settings()


def reload_settings() -> Settings:
	get_settings.cache_clear()
	return get_settings()

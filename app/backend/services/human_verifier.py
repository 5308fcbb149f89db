from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from app.backend import constants
from app.backend.settings import Settings, get_settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
	success: bool
	score: Optional[float] = None
	error: Optional[str] = None


def _build_http_client() -> httpx.Client:
	return httpx.Client(timeout=constants.DEFAULT_RECAPTCHA_TIMEOUT_S)


def verify(
	token: Optional[str],
	remote_ip: Optional[str] = None,
	*,
	settings: Optional[Settings] = None,
) -> VerificationResult:
	"""Check a reCAPTCHA token against the site-verify endpoint.

	Without a configured secret this is a no-op success. Transport and decoding
	failures are logged and reported as a failed verification, never raised.
	"""
	config = settings or get_settings()
	if not config.recaptcha_secret:
		return VerificationResult(success=True)
	if not token or not token.strip():
		return VerificationResult(success=False, error="missing-input-response")

	form = {"secret": config.recaptcha_secret, "response": token.strip()}
	if remote_ip:
		form["remoteip"] = remote_ip
	try:
		with _build_http_client() as client:
			response = client.post(config.recaptcha_verify_url, data=form)
		if not response.is_success:
			return VerificationResult(success=False, error=f"http-{response.status_code}")
		payload = response.json()
	except (httpx.HTTPError, ValueError) as exc:
		logger.warning("recall.verification_error: %s", exc)
		return VerificationResult(success=False, error="verification-unavailable")

	if not isinstance(payload, dict) or payload.get("success") is not True:
		codes = payload.get("error-codes") if isinstance(payload, dict) else None
		error = ",".join(str(code) for code in codes) if isinstance(codes, list) and codes else "denied"
		return VerificationResult(success=False, error=error)

	score = payload.get("score")
	if isinstance(score, (int, float)) and not isinstance(score, bool):
		if score < config.recaptcha_min_score:
			return VerificationResult(success=False, score=float(score), error="low-score")
		return VerificationResult(success=True, score=float(score))
	return VerificationResult(success=True)

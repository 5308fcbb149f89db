"""Request pipeline for panic-safe recall cues.

gate -> rate limit -> human check -> input validation -> vagueness ->
generation -> output contract -> estimators. Each exit returns a
``PipelineResult`` and ``run`` records exactly one telemetry sample for it.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from app.backend import constants
from app.backend.errors import (
	GenerationTimeout,
	InputValidationError,
	InvalidGenerationOutput,
	RateLimited,
	RecallServiceError,
	VerificationFailed,
)
from app.backend.response import error_parts, error_payload, now_iso
from app.backend.schemas import (
	ClarificationEnvelope,
	GenerationResult,
	RecallData,
	RecallRequest,
	ResponseEnvelope,
)
from app.backend.services import estimators, generation_service, human_verifier, request_gate, vagueness_service
from app.backend.services.prompt_service import build_prompt
from app.backend.services.rate_limiter import RateLimiter, client_key_from, get_rate_limiter
from app.backend.services.telemetry_service import TelemetryRecorder, get_recorder
from app.backend.validators.input_validator import validate_recall_request
from app.backend.validators.output_contract import SAFE_FALLBACK_RESULT, validate_generation_output
from app.backend.settings import get_settings


logger = logging.getLogger(__name__)

_PARSE_FALLBACK_NOTE = "Model output failed validation; returning safe fallback cues."
_TIMEOUT_FALLBACK_NOTE = "Generation timed out; returning safe fallback cues."

Generator = Callable[[str, Optional[str]], generation_service.GenerationOutcome]


@dataclass
class PipelineResult:
	status_code: int
	payload: Dict[str, Any]
	telemetry_status: str
	headers: Dict[str, str] = field(default_factory=dict)


def _warmup() -> PipelineResult:
	return PipelineResult(200, {"success": True, "warmup": True, "timestamp": now_iso()}, "warmup")


def _failure(exc: RecallServiceError, telemetry_status: str = "error") -> PipelineResult:
	payload, headers = error_parts(exc)
	return PipelineResult(exc.status_code, payload, telemetry_status, headers=headers)


def _envelope(
	request: RecallRequest,
	result: GenerationResult,
	*,
	model: str,
	fallback_used: bool,
	output_length: int,
	note: Optional[str] = None,
) -> Dict[str, Any]:
	data = RecallData(
		**result.model_dump(),
		confidence=estimators.estimate_confidence(len(request.text), request.panic_level, result.anchors),
		usage=estimators.estimate_usage(len(request.text), output_length),
		language=request.language,
		one_breath_cue=estimators.one_breath_cue(result.anchors) if request.one_breath else None,
	)
	envelope = ResponseEnvelope(
		model=model,
		panic_level=request.panic_level,
		mode=request.mode,
		language=request.language,
		one_breath=request.one_breath,
		fallback_used=fallback_used,
		data=data,
		note=note,
	)
	return envelope.to_payload()


def _safe_output_length() -> int:
	return len(json.dumps(SAFE_FALLBACK_RESULT.to_payload()))


def _clarification(assessment: vagueness_service.VaguenessAssessment) -> PipelineResult:
	envelope = ClarificationEnvelope(
		clarifying_question=assessment.clarifying_question,
		vagueness=assessment.summary(),
	)
	return PipelineResult(200, envelope.to_payload(), "clarification")


def _generate(request: RecallRequest, generate: Generator) -> PipelineResult:
	prompt = build_prompt(request)
	try:
		outcome = generate(prompt, request.requested_model)
	except GenerationTimeout as exc:
		logger.warning("recall.timeout_fallback: %s", exc.message)
		payload = _envelope(
			request,
			SAFE_FALLBACK_RESULT,
			model=constants.TIMEOUT_MODEL_LABEL,
			fallback_used=True,
			output_length=_safe_output_length(),
			note=_TIMEOUT_FALLBACK_NOTE,
		)
		return PipelineResult(504, payload, "timeout_fallback")

	try:
		result = validate_generation_output(outcome.text)
	except InvalidGenerationOutput as exc:
		logger.warning("recall.parse_fallback model=%s: %s", outcome.model, exc.message)
		payload = _envelope(
			request,
			SAFE_FALLBACK_RESULT,
			model=outcome.model,
			fallback_used=True,
			output_length=len(outcome.text),
			note=_PARSE_FALLBACK_NOTE,
		)
		return PipelineResult(502, payload, "parse_fallback")

	payload = _envelope(
		request,
		result,
		model=outcome.model,
		fallback_used=False,
		output_length=len(outcome.text),
	)
	return PipelineResult(200, payload, "success")


def _pipeline(
	gate_request: request_gate.GateRequest,
	*,
	peer: Optional[str],
	limiter: RateLimiter,
	generate: Generator,
) -> PipelineResult:
	decision = request_gate.classify(gate_request)
	if decision.warmup:
		return _warmup()

	client_key = client_key_from(gate_request.headers, peer, get_settings().trusted_proxy_hops)
	admission = limiter.admit(client_key)
	if not admission.admitted:
		return _failure(RateLimited(admission.retry_after_ms), "rate_limited")

	if not gate_request.body_valid:
		raise InputValidationError("Request body must be valid JSON.")
	body = gate_request.body
	token = body.get("recaptchaToken") if isinstance(body, dict) else None
	verification = human_verifier.verify(token if isinstance(token, str) else None, client_key)
	if not verification.success:
		logger.info("recall.verification_blocked client=%s reason=%s", client_key, verification.error)
		return _failure(VerificationFailed("Human verification failed"), "recaptcha_blocked")

	request = validate_recall_request(body)

	assessment = vagueness_service.analyze(request.text)
	if assessment.needs_clarification:
		return _clarification(assessment)

	return _generate(request, generate)


def run(
	gate_request: request_gate.GateRequest,
	*,
	peer: Optional[str] = None,
	limiter: Optional[RateLimiter] = None,
	recorder: Optional[TelemetryRecorder] = None,
	generate: Optional[Generator] = None,
) -> PipelineResult:
	started = time.perf_counter()
	try:
		result = _pipeline(
			gate_request,
			peer=peer,
			limiter=limiter or get_rate_limiter(),
			generate=generate or generation_service.generate,
		)
	except RecallServiceError as exc:
		if exc.status_code >= 500:
			logger.error("recall.error code=%s: %s", exc.code, exc.message)
		result = _failure(exc)
	except Exception as exc:
		logger.exception("recall.unhandled_error")
		result = PipelineResult(500, error_payload(str(exc) or "Failed to generate panic-safe cues"), "error")

	elapsed_ms = (time.perf_counter() - started) * 1000
	(recorder or get_recorder()).record(elapsed_ms, result.telemetry_status)
	return result

"""Upstream text generation with a hard deadline and one model fallback.

The upstream call runs on a worker thread and the caller waits on its future
for at most ``timeout_s`` seconds. The SDK call has no cancellation primitive,
so a late worker is abandoned rather than cancelled: its thread finishes on its
own and the result is discarded.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

import openai

from app.backend import constants
from app.backend.errors import (
	GenerationTimeout,
	ModelDiscoveryFailure,
	ModelUnavailable,
	ProviderUnconfigured,
	RecallServiceError,
)
from app.backend.services.prompt_service import SYSTEM_PROMPT
from app.backend.settings import Settings, get_settings


logger = logging.getLogger(__name__)

_EXECUTOR = ThreadPoolExecutor(max_workers=8, thread_name_prefix="recall-generation")


@dataclass(frozen=True)
class GenerationOutcome:
	text: str
	model: str


def _build_openai_client(*, settings: Settings):
	if not settings.openai_api_key:
		raise ProviderUnconfigured("Generation provider not configured. Set OPENAI_API_KEY.")
	return openai.OpenAI(
		api_key=settings.openai_api_key,
		base_url=settings.openai_base_url,
		timeout=settings.generation_timeout_s + 1.0,
		max_retries=0,
	)


def _extract_response_text(response: Any) -> str:
	output_text = getattr(response, "output_text", None)
	if isinstance(output_text, str) and output_text.strip():
		return output_text.strip()

	output = getattr(response, "output", None)
	if not isinstance(output, list):
		return ""
	parts: List[str] = []
	for item in output:
		for chunk in getattr(item, "content", None) or []:
			text = getattr(chunk, "text", None)
			if isinstance(text, str) and text.strip():
				parts.append(text.strip())
	return "\n".join(parts).strip()


def is_unknown_model_error(exc: Exception) -> bool:
	if isinstance(exc, openai.NotFoundError):
		return True
	if isinstance(exc, openai.BadRequestError):
		code = getattr(exc, "code", None)
		return code in {"model_not_found", "unsupported_model"}
	return False


def supports_generation(model_id: str) -> bool:
	lowered = model_id.lower()
	return not any(marker in lowered for marker in constants.NON_GENERATIVE_MODEL_MARKERS)


def pick_fallback_model(
	available: Iterable[str],
	attempted: Sequence[str],
	preferred: Sequence[str] = constants.PREFERRED_MODELS,
) -> Optional[str]:
	candidates = [
		model_id
		for model_id in available
		if model_id and supports_generation(model_id) and model_id not in attempted
	]
	for model_id in preferred:
		if model_id in candidates:
			return model_id
	return candidates[0] if candidates else None


def _list_models(client) -> List[str]:
	try:
		page = client.models.list()
	except openai.APIError as exc:
		raise ModelDiscoveryFailure(f"Model discovery failed: {exc}") from exc
	return [getattr(model, "id", "") for model in page]


def _call_model(client, *, model: str, prompt: str) -> str:
	response = client.responses.create(
		model=model,
		instructions=SYSTEM_PROMPT,
		input=prompt,
	)
	return _extract_response_text(response)


def _upstream_error(exc: Exception) -> RecallServiceError:
	if isinstance(exc, openai.APITimeoutError):
		return GenerationTimeout("Generation provider timed out.")
	return RecallServiceError(f"Generation provider request failed: {exc}", code="upstream_error")


def _generate_with_fallback(client, *, prompt: str, model: str) -> GenerationOutcome:
	try:
		return GenerationOutcome(text=_call_model(client, model=model, prompt=prompt), model=model)
	except openai.APIError as exc:
		if not is_unknown_model_error(exc):
			raise _upstream_error(exc) from exc
		primary_error = exc

	fallback = pick_fallback_model(_list_models(client), attempted=[model])
	if fallback is None:
		raise ModelUnavailable(f"Model '{model}' is unavailable and no fallback model exists: {primary_error}")
	logger.warning("recall.model_fallback: %s rejected, retrying with %s", model, fallback)
	try:
		return GenerationOutcome(text=_call_model(client, model=fallback, prompt=prompt), model=fallback)
	except openai.APIError as exc:
		raise _upstream_error(exc) from exc


def generate(
	prompt: str,
	preferred_model: Optional[str] = None,
	*,
	settings: Optional[Settings] = None,
	client=None,
) -> GenerationOutcome:
	config = settings or get_settings()
	model = (preferred_model or "").strip() or config.default_model
	upstream = client if client is not None else _build_openai_client(settings=config)
	future = _EXECUTOR.submit(_generate_with_fallback, upstream, prompt=prompt, model=model)
	try:
		return future.result(timeout=config.generation_timeout_s)
	except FutureTimeoutError as exc:
		raise GenerationTimeout(
			f"Generation exceeded {config.generation_timeout_s:g}s deadline."
		) from exc

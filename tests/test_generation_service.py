import threading
from dataclasses import replace
from types import SimpleNamespace
from unittest import TestCase

import httpx
import openai

from app.backend.errors import (
	GenerationTimeout,
	ModelDiscoveryFailure,
	ModelUnavailable,
	ProviderUnconfigured,
	RecallServiceError,
)
from app.backend.services import generation_service
from app.backend.settings import load_settings


def _status_error(cls, status_code: int, message: str, code: str | None = None):
	request = httpx.Request("POST", "https://api.openai.com/v1/responses")
	body = {"message": message, "code": code} if code else None
	return cls(message, response=httpx.Response(status_code, request=request), body=body)


class _FakeResponses:
	def __init__(self, outcomes: dict, release: threading.Event | None = None):
		self._outcomes = outcomes
		self._release = release
		self.calls: list[str] = []

	def create(self, *, model: str, instructions: str, input: str):
		self.calls.append(model)
		if self._release is not None:
			self._release.wait(2.0)
		outcome = self._outcomes[model]
		if isinstance(outcome, Exception):
			raise outcome
		return SimpleNamespace(output_text=outcome)


class _FakeModels:
	def __init__(self, ids=None, error: Exception | None = None):
		self._ids = ids or []
		self._error = error

	def list(self):
		if self._error is not None:
			raise self._error
		return [SimpleNamespace(id=model_id) for model_id in self._ids]


class _FakeClient:
	def __init__(self, outcomes: dict, *, catalog=None, catalog_error=None, release=None):
		self.responses = _FakeResponses(outcomes, release)
		self.models = _FakeModels(catalog, catalog_error)


class GenerationServiceTests(TestCase):
	def setUp(self) -> None:
		self.settings = replace(
			load_settings(),
			openai_api_key="test-key",
			default_model="gpt-4.1-mini",
			generation_timeout_s=2.0,
		)

	def test_preferred_model_used_when_available(self) -> None:
		client = _FakeClient({"gpt-4o": '{"ok": true}'})
		outcome = generation_service.generate("prompt", "gpt-4o", settings=self.settings, client=client)
		self.assertEqual(outcome.model, "gpt-4o")
		self.assertEqual(outcome.text, '{"ok": true}')
		self.assertEqual(client.responses.calls, ["gpt-4o"])

	def test_default_model_used_without_preference(self) -> None:
		client = _FakeClient({"gpt-4.1-mini": "text"})
		outcome = generation_service.generate("prompt", None, settings=self.settings, client=client)
		self.assertEqual(outcome.model, "gpt-4.1-mini")

	def test_unknown_model_falls_back_to_preferred_catalog_entry(self) -> None:
		client = _FakeClient(
			{
				"gpt-legacy": _status_error(openai.NotFoundError, 404, "model not found"),
				"gpt-4o-mini": "recovered",
			},
			catalog=["text-embedding-3-small", "whisper-1", "gpt-4o", "gpt-4o-mini", "gpt-legacy"],
		)
		with self.assertLogs("app.backend.services.generation_service", level="WARNING"):
			outcome = generation_service.generate("prompt", "gpt-legacy", settings=self.settings, client=client)
		self.assertEqual(outcome.model, "gpt-4o-mini")
		self.assertEqual(outcome.text, "recovered")
		self.assertEqual(client.responses.calls, ["gpt-legacy", "gpt-4o-mini"])

	def test_fallback_uses_first_remaining_when_no_preferred_available(self) -> None:
		client = _FakeClient(
			{
				"gpt-legacy": _status_error(openai.BadRequestError, 400, "bad model", code="model_not_found"),
				"custom-chat": "ok",
			},
			catalog=["dall-e-3", "custom-chat", "other-chat"],
		)
		outcome = generation_service.generate("prompt", "gpt-legacy", settings=self.settings, client=client)
		self.assertEqual(outcome.model, "custom-chat")

	def test_only_one_fallback_attempt(self) -> None:
		client = _FakeClient(
			{
				"gpt-legacy": _status_error(openai.NotFoundError, 404, "model not found"),
				"gpt-4.1-mini": _status_error(openai.NotFoundError, 404, "also gone"),
			},
			catalog=["gpt-4.1-mini", "gpt-4o"],
		)
		with self.assertRaises(RecallServiceError) as ctx:
			generation_service.generate("prompt", "gpt-legacy", settings=self.settings, client=client)
		self.assertEqual(ctx.exception.status_code, 500)
		self.assertEqual(client.responses.calls, ["gpt-legacy", "gpt-4.1-mini"])

	def test_no_candidate_is_model_unavailable(self) -> None:
		client = _FakeClient(
			{"gpt-legacy": _status_error(openai.NotFoundError, 404, "model not found")},
			catalog=["gpt-legacy", "text-embedding-3-large"],
		)
		with self.assertRaises(ModelUnavailable) as ctx:
			generation_service.generate("prompt", "gpt-legacy", settings=self.settings, client=client)
		self.assertEqual(ctx.exception.status_code, 500)
		self.assertIn("gpt-legacy", ctx.exception.message)

	def test_catalog_failure_is_fatal(self) -> None:
		client = _FakeClient(
			{"gpt-legacy": _status_error(openai.NotFoundError, 404, "model not found")},
			catalog_error=_status_error(openai.InternalServerError, 500, "catalog down"),
		)
		with self.assertRaises(ModelDiscoveryFailure) as ctx:
			generation_service.generate("prompt", "gpt-legacy", settings=self.settings, client=client)
		self.assertEqual(ctx.exception.status_code, 500)

	def test_other_upstream_errors_do_not_trigger_discovery(self) -> None:
		client = _FakeClient(
			{"gpt-4.1-mini": _status_error(openai.AuthenticationError, 401, "bad key")},
			catalog_error=AssertionError("catalog must not be queried"),
		)
		with self.assertRaises(RecallServiceError) as ctx:
			generation_service.generate("prompt", None, settings=self.settings, client=client)
		self.assertEqual(ctx.exception.code, "upstream_error")

	def test_slow_upstream_raises_timeout(self) -> None:
		release = threading.Event()
		self.addCleanup(release.set)
		client = _FakeClient({"gpt-4.1-mini": "late"}, release=release)
		settings = replace(self.settings, generation_timeout_s=0.05)
		with self.assertRaises(GenerationTimeout) as ctx:
			generation_service.generate("prompt", None, settings=settings, client=client)
		self.assertEqual(ctx.exception.status_code, 504)

	def test_missing_api_key_is_unconfigured(self) -> None:
		settings = replace(self.settings, openai_api_key="")
		with self.assertRaises(ProviderUnconfigured):
			generation_service.generate("prompt", None, settings=settings)

	def test_pick_fallback_model_filters_attempted_and_non_generative(self) -> None:
		available = ["tts-1", "gpt-4o", "omni-moderation-latest", "gpt-4.1-mini"]
		self.assertEqual(generation_service.pick_fallback_model(available, ["gpt-4.1-mini"]), "gpt-4o")
		self.assertIsNone(generation_service.pick_fallback_model(["tts-1"], []))

	def test_extract_response_text_reads_output_items(self) -> None:
		response = SimpleNamespace(
			output_text=None,
			output=[SimpleNamespace(content=[SimpleNamespace(text=" first "), SimpleNamespace(text="second")])],
		)
		self.assertEqual(generation_service._extract_response_text(response), "first\nsecond")

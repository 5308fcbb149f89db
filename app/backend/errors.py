from __future__ import annotations


class RecallServiceError(Exception):
	status_code = 500
	code = "recall_error"

	def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
		super().__init__(message)
		self.message = message
		if status_code is not None:
			self.status_code = status_code
		if code is not None:
			self.code = code


class InputValidationError(RecallServiceError):
	status_code = 400
	code = "validation_error"


class MethodNotAllowed(RecallServiceError):
	status_code = 405
	code = "method_not_allowed"


class RateLimited(RecallServiceError):
	status_code = 429
	code = "rate_limited"

	def __init__(self, retry_after_ms: int):
		super().__init__("Too many requests. Slow down and retry shortly.")
		self.retry_after_ms = retry_after_ms

	@property
	def retry_after_seconds(self) -> int:
		return max(1, -(-self.retry_after_ms // 1000))


class VerificationFailed(RecallServiceError):
	status_code = 400
	code = "verification_failed"


class GenerationTimeout(RecallServiceError):
	status_code = 504
	code = "generation_timeout"


class InvalidGenerationOutput(RecallServiceError):
	status_code = 502
	code = "invalid_output"


class ModelUnavailable(RecallServiceError):
	code = "model_unavailable"


class ModelDiscoveryFailure(RecallServiceError):
	code = "model_discovery_failed"


class ProviderUnconfigured(RecallServiceError):
	code = "provider_unconfigured"

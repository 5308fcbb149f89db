"""Fire-and-forget latency samples tagged with the request's terminal status."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol, runtime_checkable

from app.backend import constants
from app.backend.settings import Settings, get_settings


logger = logging.getLogger(__name__)

_EXECUTOR = ThreadPoolExecutor(max_workers=2, thread_name_prefix="recall-telemetry")


@runtime_checkable
class TelemetrySink(Protocol):
	def record_latency(self, latency_ms: float, status: str, project: str) -> None: ...


class LoggingSink:
	def record_latency(self, latency_ms: float, status: str, project: str) -> None:
		logger.info(
			"recall.latency project=%s status=%s latency_ms=%.1f",
			project,
			status,
			latency_ms,
		)


class TelemetryRecorder:
	def __init__(self, sink: Optional[TelemetrySink] = None, *, settings: Optional[Settings] = None):
		config = settings or get_settings()
		self.enabled = config.telemetry_enabled
		self.project = config.telemetry_project
		self.sink: TelemetrySink = sink or LoggingSink()

	def _write(self, latency_ms: float, status: str) -> None:
		try:
			self.sink.record_latency(latency_ms, status, self.project)
		except Exception as exc:
			logger.warning("recall.telemetry_failed status=%s: %s", status, exc)

	def record(self, latency_ms: float, status: str) -> Optional[Future]:
		if status not in constants.TELEMETRY_STATUSES:
			raise ValueError(f"Unknown telemetry status: {status}")
		if not self.enabled:
			return None
		try:
			return _EXECUTOR.submit(self._write, latency_ms, status)
		except RuntimeError as exc:
			logger.warning("recall.telemetry_failed status=%s: %s", status, exc)
			return None


_RECORDER: Optional[TelemetryRecorder] = None


def get_recorder() -> TelemetryRecorder:
	global _RECORDER
	if _RECORDER is None:
		_RECORDER = TelemetryRecorder()
	return _RECORDER


def set_recorder(recorder: Optional[TelemetryRecorder]) -> None:
	global _RECORDER
	_RECORDER = recorder

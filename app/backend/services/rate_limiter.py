"""Sliding-window admission control keyed by client identity.

State lives in process memory only: it is lost on restart and not shared
between instances.
"""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Deque, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from app.backend.settings import get_settings


@dataclass(frozen=True)
class RateWindow:
	duration_ms: int
	limit: int


@dataclass(frozen=True)
class Admission:
	admitted: bool
	retry_after_ms: int = 0


def _monotonic_ms() -> int:
	return int(time.monotonic() * 1000)


class RateLimiter:
	def __init__(
		self,
		windows: Iterable[Tuple[int, int]],
		*,
		clock: Callable[[], int] = _monotonic_ms,
	):
		self.windows: Tuple[RateWindow, ...] = tuple(
			sorted((RateWindow(duration, limit) for duration, limit in windows), key=lambda w: w.duration_ms)
		)
		if not self.windows:
			raise ValueError("RateLimiter needs at least one window.")
		self._widest_ms = self.windows[-1].duration_ms
		self._clock = clock
		self._ledger: Dict[str, Deque[int]] = {}
		self._lock = Lock()

	def _prune_locked(self, entries: Deque[int], now_ms: int) -> None:
		cutoff = now_ms - self._widest_ms
		while entries and entries[0] <= cutoff:
			entries.popleft()

	def admit(self, client_key: str, now_ms: Optional[int] = None) -> Admission:
		now = self._clock() if now_ms is None else now_ms
		with self._lock:
			entries = self._ledger.setdefault(client_key, deque())
			self._prune_locked(entries, now)
			retry_after_ms = 0
			for window in self.windows:
				window_start = now - window.duration_ms
				in_window = [stamp for stamp in entries if stamp > window_start]
				if len(in_window) >= window.limit:
					wait_ms = in_window[0] + window.duration_ms - now
					retry_after_ms = max(retry_after_ms, wait_ms, 1)
			if retry_after_ms:
				return Admission(admitted=False, retry_after_ms=retry_after_ms)
			if entries and entries[-1] > now:
				now = entries[-1]
			entries.append(now)
			return Admission(admitted=True)

	def entries(self, client_key: str) -> Sequence[int]:
		with self._lock:
			return tuple(self._ledger.get(client_key, ()))

	def reset(self) -> None:
		with self._lock:
			self._ledger.clear()


def client_key_from(headers: Mapping[str, str], peer: Optional[str], trusted_hops: int = 0) -> str:
	"""Pick the rate-limit key for a request.

	The socket peer is used unless ``trusted_hops`` proxies sit in front of the
	service; then the ``X-Forwarded-For`` entry appended by the outermost trusted
	proxy (counted from the right) is used. Entries left of it are client-written.
	"""
	if trusted_hops > 0:
		forwarded = ""
		for key, value in headers.items():
			if key.lower() == "x-forwarded-for":
				forwarded = value
				break
		hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
		if len(hops) >= trusted_hops:
			return hops[-trusted_hops]
	return peer or "anonymous"


_LIMITER: Optional[RateLimiter] = None
_LIMITER_LOCK = Lock()


def get_rate_limiter() -> RateLimiter:
	global _LIMITER
	with _LIMITER_LOCK:
		if _LIMITER is None:
			_LIMITER = RateLimiter(get_settings().rate_limits)
		return _LIMITER


def set_rate_limiter(limiter: Optional[RateLimiter]) -> None:
	global _LIMITER
	with _LIMITER_LOCK:
		_LIMITER = limiter

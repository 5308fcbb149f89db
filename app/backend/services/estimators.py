from __future__ import annotations

from typing import Optional, Sequence

from app.backend.schemas import Usage


_ONE_BREATH_WORDS = 3


def _clamp(value: float, lower: float, upper: float) -> float:
	return max(lower, min(upper, value))


def estimate_confidence(input_length: int, panic_level: str, anchors: Sequence[str]) -> float:
	score = 0.55
	if input_length > 600:
		score += 0.25
	elif input_length > 300:
		score += 0.15
	elif input_length < 120:
		score -= 0.10

	if panic_level == "low":
		score += 0.08
	elif panic_level == "high":
		score -= 0.05

	if anchors:
		average_words = sum(len(anchor.split()) for anchor in anchors) / len(anchors)
		if average_words <= 6:
			score += 0.05
		elif average_words > 9:
			score -= 0.05

	return round(_clamp(score, 0.35, 0.98), 2)


def estimate_usage(input_length: int, output_length: int) -> Usage:
	tokens = max(1, round((input_length + output_length) / 4))
	if tokens <= 800:
		tier = "low"
	elif tokens <= 2500:
		tier = "medium"
	else:
		tier = "high"
	return Usage(tokens_estimated=tokens, cost_tier=tier)


def one_breath_cue(anchors: Sequence[str]) -> Optional[str]:
	"""Chain the opening words of every anchor into a single line."""
	pieces = [" ".join(anchor.split()[:_ONE_BREATH_WORDS]) for anchor in anchors if anchor.strip()]
	if not pieces:
		return None
	return " → ".join(pieces)

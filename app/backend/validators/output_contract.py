from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from app.backend import constants
from app.backend.errors import InvalidGenerationOutput
from app.backend.schemas import GenerationResult, Mistake


_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")

SAFE_FALLBACK_RESULT = GenerationResult(
	anchors=[
		"Breathe, then name the topic",
		"Recall the first definition",
		"Picture the key diagram",
		"Link cause to effect",
		"Say one example aloud",
	],
	fallback="If blank -> breathe out slowly -> name the topic -> recall one example",
	mistake=Mistake(
		text="Rushing to write before the first cue feels steady",
		severity="medium",
	),
	subject="General",
)


def _clean(value: Any) -> str:
	if not isinstance(value, str):
		return ""
	return " ".join(value.split()).strip()


def extract_json_object(raw: str) -> Dict[str, Any]:
	candidate = (raw or "").strip()
	if candidate.startswith("```"):
		candidate = _FENCE_OPEN_RE.sub("", candidate)
		candidate = _FENCE_CLOSE_RE.sub("", candidate)
	start = candidate.find("{")
	end = candidate.rfind("}")
	if start == -1 or end == -1 or end <= start:
		raise InvalidGenerationOutput("Generation output did not contain a JSON object.")
	try:
		parsed = json.loads(candidate[start : end + 1])
	except json.JSONDecodeError as exc:
		raise InvalidGenerationOutput("Generation output was not valid JSON.") from exc
	if not isinstance(parsed, dict):
		raise InvalidGenerationOutput("Generation output had an unexpected shape.")
	return parsed


def _anchors(payload: Dict[str, Any]) -> List[str]:
	raw = payload.get("anchors")
	if not isinstance(raw, list) or len(raw) != constants.ANCHOR_COUNT:
		raise InvalidGenerationOutput(f"Generation output must contain exactly {constants.ANCHOR_COUNT} anchors.")
	anchors = [_clean(item) for item in raw]
	if not all(anchors):
		raise InvalidGenerationOutput("Generation output contained an empty anchor.")
	return anchors


def _mistake(payload: Dict[str, Any]) -> Mistake:
	raw = payload.get("mistake")
	if isinstance(raw, str):
		raw = {"text": raw}
	if not isinstance(raw, dict):
		raise InvalidGenerationOutput("Generation output is missing the panic mistake.")
	text = _clean(raw.get("text"))
	if not text:
		raise InvalidGenerationOutput("Generation output mistake has no text.")
	severity = _clean(raw.get("severity")).lower()
	if severity not in constants.SEVERITIES:
		severity = "medium"
	return Mistake(text=text, severity=severity)


def validate_generation_output(raw: str) -> GenerationResult:
	payload = extract_json_object(raw)
	anchors = _anchors(payload)
	fallback = _clean(payload.get("fallback"))
	if not fallback:
		raise InvalidGenerationOutput("Generation output is missing the fallback ritual.")
	mistake = _mistake(payload)
	subject = _clean(payload.get("subject"))
	if not subject:
		raise InvalidGenerationOutput("Generation output is missing the subject.")
	try:
		return GenerationResult(anchors=anchors, fallback=fallback, mistake=mistake, subject=subject)
	except ValidationError as exc:
		raise InvalidGenerationOutput("Generation output is schema-incompatible.") from exc

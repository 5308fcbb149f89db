from __future__ import annotations

from app.backend.schemas import RecallRequest


SYSTEM_PROMPT = """
You are an AI system designed for PANIC-SAFE academic recall.
The user already knows this content but is under stress.
DO NOT explain or teach.
Return ONLY valid JSON (no markdown) with this exact shape:
{
  "anchors": ["...", "...", "...", "...", "..."],
  "fallback": "If blank -> remember X -> leads to Y -> leads to Z",
  "mistake": {"text": "...", "severity": "low" | "medium" | "high"},
  "subject": "..."
}
Rules:
- Exactly 5 anchors, each an ultra-short recall cue of at most 8 words.
- One fallback recall chain in the form shown above.
- One common panic mistake to avoid, with a severity.
- Subject is the academic subject in one or two words.
- Minimal words. Plain text values only.
""".strip()

_PANIC_GUIDANCE = {
	"low": "Stress is low: anchors may use up to 8 words with one linking detail.",
	"medium": "Stress is moderate: keep anchors to about 6 words.",
	"high": "Stress is high: anchors must be 3 to 5 words, concrete nouns and verbs only.",
}

_MODE_GUIDANCE = {
	"study": "Study mode: anchors should follow the order the material is learned.",
	"exam": "Exam mode: favour formulas, definitions and keywords an examiner expects.",
	"revise": "Revise mode: compress each idea into its most memorable hook.",
}


def build_prompt(request: RecallRequest) -> str:
	lines = [
		f"panic_level: {request.panic_level}",
		_PANIC_GUIDANCE[request.panic_level],
		f"mode: {request.mode}",
		_MODE_GUIDANCE[request.mode],
		f"language: {request.language} (write every value in this language; keep JSON keys in English)",
	]
	if request.one_breath:
		lines.append("one_breath: true (anchors must read well when chained on one line)")
	lines.extend(["", "CONTENT:", request.text])
	return "\n".join(lines)

"""Heuristic vagueness scoring for study notes.

Every rule is a data record; adding a rule never touches ``analyze``. The
module is pure: no I/O, no clock, no randomness.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Pattern, Tuple

from app.backend import constants


_MAX_MATCHES_PER_RULE = 3
_ELLIPSIS_PENALTY = 0.12
_SHORT_SENTENCE_PENALTY = 0.2
_SHORT_SENTENCE_CHARS = 35
_GENERIC_QUESTION = "Which specific topic, chapter, or formula should the cues focus on?"

_ELLIPSIS_RE = re.compile(r"\.\.\.|…")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class VaguenessRule:
	pattern: Pattern[str]
	weight: float
	reason: str
	question: Callable[[str], str]


@dataclass(frozen=True)
class Trigger:
	reason: str
	fragment: str
	question: str = ""

	def public(self) -> dict:
		return {"reason": self.reason, "fragment": self.fragment}


@dataclass(frozen=True)
class VaguenessAssessment:
	score: float
	triggers: Tuple[Trigger, ...] = field(default_factory=tuple)
	needs_clarification: bool = False
	clarifying_question: str = _GENERIC_QUESTION

	def summary(self) -> dict:
		return {
			"score": self.score,
			"triggers": [trigger.public() for trigger in self.triggers],
		}


def _rule(pattern: str, weight: float, reason: str, question: Callable[[str], str]) -> VaguenessRule:
	return VaguenessRule(re.compile(pattern, re.IGNORECASE), weight, reason, question)


RULES: Tuple[VaguenessRule, ...] = (
	_rule(
		r"\b(?:kind of|sort of|maybe|i think|i guess|probably|somehow)\b",
		0.12,
		"hedging language",
		lambda fragment: f'You wrote "{fragment}". Which part are you unsure about?',
	),
	_rule(
		r"\b(?:stuff|things|something|whatever)\b",
		0.15,
		"filler noun",
		lambda fragment: f'What exactly does "{fragment}" refer to in your notes?',
	),
	_rule(
		r"\b(?:various|several|many|some|different)\s+(?:things|stuff|topics|parts|ideas|concepts)\b",
		0.18,
		"indefinite collection",
		lambda fragment: f'Can you name the items behind "{fragment}"?',
	),
	_rule(
		r"\b(?:and so on|and so forth|and more|or whatever)\b",
		0.14,
		"open-ended list",
		lambda fragment: f'What else belongs after "{fragment}"? List the remaining items.',
	),
	_rule(
		r"\betc\.",
		0.1,
		"etc. placeholder",
		lambda fragment: 'What does "etc." stand for here? Spell out the missing items.',
	),
)


def _mean_sentence_length(text: str) -> float:
	sentences = [piece for piece in _SENTENCE_SPLIT_RE.split(text) if piece.strip()]
	return len(text) / max(1, len(sentences))


def _dedupe(triggers: List[Trigger]) -> List[Trigger]:
	seen: set[Tuple[str, str]] = set()
	unique: List[Trigger] = []
	for trigger in triggers:
		key = (trigger.reason, trigger.fragment)
		if key in seen:
			continue
		seen.add(key)
		unique.append(trigger)
	return unique


def analyze(text: str) -> VaguenessAssessment:
	sample = (text or "")[: constants.VAGUENESS_INPUT_LIMIT].strip()
	score = 0.0
	triggers: List[Trigger] = []

	for rule in RULES:
		matches = [match.group(0).lower() for match in rule.pattern.finditer(sample)]
		if not matches:
			continue
		counted = matches[:_MAX_MATCHES_PER_RULE]
		score += min(1.0, rule.weight * len(counted))
		for fragment in counted:
			triggers.append(Trigger(rule.reason, fragment, rule.question(fragment)))

	ellipsis = _ELLIPSIS_RE.search(sample)
	if ellipsis:
		score += _ELLIPSIS_PENALTY
		triggers.append(
			Trigger(
				"trailing ellipsis",
				ellipsis.group(0),
				"Your notes trail off. What comes after the ellipsis?",
			)
		)

	if _mean_sentence_length(sample) < _SHORT_SENTENCE_CHARS:
		score += _SHORT_SENTENCE_PENALTY
		triggers.append(Trigger("too short for context", sample[:40], ""))

	score = round(min(1.0, max(0.0, score)), 2)
	unique = _dedupe(triggers)
	question = next((trigger.question for trigger in unique if trigger.question), _GENERIC_QUESTION)
	public = tuple(Trigger(trigger.reason, trigger.fragment) for trigger in unique[: constants.VAGUENESS_MAX_TRIGGERS])
	return VaguenessAssessment(
		score=score,
		triggers=public,
		needs_clarification=score >= constants.VAGUENESS_THRESHOLD,
		clarifying_question=question,
	)

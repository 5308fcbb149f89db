from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


PanicLevel = Literal["low", "medium", "high"]
StudyMode = Literal["study", "exam", "revise"]
Severity = Literal["low", "medium", "high"]
CostTier = Literal["low", "medium", "high"]


class _CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

	def to_payload(self) -> dict:
		return self.model_dump(by_alias=True, exclude_none=True)


class RecallRequest(_CamelModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

	text: str
	panic_level: PanicLevel = "medium"
	mode: StudyMode = "revise"
	language: str = "en"
	one_breath: bool = False
	verification_token: Optional[str] = None
	requested_model: Optional[str] = None


class Mistake(_CamelModel):
	text: str = Field(..., min_length=1)
	severity: Severity = "medium"


class GenerationResult(_CamelModel):
	anchors: List[str] = Field(..., min_length=5, max_length=5)
	fallback: str = Field(..., min_length=1)
	mistake: Mistake
	subject: str = Field(..., min_length=1)


class Usage(_CamelModel):
	tokens_estimated: int = Field(..., ge=1)
	cost_tier: CostTier


class RecallData(GenerationResult):
	confidence: float
	usage: Usage
	language: str
	one_breath_cue: Optional[str] = None


class ResponseEnvelope(_CamelModel):
	success: bool = True
	model: str
	panic_level: PanicLevel
	mode: StudyMode
	language: str
	one_breath: bool
	fallback_used: bool
	data: RecallData
	note: Optional[str] = None


class VaguenessTrigger(_CamelModel):
	reason: str
	fragment: str


class VaguenessSummary(_CamelModel):
	score: float
	triggers: List[VaguenessTrigger] = Field(default_factory=list)


class ClarificationEnvelope(_CamelModel):
	success: bool = True
	clarification_needed: bool = True
	clarifying_question: str
	vagueness: VaguenessSummary

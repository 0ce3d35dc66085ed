"""
Skills models (Pydantic).

These models define the skill catalog rows (durable store / built-in list)
and the per-message routing output.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AutonomyLevel(str, Enum):
    FULL = "full"
    APPROVAL_REQUIRED = "approval_required"


# Store rows use snake_case column names; camelCase is accepted too.
_ROW_ALIASES = {
    "triggerPatterns": "trigger_patterns",
    "requiredInputs": "required_inputs",
    "autonomyLevel": "autonomy_level",
}


class SkillDescriptor(BaseModel):
    """Static definition of one capability."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    trigger_patterns: List[str] = Field(default_factory=list)
    required_inputs: List[str] = Field(default_factory=list)
    outputs: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    autonomy_level: AutonomyLevel = AutonomyLevel.FULL
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def _accept_camel_case(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        for camel, snake in _ROW_ALIASES.items():
            if camel in out and snake not in out:
                out[snake] = out.pop(camel)
        # NULL array columns come back as None
        for key in ("trigger_patterns", "required_inputs", "outputs", "dependencies"):
            if key in out and out[key] is None:
                out[key] = []
        return out

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("skill id cannot be empty")
        return v

    @field_validator("trigger_patterns")
    @classmethod
    def _normalize_patterns(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        for p in v:
            p = str(p or "").strip().lower()
            if p and p not in out:
                out.append(p)
        return out

    @property
    def is_fallback(self) -> bool:
        return not self.trigger_patterns

    @property
    def requires_approval(self) -> bool:
        return self.autonomy_level == AutonomyLevel.APPROVAL_REQUIRED


class RoutingResult(BaseModel):
    skill_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    extracted_params: Dict[str, Any] = Field(default_factory=dict)
    requires_approval: bool = False
    reasoning: Optional[str] = None


class IntentClassification(BaseModel):
    """Structured classification as returned by the language model."""

    primary_intent: str
    confidence: float = 0.5
    entities: Dict[str, str] = Field(default_factory=dict)
    reasoning: str = ""

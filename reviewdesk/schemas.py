from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class ScoreInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    criteria_id: int
    raw_score: Optional[float] = None
    rubric_level: Optional[str] = None
    score_rationale: Optional[str] = Field(default=None, max_length=5000)
    reviewer_confidence: Optional[int] = Field(default=None, ge=1, le=5)
    is_na: bool = False


class ScoresPayload(BaseModel):
    scores: List[ScoreInput] = Field(min_length=1)


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    comments: Optional[str] = None
    overall_comments: Optional[str] = None
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    recommendation: Optional[str] = Field(default=None, max_length=50)


class CriterionInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    scoring_type: str = Field(default="numeric", pattern="^(numeric|categorical|binary)$")
    weight: float = Field(default=0, ge=0, le=100)
    min_score: float = 0
    max_score: float = 10
    sort_order: Optional[int] = None
    rubric_definition: Dict[str, str] = Field(default_factory=dict)
    scoring_guide: Optional[str] = None
    is_required: bool = True


class CriterionUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    scoring_type: Optional[str] = Field(default=None, pattern="^(numeric|categorical|binary)$")
    weight: Optional[float] = Field(default=None, ge=0, le=100)
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    sort_order: Optional[int] = None
    rubric_definition: Optional[Dict[str, str]] = None
    scoring_guide: Optional[str] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None


class AssignmentInput(BaseModel):
    application_ids: List[int] = Field(min_length=1)
    reviewer_id: int
    deadline: Optional[datetime] = None


def parse_payload(model, data: Any):
    """Validate ``data`` against ``model``; raise a field-level ValidationError."""
    if data is None:
        raise ValidationError("Request body must be JSON", field="body")
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(f"Invalid {field or 'payload'}: {first.get('msg')}", field=field)

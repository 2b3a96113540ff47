"""
Pydantic schemas for request payloads.

Every endpoint that takes a body declares it here, with required and
optional fields spelled out, so handlers never work on raw decoded JSON.
"""

from typing import Annotated, Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from quizbank.models.question import Difficulty, QuestionType

# Row ids arrive as JSON numbers only; no bools, numeric strings or zero
QuestionId = Annotated[int, Field(strict=True, gt=0)]


def _require_text(value: str, field: str) -> str:
    if value is None or not value.strip():
        raise ValueError("{} must not be empty".format(field))
    return value


# ── Questions ────────────────────────────────────────────────

class QuestionDraft(BaseModel):
    """A question as submitted for creation (or as drafted by the AI service)."""
    question_text: str = Field(..., description="The question prompt")
    code_snippet: Optional[str] = Field(None, description="Optional code shown with the prompt")
    explanation: str = Field(..., description="Why the correct answers are correct")
    options: Dict[str, Any] = Field(default_factory=dict, description="Option key -> option text")
    correct_answers: List[str] = Field(default_factory=list, description="Keys of the correct options")
    topics: List[str] = Field(default_factory=list, description="Topic tags")
    difficulty: Difficulty
    question_type: QuestionType
    language: str = Field(..., description="Language tag, e.g. Python")

    @field_validator("question_text", "explanation", "language")
    @classmethod
    def not_blank(cls, value, info):
        return _require_text(value, info.field_name)

    @model_validator(mode="after")
    def answers_reference_options(self):
        # Choice questions must point at options that exist
        if self.question_type in (QuestionType.MCQ, QuestionType.MSQ):
            if not self.correct_answers:
                raise ValueError("correct_answers must not be empty for {} questions".format(
                    self.question_type.value))
            missing = [a for a in self.correct_answers if a not in self.options]
            if missing:
                raise ValueError("correct_answers {} are not keys of options".format(missing))
            if self.question_type == QuestionType.MCQ and len(self.correct_answers) != 1:
                raise ValueError("MCQ questions must have exactly one correct answer")
        return self


class QuestionUpdate(QuestionDraft):
    """Full replacement of an existing question (last write wins)."""
    id: QuestionId = Field(..., description="Question to overwrite")


# ── Tests ────────────────────────────────────────────────────

class CreateTestRequest(BaseModel):
    """Payload for creating a test together with its initial questions."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    duration_minutes: int = Field(..., alias="durationInMinutes", gt=0)
    question_ids: List[QuestionId] = Field(..., alias="questionIds", min_length=1)

    @field_validator("name", "description")
    @classmethod
    def not_blank(cls, value, info):
        return _require_text(value, info.field_name)


class UpdateTestRequest(BaseModel):
    """Payload for updating a test's scalar fields."""
    name: str
    description: str
    duration_minutes: int = Field(..., gt=0)

    @field_validator("name", "description")
    @classmethod
    def not_blank(cls, value, info):
        return _require_text(value, info.field_name)


class AddQuestionsRequest(BaseModel):
    """Payload for linking more questions to an existing test."""
    model_config = ConfigDict(populate_by_name=True)

    question_ids: List[QuestionId] = Field(..., alias="questionIds", min_length=1)


class RemoveQuestionRequest(BaseModel):
    """Payload for unlinking one question from a test."""
    model_config = ConfigDict(populate_by_name=True)

    question_id: QuestionId = Field(..., alias="questionId")


# ── AI generation ────────────────────────────────────────────

class GenerationParams(BaseModel):
    """What to ask the AI service for."""
    language: str
    topic: str
    difficulty: Difficulty = Difficulty.MODERATE
    question_type: QuestionType = Field(QuestionType.MCQ, alias="questionType")
    quantity: int = Field(5, ge=1, le=10)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("language", "topic")
    @classmethod
    def not_blank(cls, value, info):
        return _require_text(value, info.field_name)

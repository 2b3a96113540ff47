"""
Question Generation Service - drafts questions with the Gemini REST API.

The service asks Gemini's generateContent endpoint for a JSON document
matching a response schema, then keeps only drafts that carry the fields a
question needs. Drafts are returned to the caller, never stored; saving
them is a separate POST /questions/create.
"""

import json
import time
from typing import List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from quizbank.errors import GenerationError
from quizbank.logging_config import get_logger, log_with_context
from quizbank.schemas import GenerationParams, QuestionDraft
from quizbank.models.question import Difficulty, QuestionType

logger = get_logger("generation")

# Fields a draft must have (and be truthy) to be kept
REQUIRED_DRAFT_FIELDS = ("question_text", "options", "correct_answers", "explanation")

QUESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "question_text": {"type": "STRING"},
        "code_snippet": {"type": "STRING"},
        "explanation": {"type": "STRING"},
        "options": {
            "type": "OBJECT",
            "properties": {k: {"type": "STRING"} for k in ("a", "b", "c", "d")},
            "required": ["a", "b", "c", "d"],
        },
        "correct_answers": {"type": "ARRAY", "items": {"type": "STRING"}},
        "topics": {"type": "ARRAY", "items": {"type": "STRING"}},
        "difficulty": {"type": "STRING", "enum": [d.value for d in Difficulty]},
        "question_type": {"type": "STRING", "enum": [t.value for t in QuestionType]},
        "language": {"type": "STRING"},
    },
    "required": ["question_text", "explanation", "options", "correct_answers",
                 "topics", "difficulty", "question_type", "language"],
}

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"questions": {"type": "ARRAY", "items": QUESTION_SCHEMA}},
}


def build_prompt(params: GenerationParams) -> str:
    return (
        'Generate {} high-quality, unique quiz questions. Topic: "{}" in "{}". '
        'Difficulty: "{}". Type: "{}".'
    ).format(params.quantity, params.topic, params.language,
             params.difficulty.value, params.question_type.value)


class QuestionGenerator:
    """Client for Gemini's generateContent endpoint."""

    def __init__(self, api_key: Optional[str], model: str, base_url: str,
                 timeout: float = 60.0, client: httpx.Client = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def close(self):
        self._client.close()

    def generate(self, params: GenerationParams) -> List[QuestionDraft]:
        """
        Ask the model for `params.quantity` question drafts.

        Raises:
            GenerationError: on transport failure, a non-2xx response,
                an unparseable body, or when no usable draft comes back
        """
        start_time = time.time()
        url = "{}/models/{}:generateContent".format(self.base_url, self.model)
        payload = {
            "contents": [{"parts": [{"text": build_prompt(params)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

        try:
            response = self._client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            log_with_context(logger, "ERROR", "Gemini request failed: {}".format(str(e)))
            raise GenerationError("AI service request failed: {}".format(str(e))) from e

        if response.status_code >= 400:
            log_with_context(logger, "ERROR", "Gemini returned {}".format(response.status_code),
                             extra_data={"body": response.text[:500]})
            raise GenerationError("API Error: {} - {}".format(response.status_code, response.text[:200]))

        try:
            body = response.json()
        except ValueError as e:
            raise GenerationError("AI service returned a non-JSON response.") from e

        drafts = self._parse_response(body, params)

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "INFO",
            "Generated {} question drafts ({} requested)".format(len(drafts), params.quantity),
            extra_data={"duration_ms": round(duration_ms, 2), "language": params.language,
                        "topic": params.topic})
        return drafts

    def _parse_response(self, body: dict, params: GenerationParams) -> List[QuestionDraft]:
        """Pull the generated JSON text out of a generateContent response."""
        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise GenerationError("Failed to parse generated content from the AI.")

        # Models sometimes wrap JSON in a markdown fence despite the mime type
        cleaned = text.strip()
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:]
        elif cleaned.startswith("```"):
            cleaned = cleaned[3:]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            log_with_context(logger, "ERROR", "Failed to parse generated JSON: {}".format(str(e)),
                             extra_data={"response_text": text[:500]})
            raise GenerationError("Failed to parse generated content from the AI.") from e

        raw_questions = parsed.get("questions", []) if isinstance(parsed, dict) else parsed
        if not isinstance(raw_questions, list):
            raw_questions = []

        drafts = []
        for index, raw in enumerate(raw_questions):
            if not isinstance(raw, dict) or not all(raw.get(f) for f in REQUIRED_DRAFT_FIELDS):
                continue
            try:
                drafts.append(QuestionDraft(
                    question_text=raw["question_text"],
                    code_snippet=raw.get("code_snippet") or None,
                    explanation=raw["explanation"],
                    options=raw["options"],
                    correct_answers=raw["correct_answers"],
                    topics=raw.get("topics") or [params.topic],
                    difficulty=raw.get("difficulty") or params.difficulty,
                    question_type=raw.get("question_type") or params.question_type,
                    language=raw.get("language") or params.language,
                ))
            except PydanticValidationError as e:
                log_with_context(logger, "WARNING", "Dropping invalid draft {}".format(index),
                                 extra_data={"errors": e.errors(include_url=False)})

        if not drafts:
            raise GenerationError("The AI failed to generate any valid questions. Please try again.")
        return drafts

"""
Question API routes - the question bank itself.

Provides endpoints for:
- Listing, updating and deleting questions
- Bulk-creating questions in a single statement
- Random sampling by language and difficulty
- Drafting new questions with the AI generation service
"""

from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from quizbank.database import get_db
from quizbank.errors import ValidationError, GenerationUnavailable
from quizbank.models.question import Difficulty
from quizbank.schemas import QuestionDraft, QuestionUpdate, GenerationParams
from quizbank.services import queries
from quizbank.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


@router.get("/api/questions")
def list_questions(db: Session = Depends(get_db)):
    """List every question in the bank."""
    return {"success": True, "questions": queries.list_questions(db)}


@router.put("/api/questions")
def update_question(payload: QuestionUpdate, db: Session = Depends(get_db)):
    """Overwrite an existing question. The body carries the id."""
    return {"success": True, "question": queries.update_question(db, payload)}


@router.delete("/api/questions")
def delete_question(
    id: Optional[int] = Query(None, description="Question to delete"),
    db: Session = Depends(get_db)
):
    """Delete a question by id (?id=123)."""
    if id is None:
        raise ValidationError("Question ID is required.")
    queries.delete_question(db, id)
    return {"success": True, "message": "Question with ID {} deleted.".format(id)}


@router.post("/api/questions/create", status_code=201)
def create_questions(
    drafts: List[QuestionDraft] = Body(..., description="Question drafts to insert"),
    db: Session = Depends(get_db)
):
    """
    Bulk insert questions.

    All drafts go in with one INSERT statement, so either every question is
    stored or none is.
    """
    if not drafts:
        raise ValidationError("Request body must be a non-empty array of question objects.")

    question_ids = queries.create_questions(db, drafts)
    return {
        "message": "Successfully added {} questions!".format(len(question_ids)),
        "questionIds": question_ids,
    }


@router.get("/api/questions/find")
def find_questions(
    request: Request,
    language: Optional[str] = Query(None, description="Language to sample from (required)"),
    difficulty: Optional[str] = Query(None, description="Easy | Moderate | Hard | Any"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum rows to return"),
    db: Session = Depends(get_db)
):
    """Random sample of questions for a language, optionally one difficulty."""
    if not language:
        raise ValidationError("Language parameter is required.")

    level = None
    if difficulty and difficulty != "Any":
        try:
            level = Difficulty(difficulty)
        except ValueError:
            raise ValidationError("Unknown difficulty '{}'. Use one of: {}.".format(
                difficulty, ", ".join(d.value for d in Difficulty)))

    if limit is None:
        limit = request.app.state.settings.default_sample_limit

    return queries.sample_questions(db, language, level, limit)


@router.post("/api/questions/generate")
def generate_questions(params: GenerationParams, request: Request):
    """
    Draft questions with the AI service.

    Nothing is stored; send the drafts to POST /api/questions/create to keep them.
    """
    generator = request.app.state.generator
    if not generator.configured:
        raise GenerationUnavailable("AI generation is not configured (GEMINI_API_KEY is unset).")

    drafts = generator.generate(params)
    log_with_context(logger, "INFO", "Returning {} generated drafts".format(len(drafts)),
                     extra_data={"language": params.language, "topic": params.topic})
    return {
        "success": True,
        "message": "Successfully generated {} questions!".format(len(drafts)),
        "questions": [d.model_dump(mode="json") for d in drafts],
    }

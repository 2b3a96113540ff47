"""
Query Service - read-side operations plus the question write endpoints.

Filtering, ordering, counting and random sampling all happen in the
database; nothing here holds state between calls.
"""

import time
from typing import List, Optional
from sqlalchemy import select, func, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizbank.errors import NotFoundError, StoreError
from quizbank.logging_config import get_logger, log_with_context
from quizbank.models.question import Question, Difficulty
from quizbank.models.test import Test
from quizbank.models.test_question import TestQuestion
from quizbank.schemas import QuestionUpdate
from quizbank.services.bulk_insert import question_row, insert_questions

logger = get_logger("db")


def _isoformat(value):
    return value.isoformat() if value else None


def serialize_question(question: Question) -> dict:
    """Serialize a Question ORM object to a dict for API response."""
    return {
        "id": question.id,
        "question_text": question.question_text,
        "code_snippet": question.code_snippet,
        "explanation": question.explanation,
        "options": question.options or {},
        "correct_answers": list(question.correct_answers or []),
        "topics": list(question.topics or []),
        "difficulty": question.difficulty,
        "question_type": question.question_type,
        "language": question.language,
        "created_at": _isoformat(question.created_at),
    }


def serialize_test(test: Test) -> dict:
    return {
        "id": test.id,
        "name": test.name,
        "description": test.description,
        "duration_minutes": test.duration_minutes,
        "created_at": _isoformat(test.created_at),
    }


def _question_summary(row) -> dict:
    return {
        "id": row.id,
        "text": row.question_text,
        "language": row.language,
        "difficulty": row.difficulty,
    }


# ── Questions ────────────────────────────────────────────────

def list_questions(db: Session) -> List[dict]:
    questions = db.execute(select(Question).order_by(Question.id)).scalars().all()
    return [serialize_question(q) for q in questions]


def sample_questions(db: Session, language: str, difficulty: Optional[Difficulty] = None,
                     limit: int = 20) -> List[dict]:
    """
    Pick up to `limit` random questions for a language, optionally one difficulty.

    Every call re-randomizes; there is no uniformity guarantee across calls.
    """
    start_time = time.time()

    query = select(Question.id, Question.question_text, Question.language, Question.difficulty) \
        .where(Question.language == language)
    if difficulty is not None:
        query = query.where(Question.difficulty == difficulty.value)
    query = query.order_by(func.random()).limit(limit)

    rows = db.execute(query).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Sampled {} questions (language={}, difficulty={}, limit={})".format(
            len(rows), language, difficulty.value if difficulty else "Any", limit),
        extra_data={"duration_ms": round(duration_ms, 2)})
    return [_question_summary(r) for r in rows]


def create_questions(db: Session, drafts) -> List[int]:
    """Insert a batch of question drafts in one statement and commit."""
    try:
        ids = insert_questions(db, drafts)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Bulk question insert failed: {}".format(str(e)),
                         extra_data={"rows": len(drafts)})
        raise StoreError("Database Error: {}".format(str(e).splitlines()[0])) from e

    log_with_context(logger, "INFO", "Created {} questions".format(len(ids)),
                     extra_data={"question_ids": ids})
    return ids


def update_question(db: Session, payload: QuestionUpdate) -> dict:
    """Overwrite every field of an existing question."""
    question = db.get(Question, payload.id)
    if question is None:
        raise NotFoundError("Question not found.")

    for field, value in question_row(payload).items():
        setattr(question, field, value)
    try:
        db.commit()
        db.refresh(question)
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to update question {}: {}".format(payload.id, str(e)),
                         context={"question_id": payload.id})
        raise StoreError("Database Error: {}".format(str(e).splitlines()[0])) from e

    log_with_context(logger, "INFO", "Updated question {}".format(payload.id),
                     context={"question_id": payload.id})
    return serialize_question(question)


def delete_question(db: Session, question_id: int):
    """Delete a question; its test links cascade with it."""
    try:
        result = db.execute(delete(Question).where(Question.id == question_id))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to delete question {}: {}".format(question_id, str(e)),
                         context={"question_id": question_id})
        raise StoreError("Database Error: {}".format(str(e).splitlines()[0])) from e

    if result.rowcount == 0:
        raise NotFoundError("Question not found.")

    log_with_context(logger, "INFO", "Deleted question {}".format(question_id),
                     context={"question_id": question_id})


# ── Tests ────────────────────────────────────────────────────

def list_tests(db: Session) -> List[dict]:
    """All tests with their linked-question counts, newest first."""
    question_count = func.count(TestQuestion.question_id).label("question_count")
    rows = db.execute(
        select(Test, question_count)
        .outerjoin(TestQuestion, TestQuestion.test_id == Test.id)
        .group_by(Test.id)
        .order_by(Test.created_at.desc(), Test.id.desc())
    ).all()

    return [
        {**serialize_test(test), "question_count": count}
        for test, count in rows
    ]


def get_test_detail(db: Session, test_id: int) -> dict:
    """A test's fields plus a summary of every linked question."""
    test = db.get(Test, test_id)
    if test is None:
        raise NotFoundError("Test with ID {} not found.".format(test_id))

    questions = db.execute(
        select(Question.id, Question.question_text, Question.language, Question.difficulty)
        .join(TestQuestion, TestQuestion.question_id == Question.id)
        .where(TestQuestion.test_id == test_id)
        .order_by(Question.id)
    ).all()

    return {**serialize_test(test), "questions": [_question_summary(q) for q in questions]}

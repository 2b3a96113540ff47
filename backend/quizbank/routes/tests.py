"""
Test API routes - authoring tests and managing their questions.

Provides endpoints for:
- Creating a test with its questions in one transaction
- Listing tests with question counts, and viewing one test's questions
- Updating and deleting tests
- Adding questions to / removing a question from an existing test
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizbank.database import get_db
from quizbank.schemas import (
    CreateTestRequest, UpdateTestRequest, AddQuestionsRequest, RemoveQuestionRequest
)
from quizbank.services import authoring, queries
from quizbank.services.queries import serialize_test

router = APIRouter()


@router.get("/api/tests")
def list_tests(db: Session = Depends(get_db)):
    """All tests, newest first, each with its question_count."""
    return queries.list_tests(db)


@router.post("/api/tests/create", status_code=201)
def create_test(payload: CreateTestRequest, db: Session = Depends(get_db)):
    """
    Create a test and attach its questions atomically.

    The payload is validated before any transaction starts. If linking any
    question fails, the test row is rolled back with it.
    """
    test_id = authoring.create_test_with_questions(db, payload)
    return {
        "message": 'Successfully created test "{}" with {} questions.'.format(
            payload.name, len(authoring.unique_ids(payload.question_ids))),
        "testId": test_id,
    }


@router.get("/api/tests/{test_id}")
def get_test(test_id: int, db: Session = Depends(get_db)):
    """One test with the id, text, difficulty and language of each linked question."""
    return queries.get_test_detail(db, test_id)


@router.put("/api/tests/{test_id}")
def update_test(test_id: int, payload: UpdateTestRequest, db: Session = Depends(get_db)):
    """Overwrite a test's name, description and duration."""
    test = authoring.update_test(db, test_id, payload.name, payload.description,
                                 payload.duration_minutes)
    return serialize_test(test)


@router.delete("/api/tests/{test_id}")
def delete_test(test_id: int, db: Session = Depends(get_db)):
    """Delete a test and its question links."""
    authoring.delete_test(db, test_id)
    return {"message": "Test deleted successfully."}


@router.post("/api/tests/{test_id}/questions", status_code=201)
def add_questions(test_id: int, payload: AddQuestionsRequest, db: Session = Depends(get_db)):
    """Link questions to a test. Questions that are already linked are skipped."""
    inserted = authoring.add_questions_to_test(db, test_id, payload.question_ids)
    return {"message": "Questions added successfully.", "added": inserted}


@router.delete("/api/tests/{test_id}/questions")
def remove_question(test_id: int, payload: RemoveQuestionRequest, db: Session = Depends(get_db)):
    """Unlink one question from a test. Unlinking a question that is not linked is a no-op."""
    authoring.remove_question_from_test(db, test_id, payload.question_id)
    return {"message": "Question removed successfully."}

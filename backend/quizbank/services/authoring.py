"""
Test Authoring Service - creating tests and managing their question links.

create_test_with_questions() is the one multi-step write in the system:

    BEGIN -> INSERT test -> INSERT links -> COMMIT

Both inserts run inside a single Session.begin() block, so the test row and
all of its links become visible together or not at all. Any failure after
BEGIN (including a link that references a question id that does not exist)
rolls back the test row too, and the connection always goes back to the
pool before the call returns.

Payload validation happens in the request schema, before this module is
called, so a rejected payload never opens a transaction.

Adding and removing links later are single statements, each atomic on its
own, and both are safe to retry:
- adding a link that already exists is skipped (ON CONFLICT DO NOTHING)
- removing a link that does not exist deletes nothing and still succeeds
"""

import time
from typing import Sequence
from sqlalchemy import insert, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizbank.errors import NotFoundError, StoreError
from quizbank.logging_config import get_logger, log_with_context
from quizbank.models.test import Test
from quizbank.models.test_question import TestQuestion
from quizbank.schemas import CreateTestRequest
from quizbank.services.bulk_insert import insert_test_links

logger = get_logger("authoring")


def unique_ids(ids: Sequence[int]) -> list:
    """Drop repeated ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def create_test_with_questions(db: Session, payload: CreateTestRequest) -> int:
    """
    Create a test and link its questions in one transaction.

    Args:
        db: A fresh session with no transaction in progress
        payload: Validated creation payload

    Returns:
        The new test id, only after COMMIT

    Raises:
        StoreError: if any statement fails; the transaction has been rolled back
    """
    start_time = time.time()
    question_ids = unique_ids(payload.question_ids)
    stage = "BEGIN_TX"
    test_id = None

    try:
        with db.begin():
            stage = "INSERT_TEST"
            test_id = db.execute(
                insert(Test)
                .values(name=payload.name,
                        description=payload.description,
                        duration_minutes=payload.duration_minutes)
                .returning(Test.id)
            ).scalar_one()

            stage = "INSERT_LINKS"
            insert_test_links(db, test_id, question_ids)

            stage = "COMMIT"
    except SQLAlchemyError as e:
        # Session.begin() has already rolled back by the time we get here
        log_with_context(logger, "ERROR",
            "Test creation rolled back at {}: {}".format(stage, str(e)),
            context={"stage": stage, "test_name": payload.name},
            extra_data={"question_count": len(question_ids)})
        raise StoreError("Database Error: {}".format(str(e).splitlines()[0])) from e

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Created test {} with {} questions".format(test_id, len(question_ids)),
        context={"test_id": test_id},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return test_id


def add_questions_to_test(db: Session, test_id: int, question_ids: Sequence[int]) -> int:
    """
    Link more questions to an existing test.

    Returns:
        How many links were new (already-linked questions are skipped)
    """
    try:
        inserted = insert_test_links(db, test_id, unique_ids(question_ids))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR",
            "Failed to add questions to test {}: {}".format(test_id, str(e)),
            context={"test_id": test_id})
        raise StoreError("Failed to add questions.") from e

    log_with_context(logger, "INFO",
        "Added {} new question links to test {}".format(inserted, test_id),
        context={"test_id": test_id},
        extra_data={"requested": len(question_ids), "inserted": inserted})
    return inserted


def remove_question_from_test(db: Session, test_id: int, question_id: int) -> int:
    """
    Unlink one question from a test.

    Returns:
        Rows deleted (0 when the link did not exist, which is not an error)
    """
    try:
        result = db.execute(
            delete(TestQuestion).where(
                TestQuestion.test_id == test_id,
                TestQuestion.question_id == question_id,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR",
            "Failed to remove question {} from test {}: {}".format(question_id, test_id, str(e)),
            context={"test_id": test_id, "question_id": question_id})
        raise StoreError("Failed to remove question.") from e

    log_with_context(logger, "INFO",
        "Removed question {} from test {} ({} rows)".format(question_id, test_id, result.rowcount),
        context={"test_id": test_id, "question_id": question_id})
    return result.rowcount


def update_test(db: Session, test_id: int, name: str, description: str,
                duration_minutes: int) -> Test:
    """Overwrite a test's scalar fields. Last write wins."""
    test = db.get(Test, test_id)
    if test is None:
        raise NotFoundError("Test with ID {} not found.".format(test_id))

    test.name = name
    test.description = description
    test.duration_minutes = duration_minutes
    try:
        db.commit()
        db.refresh(test)
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to update test {}: {}".format(test_id, str(e)),
                         context={"test_id": test_id})
        raise StoreError("Failed to update test.") from e

    log_with_context(logger, "INFO", "Updated test {}".format(test_id),
                     context={"test_id": test_id})
    return test


def delete_test(db: Session, test_id: int) -> int:
    """Delete a test; its question links cascade with it."""
    try:
        result = db.execute(delete(Test).where(Test.id == test_id))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to delete test {}: {}".format(test_id, str(e)),
                         context={"test_id": test_id})
        raise StoreError("Failed to delete test.") from e

    log_with_context(logger, "INFO", "Deleted test {} ({} rows)".format(test_id, result.rowcount),
                     context={"test_id": test_id})
    return result.rowcount

"""
Bulk Insert Service - one INSERT statement for a whole collection of rows.

A bulk insert sends a single multi-row statement:

    INSERT INTO t (a, b) VALUES (:a_m0, :b_m0), (:a_m1, :b_m1), ...

Every row gets its own bound parameters, so parameter names (and the
positional indices the driver renders them to) are unique across the whole
statement rather than reset per row. The statement succeeds or fails as a
unit: a constraint violation in any row inserts nothing.

An empty collection is rejected instead of silently ignored, because it
always means the caller has a bug.
"""

from typing import List, Optional, Sequence
from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from quizbank.errors import ValidationError, StoreError
from quizbank.logging_config import get_logger, log_with_context
from quizbank.models.question import Question
from quizbank.models.test_question import TestQuestion

logger = get_logger("db")

# Dialects that understand INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Column order of a question row in the bulk statement
QUESTION_FIELDS = (
    "question_text", "code_snippet", "explanation", "options",
    "correct_answers", "topics", "language", "difficulty", "question_type",
)


def build_bulk_insert(db: Session, model, rows: Sequence[dict],
                      returning: Optional[list] = None,
                      ignore_conflicts: Optional[list] = None):
    """
    Build one multi-row INSERT statement for `rows`.

    Args:
        db: Session whose bind decides the SQL dialect
        model: ORM class of the target table
        rows: Non-empty sequence of column -> value dicts, all with the same keys
        returning: Columns to return for each inserted row
        ignore_conflicts: Unique-key columns; conflicting rows are skipped
            with ON CONFLICT (...) DO NOTHING

    Raises:
        ValidationError: if rows is empty or the rows do not share one column set
    """
    if not rows:
        raise ValidationError("Bulk insert requires at least one row.")

    columns = set(rows[0].keys())
    for index, row in enumerate(rows):
        if set(row.keys()) != columns:
            raise ValidationError(
                "Bulk insert rows must all have the same fields (row {} differs).".format(index))

    if ignore_conflicts:
        dialect = db.get_bind().dialect.name
        dialect_insert = _CONFLICT_INSERTS.get(dialect)
        if dialect_insert is None:
            raise StoreError("Conflict-tolerant insert is not supported on {}".format(dialect))
        stmt = dialect_insert(model).values(list(rows))
        stmt = stmt.on_conflict_do_nothing(index_elements=ignore_conflicts)
    else:
        stmt = insert(model).values(list(rows))

    if returning:
        stmt = stmt.returning(*returning)
    return stmt


def question_row(draft) -> dict:
    """Flatten a validated question draft into a row for the questions table."""
    return {
        "question_text": draft.question_text,
        "code_snippet": draft.code_snippet or None,
        "explanation": draft.explanation,
        "options": draft.options,
        "correct_answers": list(draft.correct_answers),
        "topics": list(draft.topics),
        "language": draft.language,
        "difficulty": draft.difficulty.value,
        "question_type": draft.question_type.value,
    }


def insert_questions(db: Session, drafts: Sequence) -> List[int]:
    """
    Insert every draft with a single statement.

    Does not commit; the caller owns the transaction.

    Returns:
        Generated question ids, in insertion order
    """
    rows = [question_row(d) for d in drafts]
    stmt = build_bulk_insert(db, Question, rows, returning=[Question.id])
    result = db.execute(stmt)
    ids = [row[0] for row in result.all()]

    log_with_context(logger, "DEBUG", "Bulk inserted {} questions".format(len(ids)),
                     extra_data={"rows": len(rows), "fields": len(QUESTION_FIELDS)})
    return ids


def insert_test_links(db: Session, test_id: int, question_ids: Sequence[int]) -> int:
    """
    Link questions to a test with a single conflict-tolerant statement.

    Pairs that already exist (or repeat inside `question_ids`) are skipped.
    Does not commit; the caller owns the transaction.

    Returns:
        Number of link rows actually inserted
    """
    rows = [{"test_id": test_id, "question_id": qid} for qid in question_ids]
    stmt = build_bulk_insert(db, TestQuestion, rows,
                             returning=[TestQuestion.question_id],
                             ignore_conflicts=["test_id", "question_id"])
    inserted = len(db.execute(stmt).all())

    log_with_context(logger, "DEBUG",
                     "Linked {} of {} questions to test {}".format(inserted, len(rows), test_id),
                     context={"test_id": test_id})
    return inserted

"""Tests for the single-statement bulk insert."""

import pytest
from sqlalchemy import select, func
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import IntegrityError

from quizbank.errors import ValidationError
from quizbank.models import Question, TestQuestion
from quizbank.schemas import QuestionDraft, CreateTestRequest
from quizbank.services.bulk_insert import (
    build_bulk_insert, insert_questions, insert_test_links, QUESTION_FIELDS
)
from quizbank.services.authoring import create_test_with_questions

from conftest import make_question


def _drafts(n):
    return [QuestionDraft(**make_question(question_text="Question {}".format(i))) for i in range(n)]


def test_empty_rows_are_rejected(db):
    with pytest.raises(ValidationError):
        build_bulk_insert(db, TestQuestion, [])


def test_rows_must_share_fields(db):
    rows = [{"test_id": 1, "question_id": 1}, {"test_id": 1}]
    with pytest.raises(ValidationError):
        build_bulk_insert(db, TestQuestion, rows)


def test_parameters_are_unique_across_the_whole_statement(db):
    rows = [{"test_id": 7, "question_id": qid} for qid in (1, 2, 3, 4)]
    compiled = build_bulk_insert(db, TestQuestion, rows).compile(dialect=sqlite.dialect())

    assert compiled.positiontup is not None
    assert len(compiled.positiontup) == 8
    assert len(set(compiled.positiontup)) == 8
    assert str(compiled).count("(?, ?)") == 4


def test_question_statement_has_a_parameter_group_per_row(db):
    rows = [{f: None for f in QUESTION_FIELDS} for _ in range(3)]
    compiled = build_bulk_insert(db, Question, rows).compile(dialect=sqlite.dialect())

    assert len(set(compiled.positiontup)) == len(compiled.positiontup)
    assert len(compiled.positiontup) >= 3 * len(QUESTION_FIELDS)


def test_insert_questions_sends_one_statement_and_returns_ids_in_order(db, statements):
    ids = insert_questions(db, _drafts(25))
    db.commit()

    inserts = [s for s in statements if s.lstrip().upper().startswith("INSERT")]
    assert len(inserts) == 1
    assert len(ids) == 25
    assert ids == sorted(ids)

    texts = db.execute(select(Question.question_text).order_by(Question.id)).scalars().all()
    assert texts == ["Question {}".format(i) for i in range(25)]


def test_failed_row_inserts_nothing(db):
    rows = [{f: "x" for f in QUESTION_FIELDS} for _ in range(3)]
    rows[2]["question_text"] = None
    for row in rows:
        row["options"] = {}
        row["correct_answers"] = []
        row["topics"] = []

    with pytest.raises(IntegrityError):
        db.execute(build_bulk_insert(db, Question, rows))
    db.rollback()

    assert db.execute(select(func.count()).select_from(Question)).scalar_one() == 0


def test_insert_test_links_skips_existing_pairs(db):
    question_ids = insert_questions(db, _drafts(3))
    db.commit()
    test_id = create_test_with_questions(db, CreateTestRequest(
        name="Links", description="d", durationInMinutes=10, questionIds=question_ids[:1]))

    inserted = insert_test_links(db, test_id, question_ids + question_ids)
    db.commit()

    assert inserted == 2
    count = db.execute(
        select(func.count()).select_from(TestQuestion).where(TestQuestion.test_id == test_id)
    ).scalar_one()
    assert count == 3

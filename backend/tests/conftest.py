"""
Shared fixtures: an application wired to a fresh in-memory SQLite database
for every test, plus helpers for building question payloads.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from quizbank.config import Settings
from quizbank.main import create_app


def make_question(**overrides) -> dict:
    """A valid MCQ draft; override any field."""
    question = {
        "question_text": "What does len([1, 2, 3]) return?",
        "code_snippet": None,
        "explanation": "len() counts the items in the list.",
        "options": {"a": "2", "b": "3", "c": "4", "d": "An error"},
        "correct_answers": ["b"],
        "topics": ["Data Types"],
        "difficulty": "Easy",
        "question_type": "MCQ",
        "language": "Python",
    }
    question.update(overrides)
    return question


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", log_level="WARNING",
                    gemini_api_key="test-key")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def database(client):
    return client.app.state.database


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def statements(database):
    """Every SQL statement sent to the database after this fixture is requested."""
    seen = []

    def record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(database.engine, "before_cursor_execute", record)
    yield seen
    event.remove(database.engine, "before_cursor_execute", record)


@pytest.fixture
def create_questions(client):
    """Insert questions through the API and return their ids."""
    def _create(*drafts):
        response = client.post("/api/questions/create", json=list(drafts))
        assert response.status_code == 201, response.text
        return response.json()["questionIds"]
    return _create

"""Tests for authoring tests and managing their question links."""

from sqlalchemy import select, func

from quizbank.models import Test, TestQuestion

from conftest import make_question


def _create_test(client, question_ids, name="Quiz1", description="d", duration=30):
    return client.post("/api/tests/create", json={
        "name": name,
        "description": description,
        "durationInMinutes": duration,
        "questionIds": question_ids,
    })


def test_create_then_fetch_returns_every_question(client, create_questions):
    ids = create_questions(make_question(), make_question(), make_question())
    assert ids == [1, 2, 3]

    response = _create_test(client, [1, 2, 3])
    assert response.status_code == 201
    test_id = response.json()["testId"]
    assert isinstance(test_id, int)

    detail = client.get("/api/tests/{}".format(test_id))
    assert detail.status_code == 200
    body = detail.json()
    assert body["name"] == "Quiz1"
    assert body["duration_minutes"] == 30
    assert len(body["questions"]) == 3
    assert {q["id"] for q in body["questions"]} == {1, 2, 3}
    assert set(body["questions"][0]) == {"id", "text", "language", "difficulty"}


def test_duplicate_ids_in_payload_are_collapsed(client, create_questions):
    ids = create_questions(make_question(), make_question())

    response = _create_test(client, ids + ids + [ids[0]])
    assert response.status_code == 201

    detail = client.get("/api/tests/{}".format(response.json()["testId"])).json()
    assert sorted(q["id"] for q in detail["questions"]) == sorted(ids)


def test_unknown_question_rolls_back_the_test(client, create_questions, database):
    ids = create_questions(make_question())

    response = _create_test(client, ids + [9999], name="Orphan Test")
    assert response.status_code == 500
    assert "error" in response.json()

    with database.session() as session:
        orphans = session.execute(
            select(func.count()).select_from(Test).where(Test.name == "Orphan Test")
        ).scalar_one()
        links = session.execute(select(func.count()).select_from(TestQuestion)).scalar_one()
    assert orphans == 0
    assert links == 0
    assert all(t["name"] != "Orphan Test" for t in client.get("/api/tests").json())


def test_invalid_payload_is_rejected_before_touching_the_database(client, statements):
    bad_payloads = [
        {"name": "", "description": "d", "durationInMinutes": 30, "questionIds": [1]},
        {"name": "n", "description": "", "durationInMinutes": 30, "questionIds": [1]},
        {"name": "n", "description": "d", "durationInMinutes": 0, "questionIds": [1]},
        {"name": "n", "description": "d", "durationInMinutes": 30, "questionIds": []},
        {"name": "n", "description": "d", "durationInMinutes": 30, "questionIds": "1,2"},
        {"name": "n", "description": "d", "durationInMinutes": 30, "questionIds": [True]},
        {"name": "n", "description": "d", "durationInMinutes": 30, "questionIds": ["1"]},
        {"name": "n", "description": "d", "durationInMinutes": 30, "questionIds": [0]},
        {"name": "n", "description": "d", "durationInMinutes": 30},
    ]
    for payload in bad_payloads:
        response = client.post("/api/tests/create", json=payload)
        assert response.status_code == 400, payload
        assert response.json()["error"]

    assert statements == []


def test_retrying_creation_makes_a_second_test(client, create_questions):
    ids = create_questions(make_question())

    first = _create_test(client, ids).json()["testId"]
    second = _create_test(client, ids).json()["testId"]

    assert first != second
    assert len(client.get("/api/tests").json()) == 2


def test_list_tests_counts_questions_newest_first(client, create_questions):
    ids = create_questions(make_question(), make_question(), make_question())
    older = _create_test(client, ids[:1], name="Older").json()["testId"]
    newer = _create_test(client, ids, name="Newer").json()["testId"]
    client.request("DELETE", "/api/tests/{}/questions".format(older), json={"questionId": ids[0]})

    tests = client.get("/api/tests").json()

    assert [t["id"] for t in tests] == [newer, older]
    assert tests[0]["question_count"] == 3
    assert tests[1]["question_count"] == 0


def test_test_without_questions_has_empty_list(client, create_questions):
    ids = create_questions(make_question())
    test_id = _create_test(client, ids).json()["testId"]
    client.request("DELETE", "/api/tests/{}/questions".format(test_id), json={"questionId": ids[0]})

    response = client.get("/api/tests/{}".format(test_id))

    assert response.status_code == 200
    assert response.json()["questions"] == []


def test_get_test_errors(client):
    assert client.get("/api/tests/abc").status_code == 400
    response = client.get("/api/tests/424242")
    assert response.status_code == 404
    assert "424242" in response.json()["error"]


def test_adding_the_same_question_twice_keeps_one_link(client, create_questions, database):
    ids = create_questions(make_question(), make_question())
    test_id = _create_test(client, ids[:1]).json()["testId"]

    for _ in range(2):
        response = client.post("/api/tests/{}/questions".format(test_id),
                               json={"questionIds": [ids[1]]})
        assert response.status_code == 201

    with database.session() as session:
        count = session.execute(
            select(func.count()).select_from(TestQuestion).where(
                TestQuestion.test_id == test_id, TestQuestion.question_id == ids[1])
        ).scalar_one()
    assert count == 1


def test_add_questions_requires_ids(client, create_questions):
    ids = create_questions(make_question())
    test_id = _create_test(client, ids).json()["testId"]

    response = client.post("/api/tests/{}/questions".format(test_id), json={"questionIds": []})
    assert response.status_code == 400

    for bad in ([True], ["1"], [0], [-3]):
        response = client.post("/api/tests/{}/questions".format(test_id), json={"questionIds": bad})
        assert response.status_code == 400, bad


def test_add_questions_to_missing_test_fails(client, create_questions):
    ids = create_questions(make_question())

    response = client.post("/api/tests/555/questions", json={"questionIds": ids})
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to add questions."


def test_removing_an_unlinked_question_succeeds(client, create_questions):
    ids = create_questions(make_question(), make_question())
    test_id = _create_test(client, ids[:1]).json()["testId"]

    response = client.request("DELETE", "/api/tests/{}/questions".format(test_id),
                              json={"questionId": ids[1]})

    assert response.status_code == 200
    assert response.json()["message"] == "Question removed successfully."
    assert len(client.get("/api/tests/{}".format(test_id)).json()["questions"]) == 1


def test_remove_question_requires_id(client, create_questions):
    ids = create_questions(make_question())
    test_id = _create_test(client, ids).json()["testId"]

    response = client.request("DELETE", "/api/tests/{}/questions".format(test_id), json={})
    assert response.status_code == 400


def test_remove_question_rejects_non_identifiers(client, create_questions):
    ids = create_questions(make_question())
    test_id = _create_test(client, ids).json()["testId"]

    for bad in (0, True, "1", None):
        response = client.request("DELETE", "/api/tests/{}/questions".format(test_id),
                                  json={"questionId": bad})
        assert response.status_code == 400, bad

    # The link is still there
    assert [q["id"] for q in client.get("/api/tests/{}".format(test_id)).json()["questions"]] == ids


def test_update_test(client, create_questions):
    ids = create_questions(make_question())
    test_id = _create_test(client, ids).json()["testId"]

    response = client.put("/api/tests/{}".format(test_id), json={
        "name": "Renamed", "description": "new", "duration_minutes": 45})

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["duration_minutes"] == 45
    assert client.get("/api/tests/{}".format(test_id)).json()["description"] == "new"


def test_update_test_validation_and_missing(client):
    response = client.put("/api/tests/1", json={"name": "n", "description": "d"})
    assert response.status_code == 400

    response = client.put("/api/tests/x", json={
        "name": "n", "description": "d", "duration_minutes": 5})
    assert response.status_code == 400

    response = client.put("/api/tests/77", json={
        "name": "n", "description": "d", "duration_minutes": 5})
    assert response.status_code == 404


def test_delete_test_cascades_links(client, create_questions, database):
    ids = create_questions(make_question(), make_question())
    test_id = _create_test(client, ids).json()["testId"]

    response = client.delete("/api/tests/{}".format(test_id))

    assert response.status_code == 200
    assert client.get("/api/tests/{}".format(test_id)).status_code == 404
    with database.session() as session:
        assert session.execute(select(func.count()).select_from(TestQuestion)).scalar_one() == 0
    # Questions themselves are untouched
    assert len(client.get("/api/questions").json()["questions"]) == 2


def test_delete_test_rejects_bad_id(client):
    assert client.delete("/api/tests/abc").status_code == 400

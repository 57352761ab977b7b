# tests/v1/test_questions.py
"""Tests for question endpoints."""

from fastapi import status
from sqlalchemy import select

from fluent_forum.models import Activity, Answer, Question, Vote


def _question_payload(**overrides):
    payload = {
        "title": "Difference between 'affect' and 'effect'",
        "content": "I mix these two words up all the time.",
        "tags": ["vocabulary", " confusing-words "],
        "categories": ["vocabulary"],
        "difficulty_levels": ["beginner"],
    }
    payload.update(overrides)
    return payload


def test_create_question(client, author, headers_for, db_session) -> None:
    """Creating a question returns it and logs the activity."""
    response = client.post("/api/v1/questions/", json=_question_payload(), headers=headers_for(author))
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["author_id"] == author.id
    assert data["votes"] == 0
    assert data["accepted_answer_id"] is None
    assert data["tags"] == ["vocabulary", "confusing-words"]

    entry = db_session.execute(select(Activity)).scalar_one()
    assert entry.type == "question_created"
    assert entry.target_id == data["id"]


def test_create_question_requires_category(client, author, headers_for) -> None:
    """At least one known category is required."""
    headers = headers_for(author)
    assert client.post(
        "/api/v1/questions/", json=_question_payload(categories=[]), headers=headers
    ).status_code == 422
    assert client.post(
        "/api/v1/questions/", json=_question_payload(categories=["cooking"]), headers=headers
    ).status_code == 422


def test_get_question_counts_views(client, question, make_answer, voter) -> None:
    """Each read bumps the view counter and includes the answers."""
    make_answer(voter)

    first = client.get(f"/api/v1/questions/{question.id}")
    second = client.get(f"/api/v1/questions/{question.id}")

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["view_count"] == 1
    assert second.json()["view_count"] == 2
    assert second.json()["answer_count"] == 1
    assert len(second.json()["answers"]) == 1


def test_get_missing_question(client) -> None:
    """An unknown question is a 404."""
    response = client.get("/api/v1/questions/999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_questions_filters_and_sorts(client, author, headers_for) -> None:
    """Listing supports category filters, search and vote ordering."""
    headers = headers_for(author)
    grammar = client.post(
        "/api/v1/questions/",
        json=_question_payload(title="Articles before vowels", categories=["grammar"]),
        headers=headers,
    ).json()
    client.post("/api/v1/questions/", json=_question_payload(), headers=headers)

    by_category = client.get("/api/v1/questions/", params={"category": "grammar"}).json()
    assert [item["id"] for item in by_category["items"]] == [grammar["id"]]

    by_search = client.get("/api/v1/questions/", params={"search": "vowels"}).json()
    assert [item["id"] for item in by_search["items"]] == [grammar["id"]]

    newest = client.get("/api/v1/questions/", params={"sort": "newest", "limit": 1}).json()
    assert newest["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}
    assert newest["items"][0]["id"] != grammar["id"]


def test_update_question(client, question, author, headers_for) -> None:
    """The author can edit a question."""
    response = client.put(
        f"/api/v1/questions/{question.id}",
        json={"title": "Present perfect vs simple past"},
        headers=headers_for(author),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Present perfect vs simple past"


def test_update_question_forbidden(client, question, voter, headers_for) -> None:
    """Other students cannot edit the question."""
    response = client.put(
        f"/api/v1/questions/{question.id}",
        json={"title": "Hijacked"},
        headers=headers_for(voter),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_question_removes_answers_and_votes(
    client, question, author, answer, voter, headers_for, db_session
) -> None:
    """Deleting a question removes its answers and every vote on them."""
    client.post(
        f"/api/v1/votes/questions/{question.id}", json={"voteType": "up"}, headers=headers_for(voter)
    )
    client.post(
        f"/api/v1/votes/answers/{answer.id}", json={"voteType": "up"}, headers=headers_for(author)
    )

    response = client.delete(f"/api/v1/questions/{question.id}", headers=headers_for(author))
    assert response.status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(Question, question.id) is None
    assert list(db_session.execute(select(Answer)).scalars()) == []
    assert list(db_session.execute(select(Vote)).scalars()) == []


def test_delete_question_forbidden(client, question, voter, headers_for) -> None:
    """Only the author or an admin may delete a question."""
    response = client.delete(f"/api/v1/questions/{question.id}", headers=headers_for(voter))
    assert response.status_code == status.HTTP_403_FORBIDDEN

# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fluent_forum.api.v1.endpoints.auth import create_access_token
from fluent_forum.core.security import hash_password
from fluent_forum.db.session import Base
from fluent_forum.db.session import get_db as app_get_session
from fluent_forum.main import app as fastapi_app
from fluent_forum.models import Answer, Question, User

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)
# Hashed once; bcrypt is deliberately slow.
_TEST_PASSWORD_HASH = hash_password("password123")


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services own their commits, so each test gets a plain session and the
    # tables are emptied afterwards instead of rolling back a savepoint.
    session = Session(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with unique names."""

    def _make_user(role: str = "student", reputation: int = 0) -> User:
        n = next(_USER_COUNTER)
        user = User(
            username=f"user{n}",
            email=f"user{n}@example.com",
            password_hash=_TEST_PASSWORD_HASH,
            role=role,
            reputation=reputation,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def author(make_user: Callable[..., User]) -> User:
    """Author of the default question."""
    return make_user()


@pytest.fixture()
def voter(make_user: Callable[..., User]) -> User:
    """A user who votes on content."""
    return make_user()


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    """A user with the admin role."""
    return make_user(role="admin")


@pytest.fixture()
def question(db_session: Session, author: User) -> Question:
    """Create a baseline question."""
    question = Question(
        author_id=author.id,
        title="When do I use the present perfect?",
        content="I never know whether to say 'I saw' or 'I have seen'.",
        tags=["tenses"],
        categories=["grammar"],
        difficulty_levels=["intermediate"],
    )
    db_session.add(question)
    db_session.commit()
    db_session.refresh(question)
    return question


@pytest.fixture()
def make_answer(db_session: Session, question: Question) -> Callable[[User], Answer]:
    """Return a factory that answers the baseline question."""

    def _make_answer(answer_author: User) -> Answer:
        answer = Answer(
            question_id=question.id,
            author_id=answer_author.id,
            content="Use it for past actions with present relevance.",
        )
        db_session.add(answer)
        db_session.commit()
        db_session.refresh(answer)
        return answer

    return _make_answer


@pytest.fixture()
def answer(make_answer: Callable[[User], Answer], voter: User) -> Answer:
    """An answer to the baseline question written by ``voter``."""
    return make_answer(voter)


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for a user."""

    def _headers_for(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers_for

# tests/services/test_voting.py
"""Tests for the vote ledger and aggregate updater."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from fluent_forum.models import Activity, Vote
from fluent_forum.models.vote import TargetKind, VoteDirection
from fluent_forum.services.errors import (
    InvalidArgumentError,
    NotFoundError,
    PartialFailureError,
)
from fluent_forum.services.voting import VoteAction, VoteService, plan_vote


def _ledger(db_session, kind=None):
    stmt = select(Vote)
    if kind is not None:
        stmt = stmt.where(Vote.target_kind == kind.value)
    return list(db_session.execute(stmt).scalars())


@pytest.mark.parametrize(
    ("kind", "existing", "requested", "expected"),
    [
        (TargetKind.QUESTION, None, VoteDirection.UP, (VoteAction.CREATED, 1, 2)),
        (TargetKind.QUESTION, None, VoteDirection.DOWN, (VoteAction.CREATED, -1, -1)),
        (TargetKind.QUESTION, VoteDirection.UP, VoteDirection.UP, (VoteAction.RETRACTED, -1, -2)),
        (TargetKind.QUESTION, VoteDirection.DOWN, VoteDirection.DOWN, (VoteAction.RETRACTED, 1, 1)),
        (TargetKind.QUESTION, VoteDirection.DOWN, VoteDirection.UP, (VoteAction.FLIPPED, 2, 4)),
        (TargetKind.QUESTION, VoteDirection.UP, VoteDirection.DOWN, (VoteAction.FLIPPED, -2, -4)),
        (TargetKind.ANSWER, None, VoteDirection.UP, (VoteAction.CREATED, 1, 5)),
        (TargetKind.ANSWER, None, VoteDirection.DOWN, (VoteAction.CREATED, -1, -1)),
        (TargetKind.ANSWER, VoteDirection.UP, VoteDirection.UP, (VoteAction.RETRACTED, -1, -5)),
        (TargetKind.ANSWER, VoteDirection.DOWN, VoteDirection.DOWN, (VoteAction.RETRACTED, 1, 1)),
        (TargetKind.ANSWER, VoteDirection.DOWN, VoteDirection.UP, (VoteAction.FLIPPED, 2, 10)),
        (TargetKind.ANSWER, VoteDirection.UP, VoteDirection.DOWN, (VoteAction.FLIPPED, -2, -10)),
    ],
)
def test_plan_vote_deltas(kind, existing, requested, expected) -> None:
    """Each ledger transition yields the fixed count and reputation deltas."""
    delta = plan_vote(kind, existing, requested)
    assert (delta.action, delta.count, delta.reputation) == expected


def test_upvote_retract_then_downvote_question(db_session, question, author, voter) -> None:
    """Up, up again, then down walks the question and its author through 1/2, 0/0, -1/-1."""
    service = VoteService(db_session)

    outcome = service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")
    db_session.refresh(author)
    assert outcome.votes == 1
    assert outcome.user_vote is VoteDirection.UP
    assert outcome.action is VoteAction.CREATED
    assert author.reputation == 2

    outcome = service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")
    db_session.refresh(author)
    assert outcome.votes == 0
    assert outcome.user_vote is None
    assert outcome.action is VoteAction.RETRACTED
    assert author.reputation == 0
    assert _ledger(db_session) == []

    outcome = service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "down")
    db_session.refresh(author)
    db_session.refresh(question)
    assert outcome.votes == -1
    assert question.votes == -1
    assert author.reputation == -1


def test_flip_updates_ledger_row_in_place(db_session, question, author, voter) -> None:
    """Flipping keeps a single ledger row and moves the count by two."""
    service = VoteService(db_session)
    service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")

    outcome = service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "down")

    db_session.refresh(author)
    rows = _ledger(db_session)
    assert outcome.action is VoteAction.FLIPPED
    assert outcome.votes == -1
    assert outcome.user_vote is VoteDirection.DOWN
    assert author.reputation == 2 - 4
    assert len(rows) == 1
    assert rows[0].direction == "down"


def test_answer_votes_weigh_more(db_session, answer, voter, make_user) -> None:
    """An upvote on an answer gives its author five reputation."""
    other = make_user()
    answer_author_id = answer.author_id

    outcome = VoteService(db_session).cast_vote(other.id, answer.id, "Answer", "up")

    db_session.refresh(answer)
    db_session.refresh(voter)
    assert answer_author_id == voter.id
    assert outcome.votes == 1
    assert answer.votes == 1
    assert voter.reputation == 5


def test_one_ledger_row_per_voter_and_target(db_session, question, answer, make_user) -> None:
    """Votes from different users and on different targets are kept apart."""
    service = VoteService(db_session)
    first, second = make_user(), make_user()

    service.cast_vote(first.id, question.id, TargetKind.QUESTION, "up")
    service.cast_vote(second.id, question.id, TargetKind.QUESTION, "down")
    service.cast_vote(first.id, answer.id, TargetKind.ANSWER, "up")
    service.cast_vote(first.id, question.id, TargetKind.QUESTION, "down")

    assert len(_ledger(db_session, TargetKind.QUESTION)) == 2
    assert len(_ledger(db_session, TargetKind.ANSWER)) == 1
    assert service.get_vote_status(first.id, "Question", question.id) is VoteDirection.DOWN
    assert service.get_vote_status(second.id, "Question", question.id) is VoteDirection.DOWN
    db_session.refresh(question)
    assert question.votes == -2


def test_vote_records_activity(db_session, question, voter) -> None:
    """Each vote leaves a ``vote_cast`` entry for the voter."""
    VoteService(db_session).cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")

    entries = list(
        db_session.execute(select(Activity).where(Activity.user_id == voter.id)).scalars()
    )
    assert [entry.type for entry in entries] == ["vote_cast"]
    assert entries[0].metadata_ == {
        "voteType": "up",
        "targetKind": "Question",
        "action": "created",
    }


def test_invalid_direction_is_rejected(db_session, question, author, voter) -> None:
    """An unknown direction fails before anything is written."""
    with pytest.raises(InvalidArgumentError):
        VoteService(db_session).cast_vote(voter.id, question.id, TargetKind.QUESTION, "sideways")

    db_session.refresh(author)
    assert author.reputation == 0
    assert _ledger(db_session) == []


def test_invalid_target_kind_is_rejected(db_session, question, voter) -> None:
    """Only questions and answers can be voted on."""
    with pytest.raises(InvalidArgumentError):
        VoteService(db_session).cast_vote(voter.id, question.id, "Comment", "up")


def test_missing_target_raises_not_found(db_session, voter) -> None:
    """Voting on a target that does not exist is a NotFound error."""
    with pytest.raises(NotFoundError):
        VoteService(db_session).cast_vote(voter.id, 9999, TargetKind.ANSWER, "up")
    assert _ledger(db_session) == []


def test_failed_write_rolls_back_every_step(db_session, question, author, voter, monkeypatch) -> None:
    """A failing aggregate update leaves neither a ledger row nor a reputation change."""
    service = VoteService(db_session)
    real_increment = service.repo.increment_field

    def failing_increment(model, entity_id, field, delta):
        if field == "votes":
            raise OperationalError("UPDATE question", {}, Exception("disk I/O error"))
        return real_increment(model, entity_id, field, delta)

    monkeypatch.setattr(service.repo, "increment_field", failing_increment)

    with pytest.raises(PartialFailureError) as exc_info:
        service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")

    assert exc_info.value.step == "aggregate"
    db_session.refresh(author)
    db_session.refresh(question)
    assert author.reputation == 0
    assert question.votes == 0
    assert _ledger(db_session) == []


def test_reconcile_repairs_drift(db_session, question, make_user) -> None:
    """Reconciling overwrites a drifted counter with the ledger sum."""
    service = VoteService(db_session)
    for direction in ("up", "up", "down"):
        service.cast_vote(make_user().id, question.id, TargetKind.QUESTION, direction)

    question.votes = 42
    db_session.commit()

    dry = service.reconcile(TargetKind.QUESTION, question.id, dry_run=True)
    db_session.refresh(question)
    assert dry.drifted
    assert (dry.previous, dry.votes) == (42, 1)
    assert question.votes == 42

    result = service.reconcile("Question", question.id)
    db_session.refresh(question)
    assert result.drifted
    assert question.votes == 1

    again = service.reconcile("Question", question.id)
    assert not again.drifted


def test_reconcile_all_covers_both_kinds(db_session, question, answer, make_user) -> None:
    """Reconciling everything visits every question and answer."""
    service = VoteService(db_session)
    service.cast_vote(make_user().id, answer.id, TargetKind.ANSWER, "up")

    answer.votes = -3
    db_session.commit()

    results = service.reconcile_all()
    drifted = [result for result in results if result.drifted]
    assert {(result.target_kind, result.target_id) for result in results} == {
        (TargetKind.QUESTION, question.id),
        (TargetKind.ANSWER, answer.id),
    }
    assert [(result.target_kind, result.votes) for result in drifted] == [(TargetKind.ANSWER, 1)]


def test_reconcile_missing_target(db_session) -> None:
    """Reconciling an unknown target raises NotFound."""
    with pytest.raises(NotFoundError):
        VoteService(db_session).reconcile(TargetKind.QUESTION, 12345)


def _vote_from_another_request(engine, voter_id, question_id, direction):
    """Commit a vote through a separate session, as a concurrent request would."""
    with Session(bind=engine, expire_on_commit=False) as other:
        VoteService(other).cast_vote(voter_id, question_id, TargetKind.QUESTION, direction)


def _miss_first_ledger_read(service, monkeypatch):
    """Make the first ledger lookup report no vote, as if read before the other insert."""
    real_get_vote = service.repo.get_vote
    calls = []

    def get_vote(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real_get_vote(*args, **kwargs)

    monkeypatch.setattr(service.repo, "get_vote", get_vote)
    return calls


def test_duplicate_insert_is_retried_as_retraction(
    db_session, engine, question, author, voter, monkeypatch
) -> None:
    """Losing the insert race to the same vote retries and retracts it."""
    _vote_from_another_request(engine, voter.id, question.id, "up")
    service = VoteService(db_session, retries=2)
    calls = _miss_first_ledger_read(service, monkeypatch)

    outcome = service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")

    db_session.refresh(author)
    db_session.refresh(question)
    assert len(calls) == 2
    assert outcome.action is VoteAction.RETRACTED
    assert outcome.votes == 0
    assert outcome.reputation_delta == -2
    assert question.votes == 0
    assert author.reputation == 0
    assert _ledger(db_session) == []


def test_duplicate_insert_is_retried_as_flip(
    db_session, engine, question, author, voter, monkeypatch
) -> None:
    """Losing the insert race to the opposite vote retries and flips it."""
    _vote_from_another_request(engine, voter.id, question.id, "down")
    service = VoteService(db_session, retries=1)
    _miss_first_ledger_read(service, monkeypatch)

    outcome = service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")

    db_session.refresh(author)
    rows = _ledger(db_session)
    assert outcome.action is VoteAction.FLIPPED
    assert outcome.votes == 1
    assert author.reputation == -1 + 4
    assert [row.direction for row in rows] == ["up"]


def test_duplicate_insert_without_retries_fails_cleanly(
    db_session, engine, question, author, voter, monkeypatch
) -> None:
    """With retries disabled the conflict surfaces as a ledger failure and nothing changes."""
    _vote_from_another_request(engine, voter.id, question.id, "up")
    service = VoteService(db_session, retries=0)
    _miss_first_ledger_read(service, monkeypatch)

    with pytest.raises(PartialFailureError) as exc_info:
        service.cast_vote(voter.id, question.id, TargetKind.QUESTION, "up")

    db_session.refresh(author)
    db_session.refresh(question)
    assert exc_info.value.step == "ledger"
    assert question.votes == 1
    assert author.reputation == 2
    assert [row.direction for row in _ledger(db_session)] == ["up"]


def test_reconcile_reads_current_counter(db_session, engine, question) -> None:
    """Reconcile compares against the stored counter, not a stale loaded copy."""
    assert question.votes == 0
    with Session(bind=engine) as other:
        other.get(type(question), question.id).votes = 9
        other.commit()

    result = VoteService(db_session).reconcile(TargetKind.QUESTION, question.id)

    assert (result.previous, result.votes) == (9, 0)
    assert result.drifted
    db_session.refresh(question)
    assert question.votes == 0

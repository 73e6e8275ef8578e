# backend/tests/test_lifecycle.py
from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from offday.errors import ConflictError, Forbidden, NotFoundError, ValidationError
from offday.models import Offday, OffdayRequest, RequestStatus
from offday.roles import Role
from offday.schemas import DecisionIn, RequestCreate, RequestUpdate
from offday.services.lifecycle import DECIDERS, RequestLifecycle, count_days
from offday.stores import RequestStore, UserStore

from conftest import TEACHER


def _new(lifecycle, caller, start="2024-03-01", end="2024-03-03", subject="Conference"):
    return lifecycle.create(
        caller,
        RequestCreate(
            subject=subject,
            start_date=start,
            end_date=end,
            description="Attending conf",
        ),
    )


def _ledger(db, request_id=None):
    q = select(func.count()).select_from(Offday)
    if request_id is not None:
        q = q.where(Offday.request_id == request_id)
    return db.execute(q).scalar_one()


# ---- day counting -----------------------------------------------------------

def test_same_day_counts_one():
    assert count_days(date(2024, 3, 1), date(2024, 3, 1)) == 1


def test_five_day_span():
    assert count_days(date(2024, 3, 1), date(2024, 3, 5)) == 5


def test_span_across_month_end():
    assert count_days(date(2024, 2, 27), date(2024, 3, 2)) == 5


def test_end_before_start_is_invalid():
    with pytest.raises(ValidationError):
        count_days(date(2024, 3, 2), date(2024, 3, 1))


# ---- create -----------------------------------------------------------------

def test_create_starts_pending(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    assert doc.id is not None
    assert doc.status == RequestStatus.pending
    assert doc.days == 3
    assert doc.owner_email == TEACHER
    assert doc.rejection_message is None


def test_create_with_reversed_dates_persists_nothing(lifecycle, callers, db, people):
    with pytest.raises(ValidationError):
        _new(lifecycle, callers["teacher"], start="2024-03-05", end="2024-03-01")
    assert db.execute(select(func.count()).select_from(OffdayRequest)).scalar_one() == 0


@pytest.mark.parametrize("role", ["director", "chairman"])
def test_only_teachers_create(lifecycle, callers, role):
    with pytest.raises(Forbidden):
        _new(lifecycle, callers[role])


# ---- edit / delete ----------------------------------------------------------

def test_edit_recomputes_days(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    out = lifecycle.edit(callers["teacher"], doc.id, RequestUpdate(end_date="2024-03-07"))
    assert out.end_date == date(2024, 3, 7)
    assert out.days == 7
    assert out.subject == "Conference"


def test_edit_text_only_keeps_days(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    out = lifecycle.edit(callers["teacher"], doc.id, RequestUpdate(subject="Workshop"))
    assert out.subject == "Workshop"
    assert out.days == 3


def test_edit_rejects_reversed_dates(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(ValidationError):
        lifecycle.edit(callers["teacher"], doc.id, RequestUpdate(start_date="2024-03-10"))


def test_edit_someone_elses_request_is_not_found(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(NotFoundError):
        lifecycle.edit(callers["other"], doc.id, RequestUpdate(subject="Mine now"))


def test_edit_after_forward_conflicts(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    with pytest.raises(ConflictError):
        lifecycle.edit(callers["teacher"], doc.id, RequestUpdate(subject="Too late"))


def test_delete_pending(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.delete(callers["teacher"], doc.id)
    assert RequestStore(db).get(doc.id) is None


def test_delete_unknown_is_not_found(lifecycle, callers):
    with pytest.raises(NotFoundError):
        lifecycle.delete(callers["teacher"], 999)


def test_delete_by_other_teacher_is_not_found(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(NotFoundError):
        lifecycle.delete(callers["other"], doc.id)


def test_delete_processed_conflicts(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="reject", message="No"))
    with pytest.raises(ConflictError):
        lifecycle.delete(callers["teacher"], doc.id)
    assert RequestStore(db).get(doc.id) is not None


# ---- director ---------------------------------------------------------------

def test_director_forward(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    out = lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    assert out.status == RequestStatus.in_progress
    assert out.rejection_message is None


def test_director_reject_keeps_message(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    out = lifecycle.decide(
        callers["director"], doc.id, DecisionIn(action="reject", message="Exam week")
    )
    assert out.status == RequestStatus.rejected
    assert out.rejection_message == "Exam week"


def test_director_reject_without_message_stores_empty(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    out = lifecycle.decide(callers["director"], doc.id, DecisionIn(action="reject"))
    assert out.rejection_message == ""


def test_director_acts_only_on_pending(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    with pytest.raises(ConflictError):
        lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    with pytest.raises(ConflictError):
        lifecycle.decide(callers["director"], doc.id, DecisionIn(action="reject"))


def test_director_decision_on_missing_request(lifecycle, callers):
    with pytest.raises(NotFoundError):
        lifecycle.decide(callers["director"], 42, DecisionIn(action="forward"))


@pytest.mark.parametrize(
    "role,action",
    [("teacher", "forward"), ("teacher", "accept"), ("director", "accept"), ("chairman", "forward")],
)
def test_actions_outside_role_are_forbidden(lifecycle, callers, people, role, action):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(Forbidden):
        lifecycle.decide(callers[role], doc.id, DecisionIn(action=action))


def test_role_specific_entry_points_check_role(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(Forbidden):
        lifecycle.director_decide(callers["chairman"], doc.id, DecisionIn(action="reject"))
    with pytest.raises(Forbidden):
        lifecycle.chairman_decide(callers["director"], doc.id, DecisionIn(action="reject"))


# ---- chairman ---------------------------------------------------------------

def test_accept_requires_forwarded_request(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(ConflictError, match="Not ready for acceptance"):
        lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept"))
    assert _ledger(db) == 0


def test_accept_writes_one_ledger_entry(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    out = lifecycle.decide(
        callers["chairman"],
        doc.id,
        DecisionIn(action="accept", email=TEACHER, start="2024-03-01", end="2024-03-03"),
    )
    assert out.status == RequestStatus.accepted
    assert out.rejection_message is None

    teacher = UserStore(db).get_by_email(TEACHER)
    entries = UserStore(db).offdays_for(teacher.id)
    assert [(e.start_date, e.end_date, e.request_id) for e in entries] == [
        (date(2024, 3, 1), date(2024, 3, 3), doc.id)
    ]


def test_second_accept_conflicts_without_second_entry(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept"))
    with pytest.raises(ConflictError):
        lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept"))
    assert _ledger(db, doc.id) == 1


@pytest.mark.parametrize(
    "echo",
    [{"start": "2024-01-01"}, {"end": "2024-03-30"}, {"email": "someone@else.edu"}],
)
def test_second_accept_with_other_values_still_conflicts(lifecycle, callers, db, people, echo):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept"))
    with pytest.raises(ConflictError, match="Not ready for acceptance"):
        lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept", **echo))
    assert _ledger(db, doc.id) == 1


def test_every_role_has_a_decision_entry():
    assert set(DECIDERS) == set(Role)
    assert DECIDERS[Role.teacher] is None
    assert DECIDERS[Role.chairman] is RequestLifecycle.chairman_decide


def test_accept_uses_stored_interval_not_payload(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    with pytest.raises(ValidationError):
        lifecycle.decide(
            callers["chairman"],
            doc.id,
            DecisionIn(action="accept", email="someone@else.edu"),
        )
    with pytest.raises(ValidationError):
        lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept", end="2024-03-30"))
    assert RequestStore(db).get(doc.id).status == RequestStatus.in_progress
    assert _ledger(db) == 0


def test_accept_without_owner_record_rolls_back(lifecycle, callers, db):
    # no users seeded: the owner is unknown to the user store
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    with pytest.raises(NotFoundError):
        lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept"))
    assert RequestStore(db).get(doc.id).status == RequestStatus.in_progress
    assert _ledger(db) == 0


def test_chairman_reject_from_in_progress(lifecycle, callers, db, people):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    out = lifecycle.decide(
        callers["chairman"], doc.id, DecisionIn(action="reject", message="Budget")
    )
    assert out.status == RequestStatus.rejected
    assert out.rejection_message == "Budget"
    assert _ledger(db) == 0


def test_chairman_cannot_reject_pending(lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    with pytest.raises(ConflictError):
        lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="reject"))


@pytest.mark.parametrize("terminal", ["accepted", "rejected"])
def test_terminal_states_refuse_everything(lifecycle, callers, people, terminal):
    doc = _new(lifecycle, callers["teacher"])
    lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    lifecycle.decide(
        callers["chairman"], doc.id, DecisionIn(action="accept" if terminal == "accepted" else "reject")
    )

    attempts = [
        lambda: lifecycle.edit(callers["teacher"], doc.id, RequestUpdate(subject="x")),
        lambda: lifecycle.delete(callers["teacher"], doc.id),
        lambda: lifecycle.decide(callers["director"], doc.id, DecisionIn(action="forward")),
        lambda: lifecycle.decide(callers["director"], doc.id, DecisionIn(action="reject")),
        lambda: lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="accept")),
        lambda: lifecycle.decide(callers["chairman"], doc.id, DecisionIn(action="reject")),
    ]
    for attempt in attempts:
        with pytest.raises(ConflictError):
            attempt()


# ---- concurrency ------------------------------------------------------------

def test_losing_writer_sees_conflict(session_factory, callers, people):
    s1 = session_factory()
    first = RequestLifecycle(RequestStore(s1), UserStore(s1))
    doc = _new(first, callers["teacher"])

    # second worker loaded the request while it was still pending
    s2 = session_factory()
    second = RequestLifecycle(RequestStore(s2), UserStore(s2))
    assert second.requests.get(doc.id).status == RequestStatus.pending

    first.decide(callers["director"], doc.id, DecisionIn(action="forward"))
    with pytest.raises(ConflictError):
        second.decide(callers["director"], doc.id, DecisionIn(action="reject", message="late"))
    assert second.requests.get(doc.id).status == RequestStatus.in_progress


def test_conditional_write_needs_expected_status(db, lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    store = RequestStore(db)
    assert store.transition(doc.id, RequestStatus.in_progress, status=RequestStatus.accepted) is False
    assert store.get(doc.id).status == RequestStatus.pending


def test_ledger_refuses_duplicate_entry_for_a_request(db, lifecycle, callers, people):
    doc = _new(lifecycle, callers["teacher"])
    users = UserStore(db)
    teacher = users.get_by_email(TEACHER)
    users.append_offday(teacher.id, doc.id, doc.start_date, doc.end_date)
    with pytest.raises(IntegrityError):
        users.append_offday(teacher.id, doc.id, doc.start_date, doc.end_date)
    db.rollback()

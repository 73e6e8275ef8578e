# backend/offday/services/lifecycle.py
"""
Request lifecycle: the only code allowed to create, change or remove a
leave request.

State machine
-------------
    pending --(director forward)--> in_progress --(chairman accept)--> accepted
       |                                 |
       +--(director reject)--> rejected <+--(chairman reject)

accepted and rejected are terminal. Owners may edit or delete while pending.

Every transition is a single conditional UPDATE keyed on the expected
status, so of two concurrent decisions on one request exactly one wins; the
other sees zero matched rows and gets a ConflictError. Accepting also appends
the request's interval to its owner's ledger inside the same transaction.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date

from sqlalchemy.exc import IntegrityError

from offday.auth import Caller
from offday.errors import ConflictError, Forbidden, NotFoundError, ValidationError
from offday.models.offday_request import OffdayRequest, RequestStatus
from offday.roles import Operation, PERMISSIONS, Role, require
from offday.schemas.offday_request import DecisionIn, RequestCreate, RequestUpdate
from offday.stores import RequestStore, UserStore

logger = logging.getLogger(__name__)

# (actor, action) -> (required current status, new status)
TRANSITIONS: dict[tuple[Role, Operation], tuple[RequestStatus, RequestStatus]] = {
    (Role.director, Operation.forward): (RequestStatus.pending, RequestStatus.in_progress),
    (Role.director, Operation.reject): (RequestStatus.pending, RequestStatus.rejected),
    (Role.chairman, Operation.accept): (RequestStatus.in_progress, RequestStatus.accepted),
    (Role.chairman, Operation.reject): (RequestStatus.in_progress, RequestStatus.rejected),
}

DECISIONS = frozenset({Operation.forward, Operation.accept, Operation.reject})

_unmapped = [
    (role.value, op.value)
    for role, ops in PERMISSIONS.items()
    for op in ops & DECISIONS
    if (role, op) not in TRANSITIONS
]
if _unmapped:
    raise RuntimeError(f"permitted decisions without a transition: {_unmapped}")

CONFLICT_MESSAGES = {
    (Role.chairman, Operation.accept): "Not ready for acceptance",
    (Role.chairman, Operation.reject): "Not awaiting a chairman decision",
}


def count_days(start: date, end: date) -> int:
    """Inclusive number of calendar days in [start, end]."""
    if end < start:
        raise ValidationError("End date must be after start date")
    return (end - start).days + 1


class RequestLifecycle:
    def __init__(self, requests: RequestStore, users: UserStore):
        self.requests = requests
        self.users = users

    @contextmanager
    def _unit(self):
        try:
            yield
            self.requests.commit()
        except Exception:
            self.requests.rollback()
            raise

    def _stale(self, request_id: int, owner_email: str | None, message: str):
        """Explain why a conditional write matched nothing."""
        if self.requests.get(request_id, owner_email=owner_email) is None:
            return NotFoundError("Request not found")
        return ConflictError(message)

    # ---- owner operations ---------------------------------------------------

    def create(self, caller: Caller, payload: RequestCreate) -> OffdayRequest:
        require(caller.role, Operation.create)
        days = count_days(payload.start_date, payload.end_date)
        with self._unit():
            doc = self.requests.add(
                owner_email=caller.email,
                subject=payload.subject,
                start_date=payload.start_date,
                end_date=payload.end_date,
                days=days,
                description=payload.description,
                status=RequestStatus.pending,
            )
        logger.info(f"[requests] {caller.email} created request {doc.id} ({days} day(s))")
        return doc

    def edit(self, caller: Caller, request_id: int, payload: RequestUpdate) -> OffdayRequest:
        require(caller.role, Operation.edit)
        doc = self.requests.get(request_id, owner_email=caller.email)
        if doc is None:
            raise NotFoundError("Request not found")
        if doc.status != RequestStatus.pending:
            raise ConflictError("Cannot edit request that is already processed")

        values = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "start_date" in values or "end_date" in values:
            values["days"] = count_days(
                values.get("start_date", doc.start_date),
                values.get("end_date", doc.end_date),
            )
        if not values:
            return doc

        with self._unit():
            ok = self.requests.transition(
                request_id, RequestStatus.pending, owner_email=caller.email, **values
            )
            if not ok:
                raise self._stale(
                    request_id, caller.email, "Cannot edit request that is already processed"
                )
        logger.info(f"[requests] {caller.email} edited request {request_id}: {sorted(values)}")
        return self.requests.get(request_id)

    def delete(self, caller: Caller, request_id: int) -> None:
        require(caller.role, Operation.delete)
        with self._unit():
            if not self.requests.remove(request_id, RequestStatus.pending, caller.email):
                raise self._stale(
                    request_id, caller.email, "Cannot delete request that is already processed"
                )
        logger.info(f"[requests] {caller.email} deleted request {request_id}")

    # ---- decisions ----------------------------------------------------------

    def decide(self, caller: Caller, request_id: int, payload: DecisionIn) -> OffdayRequest:
        handler = DECIDERS[caller.role]
        if handler is None:
            raise Forbidden()
        return handler(self, caller, request_id, payload)

    def director_decide(self, caller: Caller, request_id: int, payload: DecisionIn) -> OffdayRequest:
        if caller.role is not Role.director:
            raise Forbidden()
        op = Operation(payload.action)
        require(caller.role, op)
        return self._apply(caller, request_id, op, payload.message)

    def chairman_decide(self, caller: Caller, request_id: int, payload: DecisionIn) -> OffdayRequest:
        if caller.role is not Role.chairman:
            raise Forbidden()
        op = Operation(payload.action)
        require(caller.role, op)

        doc = self.requests.get(request_id)
        if doc is None:
            raise NotFoundError("Request not found")
        if op is Operation.accept:
            # a repeated accept is a conflict whatever the payload echoes
            if doc.status != RequestStatus.in_progress:
                raise ConflictError(CONFLICT_MESSAGES[(Role.chairman, Operation.accept)])
            self._check_ledger_target(doc, payload)
        return self._apply(caller, request_id, op, payload.message)

    @staticmethod
    def _check_ledger_target(doc: OffdayRequest, payload: DecisionIn) -> None:
        # The ledger entry is always built from the stored request; a client
        # that echoes different values is refused rather than trusted.
        if payload.email is not None and payload.email.strip().lower() != doc.owner_email.lower():
            raise ValidationError("email does not match the request owner")
        if payload.start is not None and payload.start != doc.start_date:
            raise ValidationError("start does not match the request")
        if payload.end is not None and payload.end != doc.end_date:
            raise ValidationError("end does not match the request")

    def _apply(
        self,
        caller: Caller,
        request_id: int,
        op: Operation,
        message: str | None,
    ) -> OffdayRequest:
        expected, target = TRANSITIONS[(caller.role, op)]
        values = {"status": target}
        if target is RequestStatus.rejected:
            values["rejection_message"] = message or ""
        else:
            values["rejection_message"] = None

        with self._unit():
            if not self.requests.transition(request_id, expected, **values):
                raise self._stale(
                    request_id, None, CONFLICT_MESSAGES.get((caller.role, op), "Already processed")
                )
            if target is RequestStatus.accepted:
                # interval comes from the row as it is inside this transaction
                self._record_leave(self.requests.get(request_id))

        logger.info(
            f"[requests] {caller.role.value} {caller.email} {op.value} request {request_id}: "
            f"{expected.value} -> {target.value}"
        )
        return self.requests.get(request_id)

    def _record_leave(self, doc: OffdayRequest) -> None:
        owner = self.users.get_by_email(doc.owner_email)
        if owner is None:
            raise NotFoundError("Request owner has no user record")
        try:
            self.users.append_offday(owner.id, doc.id, doc.start_date, doc.end_date)
        except IntegrityError:
            raise ConflictError("Leave already recorded for this request")
        logger.info(
            f"[ledger] {owner.email}: +{doc.start_date.isoformat()}..{doc.end_date.isoformat()} "
            f"(request {doc.id})"
        )


# decision entry point per role; None means the role takes no decisions
DECIDERS = {
    Role.teacher: None,
    Role.director: RequestLifecycle.director_decide,
    Role.chairman: RequestLifecycle.chairman_decide,
}

_undecided = sorted(r.value for r in set(Role) - set(DECIDERS))
if _undecided:
    raise RuntimeError(f"roles without a decision entry: {_undecided}")

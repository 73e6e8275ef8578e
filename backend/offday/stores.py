# backend/offday/stores.py
"""
Persistence capabilities handed to the lifecycle engine.

Both stores wrap a SQLAlchemy Session. Stores built on the same session share
its transaction, which is how a status flip and its ledger append commit (or
roll back) together.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import select, update, delete, func, or_, and_, exists, case
from sqlalchemy.orm import Session

from offday.models.offday_request import OffdayRequest, RequestStatus
from offday.models.user import User
from offday.models.ledger import Offday


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _count(session: Session, q) -> int:
    return session.execute(
        select(func.count()).select_from(q.order_by(None).subquery())
    ).scalar_one()


class RequestStore:
    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def get(self, request_id: int, owner_email: Optional[str] = None) -> Optional[OffdayRequest]:
        q = select(OffdayRequest).where(OffdayRequest.id == request_id)
        if owner_email is not None:
            q = q.where(OffdayRequest.owner_email == owner_email)
        return self.session.execute(
            q.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_with_owner_name(self, request_id: int, owner_email: Optional[str] = None):
        q = (
            select(OffdayRequest, User.name)
            .outerjoin(User, User.email == OffdayRequest.owner_email)
            .where(OffdayRequest.id == request_id)
        )
        if owner_email is not None:
            q = q.where(OffdayRequest.owner_email == owner_email)
        return self.session.execute(q.execution_options(populate_existing=True)).first()

    def add(self, **values) -> OffdayRequest:
        doc = OffdayRequest(**values)
        self.session.add(doc)
        self.session.flush()
        return doc

    def transition(
        self,
        request_id: int,
        expected: RequestStatus,
        owner_email: Optional[str] = None,
        **values,
    ) -> bool:
        """
        UPDATE ... WHERE id = :id AND status = :expected [AND owner_email = :owner].

        Returns False when no row matched, i.e. the request is gone or another
        writer moved it first.
        """
        conds = [OffdayRequest.id == request_id, OffdayRequest.status == expected]
        if owner_email is not None:
            conds.append(OffdayRequest.owner_email == owner_email)
        res = self.session.execute(
            update(OffdayRequest)
            .where(and_(*conds))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def remove(self, request_id: int, expected: RequestStatus, owner_email: str) -> bool:
        res = self.session.execute(
            delete(OffdayRequest)
            .where(
                and_(
                    OffdayRequest.id == request_id,
                    OffdayRequest.status == expected,
                    OffdayRequest.owner_email == owner_email,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def search(
        self,
        owner_email: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        search: str = "",
        offset: int = 0,
        limit: int = 10,
    ):
        """
        Filtered page of (OffdayRequest, owner_name) rows plus the filtered total.

        in_progress rows come first, then newest first.
        """
        q = select(OffdayRequest, User.name).outerjoin(User, User.email == OffdayRequest.owner_email)
        if owner_email is not None:
            q = q.where(OffdayRequest.owner_email == owner_email)
        if status is not None:
            q = q.where(OffdayRequest.status == status)
        if search:
            pattern = _like(search)
            q = q.where(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    OffdayRequest.owner_email.ilike(pattern, escape="\\"),
                    OffdayRequest.subject.ilike(pattern, escape="\\"),
                )
            )

        total = _count(self.session, q)

        priority = case((OffdayRequest.status == RequestStatus.in_progress, 0), else_=1)
        rows = self.session.execute(
            q.order_by(priority, OffdayRequest.created_at.desc(), OffdayRequest.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return total, rows


class UserStore:
    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def append_offday(self, user_id: int, request_id: int, start: date, end: date) -> Offday:
        """Raises IntegrityError if the request already has a ledger entry."""
        entry = Offday(user_id=user_id, request_id=request_id, start_date=start, end_date=end)
        self.session.add(entry)
        self.session.flush()
        return entry

    def offdays_for(self, user_id: int) -> list[Offday]:
        return list(
            self.session.execute(
                select(Offday)
                .where(Offday.user_id == user_id)
                .order_by(Offday.start_date, Offday.id)
            ).scalars()
        )

    def by_availability(
        self,
        day: date,
        on_leave: Optional[bool] = None,
        search: str = "",
        offset: int = 0,
        limit: int = 10,
    ):
        q = select(User)
        if search:
            pattern = _like(search)
            q = q.where(or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\")))
        if on_leave is not None:
            covering = exists().where(
                Offday.user_id == User.id,
                Offday.start_date <= day,
                Offday.end_date >= day,
            )
            q = q.where(covering if on_leave else ~covering)

        total = _count(self.session, q)
        users = self.session.execute(
            q.order_by(User.name, User.id)
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return total, users

# backend/offday/services/availability.py
"""
Who is away on a given day.

Read-only projection over the users' leave ledgers; the lifecycle's
acceptance step is the only writer of that data.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable

from offday.auth import Caller
from offday.errors import NotFoundError, ValidationError
from offday.models.ledger import Offday
from offday.schemas.availability import AvailabilityPage, UserStatusOut
from offday.services.listing import page_window, total_pages
from offday.stores import UserStore


def is_on_leave(day: date, offdays: Iterable[Offday]) -> bool:
    return any(o.start_date <= day <= o.end_date for o in offdays)


def availability_of(day: date, offdays: Iterable[Offday]) -> str:
    return "on_leave" if is_on_leave(day, offdays) else "available"


def get_availability(
    users: UserStore,
    day: date,
    status: str = "all",
    search: str = "",
    page: int = 1,
    limit: int = 10,
) -> AvailabilityPage:
    offset = page_window(page, limit)
    if status not in ("all", "on_leave", "available"):
        raise ValidationError(f"Unknown status '{status}'")
    on_leave = None if status == "all" else status == "on_leave"

    total, rows = users.by_availability(
        day, on_leave=on_leave, search=(search or "").strip(), offset=offset, limit=limit
    )
    items = [
        UserStatusOut(
            id=u.id,
            name=u.name,
            email=u.email,
            role=u.role,
            department=u.department,
            status=availability_of(day, u.offdays),
        )
        for u in rows
    ]
    return AvailabilityPage(
        items=items,
        total_items=total,
        total_pages=total_pages(total, limit),
        current_page=page,
    )


def my_offdays(users: UserStore, caller: Caller) -> list[Offday]:
    user = users.get_by_email(caller.email)
    if user is None:
        raise NotFoundError("User not found")
    return users.offdays_for(user.id)

# backend/offday/routers/users.py
from __future__ import annotations

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from offday.auth import Caller, get_caller
from offday.db import get_db
from offday.schemas.availability import AvailabilityFilter, AvailabilityPage, OffdayOut
from offday.services.availability import get_availability, my_offdays
from offday.services.listing import MAX_LIMIT
from offday.stores import UserStore


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/status", response_model=AvailabilityPage)
def users_status(
    day: date = Query(..., alias="date"),
    status: AvailabilityFilter = Query("all"),
    search: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """
    GET /users/status?date=YYYY-MM-DD&status=all|on_leave|available
    """
    return get_availability(UserStore(db), day, status=status, search=search, page=page, limit=limit)


@router.get("/me/offdays", response_model=List[OffdayOut])
def list_my_offdays(
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return my_offdays(UserStore(db), caller)

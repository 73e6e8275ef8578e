# backend/offday/routers/requests.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session

from offday.auth import Caller, get_caller
from offday.db import get_db
from offday.schemas.offday_request import (
    DecisionIn,
    RequestCreate,
    RequestOut,
    RequestPage,
    RequestUpdate,
    StatusFilter,
)
from offday.services.lifecycle import RequestLifecycle
from offday.services.listing import get_request, list_requests, MAX_LIMIT
from offday.stores import RequestStore, UserStore


router = APIRouter(prefix="/requests", tags=["requests"])


def get_lifecycle(db: Session = Depends(get_db)) -> RequestLifecycle:
    return RequestLifecycle(RequestStore(db), UserStore(db))


@router.get("", response_model=RequestPage)
def list_offday_requests(
    status: StatusFilter = Query("all"),
    search: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """
    GET /requests?status=all&search=&page=1&limit=10
    Teachers get their own requests only.
    """
    return list_requests(RequestStore(db), caller, status=status, search=search, page=page, limit=limit)


@router.post("", response_model=RequestOut, status_code=201)
def create_offday_request(
    payload: RequestCreate,
    caller: Caller = Depends(get_caller),
    engine: RequestLifecycle = Depends(get_lifecycle),
):
    """
    POST /requests
    Body: { "subject": "...", "start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD", "description": "..." }
    """
    return engine.create(caller, payload)


@router.get("/{request_id}", response_model=RequestOut)
def get_offday_request(
    request_id: int = Path(..., ge=1),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return get_request(RequestStore(db), caller, request_id)


@router.put("/{request_id}", response_model=RequestOut)
def edit_offday_request(
    payload: RequestUpdate,
    request_id: int = Path(..., ge=1),
    caller: Caller = Depends(get_caller),
    engine: RequestLifecycle = Depends(get_lifecycle),
):
    return engine.edit(caller, request_id, payload)


@router.delete("/{request_id}")
def delete_offday_request(
    request_id: int = Path(..., ge=1),
    caller: Caller = Depends(get_caller),
    engine: RequestLifecycle = Depends(get_lifecycle),
):
    engine.delete(caller, request_id)
    return {"success": True}


@router.patch("/{request_id}/status", response_model=RequestOut)
def decide_offday_request(
    payload: DecisionIn,
    request_id: int = Path(..., ge=1),
    caller: Caller = Depends(get_caller),
    engine: RequestLifecycle = Depends(get_lifecycle),
):
    """
    PATCH /requests/{id}/status
    Director: { "action": "forward" | "reject", "message"?: "..." }
    Chairman: { "action": "accept" | "reject", "message"?: "...", "email"?, "start"?, "end"? }
    """
    return engine.decide(caller, request_id, payload)

# backend/offday/schemas/offday_request.py
from __future__ import annotations
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from offday.models.offday_request import RequestStatus


def _strip_required(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


class RequestCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    description: str = Field(..., min_length=5)

    @field_validator("subject")
    @classmethod
    def _subject_not_blank(cls, v):
        return _strip_required(v)


class RequestUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = Field(None, min_length=5)

    @field_validator("subject")
    @classmethod
    def _subject_not_blank(cls, v):
        return _strip_required(v)


class DecisionIn(BaseModel):
    """
    Body of PATCH /requests/{id}/status.

    Directors send forward|reject, chairmen accept|reject. email/start/end are
    accepted from chairman clients but only checked against the request; the
    ledger entry is always built from the stored request.
    """
    action: Literal["forward", "reject", "accept"]
    message: Optional[str] = None
    email: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None


class RequestOut(BaseModel):
    id: int
    owner_email: str
    owner_name: Optional[str] = None
    subject: str
    start_date: date
    end_date: date
    days: int
    description: str
    status: RequestStatus
    rejection_message: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RequestPage(BaseModel):
    items: List[RequestOut]
    total_items: int
    total_pages: int
    current_page: int


StatusFilter = Literal["all", "pending", "in_progress", "accepted", "rejected"]

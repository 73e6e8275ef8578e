# backend/offday/schemas/availability.py
from __future__ import annotations
from datetime import date
from typing import List, Literal, Optional
from pydantic import BaseModel
from pydantic.config import ConfigDict

from offday.roles import Role

Availability = Literal["on_leave", "available"]
AvailabilityFilter = Literal["all", "on_leave", "available"]


class UserStatusOut(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    department: Optional[str] = None
    status: Availability


class AvailabilityPage(BaseModel):
    items: List[UserStatusOut]
    total_items: int
    total_pages: int
    current_page: int


class OffdayOut(BaseModel):
    request_id: int
    start_date: date
    end_date: date

    model_config = ConfigDict(from_attributes=True)

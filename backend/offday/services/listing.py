# backend/offday/services/listing.py
from __future__ import annotations

import math

from offday.auth import Caller
from offday.errors import NotFoundError, ValidationError
from offday.models.offday_request import RequestStatus
from offday.roles import Operation, Role, require
from offday.schemas.offday_request import RequestOut, RequestPage
from offday.stores import RequestStore

MAX_LIMIT = 100


def page_window(page: int, limit: int) -> int:
    """Offset for a 1-indexed page."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")
    return (page - 1) * limit


def total_pages(total_items: int, limit: int) -> int:
    return math.ceil(total_items / limit)


def _out(doc, owner_name) -> RequestOut:
    out = RequestOut.model_validate(doc)
    out.owner_name = owner_name
    return out


def list_requests(
    requests: RequestStore,
    caller: Caller,
    status: str = "all",
    search: str = "",
    page: int = 1,
    limit: int = 10,
) -> RequestPage:
    require(caller.role, Operation.list)
    offset = page_window(page, limit)

    if status == "all":
        wanted = None
    else:
        try:
            wanted = RequestStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'")

    # teachers only ever see their own requests
    owner = caller.email if caller.role is Role.teacher else None
    total, rows = requests.search(
        owner_email=owner,
        status=wanted,
        search=(search or "").strip(),
        offset=offset,
        limit=limit,
    )
    return RequestPage(
        items=[_out(doc, name) for doc, name in rows],
        total_items=total,
        total_pages=total_pages(total, limit),
        current_page=page,
    )


def get_request(requests: RequestStore, caller: Caller, request_id: int) -> RequestOut:
    require(caller.role, Operation.list)
    owner = caller.email if caller.role is Role.teacher else None
    row = requests.get_with_owner_name(request_id, owner_email=owner)
    if row is None:
        raise NotFoundError("Request not found")
    doc, name = row
    return _out(doc, name)

# backend/offday/schemas/__init__.py

# Requests
from .offday_request import (
    RequestCreate,
    RequestUpdate,
    DecisionIn,
    RequestOut,
    RequestPage,
    StatusFilter,
)

# Availability / ledger
from .availability import (
    UserStatusOut,
    AvailabilityPage,
    AvailabilityFilter,
    OffdayOut,
)

__all__ = [
    "RequestCreate", "RequestUpdate", "DecisionIn", "RequestOut", "RequestPage", "StatusFilter",
    "UserStatusOut", "AvailabilityPage", "AvailabilityFilter", "OffdayOut",
]

# backend/offday/models/__init__.py
# Base lives in offday.db; every model module imports it from there
from offday.db import Base

# import all model modules so tables get registered on Base.metadata
from .user import User
from .offday_request import OffdayRequest, RequestStatus
from .ledger import Offday


__all__ = [
    "Base",
    "User",
    "OffdayRequest",
    "RequestStatus",
    "Offday",
]

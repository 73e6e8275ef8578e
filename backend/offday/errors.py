# backend/offday/errors.py
"""
Outcomes the request lifecycle can refuse a call with.

Every error is terminal for the call that raised it: the engine never
retries, and the HTTP layer renders it as ``{"error": message}`` with the
class' status code.
"""
from __future__ import annotations


class OffdayError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(OffdayError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(OffdayError):
    status_code = 403
    default_message = "Forbidden"


class ValidationError(OffdayError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(OffdayError):
    status_code = 404
    default_message = "Not found"


class ConflictError(OffdayError):
    status_code = 409
    default_message = "Request already processed"

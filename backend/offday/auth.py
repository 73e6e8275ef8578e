# backend/offday/auth.py
"""
Caller identity.

Login and token issuance belong to the external identity provider; this
module only verifies the bearer token it hands out and turns its claims into
a Caller. The claims are trusted as-is once the signature checks out.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Header

from offday.errors import Unauthorized
from offday.roles import Role

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-0123456789abcdef")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")


@dataclass(frozen=True)
class Caller:
    email: str
    role: Role


def decode_token(token: str) -> Caller:
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.warning(f"[auth] rejected token: {e}")
        raise Unauthorized()

    email = claims.get("email")
    if not isinstance(email, str) or not email.strip():
        raise Unauthorized()
    try:
        role = Role(claims.get("role"))
    except (TypeError, ValueError):
        raise Unauthorized()
    return Caller(email=email.strip(), role=role)


# FastAPI dependency
def get_caller(authorization: Optional[str] = Header(None)) -> Caller:
    if not authorization:
        raise Unauthorized()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized()
    return decode_token(token.strip())

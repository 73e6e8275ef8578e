# backend/offday/roles.py
"""
Closed set of roles and what each one may do.

Every role must appear in PERMISSIONS; adding a role without listing its
operations fails at import time instead of silently falling through.
"""
from __future__ import annotations

import enum

from offday.errors import Forbidden


class Role(str, enum.Enum):
    teacher = "teacher"
    director = "director"
    chairman = "chairman"


class Operation(str, enum.Enum):
    create = "create"
    edit = "edit"
    delete = "delete"
    list = "list"
    forward = "forward"
    accept = "accept"
    reject = "reject"


PERMISSIONS: dict[Role, frozenset[Operation]] = {
    Role.teacher: frozenset({Operation.create, Operation.edit, Operation.delete, Operation.list}),
    Role.director: frozenset({Operation.list, Operation.forward, Operation.reject}),
    Role.chairman: frozenset({Operation.list, Operation.accept, Operation.reject}),
}

_missing = set(Role) - set(PERMISSIONS)
if _missing:
    raise RuntimeError(f"roles without permissions: {sorted(r.value for r in _missing)}")


def can(role: Role, op: Operation) -> bool:
    return op in PERMISSIONS[role]


def require(role: Role, op: Operation) -> None:
    if not can(role, op):
        raise Forbidden()

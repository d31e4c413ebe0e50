"""
Result types shared by the grading / enrollment / exam-scheduling rules.

Rule functions never raise for an expected business outcome: a full course or
an overlapping exam is a normal negative answer. They hand back an ``Outcome``
that either carries a value or a ``Rejection``; routers turn a rejection into
an HTTP error with ``raise_for``.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STATE = "state"


HTTP_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STATE: 400,
}


@dataclass(frozen=True)
class Rejection:
    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_detail(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.details}


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def reject(cls, kind: ErrorKind, message: str, **details) -> "Outcome":
        return cls(rejection=Rejection(kind, message, details))


def not_found(message: str, **details) -> Outcome:
    return Outcome.reject(ErrorKind.NOT_FOUND, message, **details)


def conflict(message: str, **details) -> Outcome:
    return Outcome.reject(ErrorKind.CONFLICT, message, **details)


def bad_state(message: str, **details) -> Outcome:
    return Outcome.reject(ErrorKind.STATE, message, **details)


def raise_for(rejection: Rejection):
    raise HTTPException(status_code=HTTP_STATUS[rejection.kind], detail=rejection.to_detail())

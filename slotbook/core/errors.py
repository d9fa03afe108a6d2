"""Domain errors raised by the booking core.

Every error carries a machine-readable code and a user-safe message. The API
layer maps codes to HTTP statuses in one place (see ``slotbook.main``).
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_CODE = "INVALID_CODE"
    TOO_LATE = "TOO_LATE"
    INVALID_INPUT = "INVALID_INPUT"


class InvalidCodeReason(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    WRONG_PARTNER = "wrong_partner"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Raised when a slot, booking, partner or code does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.NOT_FOUND, message=message)


class ConflictError(DomainError):
    """Raised when the current state forbids the requested transition."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.CONFLICT, message=message)


_CODE_MESSAGES = {
    InvalidCodeReason.NOT_FOUND: "Discount code not found",
    InvalidCodeReason.INACTIVE: "Discount code is inactive",
    InvalidCodeReason.NOT_YET_VALID: "Discount code is not valid yet",
    InvalidCodeReason.EXPIRED: "Discount code has expired",
    InvalidCodeReason.EXHAUSTED: "Discount code is no longer available",
    InvalidCodeReason.WRONG_PARTNER: "Discount code is not valid for this partner",
}


class InvalidCodeError(DomainError):
    """Raised when a discount code fails one of its validity checks."""

    def __init__(self, reason: InvalidCodeReason) -> None:
        super().__init__(code=ErrorCode.INVALID_CODE, message=_CODE_MESSAGES[reason])
        # frozen dataclass: bypass __setattr__ for the extra field
        object.__setattr__(self, "reason", reason)


class TooLateError(DomainError):
    """Raised when an operation targets a session that already started."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.TOO_LATE, message=message)


class InvalidInputError(DomainError):
    """Raised for malformed ranges, empty selections and out-of-bound values."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)

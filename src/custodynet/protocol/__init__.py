from .enums import ErrorCode, EventType, RequestKind, RequestStatus
from .errors import (
    CustodyError,
    UnauthorizedError,
    InvalidInputError,
    InvalidAddressError,
    EmptyValueError,
    AddressMismatchError,
    RequestNotFoundError,
    IndexOutOfRangeError,
    NotPendingError,
    HashMismatchError,
    CollaboratorFailureError,
    LedgerError,
    EventLogIntegrityError,
)
from .models import Request, RequestView

__all__ = [
    "ErrorCode",
    "EventType",
    "RequestKind",
    "RequestStatus",
    "CustodyError",
    "UnauthorizedError",
    "InvalidInputError",
    "InvalidAddressError",
    "EmptyValueError",
    "AddressMismatchError",
    "RequestNotFoundError",
    "IndexOutOfRangeError",
    "NotPendingError",
    "HashMismatchError",
    "CollaboratorFailureError",
    "LedgerError",
    "EventLogIntegrityError",
    "Request",
    "RequestView",
]

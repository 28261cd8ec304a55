from typing import Optional
from .enums import ErrorCode


class CustodyError(Exception):
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.code = code or type(self).code


class UnauthorizedError(CustodyError):
    """Raised when the caller lacks the role or identity an operation requires."""

    code = ErrorCode.UNAUTHORIZED


class InvalidInputError(CustodyError):
    """Raised on malformed arguments (bad amount, empty hash)."""

    code = ErrorCode.INVALID_INPUT


class InvalidAddressError(InvalidInputError):
    """Raised when the null identity is given where a real one is required."""

    code = ErrorCode.INVALID_ADDRESS


class EmptyValueError(InvalidInputError):
    code = ErrorCode.EMPTY_VALUE


class AddressMismatchError(CustodyError):
    """Raised when a mint deposit address differs from the one on file."""

    code = ErrorCode.ADDRESS_MISMATCH


class RequestNotFoundError(CustodyError):
    code = ErrorCode.NOT_FOUND


class IndexOutOfRangeError(RequestNotFoundError):
    code = ErrorCode.INDEX_OUT_OF_RANGE


class NotPendingError(CustodyError):
    """Raised when a transition targets a request that is already terminal."""

    code = ErrorCode.NOT_PENDING


class HashMismatchError(CustodyError):
    """Raised when the supplied hash is not the current hash of the record."""

    code = ErrorCode.HASH_MISMATCH


class CollaboratorFailureError(CustodyError):
    """Raised when the token controller rejects a mint, burn or transfer."""

    code = ErrorCode.COLLABORATOR_FAILURE


class LedgerError(CustodyError):
    code = ErrorCode.LEDGER_ERROR


class EventLogIntegrityError(CustodyError):
    code = ErrorCode.EVENT_LOG_INTEGRITY

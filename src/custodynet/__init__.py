from .protocol import (
    RequestStatus,
    RequestKind,
    EventType,
    ErrorCode,
    Request,
    RequestView,
    CustodyError,
)
from .core.access import AccessPredicate, MemberRegistry, NULL_IDENTITY
from .core.directory import DepositAddressDirectory
from .core.hashing import hash_request
from .core.ledger import TokenController, InMemoryLedger
from .core.registry import RequestRegistry
from .core.settings import CustodySettings, CustodySystem, build_system, get_settings
from .events import EventLog, Event

__all__ = [
    "RequestStatus",
    "RequestKind",
    "EventType",
    "ErrorCode",
    "Request",
    "RequestView",
    "CustodyError",
    "AccessPredicate",
    "MemberRegistry",
    "NULL_IDENTITY",
    "DepositAddressDirectory",
    "hash_request",
    "TokenController",
    "InMemoryLedger",
    "RequestRegistry",
    "CustodySettings",
    "CustodySystem",
    "build_system",
    "get_settings",
    "EventLog",
    "Event",
]

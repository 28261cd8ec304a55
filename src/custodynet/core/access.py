"""
Access predicate and role checks.

The registry only ever asks two questions of the access layer: is this
identity a merchant, and is it the custodian. Checks are evaluated at the
start of each operation through ``require_merchant`` / ``require_custodian``.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol

from custodynet.events.log import EventLog
from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import (
    InvalidAddressError,
    InvalidInputError,
    IndexOutOfRangeError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

NULL_IDENTITY = "0x" + "0" * 40


def is_null_identity(identity: Optional[str]) -> bool:
    if identity is None:
        return True
    identity = identity.strip()
    return identity == "" or identity.lower() == NULL_IDENTITY


class AccessPredicate(Protocol):
    def is_merchant(self, identity: str) -> bool:
        ...

    def is_custodian(self, identity: str) -> bool:
        ...


def require_merchant(access: AccessPredicate, caller: str) -> None:
    if is_null_identity(caller) or not access.is_merchant(caller):
        raise UnauthorizedError(f"{caller!r} is not a merchant")


def require_custodian(access: AccessPredicate, caller: str) -> None:
    if is_null_identity(caller) or not access.is_custodian(caller):
        raise UnauthorizedError(f"{caller!r} is not the custodian")


class MemberRegistry:
    """
    In-memory role membership: one custodian, an ordered set of merchants.

    Only ``owner`` may change membership.
    """

    def __init__(self, owner: str, *, event_log: Optional[EventLog] = None) -> None:
        if is_null_identity(owner):
            raise InvalidAddressError("owner must not be the null identity")
        self.owner = owner
        self._event_log = event_log
        self._lock = threading.RLock()
        self._custodian: Optional[str] = None
        self._merchants: List[str] = []

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise UnauthorizedError(f"{caller!r} is not the owner")

    def set_custodian(self, caller: str, custodian: str) -> None:
        self._require_owner(caller)
        if is_null_identity(custodian):
            raise InvalidAddressError("invalid custodian address")
        with self._lock:
            self._emit(EventType.CUSTODIAN_SET, custodian=custodian)
            self._custodian = custodian
        logger.info("Custodian set to %s", custodian)

    def add_merchant(self, caller: str, merchant: str) -> None:
        self._require_owner(caller)
        if is_null_identity(merchant):
            raise InvalidAddressError("invalid merchant address")
        with self._lock:
            if merchant in self._merchants:
                raise InvalidInputError(f"merchant {merchant} already added")
            self._emit(EventType.MERCHANT_ADD, merchant=merchant)
            self._merchants.append(merchant)
        logger.info("Merchant added: %s", merchant)

    def remove_merchant(self, caller: str, merchant: str) -> None:
        self._require_owner(caller)
        if is_null_identity(merchant):
            raise InvalidAddressError("invalid merchant address")
        with self._lock:
            if merchant not in self._merchants:
                raise InvalidInputError(f"merchant {merchant} not found")
            self._emit(EventType.MERCHANT_REMOVE, merchant=merchant)
            self._merchants.remove(merchant)
        logger.info("Merchant removed: %s", merchant)

    def is_custodian(self, identity: str) -> bool:
        with self._lock:
            return self._custodian is not None and identity == self._custodian

    def is_merchant(self, identity: str) -> bool:
        with self._lock:
            return identity in self._merchants

    def get_custodian(self) -> Optional[str]:
        with self._lock:
            return self._custodian

    def get_merchant(self, index: int) -> str:
        with self._lock:
            if index < 0 or index >= len(self._merchants):
                raise IndexOutOfRangeError(f"merchant index {index} out of range")
            return self._merchants[index]

    def get_merchants(self) -> List[str]:
        with self._lock:
            return list(self._merchants)

    def merchant_count(self) -> int:
        with self._lock:
            return len(self._merchants)

    def _emit(self, event_type: EventType, **payload) -> None:
        if self._event_log is not None:
            self._event_log.emit(event_type, **payload)

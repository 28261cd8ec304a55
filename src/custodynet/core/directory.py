from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from custodynet.events.log import EventLog
from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import EmptyValueError, InvalidAddressError

from .access import AccessPredicate, is_null_identity, require_custodian, require_merchant

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


class DepositAddressDirectory:
    """
    BTC deposit addresses, keyed by merchant.

    - custodian side: where a merchant sends BTC to be minted against
    - merchant side: where the custodian releases BTC after a burn

    Last write wins; no history is kept. Reads are open to anyone.
    """

    def __init__(self, access: AccessPredicate, *, event_log: Optional[EventLog] = None) -> None:
        self._access = access
        self._event_log = event_log
        self._lock = threading.Lock()
        self._custodian_addresses: Dict[str, str] = {}
        self._merchant_addresses: Dict[str, str] = {}

    def set_custodian_deposit_address(self, caller: str, merchant: str, address: str) -> None:
        require_custodian(self._access, caller)
        if is_null_identity(merchant):
            raise InvalidAddressError("invalid merchant address")
        if _is_blank(address):
            raise EmptyValueError("invalid btc deposit address")

        with self._lock:
            self._emit(
                EventType.CUSTODIAN_BTC_DEPOSIT_ADDRESS_SET,
                merchant=merchant,
                sender=caller,
                btcDepositAddress=address,
            )
            self._custodian_addresses[merchant] = address

        logger.info("Custodian deposit address for %s set by %s", merchant, caller)

    def set_merchant_deposit_address(self, caller: str, address: str) -> None:
        require_merchant(self._access, caller)
        if _is_blank(address):
            raise EmptyValueError("invalid btc deposit address")

        with self._lock:
            self._emit(
                EventType.MERCHANT_BTC_DEPOSIT_ADDRESS_SET,
                merchant=caller,
                btcDepositAddress=address,
            )
            self._merchant_addresses[caller] = address

        logger.info("Merchant deposit address set by %s", caller)

    def custodian_deposit_address(self, merchant: str) -> str:
        with self._lock:
            return self._custodian_addresses.get(merchant, "")

    def merchant_deposit_address(self, merchant: str) -> str:
        with self._lock:
            return self._merchant_addresses.get(merchant, "")

    def _emit(self, event_type: EventType, **payload) -> None:
        if self._event_log is not None:
            self._event_log.emit(event_type, **payload)

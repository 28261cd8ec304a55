"""
Token controller interface and an in-memory ledger.

The registry calls the controller synchronously from inside a transition.
Each call either succeeds completely or reports failure (``False`` or an
exception) without changing any balance.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Protocol

from custodynet.events.log import EventLog
from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import InvalidAddressError, LedgerError, UnauthorizedError

from .access import is_null_identity

logger = logging.getLogger(__name__)

CUSTODY_ACCOUNT = "controller"


class TokenController(Protocol):
    def mint(self, to_identity: str, amount: int) -> bool:
        ...

    def burn(self, amount: int) -> bool:
        """Burn ``amount`` from the controller's own custody balance."""
        ...

    def transfer_into(self, from_identity: str, amount: int) -> bool:
        """Move ``amount`` from ``from_identity`` into controller custody."""
        ...

    def release(self, to_identity: str, amount: int) -> bool:
        """Return ``amount`` from custody; the undo of ``transfer_into``."""
        ...


class InMemoryLedger:
    """
    Pausable token ledger that also acts as the token controller.

    Balances are plain integers in the token's smallest unit. Tokens pulled
    in for burning sit under ``custody_account`` until burned.
    """

    def __init__(
        self,
        owner: str,
        *,
        name: str = "Wrapped BTC",
        symbol: str = "WBTC",
        decimals: int = 8,
        custody_account: str = CUSTODY_ACCOUNT,
        event_log: Optional[EventLog] = None,
    ) -> None:
        if is_null_identity(owner):
            raise InvalidAddressError("owner must not be the null identity")
        self.owner = owner
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.custody_account = custody_account
        self._event_log = event_log
        self._lock = threading.RLock()
        self._balances: Dict[str, int] = {}
        self._total_supply = 0
        self._paused = False

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, identity: str) -> int:
        with self._lock:
            return self._balances.get(identity, 0)

    # ------------------------------------------------------------------
    # Owner controls
    # ------------------------------------------------------------------

    def pause(self, caller: str) -> None:
        self._require_owner(caller)
        with self._lock:
            self._emit(EventType.PAUSE, sender=caller)
            self._paused = True
        logger.info("Ledger paused by %s", caller)

    def unpause(self, caller: str) -> None:
        self._require_owner(caller)
        with self._lock:
            self._emit(EventType.UNPAUSE, sender=caller)
            self._paused = False
        logger.info("Ledger unpaused by %s", caller)

    # ------------------------------------------------------------------
    # TokenController
    # ------------------------------------------------------------------

    def mint(self, to_identity: str, amount: int) -> bool:
        if is_null_identity(to_identity):
            raise InvalidAddressError("cannot mint to the null identity")
        with self._lock:
            self._require_active(amount)
            self._emit(EventType.MINT, to=to_identity, amount=amount)
            self._balances[to_identity] = self._balances.get(to_identity, 0) + amount
            self._total_supply += amount
        return True

    def burn(self, amount: int) -> bool:
        with self._lock:
            self._require_active(amount)
            self._require_balance(self.custody_account, amount)
            self._emit(EventType.BURN, burner=self.custody_account, amount=amount)
            self._balances[self.custody_account] -= amount
            self._total_supply -= amount
        return True

    def transfer_into(self, from_identity: str, amount: int) -> bool:
        self._move(from_identity, self.custody_account, amount)
        return True

    def release(self, to_identity: str, amount: int) -> bool:
        self._move(self.custody_account, to_identity, amount)
        return True

    # ------------------------------------------------------------------
    # Holder operations
    # ------------------------------------------------------------------

    def transfer(self, caller: str, to_identity: str, amount: int) -> bool:
        if is_null_identity(to_identity):
            raise InvalidAddressError("cannot transfer to the null identity")
        self._move(caller, to_identity, amount)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise UnauthorizedError(f"{caller!r} is not the ledger owner")

    def _require_active(self, amount: int) -> None:
        if self._paused:
            raise LedgerError("ledger is paused")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise LedgerError(f"invalid amount: {amount!r}")

    def _require_balance(self, identity: str, amount: int) -> None:
        balance = self._balances.get(identity, 0)
        if balance < amount:
            raise LedgerError(
                f"insufficient balance for {identity}: has {balance}, needs {amount}"
            )

    def _move(self, from_identity: str, to_identity: str, amount: int) -> None:
        with self._lock:
            self._require_active(amount)
            self._require_balance(from_identity, amount)
            self._emit(EventType.TRANSFER, **{"from": from_identity, "to": to_identity, "amount": amount})
            self._balances[from_identity] -= amount
            self._balances[to_identity] = self._balances.get(to_identity, 0) + amount

    def _emit(self, event_type: EventType, **payload) -> None:
        # Called before the balances change; a failed write aborts the call.
        if self._event_log is not None:
            self._event_log.emit(event_type, **payload)

"""
Request registry and state machine.

Mint flow (merchant → custodian):

    add_mint_request ─► PENDING ─┬─ confirm_mint_request ─► APPROVED  (ledger.mint)
                                 ├─ reject_mint_request  ─► REJECTED
                                 └─ cancel_mint_request  ─► CANCELED  (requester only)

Burn flow (merchant → custodian):

    burn ─► PENDING (tokens already burned) ─ confirm_burn_request ─► APPROVED (+ btc txid)

Each sequence is append-only and indexed twice: by nonce (list position)
and by request hash. When a hashed field changes the record is indexed
again under its new hash. The old index entry is never removed; it keeps
resolving to the same nonce, where the hash check rejects it.

Every public mutation runs under one registry-wide lock. Checks come
first, ledger calls second, the audit event third and the state change
last. A failed event write is undone on the ledger with compensating
calls, so a failure at any step leaves the sequences, the indices, the
ledger and the event log as they were.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from custodynet.events.log import EventLog
from custodynet.protocol.enums import EventType, RequestKind, RequestStatus
from custodynet.protocol.errors import (
    AddressMismatchError,
    CollaboratorFailureError,
    CustodyError,
    EmptyValueError,
    HashMismatchError,
    IndexOutOfRangeError,
    InvalidInputError,
    NotPendingError,
    RequestNotFoundError,
    UnauthorizedError,
)
from custodynet.protocol.models import Request, RequestView
from custodynet.utils.timestamps import unix_now

from .access import AccessPredicate, require_custodian, require_merchant
from .directory import DepositAddressDirectory
from .ledger import TokenController

logger = logging.getLogger(__name__)


def _validate_amount(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidInputError(f"amount must be a positive integer, got {amount!r}")
    return amount


def _validate_hash(request_hash: Any) -> str:
    if not isinstance(request_hash, str) or not request_hash.strip():
        raise InvalidInputError("request hash is empty")
    return request_hash


class RequestBook:
    """
    One append-only request sequence plus its hash → nonce index.
    """

    def __init__(self, kind: RequestKind) -> None:
        self.kind = kind
        self._requests: List[Request] = []
        self._nonce_by_hash: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._requests)

    @property
    def next_nonce(self) -> int:
        return len(self._requests)

    def append(self, request: Request) -> str:
        if request.nonce != len(self._requests):
            raise ValueError(f"non-dense nonce {request.nonce} for {self.kind.value} sequence")
        request_hash = request.compute_hash()
        self._requests.append(request)
        self._nonce_by_hash[request_hash] = request.nonce
        return request_hash

    def replace(self, request: Request) -> str:
        """Store an updated record at its nonce and index its current hash."""
        self._requests[request.nonce] = request
        request_hash = request.compute_hash()
        self._nonce_by_hash[request_hash] = request.nonce
        return request_hash

    def at(self, nonce: int) -> Request:
        if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0 or nonce >= len(self._requests):
            raise IndexOutOfRangeError(
                f"{self.kind.value} request nonce {nonce!r} out of range "
                f"(length {len(self._requests)})"
            )
        return self._requests[nonce]

    def resolve(self, request_hash: str) -> Request:
        nonce = self._nonce_by_hash.get(request_hash)
        if nonce is None:
            raise RequestNotFoundError(f"no {self.kind.value} request with hash {request_hash}")
        return self._requests[nonce]

    def pending(self, request_hash: str) -> Request:
        """
        Resolve a hash to a record that can still transition.

        The supplied hash must be the record's current hash; a hash taken
        before the record was last modified fails here even though the
        index still maps it to a nonce.
        """
        request = self.resolve(_validate_hash(request_hash))
        if request.compute_hash() != request_hash:
            logger.warning(
                "Stale %s request hash %s for nonce=%d",
                self.kind.value, request_hash, request.nonce,
            )
            raise HashMismatchError(
                "given request hash does not match a pending request"
            )
        if RequestStatus.is_terminal(request.status):
            raise NotPendingError(
                f"{self.kind.value} request {request.nonce} is {request.status.label}"
            )
        return request

    def transition(self, request: Request, to_status: RequestStatus, **changes: Any) -> Request:
        """
        Build the updated record for a status change. Nothing is stored.
        """
        if not RequestStatus.validate_transition(request.status, to_status):
            raise NotPendingError(
                f"{self.kind.value} request {request.nonce} cannot move from "
                f"{request.status.label} to {to_status.label}"
            )
        return replace(request, status=to_status, **changes)

    def __iter__(self) -> Iterator[Request]:
        return iter(list(self._requests))


class RequestRegistry:
    """
    Mint and burn request lifecycle for one custodian/merchant deployment.

    Collaborators are bound at construction:
      - access: role predicate (merchant / custodian)
      - controller: token ledger performing mint, burn and custody transfers
      - directory: BTC deposit addresses
      - event_log: audit log (optional)
      - clock: request timestamp source, UNIX seconds
    """

    def __init__(
        self,
        access: AccessPredicate,
        controller: TokenController,
        directory: DepositAddressDirectory,
        *,
        event_log: Optional[EventLog] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._access = access
        self._controller = controller
        self._directory = directory
        self._event_log = event_log
        self._clock = clock or unix_now
        self._lock = threading.RLock()
        self._mint = RequestBook(RequestKind.MINT)
        self._burn = RequestBook(RequestKind.BURN)

    @property
    def directory(self) -> DepositAddressDirectory:
        return self._directory

    # ==================================================================
    # Mint flow
    # ==================================================================

    def add_mint_request(
        self,
        caller: str,
        amount: int,
        btc_txid: str,
        btc_deposit_address: str,
    ) -> Tuple[int, str]:
        """
        Open a mint request. Returns (nonce, request_hash).
        """
        require_merchant(self._access, caller)
        amount = _validate_amount(amount)
        if btc_deposit_address is None or not btc_deposit_address.strip():
            raise EmptyValueError("invalid btc deposit address")
        if btc_deposit_address != self._directory.custodian_deposit_address(caller):
            raise AddressMismatchError("wrong btc deposit address")

        with self._lock:
            request = Request(
                requester=caller,
                amount=amount,
                btc_deposit_address=btc_deposit_address,
                btc_txid=btc_txid or "",
                nonce=self._mint.next_nonce,
                timestamp=self._clock(),
            )
            request_hash = request.compute_hash()
            self._emit(EventType.MINT_REQUEST_ADD, request, requestHash=request_hash)
            self._mint.append(request)

        logger.info("Mint request %d added by %s amount=%d", request.nonce, caller, amount)
        return request.nonce, request_hash

    def cancel_mint_request(self, caller: str, request_hash: str) -> None:
        with self._lock:
            request = self._mint.pending(request_hash)
            if caller != request.requester:
                raise UnauthorizedError("cancel sender is different than pending request initiator")

            updated = self._mint.transition(request, RequestStatus.CANCELED)
            self._emit(EventType.MINT_REQUEST_CANCEL, updated, requestHash=updated.compute_hash())
            self._mint.replace(updated)

        logger.info("Mint request %d canceled by %s", request.nonce, caller)

    def confirm_mint_request(self, caller: str, request_hash: str) -> None:
        self._confirm_or_reject_mint(caller, request_hash, confirm=True)

    def reject_mint_request(self, caller: str, request_hash: str) -> None:
        self._confirm_or_reject_mint(caller, request_hash, confirm=False)

    def _confirm_or_reject_mint(self, caller: str, request_hash: str, *, confirm: bool) -> None:
        require_custodian(self._access, caller)

        with self._lock:
            request = self._mint.pending(request_hash)
            updated = self._mint.transition(
                request, RequestStatus.APPROVED if confirm else RequestStatus.REJECTED
            )

            if confirm:
                self._call_controller("mint", self._controller.mint, request.requester, request.amount)

            try:
                self._emit(
                    EventType.MINT_CONFIRMED if confirm else EventType.MINT_REJECTED,
                    updated,
                    requestHash=updated.compute_hash(),
                    confirmed=confirm,
                )
            except Exception as exc:
                if confirm:
                    # Take the minted tokens back: pull into custody, then burn.
                    self._undo(
                        exc,
                        [
                            ("transfer_into", self._controller.transfer_into, (request.requester, request.amount)),
                            ("burn", self._controller.burn, (request.amount,)),
                        ],
                        stranded=f"{request.amount} tokens minted to {request.requester} for an unconfirmed request",
                    )
                raise

            self._mint.replace(updated)

        logger.info("Mint request %d %s by %s", request.nonce, updated.status.label, caller)

    # ==================================================================
    # Burn flow
    # ==================================================================

    def burn(self, caller: str, amount: int) -> Tuple[int, str]:
        """
        Burn ``amount`` of the caller's tokens and open a burn request.

        The tokens are pulled into custody and burned immediately; the
        custodian later attaches the BTC release txid. Returns
        (nonce, request_hash).
        """
        require_merchant(self._access, caller)
        amount = _validate_amount(amount)
        # May be blank; the custodian resolves where to release BTC.
        btc_deposit_address = self._directory.merchant_deposit_address(caller)

        with self._lock:
            request = Request(
                requester=caller,
                amount=amount,
                btc_deposit_address=btc_deposit_address,
                btc_txid="",
                nonce=self._burn.next_nonce,
                timestamp=self._clock(),
            )
            request_hash = request.compute_hash()

            self._call_controller("transfer_into", self._controller.transfer_into, caller, amount)
            try:
                self._call_controller("burn", self._controller.burn, amount)
            except CollaboratorFailureError as exc:
                self._undo(
                    exc,
                    [("release", self._controller.release, (caller, amount))],
                    stranded=f"{amount} tokens of {caller} stuck in custody",
                )
                raise

            try:
                self._emit(
                    EventType.BURNED,
                    request,
                    exclude=("btcTxid",),
                    requestHash=request_hash,
                )
            except Exception as exc:
                # The tokens are already gone; reissue them.
                self._undo(
                    exc,
                    [("mint", self._controller.mint, (caller, amount))],
                    stranded=f"{amount} tokens of {caller} burned without a burn request",
                )
                raise

            self._burn.append(request)

        logger.info("Burn request %d added by %s amount=%d", request.nonce, caller, amount)
        return request.nonce, request_hash

    def confirm_burn_request(self, caller: str, request_hash: str, btc_txid: str) -> str:
        """
        Attach the BTC release txid and approve. Returns the new request hash.

        The pre-confirmation hash stays in the index but no longer matches
        the record, so reusing it fails with HashMismatchError.
        """
        require_custodian(self._access, caller)
        if btc_txid is None or not btc_txid.strip():
            raise EmptyValueError("invalid btc txid")

        with self._lock:
            request = self._burn.pending(request_hash)
            updated = self._burn.transition(request, RequestStatus.APPROVED, btc_txid=btc_txid)
            new_hash = updated.compute_hash()
            self._emit(
                EventType.BURN_CONFIRMED,
                updated,
                inputRequestHash=request_hash,
                requestHash=new_hash,
            )
            self._burn.replace(updated)

        logger.info("Burn request %d confirmed by %s txid=%s", request.nonce, caller, btc_txid)
        return new_hash

    # ==================================================================
    # Read accessors
    # ==================================================================

    def get_mint_request(self, nonce: int) -> RequestView:
        with self._lock:
            return RequestView.of(RequestKind.MINT, self._mint.at(nonce))

    def get_burn_request(self, nonce: int) -> RequestView:
        with self._lock:
            return RequestView.of(RequestKind.BURN, self._burn.at(nonce))

    def get_mint_requests_length(self) -> int:
        with self._lock:
            return len(self._mint)

    def get_burn_requests_length(self) -> int:
        with self._lock:
            return len(self._burn)

    def find_mint_request(self, request_hash: str) -> RequestView:
        """View of the record the hash is indexed under (which may have moved on)."""
        with self._lock:
            return RequestView.of(RequestKind.MINT, self._mint.resolve(_validate_hash(request_hash)))

    def find_burn_request(self, request_hash: str) -> RequestView:
        with self._lock:
            return RequestView.of(RequestKind.BURN, self._burn.resolve(_validate_hash(request_hash)))

    def iter_mint_requests(self) -> Iterator[RequestView]:
        with self._lock:
            views = [RequestView.of(RequestKind.MINT, r) for r in self._mint]
        return iter(views)

    def iter_burn_requests(self) -> Iterator[RequestView]:
        with self._lock:
            views = [RequestView.of(RequestKind.BURN, r) for r in self._burn]
        return iter(views)

    # ==================================================================
    # Internals
    # ==================================================================

    def _call_controller(self, operation: str, fn: Callable[..., bool], *args: Any) -> None:
        try:
            ok = fn(*args)
        except CustodyError as exc:
            logger.warning("Ledger %s%r failed: %s", operation, args, exc)
            raise CollaboratorFailureError(f"ledger {operation} failed: {exc}") from exc
        except Exception as exc:
            logger.warning("Ledger %s%r raised %s", operation, args, type(exc).__name__)
            raise CollaboratorFailureError(f"ledger {operation} raised: {exc}") from exc
        if not ok:
            logger.warning("Ledger %s%r reported failure", operation, args)
            raise CollaboratorFailureError(f"ledger {operation} reported failure")

    def _undo(
        self,
        cause: BaseException,
        steps: List[Tuple[str, Callable[..., bool], Tuple[Any, ...]]],
        *,
        stranded: str,
    ) -> None:
        """
        Run compensating ledger calls after ``cause`` aborted an operation.

        If a compensating call fails too, the ledger is left inconsistent
        with the registry; one error naming both failures is raised.
        """
        for operation, fn, args in steps:
            try:
                self._call_controller(operation, fn, *args)
            except CollaboratorFailureError as undo_exc:
                logger.error(
                    "Undo via ledger %s%r failed after %s: %s",
                    operation, args, cause, stranded,
                )
                raise CollaboratorFailureError(
                    f"{cause}; undo via ledger {operation} also failed ({undo_exc}): {stranded}"
                ) from undo_exc

    def _emit(
        self,
        event_type: EventType,
        request: Request,
        *,
        exclude: Tuple[str, ...] = (),
        **extra: Any,
    ) -> None:
        if self._event_log is None:
            return
        fields = {k: v for k, v in request.event_fields().items() if k not in exclude}
        fields.update(extra)
        self._event_log.emit(event_type, **fields)

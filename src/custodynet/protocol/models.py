from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from custodynet.core.hashing import hash_request

from .enums import RequestKind, RequestStatus


@dataclass
class Request:
    """
    A mint or burn request.

    ``requester``, ``amount``, ``btc_deposit_address``, ``nonce`` and
    ``timestamp`` never change after creation. ``btc_txid`` is written once
    when a burn is confirmed; ``status`` leaves PENDING at most once.
    """

    requester: str
    amount: int
    btc_deposit_address: str
    btc_txid: str
    nonce: int
    timestamp: int
    status: RequestStatus = RequestStatus.PENDING

    def compute_hash(self) -> str:
        return hash_request(
            self.requester,
            self.amount,
            self.btc_deposit_address,
            self.btc_txid,
            self.nonce,
            self.timestamp,
        )

    def event_fields(self) -> Dict[str, Any]:
        """Request fields in the camelCase shape used by the audit log."""
        return {
            "nonce": self.nonce,
            "requester": self.requester,
            "amount": self.amount,
            "btcDepositAddress": self.btc_deposit_address,
            "btcTxid": self.btc_txid,
            "timestamp": self.timestamp,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requester": self.requester,
            "amount": self.amount,
            "btc_deposit_address": self.btc_deposit_address,
            "btc_txid": self.btc_txid,
            "nonce": self.nonce,
            "timestamp": self.timestamp,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Request:
        return cls(
            requester=data["requester"],
            amount=data["amount"],
            btc_deposit_address=data["btc_deposit_address"],
            btc_txid=data.get("btc_txid", ""),
            nonce=data["nonce"],
            timestamp=data["timestamp"],
            status=RequestStatus(data.get("status", RequestStatus.PENDING.value)),
        )


@dataclass(frozen=True)
class RequestView:
    """
    Read-only snapshot returned by the registry accessors.

    ``request_hash`` is the hash of the record at the time of the read.
    """

    kind: RequestKind
    nonce: int
    requester: str
    amount: int
    btc_deposit_address: str
    btc_txid: str
    timestamp: int
    status: str
    request_hash: str

    @classmethod
    def of(cls, kind: RequestKind, request: Request) -> RequestView:
        return cls(
            kind=kind,
            nonce=request.nonce,
            requester=request.requester,
            amount=request.amount,
            btc_deposit_address=request.btc_deposit_address,
            btc_txid=request.btc_txid,
            timestamp=request.timestamp,
            status=request.status.label,
            request_hash=request.compute_hash(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "nonce": self.nonce,
            "requester": self.requester,
            "amount": self.amount,
            "btc_deposit_address": self.btc_deposit_address,
            "btc_txid": self.btc_txid,
            "timestamp": self.timestamp,
            "status": self.status,
            "request_hash": self.request_hash,
        }

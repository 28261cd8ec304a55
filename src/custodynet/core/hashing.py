"""
Request hasher.

A request's public identifier is the SHA-256 digest of its hashable
fields, encoded as canonical JSON in a fixed order:

    requester, amount, btcDepositAddress, btcTxid, nonce, timestamp

``status`` is deliberately outside the digest. Including ``nonce`` and
``timestamp`` makes the digest unique per request even when two requests
share requester, amount and address.
"""

from __future__ import annotations

import hashlib
from typing import Any, TYPE_CHECKING

from custodynet.utils.json import canonical_json

if TYPE_CHECKING:
    from custodynet.protocol.models import Request

HASHED_FIELDS = (
    "requester",
    "amount",
    "btcDepositAddress",
    "btcTxid",
    "nonce",
    "timestamp",
)


def stable_json_hash(obj: Any) -> str:
    return hashlib.sha256(canonical_json(obj)).hexdigest()


def hash_request(
    requester: str,
    amount: int,
    btc_deposit_address: str,
    btc_txid: str,
    nonce: int,
    timestamp: int,
) -> str:
    # A list keeps field order part of the encoding.
    fields = [
        str(requester),
        int(amount),
        str(btc_deposit_address),
        str(btc_txid),
        int(nonce),
        int(timestamp),
    ]
    return stable_json_hash(fields)


def request_hash(request: "Request") -> str:
    return hash_request(
        request.requester,
        request.amount,
        request.btc_deposit_address,
        request.btc_txid,
        request.nonce,
        request.timestamp,
    )

"""
Audit log data models.

Every event is:
- Sequentially ordered
- Hash chained to its predecessor
- Timestamped (ISO 8601)
- Optionally signed (Ed25519 over event_hash)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import EventLogIntegrityError
from custodynet.utils.json import canonical_json


class EventSigner(Protocol):
    @property
    def key_id(self) -> str:
        """Unique identifier for the signing key."""
        ...

    def sign(self, data: bytes) -> bytes:
        """Sign data, return raw signature bytes."""
        ...


class EventVerifier(Protocol):
    def verify(self, data: bytes, signature: bytes, key_id: str) -> bool:
        """Verify signature. Returns True if valid, False if invalid."""
        ...


@dataclass
class Event:
    """
    Single audit log entry (append-only record).
    """

    seq: int
    event_type: EventType
    timestamp_iso: str
    payload: Dict[str, Any]

    # Integrity
    prev_hash: Optional[str] = None
    event_hash: Optional[str] = None

    # Signature
    signature: Optional[str] = None
    signer_key_id: Optional[str] = None

    version: str = "1.0"

    @property
    def name(self) -> str:
        return self.event_type.value

    @property
    def is_signed(self) -> bool:
        return self.signature is not None and self.signer_key_id is not None

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def compute_hash(self) -> str:
        data = {
            "seq": self.seq,
            "event_type": self.event_type.value,
            "timestamp_iso": self.timestamp_iso,
            "payload": self.payload,
            "prev_hash": self.prev_hash,
            "version": self.version,
        }
        return hashlib.sha256(canonical_json(data)).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "seq": self.seq,
            "event_type": self.event_type.value,
            "timestamp_iso": self.timestamp_iso,
            "payload": self.payload,
            "prev_hash": self.prev_hash,
            "event_hash": self.event_hash,
            "version": self.version,
        }
        if self.signature is not None:
            result["signature"] = self.signature
        if self.signer_key_id is not None:
            result["signer_key_id"] = self.signer_key_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Event:
        return cls(
            seq=data["seq"],
            event_type=EventType(data["event_type"]),
            timestamp_iso=data["timestamp_iso"],
            payload=data["payload"],
            prev_hash=data.get("prev_hash"),
            event_hash=data.get("event_hash"),
            signature=data.get("signature"),
            signer_key_id=data.get("signer_key_id"),
            version=data.get("version", "1.0"),
        )

    def sign(self, signer: EventSigner) -> None:
        """
        Sign this event. ``event_hash`` must already be set.
        """
        if not self.event_hash:
            raise ValueError("Cannot sign event without event_hash. Call compute_hash() first.")

        signature_bytes = signer.sign(self.event_hash.encode("utf-8"))
        self.signature = base64.b64encode(signature_bytes).decode("ascii")
        self.signer_key_id = signer.key_id

    def verify_signature(self, verifier: EventVerifier) -> bool:
        if not self.is_signed:
            raise EventLogIntegrityError(f"Event seq={self.seq} is not signed")
        if not self.event_hash:
            raise EventLogIntegrityError(f"Event seq={self.seq} has no event_hash")

        try:
            signature_bytes = base64.b64decode(self.signature, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EventLogIntegrityError(f"Invalid signature encoding: {e}") from e

        return verifier.verify(
            self.event_hash.encode("utf-8"),
            signature_bytes,
            self.signer_key_id,
        )

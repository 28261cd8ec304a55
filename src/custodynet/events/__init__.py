"""
Audit log of custody events.

The log is:
- Append-only (optionally mirrored to a JSONL file)
- Integrity-verified (hash chaining)
- Optionally signed with Ed25519
"""

from .models import Event, EventSigner, EventVerifier
from .log import EventLog, EventSigningError, verify_chain
from .signing import Ed25519EventSigner, Ed25519EventVerifier

__all__ = [
    "Event",
    "EventSigner",
    "EventVerifier",
    "EventLog",
    "EventSigningError",
    "verify_chain",
    "Ed25519EventSigner",
    "Ed25519EventVerifier",
]

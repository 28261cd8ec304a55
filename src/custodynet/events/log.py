"""
Append-only audit log.

The log is the record downstream consumers read: one event per successful
operation, none for failed ones. Entries are hash chained and, when a
signer is configured, Ed25519 signed. An optional JSONL file mirrors the
in-memory log; each line is flushed (and fsynced when ``sync`` is set)
before ``emit`` returns.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import EventLogIntegrityError
from custodynet.utils.timestamps import now_iso

from .models import Event, EventSigner, EventVerifier

logger = logging.getLogger(__name__)


class EventSigningError(RuntimeError):
    """Raised when signing is required but no signer is configured."""


class EventLog:
    """
    Thread-safe, hash-chained event log.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        *,
        signer: Optional[EventSigner] = None,
        require_signing: bool = False,
        sync: bool = True,
    ) -> None:
        if require_signing and signer is None:
            raise EventSigningError(
                "Event signing is required but no signer provided. "
                "Provide an Ed25519EventSigner."
            )

        self._path = Path(path) if path is not None else None
        self._signer = signer
        self._sync = sync
        self._lock = threading.Lock()

        self._events: List[Event] = []
        self._last_hash: Optional[str] = None

        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._resume_from_existing()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def is_signing_enabled(self) -> bool:
        return self._signer is not None

    @property
    def last_hash(self) -> Optional[str]:
        return self._last_hash

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events())

    def _resume_from_existing(self) -> None:
        """Reload events and the chain head from an existing file."""
        if not self._path.exists():
            return
        for event in _read_jsonl(self._path):
            self._events.append(event)
            self._last_hash = event.event_hash
        logger.info("Resumed event log %s at seq=%d", self._path, len(self._events))

    def emit(self, event_type: EventType, **payload: Any) -> Event:
        """
        Append an event and return it (with computed hash).

        Raises if the file write fails; the in-memory log is only updated
        after the line is on disk.
        """
        with self._lock:
            event = Event(
                seq=len(self._events) + 1,
                event_type=event_type,
                timestamp_iso=now_iso(),
                payload=dict(payload),
                prev_hash=self._last_hash,
            )
            event.event_hash = event.compute_hash()

            if self._signer is not None:
                event.sign(self._signer)

            if self._path is not None:
                line = json.dumps(event.to_dict(), ensure_ascii=False, sort_keys=True)
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
                    f.flush()
                    if self._sync:
                        os.fsync(f.fileno())

            self._events.append(event)
            self._last_hash = event.event_hash

        logger.debug("Event %s seq=%d", event_type.value, event.seq)
        return event

    def events(self, event_type: Optional[EventType] = None) -> List[Event]:
        with self._lock:
            if event_type is None:
                return list(self._events)
            return [e for e in self._events if e.event_type == event_type]

    def last(self, event_type: Optional[EventType] = None) -> Optional[Event]:
        matching = self.events(event_type)
        return matching[-1] if matching else None

    def verify_integrity(self) -> Tuple[bool, Optional[str]]:
        """
        Verify the hash chain.

        Returns (True, None) when intact, else (False, reason).
        """
        return verify_chain(self.events())

    def verify_signatures(self, verifier: EventVerifier) -> bool:
        for event in self.events():
            if not event.verify_signature(verifier):
                logger.warning("Signature verification failed at seq=%d", event.seq)
                return False
        return True

    def require_intact(self) -> None:
        ok, reason = self.verify_integrity()
        if not ok:
            raise EventLogIntegrityError(reason or "event log integrity check failed")

    @classmethod
    def load(cls, path: Union[str, Path]) -> List[Event]:
        """Read events from a JSONL file without opening it for writing."""
        return list(_read_jsonl(Path(path)))


def verify_chain(events: List[Event]) -> Tuple[bool, Optional[str]]:
    prev_hash: Optional[str] = None
    for i, event in enumerate(events, start=1):
        if event.seq != i:
            return False, f"Sequence gap at seq={event.seq} (expected {i})"
        if event.prev_hash != prev_hash:
            return False, f"Chain broken at seq={event.seq}"
        if event.compute_hash() != event.event_hash:
            return False, f"Hash mismatch at seq={event.seq}"
        prev_hash = event.event_hash
    return True, None


def _read_jsonl(path: Path) -> Iterator[Event]:
    if not path.exists():
        return
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise EventLogIntegrityError(f"Corrupted event log {path} at line {lineno}") from e
            yield Event.from_dict(data)

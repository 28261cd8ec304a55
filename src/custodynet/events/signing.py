"""
Ed25519 signing for audit log events.

Key IDs are the first 16 hex chars of SHA-256 over the raw public key.
Verification is offline: all public keys must be pre-loaded.
"""

from __future__ import annotations

import hashlib
from typing import Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)


def _raw_public_bytes(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


class Ed25519EventSigner:
    """
    Implements the EventSigner protocol.

    Usage:
        signer = Ed25519EventSigner.from_pem_file("/path/to/key.pem")
        log = EventLog(signer=signer)
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self._key_id = hashlib.sha256(_raw_public_bytes(self._public_key)).hexdigest()[:16]

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def public_key_bytes(self) -> bytes:
        return _raw_public_bytes(self._public_key)

    def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data)

    @classmethod
    def generate(cls) -> "Ed25519EventSigner":
        """Generate a fresh key pair. Intended for tests and local setups."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, key_bytes: bytes) -> "Ed25519EventSigner":
        return cls(Ed25519PrivateKey.from_private_bytes(key_bytes))

    @classmethod
    def from_pem_file(cls, path: str, password: Optional[bytes] = None) -> "Ed25519EventSigner":
        with open(path, "rb") as f:
            private_key = serialization.load_pem_private_key(f.read(), password=password)
        if not isinstance(private_key, Ed25519PrivateKey):
            raise TypeError(f"Expected Ed25519 private key, got {type(private_key)}")
        return cls(private_key)

    def export_private_pem(self) -> bytes:
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )


class Ed25519EventVerifier:
    """
    Implements the EventVerifier protocol.
    """

    def __init__(self):
        self._public_keys: Dict[str, Ed25519PublicKey] = {}

    def add_public_key(self, key_id: str, public_key_bytes: bytes) -> None:
        self._public_keys[key_id] = Ed25519PublicKey.from_public_bytes(public_key_bytes)

    def add_from_signer(self, signer: Ed25519EventSigner) -> None:
        self.add_public_key(signer.key_id, signer.public_key_bytes)

    def has_key(self, key_id: str) -> bool:
        return key_id in self._public_keys

    def verify(self, data: bytes, signature: bytes, key_id: str) -> bool:
        public_key = self._public_keys.get(key_id)
        if public_key is None:
            return False
        try:
            public_key.verify(signature, data)
            return True
        except InvalidSignature:
            return False

"""Pseudonymous identity model.

Each installation owns exactly one :class:`Identity`: an Ed25519 keypair plus
a short human-memorable handle derived from the public key.  The handle is a
label, not a credential; collisions in its 10 000-value space are expected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Identity:
    """The local installation's pseudonymous identity.

    Attributes:
        public_key: Raw 32-byte Ed25519 public key.
        private_key: PKCS#8 DER-encoded Ed25519 private key.
        handle: ``User_NNNN`` label derived from the public key.
    """

    public_key: bytes
    private_key: bytes
    handle: str

    @property
    def public_key_hex(self) -> str:
        """Lowercase hex of the public key, as stored with every write."""
        return self.public_key.hex()

    def to_dict(self) -> dict[str, Any]:
        return {
            "public_key": self.public_key.hex(),
            "private_key": self.private_key.hex(),
            "handle": self.handle,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Identity:
        """Rebuild an identity from its persisted form.

        Raises:
            ValueError: If a key field is missing, empty, or not hex.
        """
        public_hex = data.get("public_key")
        private_hex = data.get("private_key")
        if not isinstance(public_hex, str) or not public_hex:
            raise ValueError("public_key missing")
        if not isinstance(private_hex, str) or not private_hex:
            raise ValueError("private_key missing")
        return cls(
            public_key=bytes.fromhex(public_hex),
            private_key=bytes.fromhex(private_hex),
            handle=str(data.get("handle") or ""),
        )

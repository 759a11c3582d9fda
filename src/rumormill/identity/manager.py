# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Identity manager — init-or-load-once pseudonymous identity.

The manager uses Ed25519 (from ``cryptography``) to generate a single
signing keypair per installation and derives a ``User_NNNN`` handle from the
public key.  The identity is persisted locally and reloaded unchanged on
every start.

Storage is pluggable: :class:`FileIdentityStore` keeps the identity as JSON
on disk; :class:`InMemoryIdentityStore` is suitable for tests.

Corrupt persisted state is treated exactly like absent state: a new identity
is generated, which discards the previous pseudonymous history.  This is
accepted behavior and is logged at WARNING so it is never silent.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from ..core.exceptions import KeyGenerationError
from .models import Identity

logger = logging.getLogger(__name__)

HANDLE_PREFIX = "User_"
HANDLE_SPACE = 10000

# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class IdentityStore(Protocol):
    """Abstract local persistence for the identity record."""

    def load(self) -> str | None: ...
    def save(self, raw: str) -> None: ...
    def clear(self) -> None: ...


class InMemoryIdentityStore:
    """Simple in-memory implementation of :class:`IdentityStore`."""

    def __init__(self, raw: str | None = None) -> None:
        self.raw = raw

    def load(self) -> str | None:
        return self.raw

    def save(self, raw: str) -> None:
        self.raw = raw

    def clear(self) -> None:
        self.raw = None


class FileIdentityStore:
    """JSON file on local disk, readable only by the owner."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def save(self, raw: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(raw)
        os.replace(tmp, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def derive_handle(public_key_hex: str) -> str:
    """Derive the ``User_NNNN`` handle for a hex-encoded public key.

    Order-dependent rolling hash ``h = h * 31 + ord(ch)`` kept as a signed
    32-bit integer, then ``abs(h) % 10000`` zero-padded to four digits.
    Not cryptographic.
    """
    h = 0
    for ch in public_key_hex:
        h = _to_int32(h * 31 + ord(ch))
    return f"{HANDLE_PREFIX}{abs(h) % HANDLE_SPACE:04d}"


def generate_keypair() -> tuple[bytes, bytes]:
    """Generate an Ed25519 keypair.

    Returns:
        Tuple of (raw 32-byte public key, PKCS#8 DER private key).

    Raises:
        KeyGenerationError: If Ed25519 is unavailable in the crypto backend.
    """
    try:
        private_key = Ed25519PrivateKey.generate()
    except UnsupportedAlgorithm as e:
        raise KeyGenerationError(f"Ed25519 key generation unavailable: {e}") from e
    public_bytes = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    private_bytes = private_key.private_bytes(Encoding.DER, PrivateFormat.PKCS8, NoEncryption())
    return public_bytes, private_bytes


# ---------------------------------------------------------------------------
# IdentityManager
# ---------------------------------------------------------------------------


class IdentityManager:
    """Service owning the installation's single identity.

    Construct once at startup and pass it to the components that write on
    behalf of the user::

        mgr = IdentityManager(FileIdentityStore(config.identity_path))
        identity = mgr.get_or_create_identity()
    """

    def __init__(self, store: IdentityStore | None = None) -> None:
        self._store: Any = store or InMemoryIdentityStore()
        self._identity: Identity | None = None

    def _load(self) -> Identity | None:
        try:
            raw = self._store.load()
            if raw is None:
                return None
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("identity record is not an object")
            identity = Identity.from_dict(data)
        except (ValueError, TypeError) as e:
            logger.warning("Persisted identity unreadable, generating a new one: %s", e)
            return None
        if not identity.handle:
            identity = Identity(identity.public_key, identity.private_key, derive_handle(identity.public_key_hex))
        return identity

    def get_or_create_identity(self) -> Identity:
        """Return the persisted identity, creating and persisting one if needed.

        Raises:
            KeyGenerationError: If a new keypair is needed and cannot be made.
        """
        if self._identity is not None:
            return self._identity

        identity = self._load()
        if identity is None:
            public_key, private_key = generate_keypair()
            identity = Identity(
                public_key=public_key,
                private_key=private_key,
                handle=derive_handle(public_key.hex()),
            )
            self._store.save(json.dumps(identity.to_dict()))
            logger.info("Created new identity %s", identity.handle)

        self._identity = identity
        return identity

    def reset(self) -> None:
        """Destroy the persisted identity. The next call creates a new one."""
        self._store.clear()
        self._identity = None
        logger.info("Identity reset")

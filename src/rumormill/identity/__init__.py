"""Pseudonymous identity for rumormill — one Ed25519 keypair per installation.

Key concepts:
- **Identity**: public/private keypair plus a derived ``User_NNNN`` handle.
- **IdentityManager**: init-or-load-once service; corrupt state regenerates.
- **derive_handle**: pure, deterministic, non-cryptographic label function.
"""

from rumormill.identity.manager import (
    FileIdentityStore,
    IdentityManager,
    InMemoryIdentityStore,
    derive_handle,
    generate_keypair,
)
from rumormill.identity.models import Identity

__all__ = [
    "FileIdentityStore",
    "Identity",
    "IdentityManager",
    "InMemoryIdentityStore",
    "derive_handle",
    "generate_keypair",
]

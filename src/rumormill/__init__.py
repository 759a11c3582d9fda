"""
rumormill - Anonymous, spam-resistant rumor board.

Pseudonymous Ed25519 identities post claims and verify/dispute votes; every
write carries a proof of work, and each claim shows a reputation-weighted
trust percentage recomputed from its votes.
"""

__version__ = "0.1.0"

"""Shared wiring for rumormill CLI commands."""

from __future__ import annotations

import logging

from ..board.service import RumorBoard
from ..core.config import get_config
from ..identity.manager import FileIdentityStore, IdentityManager
from ..storage.postgrest import PostgrestStore

logger = logging.getLogger(__name__)


def get_identity_manager() -> IdentityManager:
    """Identity manager over the configured identity file."""
    return IdentityManager(FileIdentityStore(get_config().identity_path))


def get_board() -> RumorBoard:
    """Build a board over the configured store for the local identity.

    Raises:
        ConfigException: If the store endpoint or credential is missing.
    """
    config = get_config()
    store = PostgrestStore.from_settings(config)
    identity = get_identity_manager().get_or_create_identity()
    logger.debug("Board ready for %s against %s", identity.handle, config.store_url)
    return RumorBoard(store, identity, settings=config)


def short_id(claim_id: str) -> str:
    return claim_id[:8]

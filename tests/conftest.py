"""Global test fixtures for the rumormill test suite."""

from __future__ import annotations

import os

import pytest

from rumormill.board.service import RumorBoard
from rumormill.core.config import CoreSettings, clear_config_cache, set_config
from rumormill.identity.manager import IdentityManager, InMemoryIdentityStore
from rumormill.identity.models import Identity
from rumormill.pow.engine import ProofOfWorkEngine
from rumormill.storage.backend import InMemoryRecordStore

# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all RUMORMILL_ environment variables."""
    for key in list(os.environ.keys()):
        if key.startswith("RUMORMILL_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def settings(clean_env) -> CoreSettings:
    """Low-difficulty settings so tests mine in a handful of attempts."""
    config = CoreSettings(_env_file=None, pow_difficulty=1)
    set_config(config)
    return config


# ============================================================================
# Domain Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def identity() -> Identity:
    return IdentityManager(InMemoryIdentityStore()).get_or_create_identity()


@pytest.fixture
def other_identity() -> Identity:
    return IdentityManager(InMemoryIdentityStore()).get_or_create_identity()


@pytest.fixture
def pow_engine() -> ProofOfWorkEngine:
    return ProofOfWorkEngine(yield_interval=10, progress_interval=10)


@pytest.fixture
def board(store, identity, settings, pow_engine) -> RumorBoard:
    return RumorBoard(store, identity, settings=settings, pow_engine=pow_engine)


@pytest.fixture
def other_board(store, other_identity, settings, pow_engine, board) -> RumorBoard:
    """A second participant sharing the same store and reputation ledger."""
    return RumorBoard(store, other_identity, settings=settings, pow_engine=pow_engine, ledger=board.ledger)
